"""
Constants used throughout the Interview Agent application.
"""

# Default configuration values
DEFAULT_STAGE_THRESHOLD = 3
DEFAULT_RECRUITER_ID = "default_recruiter"

# Transcript roles
ROLE_CANDIDATE = "candidate"
ROLE_AGENT = "agent"

# Execution result statuses
EXECUTION_COMPLETED = "completed"
EXECUTION_PENDING = "pending"
EXECUTION_FAILED = "failed"

# Recommendation labels
RECOMMENDATION_STRONG_HIRE = "strong_hire"
RECOMMENDATION_HIRE = "hire"
RECOMMENDATION_LEAN_NO_HIRE = "lean_no_hire"
RECOMMENDATION_NO_HIRE = "no_hire"
RECOMMENDATION_INSUFFICIENT_DATA = "insufficient_data"

# Error messages
ERROR_EMPTY_RESPONSE = "Empty response received"
ERROR_SESSION_UNUSABLE = "Session transcript is exhausted; start a new session"
