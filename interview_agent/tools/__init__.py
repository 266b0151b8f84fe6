"""
External capabilities used by the session agent: question generation, scoring
and remote code execution.
"""
