"""
Utility modules for the Interview Agent.
"""
