"""
Core session orchestration for the Interview Agent.
"""
