"""
Prompt templates for the Interview Agent.
"""
