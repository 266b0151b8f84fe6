"""
AI components for the {SYSTEM_NAME} platform.
"""
