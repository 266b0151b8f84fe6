"""
Interview Agent: stage-driven technical interview sessions.
"""
__version__ = "0.1.0"
