"""
Feedback text produced by the engine.
"""

from .messages import FeedbackGenerator, DEFAULT_PHASE_MESSAGES

__all__ = ['FeedbackGenerator', 'DEFAULT_PHASE_MESSAGES']
