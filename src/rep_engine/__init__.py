"""
rep_engine - biomechanical repetition counting for pose-landmark streams.
"""

from .exercise_analysis import (
    EXERCISE_PROFILES,
    ExerciseProfile,
    RepPhase,
    RepStateMachine,
    SessionSummary,
    calculate_angle,
    get_profile,
)
from .pose_detection import Landmark, PoseLandmark
from .trainer import FrameState, WorkoutSession

__version__ = "1.0.0"
__all__ = [
    "EXERCISE_PROFILES",
    "ExerciseProfile",
    "RepPhase",
    "RepStateMachine",
    "SessionSummary",
    "calculate_angle",
    "get_profile",
    "Landmark",
    "PoseLandmark",
    "FrameState",
    "WorkoutSession",
]
