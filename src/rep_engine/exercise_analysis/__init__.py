"""
Exercise analysis package: angle math, exercise catalog, rep counting and diagnostics.
"""

from .pose_utils import calculate_angle, calculate_triplet_angle
from .profiles import (
    ExerciseProfile,
    JointTriplet,
    DisplacementRule,
    CorrectionRule,
    EXERCISE_PROFILES,
    get_profile,
    load_profiles,
    profile_from_config,
)
from .position_checks import PositionCheck, POSITION_CHECK_REGISTRY, register_position_check
from .diagnostics import Diagnostics, SessionSummary, summarize
from .rep_state_machine import RepPhase, RepStateMachine

__all__ = [
    'calculate_angle',
    'calculate_triplet_angle',
    'ExerciseProfile',
    'JointTriplet',
    'DisplacementRule',
    'CorrectionRule',
    'EXERCISE_PROFILES',
    'get_profile',
    'load_profiles',
    'profile_from_config',
    'PositionCheck',
    'POSITION_CHECK_REGISTRY',
    'register_position_check',
    'Diagnostics',
    'SessionSummary',
    'summarize',
    'RepPhase',
    'RepStateMachine',
]
