"""
Pose detection boundary: landmark records and the detector interface.
"""

from .base_detector import BasePoseDetector
from .landmarks import (
    Landmark,
    LandmarkFrame,
    PoseLandmark,
    NUM_POSE_LANDMARKS,
    get_landmark,
    resolve_landmark_index,
    landmark_from_raw,
    landmarks_from_sequence,
    landmarks_from_named,
    landmarks_from_mediapipe,
)

__all__ = [
    'BasePoseDetector',
    'Landmark',
    'LandmarkFrame',
    'PoseLandmark',
    'NUM_POSE_LANDMARKS',
    'get_landmark',
    'resolve_landmark_index',
    'landmark_from_raw',
    'landmarks_from_sequence',
    'landmarks_from_named',
    'landmarks_from_mediapipe',
]
