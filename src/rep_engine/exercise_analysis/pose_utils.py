"""
pose_utils.py - Shared utilities for landmark lookup and joint geometry.
"""
import numpy as np
from typing import Any, Iterable, Mapping, Optional, Tuple

from ..pose_detection.landmarks import Landmark, LandmarkFrame, get_landmark

NEUTRAL_ANGLE = 180.0


def _xy(point: Any) -> Tuple[float, float]:
    if isinstance(point, Landmark):
        return point.x, point.y
    if isinstance(point, Mapping):
        return float(point["x"]), float(point["y"])
    return float(point[0]), float(point[1])


# --- Math & Geometry Utilities ---
def calculate_angle(p1: Any, p2: Any, p3: Any) -> float:
    """
    Calculate the angle at the middle point between three points.

    Point ordering convention:
    - p1: First point (e.g., hip for knee angle)
    - p2: Middle point (e.g., knee) - angle is calculated here
    - p3: Last point (e.g., ankle)

    Args:
        p1, p2, p3: Landmarks, (x, y) tuples or [x, y, ...] lists

    Returns:
        Angle in degrees folded into [0, 180]. If any point is missing the
        neutral 180.0 is returned; callers decide whether that is information.
    """
    if p1 is None or p2 is None or p3 is None:
        return NEUTRAL_ANGLE
    a = np.array(_xy(p1))
    b = np.array(_xy(p2))
    c = np.array(_xy(p3))
    radians = np.arctan2(c[1] - b[1], c[0] - b[0]) - np.arctan2(a[1] - b[1], a[0] - b[0])
    angle = float(np.abs(np.degrees(radians)))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def calculate_triplet_angle(landmarks: Optional[LandmarkFrame], triplet: Iterable[int]) -> Optional[float]:
    """Angle for a joint triplet, or None if one of its landmarks was not observed."""
    points = [get_landmark(landmarks, idx) for idx in triplet]
    if any(p is None for p in points):
        return None
    return calculate_angle(*points)


def vertical_displacement(baseline: Any, point: Any) -> float:
    """Absolute vertical travel of a point away from its baseline position."""
    return abs(_xy(point)[1] - _xy(baseline)[1])


def missing_landmarks(landmarks: Optional[LandmarkFrame], indices: Iterable[int]) -> list:
    """Indices from `indices` that are absent in this frame."""
    return [idx for idx in indices if get_landmark(landmarks, idx) is None]


def check_landmark_visibility(landmarks: Optional[LandmarkFrame], indices: Iterable[int], min_visibility: float = 0.5) -> bool:
    """Check if all listed landmarks are present and visible at or above threshold."""
    for idx in indices:
        landmark = get_landmark(landmarks, idx)
        if landmark is None or landmark.visibility < min_visibility:
            return False
    return True
