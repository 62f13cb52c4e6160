"""
landmarks.py - Landmark records and the 33-point body pose numbering.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union


class PoseLandmark(IntEnum):
    """Anatomical indices of the 33-point body pose skeleton."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


NUM_POSE_LANDMARKS = len(PoseLandmark)


@dataclass(frozen=True)
class Landmark:
    """One detected keypoint: normalized position plus visibility confidence."""
    x: float
    y: float
    visibility: float = 1.0
    z: float = 0.0  # depth, carried through but unused by the engine


# A frame is indexed by PoseLandmark; None marks "not observed this frame".
LandmarkFrame = Union[Sequence[Optional[Landmark]], Mapping[int, Landmark]]


def get_landmark(landmarks: Optional[LandmarkFrame], index: int) -> Optional[Landmark]:
    """Return the landmark at `index`, or None if it was not observed."""
    if landmarks is None:
        return None
    if isinstance(landmarks, Mapping):
        return landmarks.get(int(index))
    if 0 <= index < len(landmarks):
        return landmarks[index]
    return None


def resolve_landmark_index(value: Union[int, str]) -> int:
    """
    Turn a joint reference into a landmark index.

    Accepts an int index or a PoseLandmark name ("right_hip", "RIGHT_HIP").
    Raises ValueError for anything else.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid landmark reference: {value!r}")
    if isinstance(value, int):
        if 0 <= value < NUM_POSE_LANDMARKS:
            return value
        raise ValueError(f"Landmark index out of range: {value}")
    if isinstance(value, str):
        try:
            return int(PoseLandmark[value.strip().upper()])
        except KeyError:
            raise ValueError(f"Unknown landmark name: {value!r}") from None
    raise ValueError(f"Invalid landmark reference: {value!r}")


def landmark_from_raw(raw: Any) -> Optional[Landmark]:
    """
    Convert one raw keypoint into a Landmark.

    Args:
        raw: None, a Landmark, a dict with x/y[/visibility/z] keys,
             or a list [x, y] / [x, y, visibility] / [x, y, z, visibility]

    Returns:
        Landmark or None when the entry is absent
    """
    if raw is None or isinstance(raw, Landmark):
        return raw
    if isinstance(raw, Mapping):
        return Landmark(
            x=float(raw["x"]),
            y=float(raw["y"]),
            visibility=float(raw.get("visibility", 1.0)),
            z=float(raw.get("z", 0.0)),
        )
    values = [float(v) for v in raw]
    if len(values) == 2:
        return Landmark(values[0], values[1])
    if len(values) == 3:
        return Landmark(values[0], values[1], visibility=values[2])
    if len(values) == 4:
        # [x, y, z, visibility], as MediaPipe lists them
        return Landmark(values[0], values[1], visibility=values[3], z=values[2])
    raise ValueError(f"Cannot build a landmark from {len(values)} values")


def landmarks_from_sequence(raw_frame: Iterable[Any], min_visibility: float = 0.0) -> List[Optional[Landmark]]:
    """
    Build a landmark frame from raw keypoints.

    Entries with visibility below `min_visibility` are dropped (set to None),
    the same way the detector discards low-confidence points.
    """
    frame = []
    for raw in raw_frame:
        landmark = landmark_from_raw(raw)
        if landmark is not None and landmark.visibility < min_visibility:
            landmark = None
        frame.append(landmark)
    return frame


def landmarks_from_named(named: Mapping[str, Any], min_visibility: float = 0.0) -> Dict[int, Landmark]:
    """Build a frame from a {"left_shoulder": [x, y, z, visibility], ...} dictionary."""
    frame = {}
    for name, raw in named.items():
        landmark = landmark_from_raw(raw)
        if landmark is None or landmark.visibility < min_visibility:
            continue
        frame[resolve_landmark_index(name)] = landmark
    return frame


def landmarks_from_mediapipe(pose_landmarks: Any, min_visibility: float = 0.0) -> List[Optional[Landmark]]:
    """
    Adapt a pose-estimator result (an object exposing `.landmark`, each with
    x, y, z and visibility attributes) into a landmark frame.
    """
    if pose_landmarks is None:
        return []
    frame = []
    for point in pose_landmarks.landmark:
        visibility = float(getattr(point, "visibility", 1.0))
        if visibility < min_visibility:
            frame.append(None)
            continue
        frame.append(Landmark(
            x=float(point.x),
            y=float(point.y),
            visibility=visibility,
            z=float(getattr(point, "z", 0.0)),
        ))
    return frame
