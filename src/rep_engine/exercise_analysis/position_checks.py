"""
position_checks.py - Named body-position checks and their interpreter.

A profile lists check descriptors ({"type": "upright", ...}); each type maps
to one registered function, so new exercises only add data.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from ..feedback.messages import FeedbackGenerator
from ..pose_detection.landmarks import LandmarkFrame, get_landmark, resolve_landmark_index
from .pose_utils import check_landmark_visibility

CheckFunction = Callable[[Optional[LandmarkFrame], Mapping[str, Any]], bool]

# --- Position Check Registry ---
POSITION_CHECK_REGISTRY: Dict[str, CheckFunction] = {}
# Parameters that name landmarks; resolved to indices when the catalog loads
_JOINT_PARAMS = ("upper", "lower")
_REQUIRED_PARAMS = {
    "min_visibility": ("joints",),
    "upright": ("upper", "lower"),
    "horizontal": ("upper", "lower"),
}


def register_position_check(check_type):
    def decorator(func):
        POSITION_CHECK_REGISTRY[check_type] = func
        return func
    return decorator


@dataclass(frozen=True)
class PositionCheck:
    """One position-validity descriptor from the catalog."""
    type: str
    params: Mapping[str, Any] = field(default_factory=dict)
    message: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def is_satisfied(self, landmarks: Optional[LandmarkFrame]) -> bool:
        return POSITION_CHECK_REGISTRY[self.type](landmarks, self.params)


@register_position_check("min_visibility")
def _check_min_visibility(landmarks, params):
    return check_landmark_visibility(landmarks, params["joints"], params.get("threshold", 0.5))


@register_position_check("upright")
def _check_upright(landmarks, params):
    upper = get_landmark(landmarks, params["upper"])
    lower = get_landmark(landmarks, params["lower"])
    if upper is None or lower is None:
        return False
    dx = abs(upper.x - lower.x)
    dy = lower.y - upper.y  # image y grows downwards
    return dy > 0 and dy >= dx


@register_position_check("horizontal")
def _check_horizontal(landmarks, params):
    upper = get_landmark(landmarks, params["upper"])
    lower = get_landmark(landmarks, params["lower"])
    if upper is None or lower is None:
        return False
    return abs(upper.x - lower.x) > abs(upper.y - lower.y)


def default_message(check_type: str) -> str:
    if check_type == "upright":
        return FeedbackGenerator.not_standing()
    if check_type == "horizontal":
        return FeedbackGenerator.not_horizontal()
    if check_type == "min_visibility":
        return FeedbackGenerator.low_visibility()
    return FeedbackGenerator.invalid_position()


def build_position_check(raw: Mapping[str, Any]) -> PositionCheck:
    """
    Build a PositionCheck from its catalog descriptor.

    Raises:
        ValueError: unknown check type, missing parameter or bad joint reference
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"A position check must be an object, got {type(raw).__name__}")
    check_type = raw.get("type")
    if check_type not in POSITION_CHECK_REGISTRY:
        raise ValueError(f"Unknown position check type: {check_type!r}")
    params = {k: v for k, v in raw.items() if k not in ("type", "message")}
    for name in _REQUIRED_PARAMS.get(check_type, ()):
        if name not in params:
            raise ValueError(f"Position check '{check_type}' is missing '{name}'")
    for name in _JOINT_PARAMS:
        if name in params:
            params[name] = resolve_landmark_index(params[name])
    if "joints" in params:
        params["joints"] = tuple(resolve_landmark_index(j) for j in params["joints"])
    if "threshold" in params:
        params["threshold"] = float(params["threshold"])
    return PositionCheck(type=check_type, params=params, message=raw.get("message"))


def validate_position(checks: Sequence[PositionCheck], landmarks: Optional[LandmarkFrame]) -> Union[bool, str]:
    """
    Run checks in declared order.

    Returns:
        True when every check passes, otherwise the first failing check's
        message (or the default message for its type)
    """
    for check in checks:
        if not check.is_satisfied(landmarks):
            return check.message or default_message(check.type)
    return True
