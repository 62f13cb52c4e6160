"""
profiles.py - Data-driven exercise catalog.

Each exercise is a plain record: primary joint triplet, up/down thresholds,
position checks, an optional displacement rule and ordered correction rules.
Adding an exercise means adding an entry to exercise_profiles.json.
"""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple, Union

from ..feedback.messages import DEFAULT_PHASE_MESSAGES
from ..pose_detection.landmarks import LandmarkFrame, resolve_landmark_index
from .config_utils import load_exercise_config
from .position_checks import PositionCheck, build_position_check, validate_position

# --- Logger Setup ---
logger = logging.getLogger("ExerciseProfiles")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)

DEFAULT_HYSTERESIS_MARGIN = 10.0


class JointTriplet(NamedTuple):
    """Three landmark indices; the angle is measured at p2."""
    p1: int
    p2: int
    p3: int


@dataclass(frozen=True)
class DisplacementRule:
    """Anti-cheat rule: `joint` must travel at least `min_displacement` (normalized, vertical)."""
    joint: int
    min_displacement: float


@dataclass(frozen=True)
class CorrectionRule:
    joints: JointTriplet
    min_angle: float
    message: str


@dataclass(frozen=True, eq=False)
class ExerciseProfile:
    """
    Immutable description of one exercise, shared by every session that uses it.

    Profiles compare and hash by identity; `phase_messages` is a read-only view.
    """
    key: str
    name: str
    joints: JointTriplet
    up: float
    down: float
    hysteresis_margin: float = DEFAULT_HYSTERESIS_MARGIN
    position_checks: Tuple[PositionCheck, ...] = ()
    displacement: Optional[DisplacementRule] = None
    corrections: Tuple[CorrectionRule, ...] = ()
    phase_messages: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "phase_messages", MappingProxyType(dict(self.phase_messages)))

    @property
    def is_flexion(self) -> bool:
        """True when the angle closes during the rep (up > down)."""
        return self.up > self.down

    @property
    def has_validator(self) -> bool:
        return bool(self.position_checks)

    def validate(self, landmarks: Optional[LandmarkFrame]) -> Union[bool, str]:
        """True if the body position suits this exercise, else a user-facing message."""
        return validate_position(self.position_checks, landmarks)

    def phase_message(self, event: str) -> str:
        return self.phase_messages.get(event, DEFAULT_PHASE_MESSAGES[event])


def _triplet(raw: Any) -> JointTriplet:
    if isinstance(raw, Mapping):
        raw = [raw["p1"], raw["p2"], raw["p3"]]
    if len(raw) != 3:
        raise ValueError(f"a joint triplet needs exactly 3 landmarks, got {len(raw)}")
    return JointTriplet(*(resolve_landmark_index(j) for j in raw))


def profile_from_config(key: str, cfg: Mapping[str, Any]) -> ExerciseProfile:
    """
    Build one ExerciseProfile from its catalog entry.

    Args:
        key: Catalog key (e.g. "SQUAT")
        cfg: The entry's JSON object

    Raises:
        ValueError: if the entry is malformed
    """
    try:
        if not isinstance(cfg, Mapping):
            raise ValueError(f"entry must be an object, got {type(cfg).__name__}")
        thresholds = cfg["thresholds"]
        up = float(thresholds["up"])
        down = float(thresholds["down"])
        if up == down:
            raise ValueError("'up' and 'down' thresholds must differ")
        margin = float(cfg.get("hysteresis_margin", DEFAULT_HYSTERESIS_MARGIN))
        if margin < 0:
            raise ValueError("'hysteresis_margin' must be non-negative")

        displacement = None
        if cfg.get("displacement"):
            raw = cfg["displacement"]
            displacement = DisplacementRule(
                joint=resolve_landmark_index(raw["joint"]),
                min_displacement=float(raw["min_displacement"]),
            )

        corrections = tuple(
            CorrectionRule(
                joints=_triplet(rule["joints"]),
                min_angle=float(rule["min_angle"]),
                message=str(rule["message"]),
            )
            for rule in cfg.get("corrections", [])
        )
        checks = tuple(build_position_check(raw) for raw in cfg.get("position_checks", []))

        phase_messages = dict(cfg.get("phase_messages", {}))
        unknown = set(phase_messages) - set(DEFAULT_PHASE_MESSAGES)
        if unknown:
            raise ValueError(f"unknown phase messages: {', '.join(sorted(unknown))}")

        return ExerciseProfile(
            key=key.upper(),
            name=str(cfg.get("name", key)),
            joints=_triplet(cfg["joints"]),
            up=up,
            down=down,
            hysteresis_margin=margin,
            position_checks=checks,
            displacement=displacement,
            corrections=corrections,
            phase_messages=phase_messages,
        )
    except KeyError as e:
        logger.error(f"Exercise profile {key} is missing field {e}")
        raise ValueError(f"Invalid exercise profile '{key}': missing field {e}") from e
    except (TypeError, ValueError) as e:
        logger.error(f"Exercise profile {key} is invalid: {e}")
        raise ValueError(f"Invalid exercise profile '{key}': {e}") from e


def load_profiles(config_path: str = None) -> Dict[str, ExerciseProfile]:
    """
    Load and validate every profile in a catalog file.

    Raises:
        ValueError: if the catalog or one of its entries is malformed
    """
    config = load_exercise_config(config_path)
    if not isinstance(config, Mapping):
        logger.error(f"Exercise catalog {config_path or 'default'} is not a JSON object")
        raise ValueError("Invalid exercise catalog: top level must be an object")
    exercises = config.get("exercises", {})
    if not isinstance(exercises, Mapping):
        logger.error(f"Exercise catalog {config_path or 'default'} has a malformed 'exercises' section")
        raise ValueError("Invalid exercise catalog: 'exercises' must be an object")
    profiles = {key.upper(): profile_from_config(key, cfg) for key, cfg in exercises.items()}
    logger.debug(f"Loaded exercise profiles: {', '.join(profiles)}")
    return profiles


EXERCISE_PROFILES = load_profiles()


def get_profile(key: str, registry: Optional[Mapping[str, ExerciseProfile]] = None) -> ExerciseProfile:
    """
    Look up a profile by key, case-insensitively.

    Raises:
        ValueError: if the exercise is not in the catalog
    """
    registry = EXERCISE_PROFILES if registry is None else registry
    profile = registry.get(str(key).upper())
    if profile is None:
        raise ValueError(f"Unsupported exercise type: {key}")
    return profile
