import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .exercise_analysis.diagnostics import SessionSummary
from .exercise_analysis.pose_utils import calculate_triplet_angle
from .exercise_analysis.profiles import ExerciseProfile, get_profile
from .exercise_analysis.rep_state_machine import RepStateMachine
from .pose_detection.base_detector import BasePoseDetector
from .pose_detection.landmarks import LandmarkFrame

logger = logging.getLogger("WorkoutSession")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(message)s'))
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


@dataclass
class FrameState:
    """Per-frame output handed to UI, telemetry and session-logging callers."""
    reps: int
    feedback: str
    is_correcting: bool
    is_valid_position: bool
    current_angle: Optional[float]
    phase: str
    rep_completed: bool = False
    body_detected: bool = True


class WorkoutSession:
    """One workout: an exercise profile bound to its own rep state machine."""

    def __init__(
        self,
        exercise_type: str = "squat",
        pose_detector: Optional[BasePoseDetector] = None,
        profiles: Optional[Mapping[str, ExerciseProfile]] = None,
    ):
        """
        Initialize the session.

        Args:
            exercise_type: Catalog key of the exercise (case-insensitive)
            pose_detector: Optional collaborator turning raw frames into landmarks
            profiles: Catalog to look the exercise up in (defaults to the shipped one)

        Raises:
            ValueError: if the exercise is not in the catalog
        """
        self.profile = get_profile(exercise_type, profiles)
        self.pose_detector = pose_detector
        self.state_machine = RepStateMachine(self.profile)
        self.frame_count = 0
        self.is_active = True
        logger.info(f"Session started: {self.profile.name} ({self.profile.key})")

    def process_landmarks(self, landmarks: Optional[LandmarkFrame]) -> FrameState:
        """
        Run one landmark frame through the engine.

        Args:
            landmarks: Landmark frame indexed by PoseLandmark

        Returns:
            FrameState with the engine's per-frame outputs
        """
        self.frame_count += 1
        angle = calculate_triplet_angle(landmarks, self.profile.joints)
        rep_completed = self.state_machine.update(angle, landmarks)
        return self._frame_state(rep_completed, current_angle=angle)

    def process_frame(self, frame: Any) -> FrameState:
        """
        Detect landmarks in a raw frame with the configured detector, then process them.

        Raises:
            RuntimeError: if the session has no pose detector
        """
        if self.pose_detector is None:
            raise RuntimeError("No pose detector configured for this session")
        landmarks = self.pose_detector.detect(frame)
        state = self.process_landmarks(landmarks or None)
        state.body_detected = bool(landmarks)
        return state

    def restart(self) -> None:
        """Start the same exercise over; counters go back to zero."""
        self.state_machine.reset()
        self.frame_count = 0
        self.is_active = True
        logger.info(f"Session restarted: {self.profile.name}")

    def finish(self) -> SessionSummary:
        """End the session and return its diagnostic summary."""
        self.is_active = False
        summary = self.state_machine.get_summary()
        logger.info(
            f"Session finished: {summary.total_reps} reps / {summary.total_attempts} attempts "
            f"over {self.frame_count} frames"
        )
        for issue in summary.critical_errors:
            logger.info(f"  - {issue}")
        return summary

    def _frame_state(self, rep_completed: bool, current_angle: Optional[float]) -> FrameState:
        machine = self.state_machine
        return FrameState(
            reps=machine.reps,
            feedback=machine.feedback,
            is_correcting=machine.is_correcting,
            is_valid_position=machine.is_valid_position,
            current_angle=current_angle if current_angle is not None else machine.current_angle,
            phase=machine.phase.value,
            rep_completed=rep_completed,
        )
