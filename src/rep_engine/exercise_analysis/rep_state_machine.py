import logging
from enum import Enum
from typing import Optional

from ..feedback.messages import FeedbackGenerator
from ..pose_detection.landmarks import Landmark, LandmarkFrame, get_landmark
from .diagnostics import Diagnostics, SessionSummary, summarize
from .pose_utils import calculate_triplet_angle, missing_landmarks, vertical_displacement
from .profiles import ExerciseProfile

# --- Logger Setup ---
logger = logging.getLogger("RepStateMachine")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


# --- Phase Enum ---
class RepPhase(Enum):
    START = "start"                        # Neutral pose, waiting for movement
    MOVING_TO_TARGET = "moving_to_target"  # Departed the up threshold
    AT_TARGET = "at_target"                # Down threshold crossed
    RETURNING = "returning"                # Coming back towards up


class RepStateMachine:
    """
    Repetition counter for one workout session.

    Consumes one primary angle plus the landmark frame it came from per call.
    Abnormal input never raises: it shows up as feedback text and flags, and
    the machine simply does not advance.
    """

    def __init__(self, profile: ExerciseProfile):
        """
        Args:
            profile: Exercise profile; shared and never modified
        """
        self.profile = profile
        self.reset()

    def reset(self) -> None:
        """Zero every counter and return to START, keeping the bound profile."""
        self.phase = RepPhase.START
        self.reps = 0
        self.feedback = ""
        self.last_angle: Optional[float] = None
        self.is_correcting = False
        self.is_valid_position = True
        self.rep_has_error = False
        self.start_joint_pos: Optional[Landmark] = None
        self.max_displacement = 0.0
        self.diagnostics = Diagnostics()

    @property
    def total_attempts(self) -> int:
        return self.diagnostics.total_attempts

    @property
    def current_angle(self) -> Optional[float]:
        return self.last_angle

    def update(self, angle: Optional[float], landmarks: Optional[LandmarkFrame]) -> bool:
        """
        Advance the machine by one frame.

        Args:
            angle: Primary joint angle for this frame, in degrees
            landmarks: The frame's landmarks, indexed by PoseLandmark

        Returns:
            True if this frame completed a counted repetition
        """
        if angle is None or missing_landmarks(landmarks, self.profile.joints):
            self.feedback = FeedbackGenerator.joints_not_visible()
            return False

        if self.profile.has_validator:
            verdict = self.profile.validate(landmarks)
            if verdict is not True:
                self.feedback = verdict or FeedbackGenerator.invalid_position()
                self.is_correcting = True
                self.is_valid_position = False
                return False
        self.is_valid_position = True
        self.last_angle = angle

        self._track_displacement(landmarks)
        rep_completed = self._advance_phase(angle)
        self._evaluate_corrections(landmarks)
        return rep_completed

    def get_summary(self) -> SessionSummary:
        """Read-only session report; repeated calls give identical results."""
        return summarize(self.reps, self.diagnostics)

    def _set_phase(self, new_phase: RepPhase) -> None:
        logger.debug(f"[{self.profile.key}] {self.phase.value} -> {new_phase.value} (angle={self.last_angle:.1f})")
        self.phase = new_phase

    def _track_displacement(self, landmarks: Optional[LandmarkFrame]) -> None:
        rule = self.profile.displacement
        if rule is None:
            return
        joint = get_landmark(landmarks, rule.joint)
        if self.phase == RepPhase.START:
            # baseline follows the neutral pose until the attempt starts
            self.start_joint_pos = joint
            self.max_displacement = 0.0
            return
        if joint is None:
            return
        if self.start_joint_pos is None:
            self.start_joint_pos = joint
            return
        self.max_displacement = max(self.max_displacement, vertical_displacement(self.start_joint_pos, joint))

    def _advance_phase(self, angle: float) -> bool:
        """One transition at most per frame. Returns True when a rep was counted."""
        up, down = self.profile.up, self.profile.down
        margin = self.profile.hysteresis_margin
        if self.profile.is_flexion:
            departed = angle < up - margin
            reached = angle <= down
            receded = angle > down + margin
            returned = angle >= up - margin
        else:
            departed = angle > up + margin
            reached = angle >= down
            receded = angle < down - margin
            returned = angle <= up + margin

        if self.phase == RepPhase.START and departed:
            self._set_phase(RepPhase.MOVING_TO_TARGET)
            self.diagnostics.total_attempts += 1
            self.rep_has_error = False
            self.feedback = self.profile.phase_message("moving_to_target")
        elif self.phase == RepPhase.MOVING_TO_TARGET and reached:
            self._set_phase(RepPhase.AT_TARGET)
            self.feedback = self.profile.phase_message("at_target")
        elif self.phase == RepPhase.AT_TARGET and receded:
            self._set_phase(RepPhase.RETURNING)
            self.feedback = self.profile.phase_message("returning")
        elif self.phase == RepPhase.RETURNING and returned:
            self._set_phase(RepPhase.START)
            return self._complete_attempt()
        return False

    def _complete_attempt(self) -> bool:
        rule = self.profile.displacement
        counted = False
        if rule is not None and self.max_displacement < rule.min_displacement:
            self.diagnostics.short_movement_count += 1
            self.feedback = FeedbackGenerator.movement_too_short()
            logger.info(f"[{self.profile.key}] Attempt rejected: displacement {self.max_displacement:.3f} < {rule.min_displacement:.3f}")
        elif self.rep_has_error:
            self.feedback = FeedbackGenerator.rep_not_counted()
            logger.info(f"[{self.profile.key}] Attempt rejected: posture violation during the rep")
        else:
            self.reps += 1
            self.feedback = self.profile.phase_message("rep_counted")
            counted = True
            logger.info(f"[{self.profile.key}] Rep #{self.reps} counted")
        self.start_joint_pos = None
        self.max_displacement = 0.0
        self.rep_has_error = False
        return counted

    def _evaluate_corrections(self, landmarks: Optional[LandmarkFrame]) -> None:
        # Every rule runs every frame; the last one that fires owns the feedback
        fired = False
        for rule in self.profile.corrections:
            angle = calculate_triplet_angle(landmarks, rule.joints)
            if angle is None or angle >= rule.min_angle:
                continue
            fired = True
            self.feedback = rule.message
            self.diagnostics.posture_violation_counts[rule.message] += 1
            if self.phase != RepPhase.START:
                self.rep_has_error = True
        self.is_correcting = fired
