"""Tests for the repetition state machine and the session summary.

Covers:
  - Full cycles in both polarities
  - Hysteresis against jitter at the departure threshold
  - Displacement anti-cheat and baseline capture
  - Posture corrections and rep invalidation
  - Visibility and position gates
  - Reset and summary rules
"""

import random
from collections import Counter

import pytest

from rep_engine.exercise_analysis.diagnostics import Diagnostics, rank_violations, summarize
from rep_engine.exercise_analysis.position_checks import build_position_check
from rep_engine.exercise_analysis.profiles import (
    CorrectionRule,
    DisplacementRule,
    ExerciseProfile,
    JointTriplet,
)
from rep_engine.exercise_analysis.rep_state_machine import RepPhase, RepStateMachine
from rep_engine.feedback.messages import FeedbackGenerator
from rep_engine.pose_detection.landmarks import Landmark, NUM_POSE_LANDMARKS

BACK_MESSAGE = "Mantenha as costas retas!"

# the shipped cycle: 150 departs, 90 reaches, 110 recedes, 160 returns
CYCLE = [178, 172, 150, 90, 110, 160]
DEEP_HIPS = [0.5, 0.5, 0.5, 0.68, 0.6, 0.5]
SHALLOW_HIPS = [0.5, 0.5, 0.5, 0.54, 0.52, 0.5]


def make_profile(**overrides):
    fields = dict(
        key="TEST_SQUAT",
        name="Agachamento",
        joints=JointTriplet(24, 26, 28),
        up=165.0,
        down=95.0,
        hysteresis_margin=10.0,
        displacement=DisplacementRule(joint=24, min_displacement=0.12),
        corrections=(CorrectionRule(JointTriplet(12, 24, 26), 60.0, BACK_MESSAGE),),
    )
    fields.update(overrides)
    return ExerciseProfile(**fields)


def make_frame(hip_y=0.5, bent=False):
    """Right side of a body; `bent` folds the torso forward to 45 degrees at the hip."""
    frame = [None] * NUM_POSE_LANDMARKS
    frame[24] = Landmark(0.5, hip_y, 0.9)
    frame[26] = Landmark(0.5, 0.7, 0.9)
    frame[28] = Landmark(0.5, 0.9, 0.9)
    if bent:
        frame[12] = Landmark(0.6, hip_y + 0.1, 0.9)
    else:
        frame[12] = Landmark(0.5, hip_y - 0.3, 0.9)
    return frame


def run(machine, angles, hip_ys=None, bent_frames=()):
    hip_ys = hip_ys or [0.5] * len(angles)
    completed = []
    for i, (angle, hip_y) in enumerate(zip(angles, hip_ys)):
        completed.append(machine.update(angle, make_frame(hip_y, bent=i in bent_frames)))
    return completed


# ============================================================================
# Test: Phase Cycle
# ============================================================================

class TestPhaseCycle:

    def test_full_flexion_cycle_counts_once(self):
        machine = RepStateMachine(make_profile())
        completed = run(machine, CYCLE, DEEP_HIPS)
        assert completed == [False, False, False, False, False, True]
        assert machine.reps == 1
        assert machine.total_attempts == 1
        assert machine.phase == RepPhase.START
        assert machine.feedback == FeedbackGenerator.rep_counted()
        summary = machine.get_summary()
        assert summary.critical_errors == ("Execução perfeita!",)
        assert summary.accuracy == 100

    def test_phase_sequence_and_feedback(self):
        machine = RepStateMachine(make_profile())
        observed = []
        for angle, hip_y in zip(CYCLE, DEEP_HIPS):
            machine.update(angle, make_frame(hip_y))
            observed.append((machine.phase, machine.feedback))
        assert [phase for phase, _ in observed] == [
            RepPhase.START,
            RepPhase.START,
            RepPhase.MOVING_TO_TARGET,
            RepPhase.AT_TARGET,
            RepPhase.RETURNING,
            RepPhase.START,
        ]
        assert observed[2][1] == FeedbackGenerator.moving_to_target()
        assert observed[3][1] == FeedbackGenerator.at_target()
        assert observed[4][1] == FeedbackGenerator.returning()

    def test_one_transition_per_frame(self):
        # 80 would satisfy departure and target at once
        machine = RepStateMachine(make_profile(displacement=None))
        machine.update(80, make_frame())
        assert machine.phase == RepPhase.MOVING_TO_TARGET
        machine.update(80, make_frame())
        assert machine.phase == RepPhase.AT_TARGET

    def test_extension_polarity(self):
        profile = make_profile(up=40.0, down=150.0, hysteresis_margin=15.0, displacement=None, corrections=())
        machine = RepStateMachine(profile)
        completed = run(machine, [30, 100, 155, 120, 50])
        assert completed[-1] is True
        assert machine.reps == 1
        assert machine.total_attempts == 1

    def test_extension_profile_messages(self):
        profile = make_profile(
            up=40.0, down=150.0, hysteresis_margin=15.0, displacement=None, corrections=(),
            phase_messages={"at_target": "Excelente! Agora flexione."},
        )
        machine = RepStateMachine(profile)
        run(machine, [30, 100, 155])
        assert machine.feedback == "Excelente! Agora flexione."

    def test_jitter_at_departure_is_one_attempt(self):
        machine = RepStateMachine(make_profile())
        run(machine, [156, 154, 156, 154, 156])
        assert machine.total_attempts == 1
        assert machine.phase == RepPhase.MOVING_TO_TARGET

    def test_partial_return_does_not_count(self):
        machine = RepStateMachine(make_profile())
        run(machine, [178, 150, 90, 110, 150, 140], [0.5, 0.5, 0.68, 0.6, 0.55, 0.55])
        assert machine.phase == RepPhase.RETURNING
        assert machine.reps == 0

    def test_counters_are_monotonic(self):
        rng = random.Random(3)
        machine = RepStateMachine(make_profile())
        last_reps, last_attempts = 0, 0
        for _ in range(400):
            angle = rng.uniform(60, 180)
            bent = rng.random() < 0.1
            machine.update(angle, make_frame(rng.uniform(0.45, 0.7), bent=bent))
            assert machine.reps >= last_reps
            assert machine.total_attempts >= last_attempts
            assert machine.reps <= machine.total_attempts
            last_reps, last_attempts = machine.reps, machine.total_attempts


# ============================================================================
# Test: Displacement Anti-Cheat
# ============================================================================

class TestDisplacement:

    def test_short_movement_is_rejected(self):
        machine = RepStateMachine(make_profile())
        completed = run(machine, CYCLE, SHALLOW_HIPS)
        assert completed[-1] is False
        assert machine.reps == 0
        assert machine.total_attempts == 1
        assert machine.diagnostics.short_movement_count == 1
        assert machine.feedback == FeedbackGenerator.movement_too_short()
        assert machine.get_summary().critical_errors == (
            FeedbackGenerator.amplitude_warning(1),
            FeedbackGenerator.no_valid_reps(),
        )

    @pytest.mark.parametrize("hip_ys, expected_reps", [
        ([0.5, 0.5, 0.5, 0.68, 0.6, 0.5], 1),
        ([0.5, 0.5, 0.5, 0.54, 0.52, 0.5], 0),
    ])
    def test_squat_scenario_at_110_degrees(self, hip_ys, expected_reps):
        # baseline is taken on the departing 150 frame; travel comes after it
        machine = RepStateMachine(make_profile(down=110.0))
        run(machine, [178, 172, 150, 108, 150, 178], hip_ys)
        summary = machine.get_summary()
        assert summary.total_reps == expected_reps
        assert summary.total_attempts == 1
        if expected_reps:
            assert summary.critical_errors == ("Execução perfeita!",)
        else:
            assert summary.short_movement_count == 1
            assert summary.critical_errors[0] == FeedbackGenerator.amplitude_warning(1)

    def test_angle_only_cheat(self):
        profile = make_profile(up=178.0, down=110.0, hysteresis_margin=5.0)
        machine = RepStateMachine(profile)
        run(machine, [180, 170, 100, 170, 180], [0.5, 0.52, 0.55, 0.52, 0.5])
        assert machine.reps == 0
        assert machine.diagnostics.short_movement_count == 1

    def test_displacement_resets_between_attempts(self):
        machine = RepStateMachine(make_profile())
        run(machine, CYCLE, DEEP_HIPS)
        run(machine, CYCLE, SHALLOW_HIPS)
        assert machine.reps == 1
        assert machine.total_attempts == 2
        assert machine.start_joint_pos is None
        assert machine.max_displacement == 0.0

    def test_baseline_captured_late_when_joint_missing_at_start(self):
        profile = make_profile(displacement=DisplacementRule(joint=0, min_displacement=0.12), corrections=())
        machine = RepStateMachine(profile)
        noses = [None, None, None, 0.30, 0.45, 0.32]
        for angle, nose_y in zip(CYCLE, noses):
            frame = make_frame()
            if nose_y is not None:
                frame[0] = Landmark(0.5, nose_y, 0.9)
            machine.update(angle, frame)
        assert machine.reps == 1

    def test_profile_without_rule_counts_on_angle_alone(self):
        machine = RepStateMachine(make_profile(displacement=None))
        run(machine, CYCLE)
        assert machine.reps == 1


# ============================================================================
# Test: Posture Corrections
# ============================================================================

class TestCorrections:

    def test_violation_during_rep_invalidates_it(self):
        machine = RepStateMachine(make_profile())
        completed = run(machine, CYCLE, DEEP_HIPS, bent_frames={3})
        assert completed[-1] is False
        assert machine.reps == 0
        assert machine.total_attempts == 1
        assert machine.feedback == FeedbackGenerator.rep_not_counted()
        assert machine.diagnostics.posture_violation_counts[BACK_MESSAGE] == 1
        assert machine.get_summary().critical_errors == (BACK_MESSAGE, FeedbackGenerator.no_valid_reps())

    def test_violation_sets_feedback_and_flag(self):
        machine = RepStateMachine(make_profile())
        machine.update(178, make_frame(bent=True))
        assert machine.feedback == BACK_MESSAGE
        assert machine.is_correcting
        machine.update(178, make_frame())
        assert not machine.is_correcting

    def test_violation_at_rest_does_not_invalidate_next_rep(self):
        machine = RepStateMachine(make_profile())
        machine.update(178, make_frame(bent=True))
        run(machine, CYCLE, DEEP_HIPS)
        assert machine.reps == 1
        summary = machine.get_summary()
        assert summary.critical_errors == (BACK_MESSAGE,)
        assert summary.posture_violations == ((BACK_MESSAGE, 1),)

    def test_last_firing_rule_owns_feedback(self):
        profile = make_profile(corrections=(
            CorrectionRule(JointTriplet(12, 24, 26), 60.0, "Costas!"),
            CorrectionRule(JointTriplet(12, 24, 26), 90.0, "Tronco!"),
        ))
        machine = RepStateMachine(profile)
        machine.update(178, make_frame(bent=True))
        assert machine.feedback == "Tronco!"
        assert machine.diagnostics.posture_violation_counts == Counter({"Costas!": 1, "Tronco!": 1})

    def test_rule_with_missing_joint_is_skipped(self):
        machine = RepStateMachine(make_profile())
        frame = make_frame()
        frame[12] = None
        machine.update(178, frame)
        assert not machine.is_correcting
        assert not machine.diagnostics.posture_violation_counts

    def test_short_movement_takes_precedence(self):
        machine = RepStateMachine(make_profile())
        run(machine, CYCLE, SHALLOW_HIPS, bent_frames={3})
        assert machine.feedback == FeedbackGenerator.movement_too_short()
        assert machine.get_summary().critical_errors == (
            FeedbackGenerator.amplitude_warning(1),
            BACK_MESSAGE,
            FeedbackGenerator.no_valid_reps(),
        )


# ============================================================================
# Test: Gates
# ============================================================================

class TestGates:

    def test_missing_primary_joint_stalls(self):
        machine = RepStateMachine(make_profile())
        run(machine, [178, 150])
        frame = make_frame()
        frame[26] = None
        assert machine.update(90, frame) is False
        assert machine.phase == RepPhase.MOVING_TO_TARGET
        assert machine.feedback == FeedbackGenerator.joints_not_visible()
        assert machine.current_angle == 150

    def test_missing_angle_stalls(self):
        machine = RepStateMachine(make_profile())
        assert machine.update(None, make_frame()) is False
        assert machine.feedback == FeedbackGenerator.joints_not_visible()
        assert machine.current_angle is None

    def test_invalid_position_stalls(self):
        check = build_position_check({"type": "upright", "upper": 12, "lower": 28, "message": "Fique de pé!"})
        machine = RepStateMachine(make_profile(position_checks=(check,)))
        lying = make_frame()
        lying[12] = Landmark(0.1, 0.88, 0.9)
        lying[28] = Landmark(0.9, 0.9, 0.9)
        assert machine.update(150, lying) is False
        assert machine.phase == RepPhase.START
        assert machine.total_attempts == 0
        assert machine.feedback == "Fique de pé!"
        assert machine.is_correcting
        assert not machine.is_valid_position
        machine.update(150, make_frame())
        assert machine.is_valid_position
        assert machine.phase == RepPhase.MOVING_TO_TARGET


# ============================================================================
# Test: Reset and Summary
# ============================================================================

class TestSummary:

    def test_fresh_session_has_no_attempts(self):
        summary = RepStateMachine(make_profile()).get_summary()
        assert summary.total_reps == 0
        assert summary.total_attempts == 0
        assert summary.critical_errors == (FeedbackGenerator.no_attempts(),)
        assert summary.accuracy == 0

    def test_summary_is_read_only(self):
        machine = RepStateMachine(make_profile())
        run(machine, CYCLE, DEEP_HIPS, bent_frames={0})
        first = machine.get_summary()
        assert machine.get_summary() == first
        assert machine.reps == 1

    def test_reset_clears_everything(self):
        profile = make_profile()
        machine = RepStateMachine(profile)
        run(machine, CYCLE + CYCLE[:3], DEEP_HIPS + DEEP_HIPS[:3], bent_frames={0})
        machine.reset()
        assert machine.phase == RepPhase.START
        assert machine.reps == 0
        assert machine.total_attempts == 0
        assert machine.feedback == ""
        assert machine.current_angle is None
        assert machine.diagnostics == Diagnostics()
        assert machine.profile is profile

    def test_only_top_two_violations_reported(self):
        diagnostics = Diagnostics(
            posture_violation_counts=Counter({"a": 3, "b": 9, "c": 5}),
            total_attempts=4,
        )
        summary = summarize(3, diagnostics)
        assert summary.critical_errors == ("b", "c")
        assert summary.accuracy == 75

    def test_ranking_ties_keep_first_seen_order(self):
        counts = Counter()
        counts["first"] += 2
        counts["second"] += 2
        counts["third"] += 1
        assert [m for m, _ in rank_violations(counts)] == ["first", "second", "third"]

    def test_to_dict(self):
        diagnostics = Diagnostics(short_movement_count=2, total_attempts=3)
        payload = summarize(1, diagnostics).to_dict()
        assert payload == {
            "totalReps": 1,
            "totalAttempts": 3,
            "criticalErrors": [FeedbackGenerator.amplitude_warning(2)],
            "accuracy": 33,
        }
