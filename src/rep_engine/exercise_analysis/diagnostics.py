"""
diagnostics.py - End-of-session summary over the accumulated counters.
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ..feedback.messages import FeedbackGenerator

MAX_REPORTED_VIOLATIONS = 2


@dataclass
class Diagnostics:
    """Counters accumulated by a RepStateMachine between resets."""
    short_movement_count: int = 0
    posture_violation_counts: Counter = field(default_factory=Counter)
    total_attempts: int = 0


@dataclass(frozen=True)
class SessionSummary:
    total_reps: int
    total_attempts: int
    critical_errors: Tuple[str, ...]
    short_movement_count: int = 0
    posture_violations: Tuple[Tuple[str, int], ...] = ()
    accuracy: int = 0  # % of attempts that were counted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalReps": self.total_reps,
            "totalAttempts": self.total_attempts,
            "criticalErrors": list(self.critical_errors),
            "accuracy": self.accuracy,
        }


def rank_violations(counts: Counter) -> List[Tuple[str, int]]:
    """Posture messages by descending frequency; ties keep first-seen order."""
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def summarize(reps: int, diagnostics: Diagnostics) -> SessionSummary:
    """
    Build the session report. Reads the counters, never changes them.

    Critical issues, in order: amplitude warning (any short movement), the two
    most frequent posture violations, then either the zero-reps explanation
    or the clean-execution message when nothing else was reported.
    """
    ranked = rank_violations(diagnostics.posture_violation_counts)
    critical_errors = []
    if diagnostics.short_movement_count > 0:
        critical_errors.append(FeedbackGenerator.amplitude_warning(diagnostics.short_movement_count))
    critical_errors.extend(message for message, _ in ranked[:MAX_REPORTED_VIOLATIONS])

    if reps == 0:
        if diagnostics.total_attempts == 0:
            critical_errors.append(FeedbackGenerator.no_attempts())
        else:
            critical_errors.append(FeedbackGenerator.no_valid_reps())
    elif not critical_errors:
        critical_errors.append(FeedbackGenerator.clean_execution())

    # share of attempts that were counted; posture errors weigh in only by failing an attempt
    accuracy = round(100 * reps / diagnostics.total_attempts) if diagnostics.total_attempts else 0
    return SessionSummary(
        total_reps=reps,
        total_attempts=diagnostics.total_attempts,
        critical_errors=tuple(critical_errors),
        short_movement_count=diagnostics.short_movement_count,
        posture_violations=tuple(ranked),
        accuracy=accuracy,
    )
