import argparse
import json
import logging
import os
import sys

from .exercise_analysis.profiles import EXERCISE_PROFILES, load_profiles
from .pose_detection.landmarks import landmarks_from_sequence
from .trainer import WorkoutSession

PACKAGE_LOGGERS = ("RepStateMachine", "ExerciseProfiles", "WorkoutSession")


def replay_session(session: WorkoutSession, input_path: str, min_visibility: float = 0.0) -> int:
    """
    Feed a recorded landmark stream (JSON Lines, one frame per line) through a session.

    Returns:
        Number of frames processed
    """
    frames = 0
    with open(input_path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            raw = json.loads(line)
            if isinstance(raw, dict):
                raw = raw.get("landmarks", [])
            landmarks = landmarks_from_sequence(raw, min_visibility=min_visibility)
            state = session.process_landmarks(landmarks)
            if state.rep_completed:
                print(f"Frame {line_no:5d} | Rep #{state.reps} | {state.feedback}")
            frames += 1
    return frames


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rep counting engine - replay a recorded landmark session")
    parser.add_argument(
        "--exercise",
        type=str,
        default="squat",
        help="Exercise to analyze (default: squat)"
    )
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="JSON Lines file, one frame of 33 [x, y, visibility] landmarks per line"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Alternative exercise catalog (JSON)"
    )
    parser.add_argument(
        "--min_visibility",
        type=float,
        default=0.0,
        help="Drop landmarks below this visibility before analysis"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the session summary as JSON"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log phase transitions"
    )
    return parser


def main(argv=None) -> int:
    """Main entry point for the landmark replay tool."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        for name in PACKAGE_LOGGERS:
            logging.getLogger(name).setLevel(logging.DEBUG)

    if not os.path.isfile(args.input):
        print(f"Input file not found: {args.input}")
        return 1

    try:
        profiles = load_profiles(args.config) if args.config else EXERCISE_PROFILES
        session = WorkoutSession(exercise_type=args.exercise, profiles=profiles)
    except (OSError, ValueError) as e:
        print(f"Error starting session: {e}")
        return 1

    try:
        frames = replay_session(session, args.input, args.min_visibility)
    except (ValueError, KeyError, TypeError) as e:
        print(f"Invalid landmark data in {args.input}: {e}")
        return 1

    summary = session.finish()
    if args.json:
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
        return 0

    print("\n" + "=" * 50)
    print(f"{session.profile.name} - session summary")
    print("=" * 50)
    print(f"Frames processed: {frames}")
    print(f"Total reps: {summary.total_reps}")
    print(f"Total attempts: {summary.total_attempts}")
    print(f"Accuracy: {summary.accuracy}%")
    for issue in summary.critical_errors:
        print(f"  - {issue}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
