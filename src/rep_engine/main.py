import argparse
import logging
import sys
from typing import List, Optional

from .exercise_analysis import ExerciseType

LOGGER_NAMES = (
    "PushupAnalyzer", "SquatAnalyzer", "PlankAnalyzer", "RepetitionAnalyzer", "RepStateMachine",
    "PoseDetector", "VoiceFeedback", "WorkoutTrainer",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Count exercise repetitions from body pose")
    parser.add_argument('--mode', type=str, choices=['camera', 'video', 'replay'], default='camera',
                        help='Run mode: camera (default), video file or recorded keypoints')
    parser.add_argument('--exercise', type=str, default=ExerciseType.PUSH_UPS.value,
                        choices=[t.value for t in ExerciseType], help='Exercise type (default: push_ups)')
    parser.add_argument('--camera', type=int, default=0, help='Camera device ID')
    parser.add_argument('--video', type=str, help='Path to the video file to analyze (required if mode=video)')
    parser.add_argument('--keypoints', type=str, help='Path to a recorded keypoint file (required if mode=replay)')
    parser.add_argument('--config', type=str, help='Path to an alternative exercise config file')
    parser.add_argument('--no-voice', action='store_true', help='Disable spoken feedback')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')
    return parser


def set_log_level(level: str) -> None:
    for name in LOGGER_NAMES:
        logging.getLogger(name).setLevel(level)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode == 'video' and not args.video:
        parser.error("--video is required when mode is 'video'")
    if args.mode == 'replay' and not args.keypoints:
        parser.error("--keypoints is required when mode is 'replay'")

    # Imported here so --help works without OpenCV or MediaPipe installed
    from .trainer import WorkoutTrainer

    set_log_level(args.log_level)

    replaying = args.mode == 'replay'
    trainer = WorkoutTrainer(
        exercise_type=args.exercise,
        config_path=args.config,
        enable_voice=not (args.no_voice or replaying),
        show_window=not replaying
    )
    try:
        if args.mode == 'video':
            summary = trainer.run_video(args.video)
        elif replaying:
            summary = trainer.replay(args.keypoints)
        else:
            summary = trainer.start(camera_id=args.camera)
    except (RuntimeError, ValueError, FileNotFoundError) as e:
        logging.getLogger("WorkoutTrainer").error(f"Error running trainer: {e}")
        return 1

    result = f"{ExerciseType(summary.exercise).display_name}: {summary.units} reps"
    if summary.seconds_held is not None:
        result += f", {summary.seconds_held} {summary.unit_label} held"
    print(f"{result} in {summary.duration:.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
