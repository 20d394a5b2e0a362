import os
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

import cv2
import numpy as np

from .exercise_analysis import ExerciseState, ExerciseType, create_analyzer
from .exercise_analysis.config_utils import get_exercise_config, setup_logger
from .feedback.voice_feedback import VoiceFeedback
from .pose_detection.base_detector import BasePoseDetector
from .pose_detection.mediapipe_detector import MediaPipePoseDetector
from .pose_detection.pose import SKELETON_CONNECTIONS, JointName, PoseSnapshot
from .pose_detection.recording import RecordedFrame, load_pose_recording

logger = setup_logger("WorkoutTrainer")

_WINDOW_NAME = "Rep Engine"
_GOOD_COLOR = (0, 255, 0)
_WARN_COLOR = (0, 0, 255)
_TEXT_COLOR = (255, 255, 255)


@dataclass
class WorkoutSummary:
    """Result of a session, handed to whatever converts work into rewards."""
    exercise: str
    units: int  # Reps, or 20-second quanta for time-based exercises
    unit_label: str
    seconds_held: Optional[int]
    duration: float  # Seconds between the first and last analyzed frame


class WorkoutTrainer:
    """Runs one exercise session from a camera, a video file or a recording."""

    def __init__(
        self,
        exercise_type: Union[ExerciseType, str] = ExerciseType.PUSH_UPS,
        config_path: Optional[str] = None,
        pose_detector: Optional[BasePoseDetector] = None,
        voice_feedback: Optional[VoiceFeedback] = None,
        enable_voice: bool = True,
        show_window: bool = True
    ):
        """
        Initialize the trainer.

        Args:
            exercise_type: Exercise to analyze, e.g. "push_ups"
            config_path: Optional path to an alternative exercise config file
            pose_detector: Detector for camera/video frames. A MediaPipe detector
                is created on first use if none is given.
            voice_feedback: Voice output. Created when enable_voice is set.
            enable_voice: Speak counts and positioning hints
            show_window: Draw results in an OpenCV window
        """
        self.exercise_type = ExerciseType.from_value(exercise_type)
        self.config_path = config_path
        self.exercise_analyzer = create_analyzer(self.exercise_type, config_path=config_path)
        self.pose_detector = pose_detector
        self._required_joints = set(self.exercise_analyzer.get_required_joints())
        if pose_detector is not None:
            self._check_detector_joints(pose_detector)
        self._owns_detector = False
        if voice_feedback is None and enable_voice:
            voice_feedback = VoiceFeedback()
        self.voice_feedback = voice_feedback
        self.show_window = show_window

        self.cap = None
        self.is_running = False
        self._first_frame_at: Optional[float] = None
        self._last_frame_at: Optional[float] = None
        self._last_pose: Optional[PoseSnapshot] = None

    def _get_detector(self) -> BasePoseDetector:
        if self.pose_detector is None:
            pose_config = get_exercise_config("pose", self.config_path)
            self.pose_detector = MediaPipePoseDetector(
                min_joint_confidence=pose_config.get("min_joint_confidence", 0.1),
                max_frame_rate=pose_config.get("max_frame_rate", 30)
            )
            self._owns_detector = True
            self._check_detector_joints(self.pose_detector)
        return self.pose_detector

    def _check_detector_joints(self, detector: BasePoseDetector) -> List[JointName]:
        missing = [name for name in self.exercise_analyzer.get_required_joints()
                   if name not in detector.get_joint_names()]
        if missing:
            logger.warning(
                f"Detector does not provide {[name.value for name in missing]}, "
                f"{self.exercise_type.display_name} may not be tracked"
            )
        return missing

    def start(self, camera_id: int = 0) -> WorkoutSummary:
        """
        Start the trainer with the specified camera. Press 'q' to finish.

        Args:
            camera_id: Camera device ID

        Returns:
            Summary of the session
        """
        self.cap = cv2.VideoCapture(camera_id)
        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {camera_id}")
        self.is_running = True
        logger.info(f"Starting {self.exercise_type.display_name} session on camera {camera_id}")
        try:
            while self.is_running:
                try:
                    ret, frame = self.cap.read()
                    if not ret:
                        break
                    state = self.process_frame(frame)
                    if self.show_window:
                        self._display_results(frame, state)
                        if cv2.waitKey(1) & 0xFF == ord('q'):
                            break
                except KeyboardInterrupt:
                    logger.info("KeyboardInterrupt received. Exiting gracefully...")
                    break
        finally:
            self.stop()
        return self.summary()

    def run_video(self, video_path: str) -> WorkoutSummary:
        """
        Analyze a video file, using the frame position as the clock.

        Args:
            video_path: Path to the video file

        Returns:
            Summary of the session
        """
        if not os.path.isfile(video_path):
            raise FileNotFoundError(f"Video file not found: {video_path}")
        self.cap = cv2.VideoCapture(video_path)
        fps = self.cap.get(cv2.CAP_PROP_FPS) or 30.0
        self.is_running = True
        frame_count = 0
        try:
            while self.is_running and self.cap.isOpened():
                ret, frame = self.cap.read()
                if not ret:
                    break
                state = self.process_frame(frame, now=frame_count / fps)
                frame_count += 1
                if self.show_window:
                    self._display_results(frame, state)
                    if cv2.waitKey(1) & 0xFF == ord('q'):
                        break
        except KeyboardInterrupt:
            logger.info("KeyboardInterrupt received. Exiting gracefully...")
        finally:
            self.stop()
        logger.info(f"Video analysis complete. Processed {frame_count} frames.")
        return self.summary()

    def replay(self, recording: Union[str, Iterable[RecordedFrame]]) -> WorkoutSummary:
        """
        Feed a recorded keypoint session through the analyzer.

        Args:
            recording: Path to a recording file, or (time, snapshot) pairs

        Returns:
            Summary of the session
        """
        frames = load_pose_recording(recording) if isinstance(recording, str) else recording
        count = 0
        for t, pose in frames:
            self.process_pose(pose, t)
            count += 1
        logger.info(f"Replayed {count} frames")
        return self.summary()

    def stop(self) -> None:
        """Stop the trainer and release resources."""
        self.is_running = False
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        if self.show_window:
            cv2.destroyAllWindows()
        if self.voice_feedback is not None:
            self.voice_feedback.stop()
        if self._owns_detector and self.pose_detector is not None:
            self.pose_detector.close()
            self.pose_detector = None
            self._owns_detector = False

    def process_frame(self, frame: np.ndarray, now: Optional[float] = None) -> Optional[ExerciseState]:
        """
        Detect the pose in one frame and analyze it.

        Args:
            frame: Input BGR frame
            now: Frame time in seconds. Defaults to the wall clock.

        Returns:
            ExerciseState, or None if the frame was skipped by the rate limit
        """
        if now is None:
            now = time.time()
        detector = self._get_detector()
        if not detector.should_process(now):
            return None
        return self.process_pose(detector.detect(frame), now)

    def process_pose(self, pose: Optional[PoseSnapshot], now: float) -> ExerciseState:
        state = self.exercise_analyzer.analyze(pose, now)
        if self._first_frame_at is None:
            self._first_frame_at = now
        self._last_frame_at = now
        self._last_pose = pose

        if self.voice_feedback is not None:
            message = self.voice_feedback.generate_feedback(state, now)
            if message:
                self.voice_feedback.speak(message)
        return state

    def summary(self) -> WorkoutSummary:
        analyzer = self.exercise_analyzer
        duration = 0.0
        if self._first_frame_at is not None:
            duration = self._last_frame_at - self._first_frame_at
        return WorkoutSummary(
            exercise=self.exercise_type.value,
            units=analyzer.rep_count,
            unit_label=self.exercise_type.unit_label,
            seconds_held=analyzer.seconds_held if self.exercise_type.is_time_based else None,
            duration=duration
        )

    def reset(self) -> None:
        self.exercise_analyzer.reset()
        self._first_frame_at = None
        self._last_frame_at = None
        self._last_pose = None

    def _display_results(self, frame: np.ndarray, state: Optional[ExerciseState]) -> None:
        """
        Draw the skeleton and the current state on the frame and show it.

        Args:
            frame: Input frame, drawn on in place
            state: Result of the frame, or None if it was skipped
        """
        if state is None:
            return
        pose = self._last_pose
        height, width = frame.shape[:2]
        if pose is not None:
            points = {}
            for name in pose:
                joint = pose.joint(name)
                points[name] = (int(joint.x * width), int(joint.y * height))
            for a, b in SKELETON_CONNECTIONS:
                if a in points and b in points:
                    cv2.line(frame, points[a], points[b], _GOOD_COLOR, 2)
            for name, point in points.items():
                if name in self._required_joints:
                    cv2.circle(frame, point, 6, _WARN_COLOR, -1)
                else:
                    cv2.circle(frame, point, 3, _GOOD_COLOR, -1)

        lines = [
            (f"Exercise: {state.name}", _TEXT_COLOR),
            (f"State: {state.phase}", _TEXT_COLOR),
            (f"Reps: {state.rep_count}", _GOOD_COLOR),
        ]
        if state.seconds_held is not None:
            lines.append((f"Held: {state.seconds_held}s", _GOOD_COLOR))
        if state.show_positioning_feedback and state.feedback:
            lines.append((state.feedback, _WARN_COLOR))
        for idx, (text, color) in enumerate(lines):
            cv2.putText(frame, text, (10, 30 + 30 * idx), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)
        cv2.imshow(_WINDOW_NAME, frame)
