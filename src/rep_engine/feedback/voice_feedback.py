import queue
import threading
import time
from typing import Optional

import pyttsx3

from ..exercise_analysis.base_analyzer import ExerciseState
from ..exercise_analysis.config_utils import setup_logger

logger = setup_logger("VoiceFeedback")


class VoiceFeedback:
    """
    Spoken feedback for a workout session.

    Rep counts and "ready"/"broken" announcements are spoken as they happen.
    Positioning hints are spoken when they change, at most once per cooldown.
    Speech runs on a daemon thread so it never holds up frame analysis.
    """

    def __init__(self, rate: int = 150, volume: float = 1.0, cooldown: float = 4.0):
        """
        Initialize the voice feedback system.

        Args:
            rate: Speech rate (words per minute)
            volume: Speech volume (0.0 to 1.0)
            cooldown: Minimum seconds between two positioning hints
        """
        self.rate = rate
        self.volume = volume
        self.cooldown = cooldown
        self.messages = {
            "ready": "Go!",
            "hold_ready": "Timer started",
            "resumed": "Keep holding",
        }

        self._tts_queue: "queue.Queue[Optional[str]]" = queue.Queue()
        self._tts_thread: Optional[threading.Thread] = None
        self._last_message: Optional[str] = None
        self._last_hint_time: Optional[float] = None

    def generate_feedback(self, state: ExerciseState, now: Optional[float] = None) -> Optional[str]:
        """
        Pick what to say for the latest analyzer result.

        Args:
            state: Result of the latest analyzed frame
            now: Current time in seconds. Defaults to the wall clock.

        Returns:
            Message to speak, or None to stay quiet
        """
        if now is None:
            now = time.time()

        if "rep_completed" in state.events:
            if state.seconds_held is not None:
                message = f"{state.seconds_held} seconds"
            else:
                message = str(state.rep_count)
            return self._remember(message)
        if "ready" in state.events:
            return self._remember(self.messages["hold_ready" if state.seconds_held is not None else "ready"])
        if "broken" in state.events and state.feedback:
            self._last_hint_time = now
            return self._remember(state.feedback)
        if "resumed" in state.events:
            return self._remember(self.messages["resumed"])

        if not state.show_positioning_feedback or not state.feedback:
            return None
        # Only speak positioning hints when they change, and not too often
        if state.feedback == self._last_message:
            return None
        if self._last_hint_time is not None and now - self._last_hint_time < self.cooldown:
            return None
        self._last_hint_time = now
        return self._remember(state.feedback)

    def _remember(self, message: str) -> str:
        self._last_message = message
        return message

    def speak(self, message: str) -> None:
        """
        Queue the given message to be spoken by the background TTS thread.

        Args:
            message: Message to speak
        """
        if self._tts_thread is None:
            self._tts_thread = threading.Thread(target=self._tts_worker, daemon=True)
            self._tts_thread.start()
        self._tts_queue.put(message)

    def stop(self) -> None:
        if self._tts_thread is not None:
            self._tts_queue.put(None)
            self._tts_thread = None

    def _tts_worker(self):
        # The engine must be created on the thread that drives it
        engine = pyttsx3.init()
        engine.setProperty('rate', self.rate)
        engine.setProperty('volume', self.volume)
        while True:
            msg = self._tts_queue.get()
            if msg is None:
                break  # Clean shutdown
            try:
                engine.say(msg)
                engine.runAndWait()
            except RuntimeError as e:
                logger.warning(f"Speech failed for '{msg}': {e}")
