"""
Text-to-speech for recognized signs.

speak() is fire-and-forget: utterances run on a single worker thread that
owns the pyttsx3 engine. A new utterance replaces any that are still
waiting; the one already being spoken finishes.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

import pyttsx3

logger = logging.getLogger(__name__)


class SpeechSink:
    """Speaks text through the system voice."""

    def __init__(self, rate: int = 150, voice: Optional[str] = None):
        self.rate = rate
        self.voice = voice
        self._engine = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="speech")
        self._pending: List[Future] = []

    def speak(self, text: str) -> Optional[Future]:
        """Queue text to be spoken. Returns the pending future, or None if there is nothing to say."""
        if not text or not text.strip():
            return None
        for pending in self._pending:
            pending.cancel()
        future = self._executor.submit(self._say, text)
        self._pending = [future]
        future.add_done_callback(self._log_failure)
        return future

    def _say(self, text: str):
        # The engine is created on the worker thread and only used there
        if self._engine is None:
            self._engine = pyttsx3.init()
            self._engine.setProperty("rate", self.rate)
            if self.voice:
                self._engine.setProperty("voice", self.voice)
        logger.info(f"🔊 Speaking: {text}")
        self._engine.say(text)
        self._engine.runAndWait()

    @staticmethod
    def _log_failure(future: Future):
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning(f"Speech failed: {error}")

    def close(self):
        self._executor.shutdown(wait=False, cancel_futures=True)
