"""
Detection Loop Scheduler

Owns the lifecycle of a sign detection session and the timing of the
frame loop:

    Idle -> ModelLoading -> Ready -> Running <-> Paused -> Stopped -> Running ...
    any state -> Error -> (restart) -> ModelLoading or Ready

Frames are sampled by a callback scheduled on the asyncio event loop at
the refresh rate. Every frame is handed to the render sink; landmark
estimation and classification run at most once per classification
interval, and never while a previous estimate is still in flight (the tick
is dropped, not queued). Each session bumps a generation counter so that
an estimate finishing after stop() or a restart is discarded.

Collaborators are duck-typed:

    model_loader.load(on_progress) -> model      (coroutine)
    model.estimate(frame) -> landmarks           (coroutine)
    camera_provider.acquire(constraints) -> stream / release(stream)
    stream.read() -> frame or None, stream.live
    render_sink.render(frame, landmarks, label, history) / render_sink.clear()
"""
import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, List, Optional

from sign_cam.classifier import SignClassifier
from sign_cam.config import DetectionConfig
from sign_cam.errors import (
    CameraAcquisitionFailure,
    ClassificationRuntimeFailure,
    InvalidLandmarkSet,
    InvalidStateTransition,
    ModelLoadFailure,
    SignCamError,
)
from sign_cam.features import FeatureExtractor
from sign_cam.history import HistoryLedger
from sign_cam.landmarks import EMPTY, LandmarkSet, as_landmark_set

logger = logging.getLogger(__name__)

# Current-label sentinels, never written to history
NO_HANDS = "no hands visible"
UNRECOGNIZED = "sign not recognized"

MODEL_LOAD_FAILED = "Failed to load the hand model. Press R to retry."
MODEL_MISSING = "The hand model is not loaded yet."
CAMERA_DENIED = "Camera permission denied or camera unavailable. Please enable camera access."
CAMERA_MISSING = "No active camera stream."
CLASSIFICATION_FAILED = "Sign detection stopped after an error. Press R to restart."


class DetectionState(Enum):
    IDLE = "idle"
    MODEL_LOADING = "model_loading"
    READY = "ready"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


_TRANSITIONS = {
    DetectionState.IDLE: {DetectionState.MODEL_LOADING, DetectionState.ERROR},
    DetectionState.MODEL_LOADING: {DetectionState.MODEL_LOADING, DetectionState.READY, DetectionState.ERROR},
    DetectionState.READY: {DetectionState.RUNNING, DetectionState.ERROR},
    DetectionState.RUNNING: {DetectionState.PAUSED, DetectionState.STOPPED, DetectionState.ERROR},
    DetectionState.PAUSED: {DetectionState.RUNNING, DetectionState.STOPPED, DetectionState.ERROR},
    DetectionState.STOPPED: {DetectionState.RUNNING, DetectionState.ERROR},
    DetectionState.ERROR: {DetectionState.MODEL_LOADING, DetectionState.READY},
}

_ACTIVE = (DetectionState.RUNNING, DetectionState.PAUSED)


@dataclass(frozen=True)
class DetectionStatus:
    """Read-only snapshot of the scheduler state for observers."""
    state: DetectionState
    progress: int = 0
    message: str = ""

    @property
    def is_active(self) -> bool:
        return self.state in _ACTIVE


@dataclass
class SessionState:
    """Mutable per-session fields. Only the scheduler writes to these."""
    stream: Any = None
    model: Any = None
    frame_handle: Optional[asyncio.TimerHandle] = None
    inflight: Optional[asyncio.Task] = None
    last_classification: Optional[float] = None
    generation: int = 0
    frame: Any = None
    landmarks: LandmarkSet = EMPTY
    classifications: int = 0
    skipped_ticks: int = 0
    stale_results: int = 0


class DetectionScheduler:
    """
    State machine and frame loop for live sign detection.

    Args:
        model_loader: loads the hand landmark model
        camera_provider: acquires and releases camera streams
        render_sink: optional consumer of per-frame skeleton and label
        classifier: sign classifier, built from config thresholds if omitted
        extractor: feature extractor, built from config if omitted
        history: history ledger, built from config if omitted
        config: detection settings
        clock: monotonic clock used for rate limiting
        wall_clock: clock used for history timestamps
    """

    def __init__(self, model_loader, camera_provider, render_sink=None,
                 classifier: Optional[SignClassifier] = None,
                 extractor: Optional[FeatureExtractor] = None,
                 history: Optional[HistoryLedger] = None,
                 config: Optional[DetectionConfig] = None,
                 clock: Callable[[], float] = time.monotonic,
                 wall_clock: Callable[[], float] = time.time):
        self.config = config or DetectionConfig()
        self.model_loader = model_loader
        self.camera_provider = camera_provider
        self.render_sink = render_sink
        self.classifier = classifier or SignClassifier(self.config.thresholds)
        self.extractor = extractor or FeatureExtractor(use_depth=self.config.use_depth)
        self.history = history if history is not None else HistoryLedger(self.config.history_size)
        self._clock = clock
        self._wall_clock = wall_clock

        self.session = SessionState()
        self.current_label: Optional[str] = None
        self.last_error: Optional[SignCamError] = None
        self._status = DetectionStatus(DetectionState.IDLE)
        self._listeners: List[Callable[[DetectionStatus], None]] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> DetectionStatus:
        return self._status

    @property
    def state(self) -> DetectionState:
        return self._status.state

    def add_listener(self, callback: Callable[[DetectionStatus], None]):
        """Register a callback invoked with every new status."""
        self._listeners.append(callback)

    def _set_status(self, state: DetectionState, progress: Optional[int] = None,
                    message: Optional[str] = None):
        current = self._status
        if state not in _TRANSITIONS[current.state]:
            raise InvalidStateTransition(f"{current.state.value} -> {state.value}")

        self._status = DetectionStatus(
            state=state,
            progress=current.progress if progress is None else progress,
            message=current.message if message is None else message,
        )
        if state is not current.state:
            logger.info(f"Detection state: {current.state.value} -> {state.value}")
        self._notify()

    def _surface(self, message: str):
        """Show a message without changing state."""
        logger.warning(message)
        self._status = replace(self._status, message=message)
        self._notify()

    def _notify(self):
        for callback in list(self._listeners):
            callback(self._status)

    # ------------------------------------------------------------------
    # Model loading
    # ------------------------------------------------------------------

    async def load_model(self) -> bool:
        """
        Idle/Error -> ModelLoading -> Ready.

        Progress is reported as a non-decreasing percentage held at 99 until
        the loader returns, then 100 for settle_delay before Ready.
        """
        if self.state not in (DetectionState.IDLE, DetectionState.ERROR):
            self._surface(f"Cannot load the model while {self.state.value}")
            return False

        self._set_status(DetectionState.MODEL_LOADING, progress=0, message="")

        def on_progress(fraction: float):
            if self.state is not DetectionState.MODEL_LOADING:
                return
            percent = min(int(round(fraction * 100)), 99)
            if percent > self._status.progress:
                self._set_status(DetectionState.MODEL_LOADING, progress=percent)

        try:
            model = await self.model_loader.load(on_progress)
        except Exception as e:
            logger.error(f"❌ Model loading failed: {e}")
            self.last_error = e if isinstance(e, SignCamError) else ModelLoadFailure(str(e))
            self._set_status(DetectionState.ERROR, message=MODEL_LOAD_FAILED)
            return False

        self.session.model = model
        self._set_status(DetectionState.MODEL_LOADING, progress=100)
        await asyncio.sleep(self.config.settle_delay)

        if self.state is not DetectionState.MODEL_LOADING:
            return False
        self._set_status(DetectionState.READY)
        return True

    def _model_ready(self) -> bool:
        model = self.session.model
        return model is not None and getattr(model, "valid", True)

    # ------------------------------------------------------------------
    # Session commands
    # ------------------------------------------------------------------

    async def start(self, stream=None) -> bool:
        """
        Ready/Stopped -> Running.

        Uses the given stream or acquires one from the camera provider. The
        scheduler owns the stream until the session ends. Refused, with a
        message and no state change, if the model or the camera is missing.
        """
        if self.state not in (DetectionState.READY, DetectionState.STOPPED):
            self._surface(f"Cannot start detection while {self.state.value}")
            return False
        if not self._model_ready():
            self._surface(MODEL_MISSING)
            return False

        acquired = False
        if stream is None:
            loop = asyncio.get_running_loop()
            try:
                stream = await loop.run_in_executor(
                    None, self.camera_provider.acquire, self.config.camera)
            except CameraAcquisitionFailure as e:
                logger.error(f"❌ Camera error: {e}")
                self.last_error = e
                self._surface(CAMERA_DENIED)
                return False
            acquired = True

        if stream is None or not stream.live:
            if acquired and stream is not None:
                self.camera_provider.release(stream)
            self._surface(CAMERA_MISSING)
            return False

        # State may have moved on while the camera was opening
        if self.state not in (DetectionState.READY, DetectionState.STOPPED):
            if acquired:
                self.camera_provider.release(stream)
            return False

        s = self.session
        s.stream = stream
        s.generation += 1
        s.last_classification = None
        s.landmarks = EMPTY
        s.classifications = s.skipped_ticks = s.stale_results = 0
        self.current_label = None

        self._set_status(DetectionState.RUNNING, message="")
        self._request_frame()
        return True

    def pause(self) -> bool:
        """Running -> Paused. Frames keep flowing; classification stops."""
        if self.state is not DetectionState.RUNNING:
            return False
        self._set_status(DetectionState.PAUSED)
        return True

    def resume(self) -> bool:
        """Paused -> Running."""
        if self.state is not DetectionState.PAUSED:
            return False
        self._set_status(DetectionState.RUNNING)
        return True

    def toggle_detection(self) -> bool:
        if self.state is DetectionState.RUNNING:
            return self.pause()
        return self.resume()

    def stop(self) -> bool:
        """
        Running/Paused -> Stopped.

        Always releases the camera stream, whatever the state. From Error the
        state is left unchanged.
        """
        was_active = self.state in _ACTIVE
        self._end_session()
        if was_active:
            self._set_status(DetectionState.STOPPED, message="")
        return was_active

    async def toggle_camera(self) -> bool:
        if self.state in _ACTIVE:
            return self.stop()
        return await self.start()

    async def restart(self) -> bool:
        """Error -> Ready if the model is still usable, otherwise reload it."""
        if self.state is not DetectionState.ERROR:
            return False
        if self._model_ready():
            self._set_status(DetectionState.READY, message="")
            return True
        self.session.model = None
        return await self.load_model()

    def close(self):
        """Tear down: end any session, cancel pending work and close the model."""
        self.stop()
        s = self.session
        if s.inflight is not None and not s.inflight.done():
            s.inflight.cancel()
        s.inflight = None
        if s.model is not None and hasattr(s.model, "close"):
            s.model.close()
        s.model = None

    def _end_session(self):
        s = self.session
        s.generation += 1
        if s.frame_handle is not None:
            s.frame_handle.cancel()
            s.frame_handle = None

        stream, s.stream = s.stream, None
        if stream is not None:
            self.camera_provider.release(stream)

        s.frame = None
        s.landmarks = EMPTY
        self.current_label = None
        if self.render_sink is not None:
            self.render_sink.clear()

    def _fail(self, message: str, error: Exception):
        failure = ClassificationRuntimeFailure(f"{type(error).__name__}: {error}")
        failure.__cause__ = error
        self.last_error = failure
        logger.error(f"❌ {message} ({failure})")
        self._end_session()
        if self.state is not DetectionState.ERROR:
            self._set_status(DetectionState.ERROR, message=message)

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def _request_frame(self):
        loop = asyncio.get_running_loop()
        self.session.frame_handle = loop.call_later(
            self.config.frame_interval, self._on_frame, self.session.generation)

    def _on_frame(self, generation: int):
        s = self.session
        s.frame_handle = None
        if generation != s.generation or self.state not in _ACTIVE:
            return
        try:
            self.tick()
        except Exception as e:
            self._fail(CLASSIFICATION_FAILED, e)
            return
        if generation == s.generation and self.state in _ACTIVE:
            self._request_frame()

    def tick(self, now: Optional[float] = None):
        """
        One frame step: read a frame, render it, and start an estimate if the
        classification interval has elapsed and none is in flight.

        Must be called from the event loop thread.
        """
        if self.state not in _ACTIVE:
            return
        s = self.session
        now = self._clock() if now is None else now

        frame = s.stream.read()
        if frame is None:
            logger.warning("Failed to grab frame")
            return
        s.frame = frame

        if self.render_sink is not None:
            self.render_sink.render(frame, s.landmarks, self.current_label, self.history.list())

        if s.last_classification is not None and now - s.last_classification < self.config.classification_interval:
            return
        if s.inflight is not None and not s.inflight.done():
            s.skipped_ticks += 1
            logger.debug("Estimate still in flight, dropping tick")
            return

        s.last_classification = now
        s.inflight = asyncio.get_running_loop().create_task(
            self._estimate(frame, s.generation))

    async def _estimate(self, frame, generation: int):
        s = self.session
        try:
            landmarks = await s.model.estimate(frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if generation == s.generation:
                self._fail(CLASSIFICATION_FAILED, e)
            return

        if generation != s.generation:
            s.stale_results += 1
            logger.debug("Discarding estimate from an ended session")
            return
        self._apply(landmarks)

    def _apply(self, raw_landmarks):
        try:
            landmarks = as_landmark_set(raw_landmarks)
        except InvalidLandmarkSet as e:
            logger.debug(f"Ignoring malformed landmarks: {e}")
            landmarks = EMPTY
        self.session.landmarks = landmarks

        if self.state is not DetectionState.RUNNING:
            return
        if not landmarks:
            self.current_label = NO_HANDS
            return

        try:
            label = self.classifier.classify(self.extractor.extract(landmarks))
        except InvalidLandmarkSet:
            self.current_label = NO_HANDS
            return
        except Exception as e:
            self._fail(CLASSIFICATION_FAILED, e)
            return

        self.session.classifications += 1
        if label is None:
            self.current_label = UNRECOGNIZED
            return
        self.current_label = label
        if self.history.record(label, self._wall_clock()):
            logger.info(f"✋ Recognized: {label}")
