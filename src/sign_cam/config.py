"""
Configuration for the live sign recognizer.

Defaults live in dataclasses; an optional JSON file can override any field,
e.g.

    {
        "classification_interval": 0.15,
        "camera": {"device_id": 1, "mirror": false},
        "thresholds": {"o_touch": 25}
    }
"""
import json
import logging
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from sign_cam.classifier import ClassifierThresholds
from sign_cam.errors import ConfigError

logger = logging.getLogger(__name__)

HAND_LANDMARKER_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/latest/hand_landmarker.task"
)


@dataclass
class CameraConstraints:
    """Requested camera settings. The device may not honour width/height/fps exactly."""
    device_id: int = 0
    width: int = 1280
    height: int = 720
    fps: int = 30
    mirror: bool = True  # front-facing camera, shown as a mirror


@dataclass
class ModelConfig:
    """MediaPipe hand landmarker settings."""
    model_path: str = "models/hand_landmarker.task"
    model_url: str = HAND_LANDMARKER_URL
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    download_timeout: float = 30.0


@dataclass
class DetectionConfig:
    """Settings for the detection loop and everything it drives."""
    classification_interval: float = 0.1  # seconds between classifications (~10 Hz)
    refresh_rate: float = 30.0            # frame callbacks per second
    settle_delay: float = 0.5             # pause at 100% before leaving ModelLoading
    history_size: int = 10
    use_depth: bool = False
    speech_enabled: bool = True
    speech_rate: int = 150
    thresholds: ClassifierThresholds = field(default_factory=ClassifierThresholds)
    camera: CameraConstraints = field(default_factory=CameraConstraints)
    model: ModelConfig = field(default_factory=ModelConfig)

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.refresh_rate


def _merge(target, overrides: Dict[str, Any], prefix: str = ""):
    """Recursively apply a dict of overrides onto a dataclass instance."""
    known = {f.name: f for f in fields(target)}
    for key, value in overrides.items():
        name = f"{prefix}{key}"
        if key not in known:
            raise ConfigError(f"Unknown config key: {name}")
        current = getattr(target, key)
        if is_dataclass(current):
            if not isinstance(value, dict):
                raise ConfigError(f"Config key {name} must be an object")
            _merge(current, value, prefix=f"{name}.")
        else:
            setattr(target, key, value)


def load_config(path: Optional[Union[str, Path]] = None,
                overrides: Optional[Dict[str, Any]] = None) -> DetectionConfig:
    """
    Build a DetectionConfig from defaults, an optional JSON file and overrides.

    Args:
        path: JSON file to read; a missing file falls back to the defaults
        overrides: values applied after the file, same shape as the JSON

    Raises:
        ConfigError: on malformed JSON or unknown keys
    """
    config = DetectionConfig()

    if path is not None:
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file {path} not found, using defaults")
        else:
            try:
                with open(path, "r") as fh:
                    data = json.load(fh)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in {path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {path} must contain a JSON object")
            _merge(config, data)
            logger.info(f"Loaded config from {path}")

    if overrides:
        _merge(config, overrides)

    if config.classification_interval < 0:
        raise ConfigError("classification_interval must not be negative")
    if config.refresh_rate <= 0:
        raise ConfigError("refresh_rate must be positive")
    if config.history_size < 1:
        raise ConfigError("history_size must be at least 1")

    return config
