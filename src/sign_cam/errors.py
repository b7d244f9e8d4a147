"""
Error types raised by the sign recognition pipeline.
"""


class SignCamError(Exception):
    """Base class for all sign_cam errors."""


class InvalidLandmarkSet(SignCamError):
    """A landmark set did not contain exactly 21 (x, y, z) points."""


class ModelLoadFailure(SignCamError):
    """The hand landmark model could not be downloaded or initialized."""


class CameraAcquisitionFailure(SignCamError):
    """The camera device could not be opened."""


class ClassificationRuntimeFailure(SignCamError):
    """Landmark estimation or classification failed while the loop was running."""


class InvalidStateTransition(SignCamError):
    """The detection state machine was asked to make a transition it does not allow."""


class ConfigError(SignCamError):
    """The configuration file is malformed or contains unknown keys."""
