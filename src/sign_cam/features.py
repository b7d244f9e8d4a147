"""
Geometric Feature Extractor

Turns a 21-point landmark set into named pairwise distances between
fingertips and finger bases. These distances are the only input the sign
classifier sees.
"""
from typing import Dict, Tuple

import numpy as np

from sign_cam import landmarks as lm
from sign_cam.errors import InvalidLandmarkSet

FeatureVector = Dict[str, float]

THUMB_TIP_INDEX_BASE = "thumbTip-indexBase"
INDEX_TIP_MIDDLE_TIP = "indexTip-middleTip"
MIDDLE_TIP_RING_TIP = "middleTip-ringTip"
RING_TIP_PINKY_TIP = "ringTip-pinkyTip"
THUMB_TIP_INDEX_TIP = "thumbTip-indexTip"
MIDDLE_TIP_MIDDLE_BASE = "middleTip-middleBase"
RING_TIP_RING_BASE = "ringTip-ringBase"
PINKY_TIP_PINKY_BASE = "pinkyTip-pinkyBase"
INDEX_TIP_INDEX_BASE = "indexTip-indexBase"
THUMB_TIP_MIDDLE_TIP = "thumbTip-middleTip"

FEATURE_PAIRS: Dict[str, Tuple[int, int]] = {
    THUMB_TIP_INDEX_BASE: (lm.THUMB_TIP, lm.INDEX_BASE),
    INDEX_TIP_MIDDLE_TIP: (lm.INDEX_TIP, lm.MIDDLE_TIP),
    MIDDLE_TIP_RING_TIP: (lm.MIDDLE_TIP, lm.RING_TIP),
    RING_TIP_PINKY_TIP: (lm.RING_TIP, lm.PINKY_TIP),
    THUMB_TIP_INDEX_TIP: (lm.THUMB_TIP, lm.INDEX_TIP),
    MIDDLE_TIP_MIDDLE_BASE: (lm.MIDDLE_TIP, lm.MIDDLE_BASE),
    RING_TIP_RING_BASE: (lm.RING_TIP, lm.RING_BASE),
    PINKY_TIP_PINKY_BASE: (lm.PINKY_TIP, lm.PINKY_BASE),
    INDEX_TIP_INDEX_BASE: (lm.INDEX_TIP, lm.INDEX_BASE),
    THUMB_TIP_MIDDLE_TIP: (lm.THUMB_TIP, lm.MIDDLE_TIP),
}

_STARTS = np.array([a for a, _ in FEATURE_PAIRS.values()])
_ENDS = np.array([b for _, b in FEATURE_PAIRS.values()])


class FeatureExtractor:
    """
    Computes the Euclidean distance for every pair in FEATURE_PAIRS.

    By default only the (x, y) projection is used, so the depth estimate of
    the hand model never affects classification. Pass use_depth=True to
    measure in full 3D instead.
    """

    def __init__(self, use_depth: bool = False):
        self.use_depth = use_depth

    def extract(self, landmarks) -> FeatureVector:
        """
        Args:
            landmarks: sequence of exactly 21 (x, y, z) points

        Returns:
            Mapping of feature name to non-negative distance

        Raises:
            InvalidLandmarkSet: if the input does not hold 21 points
        """
        if landmarks is None or len(landmarks) != lm.NUM_LANDMARKS:
            count = 0 if landmarks is None else len(landmarks)
            raise InvalidLandmarkSet(f"expected {lm.NUM_LANDMARKS} landmarks, got {count}")

        try:
            points = np.asarray(landmarks, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidLandmarkSet(f"landmarks are not numeric (x, y, z) points: {e}") from e
        if points.shape != (lm.NUM_LANDMARKS, 3):
            raise InvalidLandmarkSet(f"expected shape ({lm.NUM_LANDMARKS}, 3), got {points.shape}")
        if not self.use_depth:
            points = points[:, :2]

        distances = np.linalg.norm(points[_STARTS] - points[_ENDS], axis=1)
        return {name: float(d) for name, d in zip(FEATURE_PAIRS, distances)}

    __call__ = extract
