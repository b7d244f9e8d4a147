"""
Hand Landmark Sets

A landmark set is the 21-point hand skeleton produced by the hand model for
one frame. Index 0 is the wrist, then four points per finger from base to
tip: thumb 1-4, index 5-8, middle 9-12, ring 13-16, pinky 17-20.

Landmark sets are immutable tuples of (x, y, z) floats. An empty tuple
means "no hand in this frame".
"""
from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np

from sign_cam.errors import InvalidLandmarkSet

NUM_LANDMARKS = 21

Point = Tuple[float, float, float]
LandmarkSet = Tuple[Point, ...]

EMPTY: LandmarkSet = ()

WRIST = 0
THUMB_BASE, THUMB_MCP, THUMB_IP, THUMB_TIP = 1, 2, 3, 4
INDEX_BASE, INDEX_PIP, INDEX_DIP, INDEX_TIP = 5, 6, 7, 8
MIDDLE_BASE, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP = 9, 10, 11, 12
RING_BASE, RING_PIP, RING_DIP, RING_TIP = 13, 14, 15, 16
PINKY_BASE, PINKY_PIP, PINKY_DIP, PINKY_TIP = 17, 18, 19, 20

# Each chain starts at the wrist and runs base -> tip
FINGER_JOINTS: Dict[str, List[int]] = {
    "thumb": [WRIST, THUMB_BASE, THUMB_MCP, THUMB_IP, THUMB_TIP],
    "index": [WRIST, INDEX_BASE, INDEX_PIP, INDEX_DIP, INDEX_TIP],
    "middle": [WRIST, MIDDLE_BASE, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP],
    "ring": [WRIST, RING_BASE, RING_PIP, RING_DIP, RING_TIP],
    "pinky": [WRIST, PINKY_BASE, PINKY_PIP, PINKY_DIP, PINKY_TIP],
}


def skeleton_edges() -> Iterator[Tuple[int, int]]:
    """Yield the (start, end) landmark index pairs that make up the hand skeleton."""
    for chain in FINGER_JOINTS.values():
        for start, end in zip(chain, chain[1:]):
            yield start, end


def as_landmark_set(points) -> LandmarkSet:
    """
    Validate and freeze a sequence of points into a LandmarkSet.

    Accepts any sequence of 21 (x, y, z) triples, including a (21, 3) numpy
    array. An empty input is returned as the empty set.

    Raises:
        InvalidLandmarkSet: if the input is not empty and not 21 triples.
    """
    if points is None:
        return EMPTY
    if isinstance(points, np.ndarray):
        points = points.tolist()
    try:
        count = len(points)
    except TypeError as e:
        raise InvalidLandmarkSet(f"landmarks must be a sequence, got {type(points).__name__}") from e
    if count == 0:
        return EMPTY
    if count != NUM_LANDMARKS:
        raise InvalidLandmarkSet(
            f"expected {NUM_LANDMARKS} landmarks, got {count}"
        )

    frozen = []
    for i, point in enumerate(points):
        try:
            x, y, z = point
            frozen.append((float(x), float(y), float(z)))
        except (TypeError, ValueError) as e:
            raise InvalidLandmarkSet(f"landmark {i} is not an (x, y, z) triple: {point!r}") from e
    return tuple(frozen)


def is_hand(landmarks: Sequence) -> bool:
    """True if the landmark set holds a full hand."""
    return len(landmarks) == NUM_LANDMARKS


def to_array(landmarks: LandmarkSet) -> np.ndarray:
    """Serialize a landmark set as a (21, 3) float32 array."""
    if not is_hand(landmarks):
        raise InvalidLandmarkSet(
            f"expected {NUM_LANDMARKS} landmarks, got {len(landmarks)}"
        )
    return np.asarray(landmarks, dtype=np.float32).reshape(NUM_LANDMARKS, 3)


def from_array(array: np.ndarray) -> LandmarkSet:
    """Deserialize a (21, 3) array produced by to_array()."""
    array = np.asarray(array, dtype=np.float32)
    if array.shape != (NUM_LANDMARKS, 3):
        raise InvalidLandmarkSet(f"expected shape ({NUM_LANDMARKS}, 3), got {array.shape}")
    return as_landmark_set(array)
