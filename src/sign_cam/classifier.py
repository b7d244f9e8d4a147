"""
Rule-Based Sign Classifier

Maps a feature vector of fingertip/base distances to one ASL letter.

The rules are an ordered table of (label, predicate) rows evaluated top to
bottom; the first row whose predicate holds wins and later rows are never
consulted. Order: A, L, B, C, O.

All thresholds are in the same units as the extractor output (pixels of the
camera frame) and are hand-tuned, so they live in ClassifierThresholds
rather than in the predicates.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from sign_cam import features as f
from sign_cam.features import FeatureExtractor, FeatureVector

logger = logging.getLogger(__name__)

Predicate = Callable[[FeatureVector], bool]


@dataclass
class ClassifierThresholds:
    """Distance thresholds for every rule of the sign table."""
    # A: fist with the thumb against the side of the index finger
    a_thumb_index_base: float = 50.0
    a_finger_gap: float = 40.0
    # L: thumb and index spread apart, other fingers curled
    l_thumb_index_spread: float = 100.0
    l_curl: float = 70.0
    # B: flat hand, fingers extended and together
    b_extension: float = 100.0
    b_finger_gap: float = 40.0
    # C: every finger half-curled
    c_min: float = 40.0
    c_max: float = 90.0
    # O: thumb tip touching the index or middle tip
    o_touch: float = 30.0


@dataclass(frozen=True)
class SignRule:
    """One row of the rule table."""
    label: str
    predicate: Predicate

    def matches(self, features: FeatureVector) -> bool:
        return self.predicate(features)


def _fingers_together(v: FeatureVector, gap: float) -> bool:
    return (v[f.INDEX_TIP_MIDDLE_TIP] < gap and
            v[f.MIDDLE_TIP_RING_TIP] < gap and
            v[f.RING_TIP_PINKY_TIP] < gap)


_FINGER_EXTENSIONS = (
    f.INDEX_TIP_INDEX_BASE,
    f.MIDDLE_TIP_MIDDLE_BASE,
    f.RING_TIP_RING_BASE,
    f.PINKY_TIP_PINKY_BASE,
)


def build_rules(t: ClassifierThresholds) -> List[SignRule]:
    """Build the ordered rule table for a set of thresholds."""

    def is_a(v: FeatureVector) -> bool:
        return v[f.THUMB_TIP_INDEX_BASE] < t.a_thumb_index_base and _fingers_together(v, t.a_finger_gap)

    def is_l(v: FeatureVector) -> bool:
        return (v[f.THUMB_TIP_INDEX_TIP] > t.l_thumb_index_spread and
                v[f.MIDDLE_TIP_MIDDLE_BASE] < t.l_curl and
                v[f.RING_TIP_RING_BASE] < t.l_curl and
                v[f.PINKY_TIP_PINKY_BASE] < t.l_curl)

    def is_b(v: FeatureVector) -> bool:
        extended = all(v[name] > t.b_extension for name in _FINGER_EXTENSIONS)
        return extended and _fingers_together(v, t.b_finger_gap)

    def is_c(v: FeatureVector) -> bool:
        return all(t.c_min < v[name] < t.c_max for name in _FINGER_EXTENSIONS)

    def is_o(v: FeatureVector) -> bool:
        return v[f.THUMB_TIP_INDEX_TIP] < t.o_touch or v[f.THUMB_TIP_MIDDLE_TIP] < t.o_touch

    return [
        SignRule("A", is_a),
        SignRule("L", is_l),
        SignRule("B", is_b),
        SignRule("C", is_c),
        SignRule("O", is_o),
    ]


class SignClassifier:
    """
    First-match-wins classifier over an ordered rule table.

    Args:
        thresholds: distance thresholds; defaults to the hand-tuned values
        rules: explicit rule table, overriding the one built from thresholds
    """

    def __init__(self, thresholds: Optional[ClassifierThresholds] = None,
                 rules: Optional[Sequence[SignRule]] = None):
        self.thresholds = thresholds or ClassifierThresholds()
        self.rules = list(rules) if rules is not None else build_rules(self.thresholds)

    @property
    def labels(self) -> List[str]:
        return [rule.label for rule in self.rules]

    def classify(self, features: FeatureVector) -> Optional[str]:
        """Return the label of the first matching rule, or None."""
        for rule in self.rules:
            if rule.matches(features):
                return rule.label
        return None

    def match_all(self, features: FeatureVector) -> List[str]:
        """Every label whose rule matches, in table order. For diagnostics only."""
        return [rule.label for rule in self.rules if rule.matches(features)]

    __call__ = classify


def recognize(landmarks, classifier: Optional[SignClassifier] = None,
              extractor: Optional[FeatureExtractor] = None) -> Optional[str]:
    """Extract features from a landmark set and classify them in one step."""
    extractor = extractor or FeatureExtractor()
    classifier = classifier or SignClassifier()
    label = classifier.classify(extractor.extract(landmarks))
    logger.debug(f"Recognized sign: {label}")
    return label
