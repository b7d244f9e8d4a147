"""
Unit tests for the rule-based sign classifier.
"""
import pytest

from sign_cam import features as f
from sign_cam.classifier import ClassifierThresholds, SignClassifier, SignRule, build_rules, recognize
from tests.fakes import pose_a, pose_b, pose_c, pose_l, pose_o, pose_open


def features(**overrides):
    """Feature vector that matches no rule, with selected distances overridden."""
    vector = {
        f.THUMB_TIP_INDEX_BASE: 100.0,
        f.INDEX_TIP_MIDDLE_TIP: 60.0,
        f.MIDDLE_TIP_RING_TIP: 60.0,
        f.RING_TIP_PINKY_TIP: 60.0,
        f.THUMB_TIP_INDEX_TIP: 80.0,
        f.MIDDLE_TIP_MIDDLE_BASE: 150.0,
        f.RING_TIP_RING_BASE: 150.0,
        f.PINKY_TIP_PINKY_BASE: 150.0,
        f.INDEX_TIP_INDEX_BASE: 150.0,
        f.THUMB_TIP_MIDDLE_TIP: 80.0,
    }
    vector.update(overrides)
    return vector


def closed_fingers():
    return {f.INDEX_TIP_MIDDLE_TIP: 10.0, f.MIDDLE_TIP_RING_TIP: 10.0, f.RING_TIP_PINKY_TIP: 10.0}


class TestRules:
    @pytest.fixture
    def classifier(self):
        return SignClassifier()

    def test_rule_order(self, classifier):
        assert classifier.labels == ["A", "L", "B", "C", "O"]

    def test_no_match_returns_none(self, classifier):
        assert classifier.classify(features()) is None

    def test_a(self, classifier):
        v = features(**{f.THUMB_TIP_INDEX_BASE: 20.0}, **closed_fingers())
        assert classifier.classify(v) == "A"

    def test_a_needs_every_finger_closed(self, classifier):
        v = features(**{f.THUMB_TIP_INDEX_BASE: 20.0}, **closed_fingers())
        v[f.RING_TIP_PINKY_TIP] = 40.0
        assert classifier.classify(v) is None

    def test_l(self, classifier):
        v = features(**{
            f.THUMB_TIP_INDEX_TIP: 150.0,
            f.MIDDLE_TIP_MIDDLE_BASE: 30.0,
            f.RING_TIP_RING_BASE: 30.0,
            f.PINKY_TIP_PINKY_BASE: 30.0,
        })
        assert classifier.classify(v) == "L"

    def test_b(self, classifier):
        v = features(**closed_fingers())
        assert classifier.classify(v) == "B"

    def test_c(self, classifier):
        v = features(**{
            f.INDEX_TIP_INDEX_BASE: 60.0,
            f.MIDDLE_TIP_MIDDLE_BASE: 60.0,
            f.RING_TIP_RING_BASE: 60.0,
            f.PINKY_TIP_PINKY_BASE: 60.0,
        })
        assert classifier.classify(v) == "C"

    @pytest.mark.parametrize("boundary", [40.0, 90.0])
    def test_c_bounds_are_exclusive(self, classifier, boundary):
        v = features(**{
            f.INDEX_TIP_INDEX_BASE: boundary,
            f.MIDDLE_TIP_MIDDLE_BASE: 60.0,
            f.RING_TIP_RING_BASE: 60.0,
            f.PINKY_TIP_PINKY_BASE: 60.0,
        })
        assert classifier.classify(v) is None

    def test_o_by_index(self, classifier):
        assert classifier.classify(features(**{f.THUMB_TIP_INDEX_TIP: 10.0})) == "O"

    def test_o_by_middle(self, classifier):
        assert classifier.classify(features(**{f.THUMB_TIP_MIDDLE_TIP: 10.0})) == "O"

    def test_thresholds_are_strict(self, classifier):
        v = features(**{f.THUMB_TIP_INDEX_BASE: 50.0}, **closed_fingers())
        v[f.INDEX_TIP_INDEX_BASE] = 50.0  # keep B out of the way
        assert classifier.classify(v) != "A"


class TestFirstMatchWins:
    """
    TEST: When a feature vector satisfies several rules, only the earliest wins.

    CHECKS: A beats B and O; L beats O.
    """

    def test_a_before_b(self):
        v = features(**{f.THUMB_TIP_INDEX_BASE: 20.0}, **closed_fingers())
        classifier = SignClassifier()
        assert classifier.match_all(v)[:2] == ["A", "B"]
        assert classifier.classify(v) == "A"

    def test_a_before_o(self):
        v = features(**{f.THUMB_TIP_INDEX_BASE: 20.0, f.THUMB_TIP_INDEX_TIP: 5.0}, **closed_fingers())
        classifier = SignClassifier()
        assert "O" in classifier.match_all(v)
        assert classifier.classify(v) == "A"

    def test_l_before_o(self):
        v = features(**{
            f.THUMB_TIP_INDEX_TIP: 150.0,
            f.THUMB_TIP_MIDDLE_TIP: 5.0,
            f.MIDDLE_TIP_MIDDLE_BASE: 30.0,
            f.RING_TIP_RING_BASE: 30.0,
            f.PINKY_TIP_PINKY_BASE: 30.0,
        })
        classifier = SignClassifier()
        assert classifier.match_all(v) == ["L", "O"]
        assert classifier.classify(v) == "L"

    def test_reordered_table_changes_winner(self):
        v = features(**{f.THUMB_TIP_INDEX_BASE: 20.0}, **closed_fingers())
        rules = build_rules(ClassifierThresholds())
        reordered = [rules[2]] + rules[:2] + rules[3:]
        assert SignClassifier(rules=reordered).classify(v) == "B"


class TestConfigurableThresholds:
    def test_looser_o_threshold(self):
        v = features(**{f.THUMB_TIP_INDEX_TIP: 45.0})
        assert SignClassifier().classify(v) is None
        assert SignClassifier(ClassifierThresholds(o_touch=50.0)).classify(v) == "O"

    def test_custom_rule(self):
        rules = [SignRule("Y", lambda v: v[f.THUMB_TIP_INDEX_TIP] > 70.0)]
        assert SignClassifier(rules=rules).classify(features()) == "Y"


class TestPoses:
    @pytest.mark.parametrize("pose, label", [
        (pose_a, "A"),
        (pose_l, "L"),
        (pose_b, "B"),
        (pose_c, "C"),
        (pose_o, "O"),
        (pose_open, None),
    ])
    def test_recognize(self, pose, label):
        assert recognize(pose()) == label
