"""
Tests for expression selection and speech debouncing.
"""

import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from voicecam.core.expression import (
    ExpressionAggregator,
    SpeechDebounceState,
    describe_expression,
    dominant_expression,
    format_confidence,
)
from fakes import FakeSynthesizer, make_face


class TestDominantExpression(unittest.TestCase):
    """Test arg-max selection."""

    def test_highest_score_wins(self):
        label, score = dominant_expression({"happy": 0.91, "neutral": 0.05, "sad": 0.04})
        self.assertEqual(label, "happy")
        self.assertAlmostEqual(score, 0.91)

    def test_first_label_wins_ties(self):
        """Test that the earliest label is kept on equal scores."""
        self.assertEqual(dominant_expression({"sad": 0.5, "happy": 0.5})[0], "sad")
        self.assertEqual(dominant_expression({"happy": 0.5, "sad": 0.5})[0], "happy")

    def test_single_label(self):
        self.assertEqual(dominant_expression({"sad": 0.7}), ("sad", 0.7))

    def test_all_zero_scores(self):
        self.assertEqual(dominant_expression({"neutral": 0.0, "happy": 0.0})[0], "neutral")

    def test_empty_scores_rejected(self):
        with self.assertRaises(ValueError):
            dominant_expression({})

    def test_confidence_format(self):
        self.assertEqual(format_confidence(0.91), "91.00%")
        self.assertEqual(format_confidence(0.123456), "12.35%")
        self.assertEqual(format_confidence(1.0), "100.00%")
        self.assertEqual(describe_expression({"happy": 0.91, "sad": 0.09}), "happy (91.00%)")


class TestExpressionAggregator(unittest.TestCase):
    """Test display text and spoken feedback."""

    def setUp(self):
        self.synth = FakeSynthesizer()
        self.aggregator = ExpressionAggregator(self.synth)

    def test_scenario_sequence(self):
        """Test the happy → happy → no face → sad sequence."""
        spoken = self.aggregator.update([make_face({"happy": 0.91, "neutral": 0.05, "sad": 0.04})])
        self.assertEqual(spoken, "You look happy")
        self.assertEqual(self.aggregator.confidence_text, "91.00%")
        self.assertEqual(self.aggregator.display_text, "happy (91.00%)")
        self.assertEqual(self.synth.spoken, ["You look happy"])

        spoken = self.aggregator.update([make_face({"happy": 0.60, "surprised": 0.40})])
        self.assertIsNone(spoken)
        self.assertEqual(self.synth.spoken, ["You look happy"])
        self.assertEqual(self.aggregator.display_text, "happy (60.00%)")

        spoken = self.aggregator.update([])
        self.assertIsNone(spoken)
        self.assertEqual(self.aggregator.display_text, "No face detected")
        self.assertIsNone(self.aggregator.state.last_spoken_label)

        spoken = self.aggregator.update([make_face({"sad": 0.70})])
        self.assertEqual(spoken, "You look sad")
        self.assertEqual(self.synth.spoken, ["You look happy", "You look sad"])

    def test_speaks_only_on_label_change(self):
        """Test that utterances occur exactly where the arg-max changes."""
        sequence = ["happy", "happy", "sad", "sad", "sad", "happy", "angry", "angry"]
        for label in sequence:
            self.aggregator.update([make_face({label: 0.8, "neutral": 0.1})])

        self.assertEqual(
            self.synth.spoken,
            ["You look happy", "You look sad", "You look happy", "You look angry"],
        )

    def test_cancels_before_speaking(self):
        self.aggregator.update([make_face({"happy": 0.9})])
        self.aggregator.update([make_face({"sad": 0.9})])
        self.assertEqual(self.synth.cancels, 2)

    def test_empty_frames_never_speak(self):
        for _ in range(3):
            self.assertIsNone(self.aggregator.update([]))
        self.assertEqual(self.synth.spoken, [])
        self.assertEqual(self.synth.cancels, 0)

    def test_same_label_after_empty_frame_speaks_again(self):
        self.aggregator.update([make_face({"happy": 0.9})])
        self.aggregator.update([])
        self.aggregator.update([make_face({"happy": 0.9})])
        self.assertEqual(self.synth.spoken, ["You look happy", "You look happy"])

    def test_only_first_face_is_used(self):
        faces = [make_face({"sad": 0.8}), make_face({"happy": 0.99})]
        self.assertEqual(self.aggregator.update(faces), "You look sad")

    def test_reset(self):
        self.aggregator.update([make_face({"happy": 0.9})])
        self.aggregator.reset()
        self.assertEqual(self.aggregator.display_text, "")
        self.assertEqual(self.aggregator.state, SpeechDebounceState())

    def test_injected_state_is_shared(self):
        state = SpeechDebounceState(last_spoken_label="happy")
        aggregator = ExpressionAggregator(self.synth, state)
        self.assertIsNone(aggregator.update([make_face({"happy": 0.9})]))
        self.assertIs(aggregator.state, state)


if __name__ == "__main__":
    unittest.main()
