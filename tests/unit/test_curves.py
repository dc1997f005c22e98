"""Tests for threshold-swept curve computation."""
from __future__ import annotations

import math

import numpy as np
import pytest
from sklearn.metrics import roc_auc_score

from quartereval.core.enums import MetricKind
from quartereval.core.exceptions import DegenerateInputError
from quartereval.evaluation.curves import (
    compute_auc,
    compute_curve,
    compute_max,
    counts_at_cutoff,
)
from quartereval.evaluation.models import Curve

SCORES = [0.2, 0.9, 0.4, 0.6]
LABELS = [0, 1, 1, 0]


class TestComputeCurve:
    """Tests for compute_curve."""

    def test_cutoffs_descend_from_infinity(self) -> None:
        """Cutoffs are +inf followed by distinct scores, descending."""
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.ACCURACY)
        assert curve.cutoffs == [math.inf, 0.9, 0.6, 0.4, 0.2]

    def test_accuracy_values(self) -> None:
        """Accuracy at each cutoff follows (TP + TN) / N."""
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.ACCURACY)
        assert curve.y == pytest.approx([0.5, 0.75, 0.5, 0.75, 0.5])
        assert curve.x_measure == "cutoff"
        assert curve.y_measure == "accuracy"

    def test_roc_points(self) -> None:
        """ROC runs from (0, 0) to (1, 1) with FPR on x."""
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.ROC)
        assert curve.x == pytest.approx([0.0, 0.0, 0.5, 0.5, 1.0])
        assert curve.y == pytest.approx([0.0, 0.5, 0.5, 1.0, 1.0])
        assert (curve.x_measure, curve.y_measure) == ("fpr", "tpr")

    def test_fscore_undefined_at_infinity(self) -> None:
        """No predicted positives at +inf leaves precision and F undefined."""
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.FSCORE)
        assert math.isnan(curve.y[0])
        assert curve.y[1:] == pytest.approx([2 / 3, 0.5, 0.8, 2 / 3])

    def test_fscore_beta(self) -> None:
        """beta=2 weights recall more heavily than precision."""
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.FSCORE, beta=2.0)
        # precision 2/3, recall 1 at cutoff 0.4
        assert curve.y[3] == pytest.approx(10 / 11)

    def test_fscore_zero_when_no_true_positive(self) -> None:
        """Predicted positives that are all wrong give F = 0, not NaN."""
        curve = compute_curve([0.9, 0.1], [0, 1], 1, MetricKind.FSCORE)
        assert curve.y[1] == 0.0

    def test_precision_recall(self) -> None:
        """Precision-recall has recall on x and NaN precision at +inf."""
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.PRECISION_RECALL)
        assert curve.x == pytest.approx([0.0, 0.5, 0.5, 1.0, 1.0])
        assert math.isnan(curve.y[0])
        assert curve.y[1:] == pytest.approx([1.0, 0.5, 2 / 3, 0.5])

    def test_sensitivity_specificity(self) -> None:
        """Specificity falls as the cutoff is lowered."""
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.SENS_SPEC)
        assert curve.x == pytest.approx([1.0, 1.0, 0.5, 0.5, 0.0])
        assert curve.y == pytest.approx([0.0, 0.5, 0.5, 1.0, 1.0])

    def test_tied_scores_collapse(self) -> None:
        """A run of tied scores yields a single point."""
        curve = compute_curve([0.5, 0.5, 0.3], [1, 0, 0], 1, MetricKind.ROC)
        assert curve.cutoffs == [math.inf, 0.5, 0.3]
        assert curve.x == pytest.approx([0.0, 0.5, 1.0])
        assert curve.y == pytest.approx([0.0, 1.0, 1.0])

    def test_string_labels(self) -> None:
        """Any label value can be the positive class."""
        curve = compute_curve([0.8, 0.2], ["H", "__rest__"], "H", MetricKind.ROC)
        assert curve.y[-1] == 1.0

    def test_accuracy_single_class_is_defined(self) -> None:
        """Accuracy does not need both classes."""
        curve = compute_curve([0.1, 0.4], [0, 0], 1, MetricKind.ACCURACY)
        assert curve.y == pytest.approx([1.0, 0.5, 0.0])

    @pytest.mark.parametrize(
        "kind",
        [MetricKind.ROC, MetricKind.FSCORE, MetricKind.PRECISION_RECALL, MetricKind.SENS_SPEC],
    )
    def test_no_positives_raises(self, kind: MetricKind) -> None:
        """Curves needing both classes fail on negative-only data."""
        with pytest.raises(DegenerateInputError, match="No rows labelled"):
            compute_curve([0.1, 0.4], [0, 0], 1, kind)

    def test_all_positives_raises(self) -> None:
        """ROC fails when every row is positive."""
        with pytest.raises(DegenerateInputError, match="Every row"):
            compute_curve([0.1, 0.4], [1, 1], 1, MetricKind.ROC)

    def test_empty_raises(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            compute_curve([], [], 1, MetricKind.ACCURACY)

    def test_mismatched_length_raises(self) -> None:
        with pytest.raises(ValueError, match="Mismatched"):
            compute_curve([0.1, 0.2], [1], 1, MetricKind.ACCURACY)

    def test_nan_score_raises(self) -> None:
        with pytest.raises(ValueError, match="NaN"):
            compute_curve([0.1, float("nan")], [0, 1], 1, MetricKind.ACCURACY)

    def test_infinite_score_raises(self) -> None:
        """An observed inf would duplicate the leading +inf cutoff."""
        with pytest.raises(ValueError, match="finite"):
            compute_curve([math.inf, 0.3, 0.1], [1, 0, 1], 1, MetricKind.ACCURACY)


class TestComputeAUC:
    """Tests for compute_auc."""

    def test_known_value(self) -> None:
        """Three of four positive/negative pairs are ordered correctly."""
        assert compute_auc(SCORES, LABELS, 1) == pytest.approx(0.75)

    def test_perfect_separation(self) -> None:
        assert compute_auc([0.1, 0.2, 0.8, 0.9], [0, 0, 1, 1], 1) == pytest.approx(1.0)

    def test_inverted_scores(self) -> None:
        assert compute_auc([0.9, 0.8, 0.2, 0.1], [0, 0, 1, 1], 1) == pytest.approx(0.0)

    def test_matches_sklearn_with_ties(self) -> None:
        """Trapezoidal AUC agrees with sklearn, ties counted as half."""
        rng = np.random.default_rng(7)
        labels = rng.integers(0, 2, size=200)
        scores = np.round(rng.random(200) * 0.5 + labels * 0.3, 1)
        expected = roc_auc_score(labels, scores)
        assert compute_auc(scores.tolist(), labels.tolist(), 1) == pytest.approx(expected)

    def test_constant_scorer_is_half(self) -> None:
        assert compute_auc([0.5] * 4, [0, 1, 0, 1], 1) == pytest.approx(0.5)

    def test_single_class_raises(self) -> None:
        with pytest.raises(DegenerateInputError):
            compute_auc([0.2, 0.3], [1, 1], 1)


class TestComputeMax:
    """Tests for compute_max."""

    def test_ties_go_to_highest_cutoff(self) -> None:
        """Accuracy 0.75 occurs at 0.9 and 0.4; the first point wins."""
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.ACCURACY)
        best = compute_max(curve)
        assert best.value == pytest.approx(0.75)
        assert best.cutoff == 0.9

    def test_ignores_nan(self) -> None:
        """The undefined F at +inf is skipped."""
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.FSCORE)
        best = compute_max(curve)
        assert best.value == pytest.approx(0.8)
        assert best.cutoff == 0.4

    def test_idempotent(self) -> None:
        curve = compute_curve(SCORES, LABELS, 1, MetricKind.FSCORE)
        assert compute_max(curve) == compute_max(curve)

    def test_all_nan_raises(self) -> None:
        curve = Curve(
            kind=MetricKind.FSCORE,
            x_measure="cutoff",
            y_measure="fscore",
            cutoffs=[math.inf],
            x=[math.inf],
            y=[math.nan],
        )
        with pytest.raises(ValueError, match="No defined values"):
            compute_max(curve)


class TestCountsAtCutoff:
    """Tests for counts_at_cutoff."""

    def test_counts_at_half(self) -> None:
        """Cutoff 0.5 predicts [0, 1, 0, 1]: one of each outcome."""
        counts = counts_at_cutoff(SCORES, LABELS, 1, 0.5)
        assert (counts.tp, counts.fp, counts.fn, counts.tn) == (1, 1, 1, 1)
        assert counts.accuracy == 0.5

    def test_cutoff_is_inclusive(self) -> None:
        """A score equal to the cutoff is predicted positive."""
        counts = counts_at_cutoff([0.6], [1], 1, 0.6)
        assert counts.tp == 1
