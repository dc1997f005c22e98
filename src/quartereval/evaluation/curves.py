"""Threshold-swept curve computation.

Stateless functions turning parallel (score, label) sequences into
accuracy, ROC, F-score, precision-recall and sensitivity-specificity
curves, plus AUC and best-cutoff summaries.

Cutoffs follow the ROCR convention: ``+inf`` first, then every distinct
observed score in descending order. A row is predicted positive when
``score >= cutoff``; tied scores collapse into a single point holding
the counts after the whole tie group.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from sklearn.metrics import auc as trapezoid_auc  # type: ignore[import-untyped]

from quartereval.core.enums import MetricKind
from quartereval.core.exceptions import DegenerateInputError
from quartereval.evaluation.models import Curve, CutoffValue, ThresholdCounts

FloatArray = NDArray[np.float64]


@dataclass(frozen=True)
class _SweepCounts:
    """Cumulative confusion counts at each cutoff of a sweep."""

    cutoffs: FloatArray
    tp: FloatArray
    fp: FloatArray
    n_pos: int
    n_neg: int

    @property
    def fn(self) -> FloatArray:
        return self.n_pos - self.tp

    @property
    def tn(self) -> FloatArray:
        return self.n_neg - self.fp


def _as_arrays(
    scores: Sequence[float],
    labels: Sequence[Any],
    positive_class: Any,
) -> tuple[FloatArray, NDArray[np.bool_]]:
    """Validate inputs and collapse labels to a positive mask.

    Raises:
        ValueError: If inputs are empty or mismatched, or if scores are
            not finite.
    """
    if len(scores) == 0 and len(labels) == 0:
        msg = "Inputs must not be empty"
        raise ValueError(msg)
    if len(scores) != len(labels):
        msg = f"Mismatched length: scores={len(scores)}, labels={len(labels)}"
        raise ValueError(msg)

    scores_arr: FloatArray = np.asarray(scores, dtype=np.float64)
    if not np.isfinite(scores_arr).all():
        msg = "Scores must be finite (no NaN or inf)"
        raise ValueError(msg)
    is_positive = np.asarray([lab == positive_class for lab in labels], dtype=bool)
    return scores_arr, is_positive


def _require_both_classes(is_positive: NDArray[np.bool_], positive_class: Any) -> None:
    n_pos = int(is_positive.sum())
    if n_pos == 0:
        msg = f"No rows labelled '{positive_class}'; curve undefined"
        raise DegenerateInputError(msg)
    if n_pos == len(is_positive):
        msg = f"Every row is labelled '{positive_class}'; curve undefined"
        raise DegenerateInputError(msg)


def _sweep(scores_arr: FloatArray, is_positive: NDArray[np.bool_]) -> _SweepCounts:
    order = np.argsort(-scores_arr, kind="mergesort")
    sorted_scores = scores_arr[order]
    sorted_pos = is_positive[order]

    tp_cum = np.cumsum(sorted_pos, dtype=np.float64)
    fp_cum = np.cumsum(~sorted_pos, dtype=np.float64)

    # Last index of each run of tied scores
    group_end = np.r_[np.diff(sorted_scores) != 0, True]

    n_pos = int(is_positive.sum())
    return _SweepCounts(
        cutoffs=np.r_[np.inf, sorted_scores[group_end]],
        tp=np.r_[0.0, tp_cum[group_end]],
        fp=np.r_[0.0, fp_cum[group_end]],
        n_pos=n_pos,
        n_neg=len(is_positive) - n_pos,
    )


def _ratio(num: FloatArray, denom: FloatArray | float) -> FloatArray:
    """Elementwise num/denom with NaN where denom is zero."""
    denom_arr = np.broadcast_to(np.asarray(denom, dtype=np.float64), num.shape)
    out = np.full(num.shape, np.nan)
    np.divide(num, denom_arr, out=out, where=denom_arr != 0)
    return out


def _fscore(precision: FloatArray, recall: FloatArray, beta: float) -> FloatArray:
    beta_sq = beta * beta
    denom = beta_sq * precision + recall
    out = np.full(precision.shape, np.nan)
    defined = ~np.isnan(precision) & ~np.isnan(recall)
    zero = defined & (denom == 0)
    positive = defined & (denom != 0)
    out[zero] = 0.0
    out[positive] = (1 + beta_sq) * precision[positive] * recall[positive] / denom[positive]
    return out


def compute_curve(
    scores: Sequence[float],
    labels: Sequence[Any],
    positive_class: Any,
    kind: MetricKind,
    beta: float = 1.0,
) -> Curve:
    """Compute one threshold-swept curve.

    Args:
        scores: Class-membership scores (higher = more likely positive).
        labels: Ground-truth labels, parallel to ``scores``.
        positive_class: Value of ``labels`` treated as positive; every
            other value is negative.
        kind: Which curve to compute.
        beta: F-measure beta (only used for ``MetricKind.FSCORE``).

    Returns:
        Curve with strictly descending cutoffs starting at ``+inf``.

    Raises:
        ValueError: If inputs are empty or mismatched.
        DegenerateInputError: If ``kind`` needs both classes and the
            labels hold only one.
    """
    scores_arr, is_positive = _as_arrays(scores, labels, positive_class)
    if kind.requires_both_classes:
        _require_both_classes(is_positive, positive_class)

    counts = _sweep(scores_arr, is_positive)
    n_total = counts.n_pos + counts.n_neg

    if kind is MetricKind.ACCURACY:
        x, y = counts.cutoffs, (counts.tp + counts.tn) / n_total
        x_measure, y_measure = "cutoff", "accuracy"
    elif kind is MetricKind.ROC:
        x = counts.fp / counts.n_neg
        y = counts.tp / counts.n_pos
        x_measure, y_measure = "fpr", "tpr"
    elif kind is MetricKind.FSCORE:
        precision = _ratio(counts.tp, counts.tp + counts.fp)
        recall = counts.tp / counts.n_pos
        x, y = counts.cutoffs, _fscore(precision, recall, beta)
        x_measure, y_measure = "cutoff", "fscore"
    elif kind is MetricKind.PRECISION_RECALL:
        x = counts.tp / counts.n_pos
        y = _ratio(counts.tp, counts.tp + counts.fp)
        x_measure, y_measure = "recall", "precision"
    else:
        x = counts.tn / counts.n_neg
        y = counts.tp / counts.n_pos
        x_measure, y_measure = "specificity", "sensitivity"

    return Curve(
        kind=kind,
        x_measure=x_measure,
        y_measure=y_measure,
        cutoffs=[float(c) for c in counts.cutoffs],
        x=[float(v) for v in x],
        y=[float(v) for v in y],
    )


def compute_auc(
    scores: Sequence[float],
    labels: Sequence[Any],
    positive_class: Any,
) -> float:
    """Compute the area under the ROC curve by the trapezoidal rule.

    Args:
        scores: Class-membership scores.
        labels: Ground-truth labels, parallel to ``scores``.
        positive_class: Value of ``labels`` treated as positive.

    Returns:
        AUC in [0, 1].

    Raises:
        DegenerateInputError: If only one class is present.
    """
    roc = compute_curve(scores, labels, positive_class, MetricKind.ROC)
    # FPR is non-decreasing along descending cutoffs
    return float(trapezoid_auc(roc.x, roc.y))


def compute_max(curve: Curve) -> CutoffValue:
    """Return the point with the largest y value.

    NaN values are ignored. Ties go to the first point in
    descending-cutoff order, i.e. the highest cutoff.

    Raises:
        ValueError: If the curve has no defined value.
    """
    values = np.asarray(curve.y, dtype=np.float64)
    if values.size == 0 or np.isnan(values).all():
        msg = f"No defined values on {curve.kind} curve"
        raise ValueError(msg)
    idx = int(np.nanargmax(values))
    return CutoffValue(cutoff=curve.cutoffs[idx], value=float(values[idx]))


def counts_at_cutoff(
    scores: Sequence[float],
    labels: Sequence[Any],
    positive_class: Any,
    cutoff: float,
) -> ThresholdCounts:
    """Confusion counts at a single cutoff (``score >= cutoff`` is positive)."""
    scores_arr, is_positive = _as_arrays(scores, labels, positive_class)
    predicted = scores_arr >= cutoff
    return ThresholdCounts(
        cutoff=cutoff,
        tp=int(np.sum(predicted & is_positive)),
        fp=int(np.sum(predicted & ~is_positive)),
        tn=int(np.sum(~predicted & ~is_positive)),
        fn=int(np.sum(~predicted & is_positive)),
    )
