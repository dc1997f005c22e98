"""Evaluation data models for quartereval.

Pydantic models for threshold-swept curves, scalar summaries,
per-quarter and pooled results, one-vs-rest multiclass aggregates,
confusion matrices and the composite evaluation report handed to
renderers and writers.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field, model_validator

from quartereval.core.enums import EvaluationMode, MetricKind, OmissionScope


class Curve(BaseModel):
    """A threshold-swept performance curve.

    Points are ordered by strictly descending cutoff. The first cutoff
    is ``+inf`` (every row predicted negative).

    Attributes:
        kind: Curve kind.
        x_measure: Name of the x measure ("cutoff" for single-measure curves).
        y_measure: Name of the y measure.
        cutoffs: Decision thresholds, strictly descending.
        x: X values, one per cutoff.
        y: Y values, one per cutoff (NaN where undefined).
    """

    kind: MetricKind
    x_measure: str
    y_measure: str
    cutoffs: list[float]
    x: list[float]
    y: list[float]

    @model_validator(mode="after")
    def _check_lengths(self) -> Curve:
        if not (len(self.cutoffs) == len(self.x) == len(self.y)):
            msg = (
                f"Curve series length mismatch: cutoffs={len(self.cutoffs)}, "
                f"x={len(self.x)}, y={len(self.y)}"
            )
            raise ValueError(msg)
        return self

    def points(self) -> list[tuple[float, float]]:
        """(cutoff, y) pairs in descending-cutoff order."""
        return list(zip(self.cutoffs, self.y, strict=True))


class CutoffValue(BaseModel):
    """A metric value together with the cutoff achieving it."""

    cutoff: float
    value: float


class ThresholdCounts(BaseModel):
    """Confusion counts of a binary split at one cutoff.

    Attributes:
        cutoff: Threshold applied (``score >= cutoff`` is positive).
        tp: True positives.
        fp: False positives.
        tn: True negatives.
        fn: False negatives.
    """

    cutoff: float
    tp: int
    fp: int
    tn: int
    fn: int

    @property
    def n_total(self) -> int:
        return self.tp + self.fp + self.tn + self.fn

    @property
    def accuracy(self) -> float:
        return (self.tp + self.tn) / self.n_total

    @property
    def tpr(self) -> float:
        denom = self.tp + self.fn
        return self.tp / denom if denom > 0 else math.nan

    @property
    def fpr(self) -> float:
        denom = self.fp + self.tn
        return self.fp / denom if denom > 0 else math.nan

    @property
    def precision(self) -> float:
        denom = self.tp + self.fp
        return self.tp / denom if denom > 0 else math.nan


class ScalarSummary(BaseModel):
    """Scalar summaries of one quarter, the pooled set, or one class.

    ``auc`` and ``max_fscore`` are None when the scope was excluded
    from ROC/F aggregation.

    Attributes:
        quarter: Quarter id, or None for the pooled set.
        class_label: One-vs-rest class, or None in binary mode.
        auc: Area under the ROC curve.
        max_accuracy: Best accuracy and its cutoff.
        max_fscore: Best F-score and its cutoff.
    """

    quarter: str | None = None
    class_label: str | None = None
    auc: float | None = None
    max_accuracy: CutoffValue
    max_fscore: CutoffValue | None = None


class Omission(BaseModel):
    """A piece of the report that could not be computed, and why.

    Attributes:
        scope: What was omitted.
        reason: Human-readable cause.
        quarter: Affected quarter, if any.
        class_label: Affected class, if any.
    """

    scope: OmissionScope
    reason: str
    quarter: str | None = None
    class_label: str | None = None


class QuarterResult(BaseModel):
    """Curves and summaries for one quarter.

    Attributes:
        quarter: Quarter id.
        n_rows: Rows in the quarter.
        n_positive: Rows carrying the positive label.
        accuracy: Accuracy-vs-cutoff curve (always present).
        roc: ROC curve, None if the quarter was excluded.
        fscore: F-score-vs-cutoff curve, None if the quarter was excluded.
        summary: Scalar summaries.
    """

    quarter: str
    n_rows: int
    n_positive: int
    accuracy: Curve
    roc: Curve | None = None
    fscore: Curve | None = None
    summary: ScalarSummary

    @property
    def excluded(self) -> bool:
        return self.roc is None


class CombinedResult(BaseModel):
    """Curves and summaries over every row treated as one pooled quarter."""

    n_rows: int
    n_positive: int
    accuracy: Curve
    roc: Curve
    fscore: Curve
    precision_recall: Curve
    sens_spec: Curve
    summary: ScalarSummary

    def curve(self, kind: MetricKind) -> Curve:
        """Look up a pooled curve by kind."""
        return {
            MetricKind.ACCURACY: self.accuracy,
            MetricKind.ROC: self.roc,
            MetricKind.FSCORE: self.fscore,
            MetricKind.PRECISION_RECALL: self.precision_recall,
            MetricKind.SENS_SPEC: self.sens_spec,
        }[kind]


class BinaryReport(BaseModel):
    """Per-quarter and pooled results for one binary evaluation.

    Attributes:
        positive_label: Label treated as positive.
        class_label: One-vs-rest class tag (None in binary mode).
        quarters: Per-quarter results in canonical quarter order.
        combined: Pooled results.
        omissions: Quarters excluded from ROC/F aggregation.
    """

    positive_label: str
    class_label: str | None = None
    quarters: list[QuarterResult]
    combined: CombinedResult
    omissions: list[Omission] = Field(default_factory=list)

    @property
    def valid_quarters(self) -> list[QuarterResult]:
        return [q for q in self.quarters if not q.excluded]

    def summaries(self) -> list[ScalarSummary]:
        """Per-quarter summaries followed by the pooled summary."""
        return [q.summary for q in self.quarters] + [self.combined.summary]


class MacroAUC(BaseModel):
    """Macro-averaged one-vs-rest AUC for one quarter or overall.

    Attributes:
        quarter: Quarter id, or None for the whole table.
        value: Mean AUC across usable classes (NaN if none).
        classes_used: Classes that contributed.
        classes_skipped: Classes degenerate in this scope.
    """

    quarter: str | None = None
    value: float
    classes_used: list[str]
    classes_skipped: list[str] = Field(default_factory=list)

    @property
    def defined(self) -> bool:
        return not math.isnan(self.value)


class MulticlassReport(BaseModel):
    """One-vs-rest results for every class plus macro AUCs.

    Attributes:
        class_labels: Classes in canonical order.
        per_class: Binary report per class (missing for omitted classes).
        quarter_auc: Macro AUC per quarter, in canonical quarter order.
        overall_auc: Macro AUC over the whole table.
        omissions: Class-level and macro-AUC omissions.
    """

    class_labels: list[str]
    per_class: dict[str, BinaryReport]
    quarter_auc: list[MacroAUC]
    overall_auc: MacroAUC
    omissions: list[Omission] = Field(default_factory=list)

    def all_omissions(self) -> list[Omission]:
        """Own omissions followed by every per-class omission."""
        nested = [o for c in self.class_labels if c in self.per_class
                  for o in self.per_class[c].omissions]
        return [*self.omissions, *nested]


class ConfusionMatrix(BaseModel):
    """Square confusion matrix over a fixed label set.

    Rows are predicted classes, columns are actual classes.

    Attributes:
        class_labels: Label order of rows and columns.
        counts: ``counts[i][j]`` = rows predicted ``class_labels[i]``
            whose actual label is ``class_labels[j]``.
    """

    class_labels: list[str]
    counts: list[list[int]]

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_square(self) -> ConfusionMatrix:
        size = len(self.class_labels)
        if len(self.counts) != size or any(len(row) != size for row in self.counts):
            msg = f"Confusion matrix must be {size}x{size}"
            raise ValueError(msg)
        return self

    def _index(self, class_label: str) -> int:
        return self.class_labels.index(class_label)

    def count(self, predicted: str, actual: str) -> int:
        return self.counts[self._index(predicted)][self._index(actual)]

    def row_sum(self, class_label: str) -> int:
        """Rows predicted as ``class_label``."""
        return sum(self.counts[self._index(class_label)])

    def col_sum(self, class_label: str) -> int:
        """Rows whose actual label is ``class_label``."""
        j = self._index(class_label)
        return sum(row[j] for row in self.counts)

    @property
    def total(self) -> int:
        return sum(sum(row) for row in self.counts)

    @property
    def trace(self) -> int:
        return sum(self.counts[i][i] for i in range(len(self.class_labels)))


class ClassMetrics(BaseModel):
    """Per-class metrics derived from a confusion matrix.

    ``precision`` and ``recall`` are None when undefined (zero
    denominator); they are never coerced to 0.
    """

    class_label: str
    tp: int
    fp: int
    fn: int
    tn: int
    accuracy: float
    precision: float | None = None
    recall: float | None = None


class ConfusionMetrics(BaseModel):
    """Overall and per-class metrics of a confusion matrix.

    Attributes:
        overall_accuracy: trace / total.
        per_class: Metrics per class, in class order.
        undefined: Entries such as ``"precision:H"`` that were undefined.
    """

    overall_accuracy: float
    per_class: dict[str, ClassMetrics]
    undefined: list[str] = Field(default_factory=list)


class EvaluationReport(BaseModel):
    """Complete evaluation report.

    Attributes:
        mode: Binary or multiclass.
        binary: Binary report (binary mode).
        multiclass: One-vs-rest report (multiclass mode).
        confusion_matrix: Argmax confusion matrix over all rows.
        confusion_metrics: Metrics derived from the matrix.
        metadata: Additional metadata (n_rows, quarters, timestamp).
    """

    mode: EvaluationMode
    binary: BinaryReport | None = None
    multiclass: MulticlassReport | None = None
    confusion_matrix: ConfusionMatrix
    confusion_metrics: ConfusionMetrics
    metadata: dict[str, Any] = Field(default_factory=dict)

    def omissions(self) -> list[Omission]:
        """Every omission recorded anywhere in the report."""
        if self.binary is not None:
            return list(self.binary.omissions)
        if self.multiclass is not None:
            return self.multiclass.all_omissions()
        return []
