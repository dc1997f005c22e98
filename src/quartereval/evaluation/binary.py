"""Binary result aggregation across quarters.

Runs the curve engine once per quarter and once over the pooled table.
Quarters without both classes keep their accuracy curve but are left
out of ROC/F-score/AUC aggregation, with an explicit omission entry.
"""
from __future__ import annotations

import functools
from collections.abc import Sequence

import pandas as pd
import structlog

from quartereval.core.enums import MetricKind, OmissionScope
from quartereval.core.exceptions import DegenerateInputError
from quartereval.evaluation.curves import compute_auc, compute_curve, compute_max
from quartereval.evaluation.models import (
    BinaryReport,
    CombinedResult,
    Omission,
    QuarterResult,
    ScalarSummary,
)
from quartereval.evaluation.partition import filter_degenerate_quarters, partition

logger = structlog.get_logger(__name__)


def _quarter_result(
    quarter: str,
    rows: pd.DataFrame,
    positive_label: str,
    *,
    label_column: str,
    score_column: str,
    beta: float,
    class_label: str | None,
    include_roc: bool,
) -> QuarterResult:
    """Build one quarter's result; ROC/F only when ``include_roc``.

    Raises:
        DegenerateInputError: If ROC/F is requested on single-class rows.
    """
    scores = rows[score_column].tolist()
    labels = rows[label_column].tolist()

    accuracy = compute_curve(scores, labels, positive_label, MetricKind.ACCURACY)
    roc = fscore = None
    auc = max_fscore = None
    if include_roc:
        roc = compute_curve(scores, labels, positive_label, MetricKind.ROC)
        fscore = compute_curve(scores, labels, positive_label, MetricKind.FSCORE, beta=beta)
        auc = compute_auc(scores, labels, positive_label)
        max_fscore = compute_max(fscore)

    return QuarterResult(
        quarter=quarter,
        n_rows=len(rows),
        n_positive=int((rows[label_column] == positive_label).sum()),
        accuracy=accuracy,
        roc=roc,
        fscore=fscore,
        summary=ScalarSummary(
            quarter=quarter,
            class_label=class_label,
            auc=auc,
            max_accuracy=compute_max(accuracy),
            max_fscore=max_fscore,
        ),
    )


def _combined_result(
    table: pd.DataFrame,
    positive_label: str,
    *,
    label_column: str,
    score_column: str,
    beta: float,
    class_label: str | None,
) -> CombinedResult:
    scores = table[score_column].tolist()
    labels = table[label_column].tolist()
    try:
        curves = {
            kind: compute_curve(scores, labels, positive_label, kind, beta=beta)
            for kind in MetricKind
        }
    except DegenerateInputError as exc:
        raise DegenerateInputError(
            f"Pooled table cannot be evaluated: {exc}",
            class_label=class_label,
        ) from exc

    summary = ScalarSummary(
        class_label=class_label,
        auc=compute_auc(scores, labels, positive_label),
        max_accuracy=compute_max(curves[MetricKind.ACCURACY]),
        max_fscore=compute_max(curves[MetricKind.FSCORE]),
    )
    return CombinedResult(
        n_rows=len(table),
        n_positive=int((table[label_column] == positive_label).sum()),
        accuracy=curves[MetricKind.ACCURACY],
        roc=curves[MetricKind.ROC],
        fscore=curves[MetricKind.FSCORE],
        precision_recall=curves[MetricKind.PRECISION_RECALL],
        sens_spec=curves[MetricKind.SENS_SPEC],
        summary=summary,
    )


def evaluate_binary(
    table: pd.DataFrame,
    positive_label: str,
    *,
    quarter_column: str = "test_on",
    label_column: str = "label",
    score_column: str = "prediction",
    quarter_order: Sequence[str] | None = None,
    beta: float = 1.0,
    class_label: str | None = None,
) -> BinaryReport:
    """Evaluate a binary prediction table per quarter and pooled.

    Args:
        table: Prediction table.
        positive_label: Label treated as positive.
        quarter_column: Quarter id column.
        label_column: Ground-truth column.
        score_column: Score column.
        quarter_order: Optional canonical quarter order.
        beta: F-measure beta.
        class_label: One-vs-rest class tag carried on every summary.

    Returns:
        BinaryReport with per-quarter and pooled curves and summaries.

    Raises:
        DegenerateInputError: If the whole table lacks a positive or a
            negative row.
    """
    combined = _combined_result(
        table,
        positive_label,
        label_column=label_column,
        score_column=score_column,
        beta=beta,
        class_label=class_label,
    )

    partitions = partition(table, quarter_column, quarter_order)
    valid = set(filter_degenerate_quarters(partitions, label_column, [positive_label]))

    quarter_result = functools.partial(
        _quarter_result,
        positive_label=positive_label,
        label_column=label_column,
        score_column=score_column,
        beta=beta,
        class_label=class_label,
    )

    quarters: list[QuarterResult] = []
    omissions: list[Omission] = []
    for quarter, rows in partitions.items():
        reason: str | None = None
        if quarter in valid:
            try:
                result = quarter_result(quarter, rows, include_roc=True)
            except DegenerateInputError as exc:
                reason = str(exc)
        else:
            reason = f"no rows labelled '{positive_label}'"

        if reason is not None:
            result = quarter_result(quarter, rows, include_roc=False)
            omissions.append(
                Omission(
                    scope=OmissionScope.QUARTER,
                    reason=reason,
                    quarter=quarter,
                    class_label=class_label,
                )
            )
            logger.warning(
                "quarter_excluded",
                quarter=quarter,
                class_label=class_label,
                reason=reason,
            )
        quarters.append(result)

    logger.info(
        "binary_evaluation_complete",
        class_label=class_label,
        n_quarters=len(quarters),
        n_excluded=len(omissions),
        combined_auc=combined.summary.auc,
    )

    return BinaryReport(
        positive_label=positive_label,
        class_label=class_label,
        quarters=quarters,
        combined=combined,
        omissions=omissions,
    )
