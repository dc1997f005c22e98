"""Argmax class prediction and confusion-matrix metrics."""
from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np
import pandas as pd
import structlog

from quartereval.core.exceptions import SchemaError, UndefinedMetricError
from quartereval.evaluation.models import ClassMetrics, ConfusionMatrix, ConfusionMetrics

logger = structlog.get_logger(__name__)


def binary_score_frame(
    table: pd.DataFrame,
    negative_label: str,
    positive_label: str,
    prediction_column: str = "prediction",
) -> pd.DataFrame:
    """Expand a single positive-class score into two class columns.

    The negative class scores ``1 - prediction``, so argmax predicts the
    positive class when ``prediction > 0.5``.
    """
    scores = table[prediction_column].astype(float)
    return pd.DataFrame(
        {negative_label: 1.0 - scores, positive_label: scores},
        index=table.index,
    )


def predict_classes(
    table: pd.DataFrame,
    class_labels: Sequence[str],
    score_columns: Mapping[str, str],
) -> list[str]:
    """Predict each row's class as the argmax of its class scores.

    Ties go to the class appearing first in ``class_labels``.

    Args:
        table: Prediction table.
        class_labels: Classes in canonical order.
        score_columns: Class -> score column.

    Returns:
        Predicted class per row, in table order.
    """
    columns = [score_columns[c] for c in class_labels]
    missing = [c for c in columns if c not in table.columns]
    if missing:
        msg = f"Missing score columns: {missing}"
        raise SchemaError(msg, missing=missing)

    scores = table[columns].to_numpy(dtype=np.float64)
    # np.argmax returns the first maximal index
    winners = np.argmax(scores, axis=1)
    return [class_labels[i] for i in winners]


def build_confusion_matrix(
    predicted: Sequence[str],
    actual: Sequence[str],
    class_labels: Sequence[str],
) -> ConfusionMatrix:
    """Tally (predicted, actual) pairs into a fixed-size matrix.

    Classes that never occur still get all-zero rows and columns.

    Raises:
        ValueError: If inputs are empty or have mismatched lengths.
        SchemaError: If a label is outside ``class_labels``.
    """
    if len(predicted) == 0 and len(actual) == 0:
        msg = "Inputs must not be empty"
        raise ValueError(msg)
    if len(predicted) != len(actual):
        msg = f"Mismatched length: predicted={len(predicted)}, actual={len(actual)}"
        raise ValueError(msg)

    index = {c: i for i, c in enumerate(class_labels)}
    unknown = sorted({str(a) for a in actual if a not in index})
    if unknown:
        msg = f"Labels {unknown} are not among the configured classes {list(class_labels)}"
        raise SchemaError(msg)

    counts = [[0] * len(class_labels) for _ in class_labels]
    for pred, act in zip(predicted, actual, strict=True):
        counts[index[pred]][index[act]] += 1

    return ConfusionMatrix(class_labels=list(class_labels), counts=counts)


def confusion_matrix_from_table(
    table: pd.DataFrame,
    class_labels: Sequence[str],
    score_columns: Mapping[str, str],
    label_column: str = "label",
) -> ConfusionMatrix:
    """Predict every row by argmax and build the confusion matrix."""
    predicted = predict_classes(table, class_labels, score_columns)
    matrix = build_confusion_matrix(predicted, table[label_column].tolist(), class_labels)
    logger.info("confusion_matrix_built", n_rows=matrix.total, n_classes=len(class_labels))
    return matrix


def class_precision(matrix: ConfusionMatrix, class_label: str) -> float:
    """TP / (TP + FP) for one class.

    Raises:
        UndefinedMetricError: If the class is never predicted.
    """
    tp = matrix.count(class_label, class_label)
    predicted = matrix.row_sum(class_label)
    if predicted == 0:
        msg = f"Precision undefined for '{class_label}': class never predicted"
        raise UndefinedMetricError(msg, metric="precision", class_label=class_label)
    return tp / predicted


def class_recall(matrix: ConfusionMatrix, class_label: str) -> float:
    """TP / (TP + FN) for one class.

    Raises:
        UndefinedMetricError: If the class never occurs.
    """
    tp = matrix.count(class_label, class_label)
    actual = matrix.col_sum(class_label)
    if actual == 0:
        msg = f"Recall undefined for '{class_label}': class never occurs"
        raise UndefinedMetricError(msg, metric="recall", class_label=class_label)
    return tp / actual


def derive_metrics(matrix: ConfusionMatrix) -> ConfusionMetrics:
    """Derive overall accuracy and per-class accuracy/precision/recall.

    Undefined precision or recall is stored as None and listed in
    ``undefined``; it is never reported as 0.

    Raises:
        ValueError: If the matrix is empty.
    """
    total = matrix.total
    if total == 0:
        msg = "Confusion matrix is empty"
        raise ValueError(msg)

    per_class: dict[str, ClassMetrics] = {}
    undefined: list[str] = []
    for c in matrix.class_labels:
        tp = matrix.count(c, c)
        fp = matrix.row_sum(c) - tp
        fn = matrix.col_sum(c) - tp
        tn = total - tp - fp - fn

        values: dict[str, float | None] = {}
        for name, metric_fn in (("precision", class_precision), ("recall", class_recall)):
            try:
                values[name] = metric_fn(matrix, c)
            except UndefinedMetricError as exc:
                values[name] = None
                undefined.append(f"{exc.metric}:{exc.class_label}")
                logger.warning("metric_undefined", metric=exc.metric, class_label=c)

        per_class[c] = ClassMetrics(
            class_label=c,
            tp=tp,
            fp=fp,
            fn=fn,
            tn=tn,
            accuracy=(tp + tn) / total,
            precision=values["precision"],
            recall=values["recall"],
        )

    return ConfusionMetrics(
        overall_accuracy=matrix.trace / total,
        per_class=per_class,
        undefined=undefined,
    )
