"""One-vs-rest multiclass aggregation.

Each class is evaluated as a binary problem (the class against every
other class pooled under a sentinel label), and AUCs are macro-averaged
across classes per quarter and over the whole table.
"""
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

import pandas as pd
import structlog

from quartereval.config import REST_LABEL
from quartereval.core.enums import OmissionScope
from quartereval.core.exceptions import DegenerateInputError, SchemaError
from quartereval.evaluation.binary import evaluate_binary
from quartereval.evaluation.curves import compute_auc
from quartereval.evaluation.models import (
    BinaryReport,
    MacroAUC,
    MulticlassReport,
    Omission,
)
from quartereval.evaluation.partition import partition

logger = structlog.get_logger(__name__)

# Score column of a relabeled table
RELABELED_SCORE = "prediction"


def relabel_one_vs_rest(
    table: pd.DataFrame,
    class_label: str,
    score_column: str,
    *,
    label_column: str = "label",
) -> pd.DataFrame:
    """Collapse a multiclass table to ``class_label`` vs. the rest.

    Args:
        table: Multiclass prediction table.
        class_label: Class kept as positive.
        score_column: Score column of ``class_label``.
        label_column: Ground-truth column.

    Returns:
        A copy of ``table`` whose label is ``class_label`` or
        ``REST_LABEL`` and whose ``prediction`` column holds the class
        score.

    Raises:
        SchemaError: If the class is named like the sentinel or its
            score column is missing.
    """
    if class_label == REST_LABEL:
        msg = f"Class label '{REST_LABEL}' collides with the one-vs-rest sentinel"
        raise SchemaError(msg)
    if score_column not in table.columns:
        msg = f"Missing score column '{score_column}' for class '{class_label}'"
        raise SchemaError(msg, missing=[score_column])

    relabeled = table.copy()
    relabeled[label_column] = table[label_column].where(
        table[label_column] == class_label, REST_LABEL,
    )
    relabeled[RELABELED_SCORE] = table[score_column].astype(float)
    return relabeled


def _macro_auc(
    relabeled: Mapping[str, pd.DataFrame],
    label_column: str,
    quarter: str | None,
) -> MacroAUC:
    """Mean one-vs-rest AUC over the classes usable in this scope."""
    aucs: list[float] = []
    used: list[str] = []
    skipped: list[str] = []
    for class_label, rows in relabeled.items():
        try:
            aucs.append(
                compute_auc(
                    rows[RELABELED_SCORE].tolist(),
                    rows[label_column].tolist(),
                    class_label,
                )
            )
        except DegenerateInputError:
            skipped.append(class_label)
            continue
        used.append(class_label)

    value = sum(aucs) / len(aucs) if aucs else math.nan
    return MacroAUC(
        quarter=quarter,
        value=value,
        classes_used=used,
        classes_skipped=skipped,
    )


def evaluate_multiclass(
    table: pd.DataFrame,
    class_labels: Sequence[str],
    score_columns: Mapping[str, str],
    *,
    quarter_column: str = "test_on",
    label_column: str = "label",
    quarter_order: Sequence[str] | None = None,
    beta: float = 1.0,
) -> MulticlassReport:
    """Evaluate a multiclass table one class at a time.

    Args:
        table: Prediction table with one score column per class.
        class_labels: Classes in canonical order.
        score_columns: Class -> score column.
        quarter_column: Quarter id column.
        label_column: Ground-truth column.
        quarter_order: Optional canonical quarter order.
        beta: F-measure beta.

    Returns:
        MulticlassReport keyed by class, with per-quarter and overall
        macro AUCs.

    Raises:
        DegenerateInputError: If the table holds fewer than two labels.
        SchemaError: If a class has no score column.
    """
    distinct = table[label_column].nunique()
    if distinct < 2:
        msg = f"Multiclass evaluation needs at least two labels, found {distinct}"
        raise DegenerateInputError(msg)

    missing = [c for c in class_labels if c not in score_columns]
    if missing:
        msg = f"No score column configured for classes {missing}"
        raise SchemaError(msg)

    # Resolve the order once; every later partition sees all quarters listed
    quarters = list(partition(table, quarter_column, quarter_order))
    relabeled = {
        c: relabel_one_vs_rest(table, c, score_columns[c], label_column=label_column)
        for c in class_labels
    }

    per_class: dict[str, BinaryReport] = {}
    omissions: list[Omission] = []
    for class_label, rows in relabeled.items():
        try:
            per_class[class_label] = evaluate_binary(
                rows,
                class_label,
                quarter_column=quarter_column,
                label_column=label_column,
                score_column=RELABELED_SCORE,
                quarter_order=quarters,
                beta=beta,
                class_label=class_label,
            )
        except DegenerateInputError as exc:
            omissions.append(
                Omission(
                    scope=OmissionScope.CLASS,
                    reason=str(exc),
                    class_label=class_label,
                )
            )
            logger.warning("class_excluded", class_label=class_label, reason=str(exc))

    by_quarter = {
        c: partition(rows, quarter_column, quarters)
        for c, rows in relabeled.items()
    }

    quarter_auc: list[MacroAUC] = []
    for quarter in quarters:
        macro = _macro_auc(
            {c: parts[quarter] for c, parts in by_quarter.items()},
            label_column,
            quarter,
        )
        if not macro.defined:
            omissions.append(
                Omission(
                    scope=OmissionScope.MACRO_AUC,
                    reason="no class has both positive and negative rows",
                    quarter=quarter,
                )
            )
            logger.warning("macro_auc_undefined", quarter=quarter)
        elif macro.classes_skipped:
            logger.info(
                "macro_auc_classes_skipped",
                quarter=quarter,
                classes=macro.classes_skipped,
            )
        quarter_auc.append(macro)

    overall_auc = _macro_auc(relabeled, label_column, None)
    if not overall_auc.defined:
        omissions.append(
            Omission(
                scope=OmissionScope.MACRO_AUC,
                reason="no class has both positive and negative rows",
            )
        )
        logger.warning("macro_auc_undefined", quarter=None)

    logger.info(
        "multiclass_evaluation_complete",
        n_classes=len(class_labels),
        n_quarters=len(quarters),
        overall_auc=overall_auc.value,
        n_omissions=len(omissions),
    )

    return MulticlassReport(
        class_labels=list(class_labels),
        per_class=per_class,
        quarter_auc=quarter_auc,
        overall_auc=overall_auc,
        omissions=omissions,
    )
