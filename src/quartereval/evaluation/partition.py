"""Split prediction tables into per-quarter subsets."""
from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence

import pandas as pd
import structlog

logger = structlog.get_logger(__name__)


def partition(
    table: pd.DataFrame,
    quarter_column: str = "test_on",
    quarter_order: Sequence[str] | None = None,
) -> dict[str, pd.DataFrame]:
    """Split a prediction table by quarter.

    Row order inside each subset is preserved. Quarters are ordered by
    first appearance unless ``quarter_order`` is given; quarters present
    in the table but missing from ``quarter_order`` are appended in
    first-appearance order, and listed quarters with no rows are skipped.

    Args:
        table: Prediction table.
        quarter_column: Column holding the quarter id.
        quarter_order: Optional canonical quarter order.

    Returns:
        Mapping of quarter id to its rows (original index kept).

    Raises:
        KeyError: If ``quarter_column`` is not in the table.
    """
    if quarter_column not in table.columns:
        raise KeyError(quarter_column)

    groups = {
        str(quarter): rows
        for quarter, rows in table.groupby(quarter_column, sort=False)
    }
    seen = list(groups)

    if quarter_order is None:
        return groups

    listed = set(quarter_order)
    ordered = [q for q in quarter_order if q in groups]
    unlisted = [q for q in seen if q not in listed]
    if unlisted:
        logger.warning("quarters_not_in_order", quarters=unlisted)
    return {q: groups[q] for q in [*ordered, *unlisted]}


def filter_degenerate_quarters(
    partitions: Mapping[str, pd.DataFrame],
    label_column: str,
    positive_labels: Collection[str],
) -> list[str]:
    """Return quarters holding at least one positive row.

    A quarter with no row whose label is in ``positive_labels`` cannot
    yield a ROC/F-score curve; it is left out of the result.

    Args:
        partitions: Output of :func:`partition`.
        label_column: Ground-truth column.
        positive_labels: Labels counted as positive.

    Returns:
        Valid quarter ids, in partition order.
    """
    positives = set(positive_labels)
    valid: list[str] = []
    for quarter, rows in partitions.items():
        if rows[label_column].isin(positives).any():
            valid.append(quarter)
        else:
            logger.debug("quarter_degenerate", quarter=quarter, positive_labels=sorted(positives))
    return valid
