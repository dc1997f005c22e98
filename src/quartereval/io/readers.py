"""Prediction table reader -- auto-detects format by extension."""
from __future__ import annotations

from pathlib import Path

import pandas as pd
import structlog

from quartereval.config import PredictionSchema
from quartereval.core.exceptions import SchemaError, UnsupportedFormatError

logger = structlog.get_logger(__name__)

SUPPORTED_EXTENSIONS = {".csv", ".tsv", ".xlsx"}


def read_predictions(path: Path, schema: PredictionSchema) -> pd.DataFrame:
    """Read a prediction table and validate it against ``schema``.

    Identifier, quarter and label columns are read as strings so that
    labels such as ``0``/``1`` compare equal to configured class labels.

    Args:
        path: Path to the input file.
        schema: Expected column layout.

    Returns:
        Validated prediction table.

    Raises:
        UnsupportedFormatError: If file extension is not recognized.
        FileNotFoundError: If file does not exist.
        SchemaError: If the table does not match ``schema``.
    """
    path = Path(path)
    ext = path.suffix.lower()

    # Check extension first so unsupported formats fail fast
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(ext, sorted(SUPPORTED_EXTENSIONS))

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    dtypes = {
        schema.key_column: str,
        schema.quarter_column: str,
        schema.label_column: str,
    }
    if ext == ".csv":
        table = pd.read_csv(path, dtype=dtypes)
    elif ext == ".tsv":
        table = pd.read_csv(path, sep="\t", dtype=dtypes)
    else:
        table = pd.read_excel(path, dtype=dtypes, engine="openpyxl")

    table.columns = [str(c).strip() for c in table.columns]
    prepared = prepare_table(table, schema)
    logger.info("read_predictions", path=str(path), format=ext.lstrip("."), n_rows=len(prepared))
    return prepared


def validate_table(table: pd.DataFrame, schema: PredictionSchema) -> None:
    """Check that ``table`` carries every column ``schema`` needs.

    Raises:
        SchemaError: On missing columns, an empty table, missing
            identifiers, or scores that are missing, non-numeric or
            outside [0, 1].
    """
    required = schema.required_columns()
    missing = [c for c in required if c not in table.columns]
    if missing:
        msg = f"Prediction table is missing required columns: {missing}"
        raise SchemaError(msg, missing=missing)

    if table.empty:
        msg = "Prediction table has no rows"
        raise SchemaError(msg)

    for column in (schema.key_column, schema.quarter_column, schema.label_column):
        if table[column].isna().any():
            msg = f"Column '{column}' has missing values"
            raise SchemaError(msg)

    score_columns = required[3:]
    for column in score_columns:
        numeric = pd.to_numeric(table[column], errors="coerce")
        if numeric.isna().any():
            msg = f"Score column '{column}' has missing or non-numeric values"
            raise SchemaError(msg)
        out_of_range = ~numeric.between(0.0, 1.0)
        if out_of_range.any():
            bad = numeric[out_of_range].tolist()[:5]
            msg = f"Score column '{column}' has values outside [0, 1]: {bad}"
            raise SchemaError(msg)


def prepare_table(table: pd.DataFrame, schema: PredictionSchema) -> pd.DataFrame:
    """Validate ``table`` and return a copy with canonical column types.

    Key, quarter and label columns become strings and score columns
    become floats, so in-memory tables behave like tables read from disk.

    Raises:
        SchemaError: If the table does not match ``schema``.
    """
    validate_table(table, schema)
    required = schema.required_columns()
    prepared = table.copy()
    for column in required[:3]:
        prepared[column] = prepared[column].astype(str)
    for column in required[3:]:
        prepared[column] = prepared[column].astype(float)
    return prepared
