"""Custom exception hierarchy for quartereval.

Never use bare except clauses. Always catch specific exceptions.
"""
from __future__ import annotations


class QuarterEvalError(Exception):
    """Base exception for all quartereval errors."""


# Metric exceptions
class DegenerateInputError(QuarterEvalError):
    """A curve needing both classes was computed over single-class data.

    Caught per quarter (the quarter is omitted) and fatal for the
    pooled table.
    """

    def __init__(
        self,
        message: str,
        quarter: str | None = None,
        class_label: str | None = None,
    ) -> None:
        super().__init__(message)
        self.quarter = quarter
        self.class_label = class_label


class UndefinedMetricError(QuarterEvalError):
    """Precision or recall denominator is zero for a class."""

    def __init__(self, message: str, metric: str, class_label: str) -> None:
        super().__init__(message)
        self.metric = metric
        self.class_label = class_label


# Input exceptions
class SchemaError(QuarterEvalError):
    """Prediction table does not match the expected schema."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class UnsupportedFormatError(QuarterEvalError):
    """Unsupported file format."""

    def __init__(self, format: str, supported: list[str] | None = None) -> None:  # noqa: A002
        supported_str = ", ".join(supported) if supported else "unknown"
        super().__init__(f"Unsupported format '{format}'. Supported: {supported_str}")
        self.format = format
        self.supported = supported or []
