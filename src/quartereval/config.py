"""Configuration loading for quartereval.

Loads the prediction-table schema, curve options and output settings
from YAML files so that an evaluation can be reproduced exactly.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from quartereval.core.enums import EvaluationMode

# Negative sentinel used by one-vs-rest relabeling; no real class may use it.
REST_LABEL = "__rest__"

# Class labels name per-class artifact files.
_UNSAFE_LABEL_CHARS = frozenset("/\\\0")


class PredictionSchema(BaseModel):
    """Column layout of a prediction table.

    Class labels are supplied explicitly and mapped to fixed score
    columns; nothing is inferred from column-name patterns.

    Attributes:
        key_column: Identifier of the scored entity.
        quarter_column: Test-quarter identifier.
        label_column: Ground-truth class.
        class_labels: Ordered label set. The order breaks argmax ties.
        positive_label: Positive class; setting it selects binary mode.
        prediction_column: Score column used in binary mode.
        score_prefix: Prefix of per-class score columns in multiclass mode.
        score_columns: Explicit class -> column overrides.
    """

    key_column: str = "key"
    quarter_column: str = "test_on"
    label_column: str = "label"
    class_labels: list[str] = Field(min_length=2)
    positive_label: str | None = None
    prediction_column: str = "prediction"
    score_prefix: str = "prediction_"
    score_columns: dict[str, str] = Field(default_factory=dict)

    @field_validator("class_labels", mode="before")
    @classmethod
    def _labels_as_str(cls, value: Any) -> Any:
        # YAML reads 0/1 labels as ints; tables carry them as strings.
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return value

    @field_validator("positive_label", mode="before")
    @classmethod
    def _positive_as_str(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @field_validator("score_columns", mode="before")
    @classmethod
    def _score_keys_as_str(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        return value

    @model_validator(mode="after")
    def _check_labels(self) -> PredictionSchema:
        if len(set(self.class_labels)) != len(self.class_labels):
            msg = f"Duplicate class labels: {self.class_labels}"
            raise ValueError(msg)
        if REST_LABEL in self.class_labels:
            msg = f"'{REST_LABEL}' is reserved and cannot be a class label"
            raise ValueError(msg)
        unsafe = [c for c in self.class_labels if _UNSAFE_LABEL_CHARS & set(c)]
        if unsafe:
            msg = f"Class labels cannot be used in file names: {unsafe}"
            raise ValueError(msg)
        unknown = set(self.score_columns) - set(self.class_labels)
        if unknown:
            msg = f"score_columns refers to unknown classes: {sorted(unknown)}"
            raise ValueError(msg)
        if self.positive_label is not None:
            if len(self.class_labels) != 2:
                msg = "Binary mode requires exactly two class labels"
                raise ValueError(msg)
            if self.positive_label not in self.class_labels:
                msg = (
                    f"positive_label '{self.positive_label}' "
                    f"is not one of {self.class_labels}"
                )
                raise ValueError(msg)
        return self

    @property
    def mode(self) -> EvaluationMode:
        """Binary when a positive label is configured, else multiclass."""
        if self.positive_label is not None:
            return EvaluationMode.BINARY
        return EvaluationMode.MULTICLASS

    @property
    def is_binary(self) -> bool:
        return self.mode is EvaluationMode.BINARY

    @property
    def negative_label(self) -> str:
        """The class that is not ``positive_label`` (binary mode only)."""
        if self.positive_label is None:
            msg = "negative_label is only defined in binary mode"
            raise ValueError(msg)
        return next(c for c in self.class_labels if c != self.positive_label)

    def score_column(self, class_label: str) -> str:
        """Return the score column for one class (multiclass mode).

        Raises:
            KeyError: If ``class_label`` is not configured.
        """
        if class_label not in self.class_labels:
            raise KeyError(class_label)
        return self.score_columns.get(class_label, f"{self.score_prefix}{class_label}")

    def class_score_columns(self) -> dict[str, str]:
        """Class -> score column for every class, in class order."""
        return {c: self.score_column(c) for c in self.class_labels}

    def required_columns(self) -> list[str]:
        """All columns a table must carry for this schema."""
        base = [self.key_column, self.quarter_column, self.label_column]
        if self.is_binary:
            return [*base, self.prediction_column]
        return [*base, *self.class_score_columns().values()]


class CurveConfig(BaseModel):
    """Threshold-curve options.

    Attributes:
        beta: F-measure beta (1.0 gives F1).
    """

    beta: float = Field(default=1.0, gt=0.0)


class OutputConfig(BaseModel):
    """Report artifact options.

    Attributes:
        results_dir: Directory receiving figures and text reports.
        image_format: Figure file format ("png" needs the kaleido extra).
        write_figures: Whether to render figures at all.
    """

    results_dir: Path = Path("results")
    image_format: Literal["html", "png"] = "html"
    write_figures: bool = True


class QuarterEvalConfig(BaseModel):
    """Root configuration for quartereval.

    Attributes:
        columns: Prediction table schema.
        quarter_order: Canonical display order of quarters (optional).
        curves: Curve computation options.
        output: Report artifact options.
    """

    columns: PredictionSchema
    quarter_order: list[str] | None = None
    curves: CurveConfig = Field(default_factory=CurveConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("quarter_order", mode="before")
    @classmethod
    def _quarters_as_str(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return value


def load_config(path: Path) -> QuarterEvalConfig:
    """Load evaluation configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        QuarterEvalConfig with schema, curve and output settings.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return QuarterEvalConfig(
        columns=PredictionSchema(**data.get("columns", {})),
        quarter_order=data.get("quarter_order"),
        curves=CurveConfig(**data.get("curves", {})),
        output=OutputConfig(**data.get("output", {})),
    )
