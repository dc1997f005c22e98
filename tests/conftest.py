"""Shared pytest fixtures for quartereval tests."""
from __future__ import annotations

import os

# Prevent Rich/Typer from emitting ANSI escape codes in CLI output.
# Without this, help text on Linux CI contains escape sequences that
# break plain-text substring assertions.
os.environ["NO_COLOR"] = "1"

from pathlib import Path

import pandas as pd
import pytest

from quartereval.config import (
    OutputConfig,
    PredictionSchema,
    QuarterEvalConfig,
)

MULTICLASS_LABELS = ["H", "M", "L"]


@pytest.fixture
def binary_table() -> pd.DataFrame:
    """Three quarters of binary predictions; Q3 has no positive rows.

    Q1 scores imperfectly (AUC 0.75), Q2 separates perfectly (AUC 1.0).
    """
    return pd.DataFrame(
        {
            "key": [f"k{i}" for i in range(1, 11)],
            "test_on": ["Q1"] * 4 + ["Q2"] * 4 + ["Q3"] * 2,
            "label": ["0", "1", "1", "0", "1", "0", "1", "0", "0", "0"],
            "prediction": [0.2, 0.9, 0.4, 0.6, 0.8, 0.3, 0.7, 0.5, 0.1, 0.35],
        }
    )


@pytest.fixture
def multiclass_table() -> pd.DataFrame:
    """Two quarters of H/M/L predictions; class L never occurs in Q2.

    Argmax predicts every row correctly except k7 (actual M, predicted H).
    """
    return pd.DataFrame(
        {
            "key": [f"k{i}" for i in range(1, 9)],
            "test_on": ["Q1"] * 4 + ["Q2"] * 4,
            "label": ["H", "M", "L", "H", "H", "M", "M", "H"],
            "prediction_H": [0.7, 0.2, 0.1, 0.5, 0.6, 0.3, 0.4, 0.8],
            "prediction_M": [0.2, 0.6, 0.3, 0.4, 0.3, 0.5, 0.35, 0.1],
            "prediction_L": [0.1, 0.2, 0.6, 0.1, 0.1, 0.2, 0.25, 0.1],
        }
    )


@pytest.fixture
def binary_schema() -> PredictionSchema:
    """Binary schema with positive label "1"."""
    return PredictionSchema(class_labels=["0", "1"], positive_label="1")


@pytest.fixture
def multiclass_schema() -> PredictionSchema:
    """Multiclass schema over H/M/L with default score columns."""
    return PredictionSchema(class_labels=MULTICLASS_LABELS)


@pytest.fixture
def binary_config(binary_schema: PredictionSchema, tmp_path: Path) -> QuarterEvalConfig:
    """Binary evaluation config writing into a temporary directory."""
    return QuarterEvalConfig(
        columns=binary_schema,
        output=OutputConfig(results_dir=tmp_path / "results"),
    )


@pytest.fixture
def multiclass_config(
    multiclass_schema: PredictionSchema, tmp_path: Path
) -> QuarterEvalConfig:
    """Multiclass evaluation config writing into a temporary directory."""
    return QuarterEvalConfig(
        columns=multiclass_schema,
        output=OutputConfig(results_dir=tmp_path / "results"),
    )
