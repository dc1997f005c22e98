"""Evaluation orchestrator: curves, aggregates and confusion report.

Validates the prediction table, runs the binary or one-vs-rest
aggregator and the confusion-matrix reporter, and hands the resulting
report to a sink for rendering.
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import pandas as pd
import structlog

from quartereval.config import PredictionSchema, QuarterEvalConfig
from quartereval.core.enums import EvaluationMode
from quartereval.evaluation.binary import evaluate_binary
from quartereval.evaluation.confusion import (
    binary_score_frame,
    confusion_matrix_from_table,
    derive_metrics,
)
from quartereval.evaluation.models import (
    BinaryReport,
    ConfusionMatrix,
    EvaluationReport,
    MulticlassReport,
)
from quartereval.evaluation.multiclass import evaluate_multiclass
from quartereval.evaluation.partition import partition
from quartereval.evaluation.reporting import format_results_text
from quartereval.evaluation.visualizer import render_figures
from quartereval.io.readers import prepare_table
from quartereval.io.writers import ReportSink

logger = structlog.get_logger(__name__)

RESULTS_TEXT = "results.txt"
CONFUSION_MATRIX_FILE = "confusion_matrix.json"
REPORT_FILE = "report.json"


class EvaluationRunner:
    """Orchestrate a full quarter-partitioned evaluation.

    Args:
        config: Schema, curve and output configuration.
    """

    def __init__(self, config: QuarterEvalConfig) -> None:
        self.config = config

    @property
    def schema(self) -> PredictionSchema:
        return self.config.columns

    def _positive_label(self) -> str:
        if self.schema.positive_label is None:
            msg = "Binary evaluation requires columns.positive_label"
            raise ValueError(msg)
        return self.schema.positive_label

    def evaluate(self, table: pd.DataFrame) -> EvaluationReport:
        """Compute every curve, summary and the confusion report.

        Args:
            table: Prediction table matching the configured schema.

        Returns:
            Complete EvaluationReport.

        Raises:
            SchemaError: If the table does not match the schema.
            DegenerateInputError: If the pooled table has a single class.
        """
        prepared = prepare_table(table, self.schema)
        quarters = list(
            partition(prepared, self.schema.quarter_column, self.config.quarter_order)
        )

        binary: BinaryReport | None = None
        multiclass: MulticlassReport | None = None
        if self.schema.is_binary:
            binary = self.evaluate_binary(prepared, quarter_order=quarters)
        else:
            multiclass = self.evaluate_multiclass(prepared, quarter_order=quarters)

        matrix = self.confusion_matrix(prepared)
        metrics = derive_metrics(matrix)

        metadata: dict[str, Any] = {
            "n_rows": len(prepared),
            "quarters": quarters,
            "class_labels": list(self.schema.class_labels),
            "beta": self.config.curves.beta,
            "timestamp": datetime.now(UTC).isoformat(),
        }

        logger.info(
            "evaluation_complete",
            mode=str(self.schema.mode),
            n_rows=len(prepared),
            n_quarters=len(quarters),
            overall_accuracy=metrics.overall_accuracy,
        )

        return EvaluationReport(
            mode=self.schema.mode,
            binary=binary,
            multiclass=multiclass,
            confusion_matrix=matrix,
            confusion_metrics=metrics,
            metadata=metadata,
        )

    def evaluate_binary(
        self, table: pd.DataFrame, *, quarter_order: Sequence[str] | None = None
    ) -> BinaryReport:
        """Run the binary aggregator on a prepared table.

        ``quarter_order`` overrides the configured order.
        """
        return evaluate_binary(
            table,
            self._positive_label(),
            quarter_column=self.schema.quarter_column,
            label_column=self.schema.label_column,
            score_column=self.schema.prediction_column,
            quarter_order=quarter_order or self.config.quarter_order,
            beta=self.config.curves.beta,
        )

    def evaluate_multiclass(
        self, table: pd.DataFrame, *, quarter_order: Sequence[str] | None = None
    ) -> MulticlassReport:
        """Run the one-vs-rest aggregator on a prepared table."""
        return evaluate_multiclass(
            table,
            self.schema.class_labels,
            self.schema.class_score_columns(),
            quarter_column=self.schema.quarter_column,
            label_column=self.schema.label_column,
            quarter_order=quarter_order or self.config.quarter_order,
            beta=self.config.curves.beta,
        )

    def confusion_matrix(self, table: pd.DataFrame) -> ConfusionMatrix:
        """Argmax confusion matrix over a prepared table."""
        labels = self.schema.class_labels
        if self.schema.mode is EvaluationMode.BINARY:
            scores = binary_score_frame(
                table,
                self.schema.negative_label,
                self._positive_label(),
                self.schema.prediction_column,
            )
            scores[self.schema.label_column] = table[self.schema.label_column]
            return confusion_matrix_from_table(
                scores,
                labels,
                {c: c for c in labels},
                label_column=self.schema.label_column,
            )
        return confusion_matrix_from_table(
            table,
            labels,
            self.schema.class_score_columns(),
            label_column=self.schema.label_column,
        )

    def write_report(self, report: EvaluationReport, sink: ReportSink) -> None:
        """Render figures and text artifacts into ``sink``.

        Args:
            report: Report produced by :meth:`evaluate`.
            sink: Open report sink.
        """
        if self.config.output.write_figures:
            for name, figure in render_figures(report).items():
                sink.write_figure(name, figure)

        sink.write_text(RESULTS_TEXT, format_results_text(report))
        sink.write_model(CONFUSION_MATRIX_FILE, report.confusion_matrix)
        sink.write_model(REPORT_FILE, report)

        for omission in report.omissions():
            logger.warning(
                "report_omission",
                scope=str(omission.scope),
                quarter=omission.quarter,
                class_label=omission.class_label,
                reason=omission.reason,
            )
