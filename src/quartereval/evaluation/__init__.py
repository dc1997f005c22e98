"""Evaluation module: curves, aggregation, confusion reports and charts."""
from __future__ import annotations

from quartereval.evaluation.binary import evaluate_binary
from quartereval.evaluation.confusion import (
    build_confusion_matrix,
    class_precision,
    class_recall,
    confusion_matrix_from_table,
    derive_metrics,
    predict_classes,
)
from quartereval.evaluation.curves import (
    compute_auc,
    compute_curve,
    compute_max,
    counts_at_cutoff,
)
from quartereval.evaluation.models import (
    BinaryReport,
    ClassMetrics,
    CombinedResult,
    ConfusionMatrix,
    ConfusionMetrics,
    Curve,
    CutoffValue,
    EvaluationReport,
    MacroAUC,
    MulticlassReport,
    Omission,
    QuarterResult,
    ScalarSummary,
    ThresholdCounts,
)
from quartereval.evaluation.multiclass import evaluate_multiclass, relabel_one_vs_rest
from quartereval.evaluation.partition import filter_degenerate_quarters, partition
from quartereval.evaluation.reporting import format_confusion_report, format_results_text
from quartereval.evaluation.runner import EvaluationRunner
from quartereval.evaluation.visualizer import (
    plot_auc_by_quarter,
    plot_confusion_matrix,
    plot_macro_auc,
    plot_metric_curves,
    render_figures,
)

__all__ = [
    "BinaryReport",
    "ClassMetrics",
    "CombinedResult",
    "ConfusionMatrix",
    "ConfusionMetrics",
    "Curve",
    "CutoffValue",
    "EvaluationReport",
    "EvaluationRunner",
    "MacroAUC",
    "MulticlassReport",
    "Omission",
    "QuarterResult",
    "ScalarSummary",
    "ThresholdCounts",
    "build_confusion_matrix",
    "class_precision",
    "class_recall",
    "compute_auc",
    "compute_curve",
    "compute_max",
    "confusion_matrix_from_table",
    "counts_at_cutoff",
    "derive_metrics",
    "evaluate_binary",
    "evaluate_multiclass",
    "filter_degenerate_quarters",
    "format_confusion_report",
    "format_results_text",
    "partition",
    "plot_auc_by_quarter",
    "plot_confusion_matrix",
    "plot_macro_auc",
    "plot_metric_curves",
    "predict_classes",
    "relabel_one_vs_rest",
    "render_figures",
]
