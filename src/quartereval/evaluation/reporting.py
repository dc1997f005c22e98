"""Plain-text report formatting.

Builds the ``results.txt`` content: the printed confusion matrix,
accuracy/precision/recall lines, per-quarter curve summaries and
macro AUCs. Omitted pieces are always printed with their reason.
"""
from __future__ import annotations

import math

import pandas as pd

from quartereval.evaluation.models import (
    BinaryReport,
    ConfusionMatrix,
    ConfusionMetrics,
    CutoffValue,
    EvaluationReport,
    MacroAUC,
    MulticlassReport,
    Omission,
)

UNDEFINED = "undefined"


def _fmt(value: float | None, decimals: int = 4) -> str:
    if value is None or math.isnan(value):
        return UNDEFINED
    return f"{value:.{decimals}f}"


def _fmt_cutoff(point: CutoffValue | None) -> str:
    if point is None:
        return "excluded"
    return f"{_fmt(point.value)} @ {_fmt(point.cutoff, 3)}"


def format_confusion_matrix(matrix: ConfusionMatrix) -> str:
    """Render the matrix with predicted classes as rows."""
    frame = pd.DataFrame(
        matrix.counts,
        index=pd.Index(matrix.class_labels, name="Prediction"),
        columns=pd.Index(matrix.class_labels, name="Reference"),
    )
    return frame.to_string()


def format_confusion_report(matrix: ConfusionMatrix, metrics: ConfusionMetrics) -> str:
    """Confusion matrix followed by overall and per-class metrics."""
    lines = [
        "Confusion Matrix and Statistics",
        "",
        format_confusion_matrix(matrix),
        "",
        f"Overall accuracy: {_fmt(metrics.overall_accuracy)}",
        "",
    ]
    for label, m in metrics.per_class.items():
        lines.append(
            f"Class {label}: accuracy={_fmt(m.accuracy)} "
            f"precision={_fmt(m.precision)} recall={_fmt(m.recall)}"
        )
    return "\n".join(lines)


def format_curve_summary(report: BinaryReport) -> str:
    """Per-quarter and pooled AUC / max F / max accuracy table."""
    title = "Binary" if report.class_label is None else f"Class {report.class_label} vs rest"
    rows = [
        {
            "quarter": q.quarter,
            "n": q.n_rows,
            "positives": q.n_positive,
            "auc": "excluded" if q.summary.auc is None else _fmt(q.summary.auc),
            "max_f": _fmt_cutoff(q.summary.max_fscore),
            "max_accuracy": _fmt_cutoff(q.summary.max_accuracy),
        }
        for q in report.quarters
    ]
    combined = report.combined
    rows.append(
        {
            "quarter": "combined",
            "n": combined.n_rows,
            "positives": combined.n_positive,
            "auc": _fmt(combined.summary.auc),
            "max_f": _fmt_cutoff(combined.summary.max_fscore),
            "max_accuracy": _fmt_cutoff(combined.summary.max_accuracy),
        }
    )
    table = pd.DataFrame(rows).to_string(index=False)
    return f"{title} (positive = {report.positive_label})\n{table}"


def format_macro_auc(values: list[MacroAUC], overall: MacroAUC) -> str:
    """Macro one-vs-rest AUC per quarter and overall."""
    lines = ["Macro-averaged one-vs-rest AUC"]
    for macro in [*values, overall]:
        name = macro.quarter if macro.quarter is not None else "overall"
        line = f"  {name}: {_fmt(macro.value)}"
        if macro.classes_skipped:
            line += f" (skipped: {', '.join(macro.classes_skipped)})"
        lines.append(line)
    return "\n".join(lines)


def format_omissions(omissions: list[Omission]) -> str:
    """One line per omission, or a note that nothing was omitted."""
    if not omissions:
        return "Omissions: none"
    lines = ["Omissions:"]
    for o in omissions:
        where = ", ".join(
            part
            for part in (
                f"quarter={o.quarter}" if o.quarter is not None else "",
                f"class={o.class_label}" if o.class_label is not None else "",
            )
            if part
        )
        lines.append(f"  [{o.scope}] {where or 'all'}: {o.reason}")
    return "\n".join(lines)


def _multiclass_sections(report: MulticlassReport) -> list[str]:
    sections = [
        format_curve_summary(report.per_class[c])
        for c in report.class_labels
        if c in report.per_class
    ]
    sections.append(format_macro_auc(report.quarter_auc, report.overall_auc))
    return sections


def format_results_text(report: EvaluationReport) -> str:
    """Full ``results.txt`` content for an evaluation report."""
    sections = [format_confusion_report(report.confusion_matrix, report.confusion_metrics)]
    if report.binary is not None:
        sections.append(format_curve_summary(report.binary))
    if report.multiclass is not None:
        sections.extend(_multiclass_sections(report.multiclass))
    sections.append(format_omissions(report.omissions()))
    return "\n\n".join(sections) + "\n"
