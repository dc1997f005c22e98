"""Plotly chart generators for quartereval results.

Provides curve charts (accuracy, ROC, F-score, precision-recall,
sensitivity-specificity) with one trace per quarter plus the pooled
curve, AUC bar charts and a confusion matrix heatmap. Each function
returns a ``plotly.graph_objects.Figure``; writing files is left to a
report sink.
"""
from __future__ import annotations

import math

import plotly.graph_objects as go

from quartereval.core.enums import MetricKind
from quartereval.evaluation.models import (
    BinaryReport,
    ConfusionMatrix,
    Curve,
    EvaluationReport,
    MacroAUC,
)

# ---------------------------------------------------------------------------
# Color schemes
# ---------------------------------------------------------------------------

COLORS: dict[str, str] = {
    "combined": "#2c3e50",  # dark slate
    "primary": "#3498db",   # blue
    "neutral": "#95a5a6",   # gray
    "excluded": "#e74c3c",  # red
}

# Cycled across quarters.
QUARTER_PALETTE: list[str] = [
    "#3498db",
    "#2ecc71",
    "#f39c12",
    "#9b59b6",
    "#1abc9c",
    "#e67e22",
    "#e74c3c",
    "#34495e",
]

_TITLES: dict[MetricKind, str] = {
    MetricKind.ACCURACY: "Accuracy by Cutoff",
    MetricKind.ROC: "ROC Curve",
    MetricKind.FSCORE: "F-score by Cutoff",
    MetricKind.PRECISION_RECALL: "Precision-Recall",
    MetricKind.SENS_SPEC: "Sensitivity-Specificity",
}

_AXIS_TITLES: dict[str, str] = {
    "cutoff": "Cutoff",
    "accuracy": "Accuracy",
    "fpr": "False Positive Rate",
    "tpr": "True Positive Rate",
    "fscore": "F-score",
    "recall": "Recall",
    "precision": "Precision",
    "specificity": "Specificity",
    "sensitivity": "Sensitivity",
}

# ---------------------------------------------------------------------------
# Shared layout helper
# ---------------------------------------------------------------------------

_BASE_LAYOUT: dict[str, object] = {
    "template": "plotly_white",
    "font": {"family": "Arial, sans-serif", "size": 12},
}


def _base_layout(**kwargs: object) -> dict[str, object]:
    """Merge base layout with caller-supplied overrides."""
    merged = dict(_BASE_LAYOUT)
    merged.update(kwargs)
    return merged


def _finite_xy(curve: Curve) -> tuple[list[float], list[float]]:
    """Drop points whose x or y is not finite (the +inf cutoff, NaN precision)."""
    xs: list[float] = []
    ys: list[float] = []
    for x, y in zip(curve.x, curve.y, strict=True):
        if math.isfinite(x) and math.isfinite(y):
            xs.append(x)
            ys.append(y)
    return xs, ys


def _with_class(title: str, class_label: str | None) -> str:
    return title if class_label is None else f"{title} ({class_label} vs rest)"


def _title(kind: MetricKind, class_label: str | None) -> str:
    return _with_class(_TITLES[kind], class_label)


# ---------------------------------------------------------------------------
# 1. Curves by quarter
# ---------------------------------------------------------------------------


def plot_metric_curves(report: BinaryReport, kind: MetricKind) -> go.Figure:
    """Plot one curve kind for every quarter plus the pooled curve.

    Accuracy is drawn for every quarter; ROC and F-score only for
    quarters that were not excluded. Precision-recall and
    sensitivity-specificity are drawn for the pooled set only.

    Args:
        report: Binary (or one-vs-rest) report.
        kind: Curve kind to draw.

    Returns:
        A Plotly Figure with one line per quarter and a bold pooled line.
    """
    fig = go.Figure()
    sample = report.combined.curve(kind)

    if kind is MetricKind.ROC:
        # Diagonal (random classifier)
        fig.add_trace(
            go.Scatter(
                x=[0, 1],
                y=[0, 1],
                mode="lines",
                line={"dash": "dash", "color": COLORS["neutral"]},
                name="Random",
            ),
        )

    if kind in (MetricKind.ACCURACY, MetricKind.ROC, MetricKind.FSCORE):
        for i, quarter in enumerate(report.quarters):
            curve = {
                MetricKind.ACCURACY: quarter.accuracy,
                MetricKind.ROC: quarter.roc,
                MetricKind.FSCORE: quarter.fscore,
            }[kind]
            if curve is None:
                continue
            xs, ys = _finite_xy(curve)
            name = quarter.quarter
            if kind is MetricKind.ROC and quarter.summary.auc is not None:
                name = f"{quarter.quarter} (AUC = {quarter.summary.auc:.2f})"
            fig.add_trace(
                go.Scatter(
                    x=xs,
                    y=ys,
                    mode="lines",
                    line={"color": QUARTER_PALETTE[i % len(QUARTER_PALETTE)], "width": 1.5},
                    name=name,
                ),
            )

    xs, ys = _finite_xy(sample)
    combined_name = "combined"
    if kind is MetricKind.ROC and report.combined.summary.auc is not None:
        combined_name = f"combined (AUC = {report.combined.summary.auc:.2f})"
    fig.add_trace(
        go.Scatter(
            x=xs,
            y=ys,
            mode="lines",
            line={"color": COLORS["combined"], "width": 3},
            name=combined_name,
        ),
    )

    fig.update_layout(
        **_base_layout(
            title={"text": _title(kind, report.class_label)},
            xaxis_title=_AXIS_TITLES[sample.x_measure],
            yaxis_title=_AXIS_TITLES[sample.y_measure],
            yaxis={"range": [0, 1.05]},
        ),
    )
    return fig


# ---------------------------------------------------------------------------
# 2. AUC by quarter
# ---------------------------------------------------------------------------


def plot_auc_by_quarter(report: BinaryReport) -> go.Figure:
    """Bar chart of per-quarter AUC; excluded quarters are labelled.

    Args:
        report: Binary (or one-vs-rest) report.

    Returns:
        A Plotly Figure with one bar per quarter plus the pooled AUC.
    """
    names = [q.quarter for q in report.quarters] + ["combined"]
    values = [q.summary.auc if q.summary.auc is not None else 0.0 for q in report.quarters]
    values.append(report.combined.summary.auc or 0.0)
    text = [
        "excluded" if q.summary.auc is None else f"{q.summary.auc:.3f}"
        for q in report.quarters
    ]
    text.append(f"{report.combined.summary.auc:.3f}")
    colors = [
        COLORS["excluded"] if q.summary.auc is None else COLORS["primary"]
        for q in report.quarters
    ]
    colors.append(COLORS["combined"])

    fig = go.Figure(
        data=go.Bar(
            x=names,
            y=values,
            marker_color=colors,
            text=text,
            textposition="auto",
        ),
    )
    fig.update_layout(
        **_base_layout(
            title={"text": _with_class("AUC by Quarter", report.class_label)},
            xaxis_title="Quarter",
            yaxis_title="AUC",
            yaxis={"range": [0, 1.05]},
        ),
    )
    return fig


def plot_macro_auc(quarter_auc: list[MacroAUC], overall: MacroAUC) -> go.Figure:
    """Bar chart of macro one-vs-rest AUC per quarter and overall.

    Quarters with an undefined macro AUC are drawn as empty bars
    labelled "undefined".
    """
    entries = [*quarter_auc, overall]
    names = [m.quarter if m.quarter is not None else "overall" for m in entries]
    values = [m.value if m.defined else 0.0 for m in entries]
    text = [f"{m.value:.3f}" if m.defined else "undefined" for m in entries]
    colors = [COLORS["primary"] if m.defined else COLORS["excluded"] for m in quarter_auc]
    colors.append(COLORS["combined"])

    fig = go.Figure(
        data=go.Bar(x=names, y=values, marker_color=colors, text=text, textposition="auto"),
    )
    fig.update_layout(
        **_base_layout(
            title={"text": "Macro-averaged One-vs-Rest AUC"},
            xaxis_title="Quarter",
            yaxis_title="AUC",
            yaxis={"range": [0, 1.05]},
        ),
    )
    return fig


# ---------------------------------------------------------------------------
# 3. Confusion Matrix
# ---------------------------------------------------------------------------


def plot_confusion_matrix(matrix: ConfusionMatrix) -> go.Figure:
    """Plot an annotated confusion matrix heatmap.

    Args:
        matrix: Confusion matrix (rows predicted, columns actual).

    Returns:
        A Plotly Figure with an annotated heatmap.
    """
    text = [[str(v) for v in row] for row in matrix.counts]
    fig = go.Figure(
        data=go.Heatmap(
            z=matrix.counts,
            x=[f"Actual {c}" for c in matrix.class_labels],
            y=[f"Predicted {c}" for c in matrix.class_labels],
            text=text,
            texttemplate="%{text}",
            textfont={"size": 18},
            colorscale=[
                [0, "#ffffff"],
                [1, COLORS["primary"]],
            ],
            showscale=False,
        ),
    )
    fig.update_layout(
        **_base_layout(
            title={"text": "Confusion Matrix"},
            xaxis_title="Actual",
            yaxis_title="Predicted",
            yaxis={"autorange": "reversed"},
        ),
    )
    return fig


# ---------------------------------------------------------------------------
# 4. Figure set for a report
# ---------------------------------------------------------------------------


def _binary_figures(report: BinaryReport) -> dict[str, go.Figure]:
    suffix = "" if report.class_label is None else f"-{report.class_label}"
    figures = {f"{kind}{suffix}": plot_metric_curves(report, kind) for kind in MetricKind}
    figures[f"auc{suffix}"] = plot_auc_by_quarter(report)
    return figures


def render_figures(report: EvaluationReport) -> dict[str, go.Figure]:
    """Build every figure for a report, keyed by artifact name.

    Names are ``<metric>`` in binary mode and ``<metric>-<class>`` per
    class in multiclass mode, plus ``macro-auc`` and
    ``confusion-matrix``.
    """
    figures: dict[str, go.Figure] = {}
    if report.binary is not None:
        figures.update(_binary_figures(report.binary))
    if report.multiclass is not None:
        mc = report.multiclass
        for class_label in mc.class_labels:
            if class_label in mc.per_class:
                figures.update(_binary_figures(mc.per_class[class_label]))
        figures["macro-auc"] = plot_macro_auc(mc.quarter_auc, mc.overall_auc)
    figures["confusion-matrix"] = plot_confusion_matrix(report.confusion_matrix)
    return figures
