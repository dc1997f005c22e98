"""quartereval evaluate: curves, AUC summaries and confusion report."""
from __future__ import annotations

from pathlib import Path

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from quartereval.config import (
    CurveConfig,
    OutputConfig,
    PredictionSchema,
    QuarterEvalConfig,
    load_config,
)
from quartereval.core.exceptions import QuarterEvalError
from quartereval.evaluation.confusion import derive_metrics
from quartereval.evaluation.models import BinaryReport, EvaluationReport
from quartereval.evaluation.reporting import format_confusion_report, format_omissions
from quartereval.evaluation.runner import EvaluationRunner
from quartereval.io.readers import read_predictions
from quartereval.io.writers import DirectorySink

logger = structlog.get_logger(__name__)

evaluate_app = typer.Typer(help="Evaluate predictions per quarter and write a report.")
confusion_app = typer.Typer(help="Print the argmax confusion matrix report.")


def _split(value: str | None) -> list[str] | None:
    if value is None:
        return None
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or None


def build_config(
    config_path: Path | None,
    classes: str | None,
    positive: str | None,
    quarters: str | None,
    beta: float | None,
    output_dir: Path | None,
    image_format: str | None,
    figures: bool = True,
) -> QuarterEvalConfig:
    """Merge an optional YAML config with command-line overrides.

    Raises:
        typer.BadParameter: If no class labels are available or the
            merged configuration is invalid.
    """
    if config_path is not None:
        try:
            config = load_config(config_path)
        except FileNotFoundError as exc:
            raise typer.BadParameter(str(exc)) from exc
        except ValidationError as exc:
            raise typer.BadParameter(f"Invalid config {config_path}: {exc}") from exc
        columns = config.columns.model_dump()
        output = config.output.model_dump()
        quarter_order = config.quarter_order
        curve_beta = config.curves.beta
    else:
        columns = {}
        output = OutputConfig().model_dump()
        quarter_order = None
        curve_beta = 1.0

    class_list = _split(classes)
    if class_list is not None:
        columns["class_labels"] = class_list
    if positive is not None:
        columns["positive_label"] = positive
    if "class_labels" not in columns:
        raise typer.BadParameter("Provide --classes or a --config with columns.class_labels")

    if output_dir is not None:
        output["results_dir"] = output_dir
    if image_format is not None:
        output["image_format"] = image_format
    output["write_figures"] = output["write_figures"] and figures

    try:
        return QuarterEvalConfig(
            columns=PredictionSchema(**columns),
            quarter_order=_split(quarters) or quarter_order,
            curves=CurveConfig(beta=beta if beta is not None else curve_beta),
            output=OutputConfig(**output),
        )
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid configuration: {exc}") from exc


def _summary_table(report: BinaryReport) -> Table:
    title = "Binary" if report.class_label is None else f"{report.class_label} vs rest"
    table = Table(title=title)
    table.add_column("Quarter")
    table.add_column("N", justify="right")
    table.add_column("AUC", justify="right")
    table.add_column("Max F (cutoff)", justify="right")
    table.add_column("Max accuracy (cutoff)", justify="right")

    rows = [(q.quarter, q.n_rows, q.summary) for q in report.quarters]
    rows.append(("combined", report.combined.n_rows, report.combined.summary))
    for name, n_rows, summary in rows:
        auc = "excluded" if summary.auc is None else f"{summary.auc:.4f}"
        max_f = (
            "excluded"
            if summary.max_fscore is None
            else f"{summary.max_fscore.value:.4f} ({summary.max_fscore.cutoff:.3f})"
        )
        max_acc = f"{summary.max_accuracy.value:.4f} ({summary.max_accuracy.cutoff:.3f})"
        table.add_row(name, str(n_rows), auc, max_f, max_acc)
    return table


def _display(report: EvaluationReport, console: Console) -> None:
    if report.binary is not None:
        console.print(_summary_table(report.binary))
    if report.multiclass is not None:
        mc = report.multiclass
        for class_label in mc.class_labels:
            if class_label in mc.per_class:
                console.print(_summary_table(mc.per_class[class_label]))
        macro = Table(title="Macro one-vs-rest AUC")
        macro.add_column("Quarter")
        macro.add_column("AUC", justify="right")
        macro.add_column("Skipped classes")
        for m in [*mc.quarter_auc, mc.overall_auc]:
            macro.add_row(
                m.quarter if m.quarter is not None else "overall",
                f"{m.value:.4f}" if m.defined else "undefined",
                ", ".join(m.classes_skipped),
            )
        console.print(macro)

    typer.echo(
        "\n" + format_confusion_report(report.confusion_matrix, report.confusion_metrics)
    )
    typer.echo("\n" + format_omissions(report.omissions()))


@evaluate_app.callback(invoke_without_command=True)
def evaluate(
    ctx: typer.Context,  # noqa: ARG001
    predictions: Path = typer.Option(  # noqa: B008
        ..., "--predictions", "-p", help="Prediction table (CSV, TSV or XLSX)"
    ),
    config_path: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", help="YAML configuration file"
    ),
    classes: str | None = typer.Option(  # noqa: B008
        None, "--classes", help="Comma-separated class labels, e.g. H,M,L"
    ),
    positive: str | None = typer.Option(  # noqa: B008
        None, "--positive", help="Positive label (selects binary mode)"
    ),
    quarters: str | None = typer.Option(  # noqa: B008
        None, "--quarters", help="Comma-separated canonical quarter order"
    ),
    beta: float | None = typer.Option(None, "--beta", help="F-measure beta"),  # noqa: B008
    output_dir: Path | None = typer.Option(  # noqa: B008
        None, "--output", "-o", help="Results directory"
    ),
    image_format: str | None = typer.Option(  # noqa: B008
        None, "--image-format", help="Figure format: html or png"
    ),
    figures: bool = typer.Option(  # noqa: B008
        True, "--figures/--no-figures", help="Render figures"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate inputs only"),  # noqa: B008
) -> None:
    """Evaluate per-quarter curves and write the report artifacts."""
    config = build_config(
        config_path, classes, positive, quarters, beta, output_dir, image_format, figures,
    )

    try:
        table = read_predictions(predictions, config.columns)
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except QuarterEvalError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Loaded {len(table)} predictions from {predictions}")

    if dry_run:
        typer.echo("Dry run: inputs validated successfully.")
        return

    runner = EvaluationRunner(config)
    try:
        report = runner.evaluate(table)
    except QuarterEvalError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    _display(report, Console())

    with DirectorySink(config.output.results_dir, config.output.image_format) as sink:
        runner.write_report(report, sink)
    typer.echo(f"\nReport saved to {config.output.results_dir}/")


@confusion_app.callback(invoke_without_command=True)
def confusion(
    ctx: typer.Context,  # noqa: ARG001
    predictions: Path = typer.Option(  # noqa: B008
        ..., "--predictions", "-p", help="Prediction table (CSV, TSV or XLSX)"
    ),
    config_path: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", help="YAML configuration file"
    ),
    classes: str | None = typer.Option(  # noqa: B008
        None, "--classes", help="Comma-separated class labels, e.g. H,M,L"
    ),
    positive: str | None = typer.Option(  # noqa: B008
        None, "--positive", help="Positive label (selects binary mode)"
    ),
) -> None:
    """Print the confusion matrix with accuracy, precision and recall."""
    config = build_config(config_path, classes, positive, None, None, None, None)
    runner = EvaluationRunner(config)
    try:
        table = read_predictions(predictions, config.columns)
        matrix = runner.confusion_matrix(table)
        metrics = derive_metrics(matrix)
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except QuarterEvalError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(format_confusion_report(matrix, metrics))
