"""Report sinks -- where rendered figures and text reports go."""
from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import Protocol

import plotly.graph_objects as go
import structlog
from pydantic import BaseModel

from quartereval.core.exceptions import UnsupportedFormatError

logger = structlog.get_logger(__name__)

SUPPORTED_IMAGE_FORMATS = ["html", "png"]


class ReportSink(Protocol):
    """Destination for report artifacts."""

    def write_figure(self, name: str, figure: go.Figure) -> Path: ...

    def write_text(self, name: str, text: str) -> Path: ...

    def write_model(self, name: str, model: BaseModel) -> Path: ...


class DirectorySink:
    """Write report artifacts into a results directory.

    Use as a context manager; the directory is created on entry and a
    summary of written files is logged on exit.

    Args:
        results_dir: Output directory.
        image_format: ``"html"`` or ``"png"`` (png needs kaleido).
    """

    def __init__(self, results_dir: Path, image_format: str = "html") -> None:
        if image_format not in SUPPORTED_IMAGE_FORMATS:
            raise UnsupportedFormatError(image_format, SUPPORTED_IMAGE_FORMATS)
        self.results_dir = Path(results_dir)
        self.image_format = image_format
        self.written: list[Path] = []
        self._open = False

    def __enter__(self) -> DirectorySink:
        self.results_dir.mkdir(parents=True, exist_ok=True)
        self._open = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._open = False
        logger.info(
            "report_written",
            results_dir=str(self.results_dir),
            n_files=len(self.written),
            failed=exc_type is not None,
        )

    def _path(self, filename: str) -> Path:
        if not self._open:
            msg = "DirectorySink must be used inside a 'with' block"
            raise RuntimeError(msg)
        path = self.results_dir / filename
        self.written.append(path)
        return path

    def write_figure(self, name: str, figure: go.Figure) -> Path:
        """Write a figure as ``<name>.<image_format>``."""
        path = self._path(f"{name}.{self.image_format}")
        if self.image_format == "png":
            figure.write_image(str(path))
        else:
            figure.write_html(str(path))
        return path

    def write_text(self, name: str, text: str) -> Path:
        """Write a UTF-8 text artifact."""
        path = self._path(name)
        path.write_text(text, encoding="utf-8")
        return path

    def write_model(self, name: str, model: BaseModel) -> Path:
        """Serialize a pydantic model as indented JSON."""
        path = self._path(name)
        path.write_text(model.model_dump_json(indent=2), encoding="utf-8")
        return path
