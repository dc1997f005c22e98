"""quartereval I/O module: prediction readers and report sinks."""
from quartereval.io.readers import prepare_table, read_predictions, validate_table
from quartereval.io.writers import DirectorySink, ReportSink

__all__ = [
    "DirectorySink",
    "ReportSink",
    "prepare_table",
    "read_predictions",
    "validate_table",
]
