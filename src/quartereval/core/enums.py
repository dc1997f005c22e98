"""Core enumerations for quartereval."""
from enum import StrEnum


class MetricKind(StrEnum):
    """Threshold-swept curve kinds.

    The value doubles as the artifact file stem (``roc.html``,
    ``roc-H.html``).
    """

    ACCURACY = "accuracy"
    ROC = "roc"
    FSCORE = "fscore"
    PRECISION_RECALL = "precision-recall"
    SENS_SPEC = "sens-spec"

    @property
    def requires_both_classes(self) -> bool:
        """Whether the curve is undefined without positive and negative rows."""
        return self is not MetricKind.ACCURACY


class EvaluationMode(StrEnum):
    """Single score column vs. one score column per class."""

    BINARY = "binary"
    MULTICLASS = "multiclass"


class OmissionScope(StrEnum):
    """What an omission entry refers to."""

    QUARTER = "quarter"
    CLASS = "class"
    MACRO_AUC = "macro_auc"
