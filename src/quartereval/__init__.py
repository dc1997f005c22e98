"""quartereval: quarter-partitioned evaluation of classifier results.

Threshold-swept curves, AUC summaries, one-vs-rest multiclass
aggregation and confusion-matrix reports across test quarters.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("quartereval")
except PackageNotFoundError:
    # Fallback for source-only usage before installation.
    __version__ = "0.3.0"
__license__ = "Apache-2.0"
