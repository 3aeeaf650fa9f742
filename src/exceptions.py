"""Error taxonomy for the analysis pipeline.

None of these are caught inside the pipeline: any occurrence aborts the run.
"""


class AnalysisError(Exception):
    """Base class for analysis failures."""


class FormatError(AnalysisError):
    """Input file is missing, unreadable, or has missing/unparsable columns."""


class FittingError(AnalysisError):
    """A model fit did not converge or was numerically degenerate."""


class UndefinedMetricError(AnalysisError):
    """A metric is undefined for the given labels or predictions."""
