"""Error kinds raised by the analysis pipeline.

All of them are fatal to a run: the pipeline has no partial-result mode.
"""


class ReportError(Exception):
    """Base class for analysis errors surfaced to the invoker."""


class MalformedInputError(ReportError, ValueError):
    """A sample plan or matrix is missing columns or holds invalid values."""


class SampleMismatchError(ReportError, KeyError):
    """Count/TPM columns cannot be matched to sample plan entries."""

    def __init__(self, message: str, missing=()):
        super().__init__(message)
        self.missing = list(missing)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""


class DesignRankDeficientError(ReportError, ValueError):
    """The differential model cannot be fit with the given design."""
