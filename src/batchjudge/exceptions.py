"""
Call-level errors raised by batchjudge.

Execution failures of the submitted program (compilation errors, crashes,
time limits) are never raised: they are reported as outcomes.
"""

from __future__ import annotations


class BatchJudgeError(Exception):
    """Base class for every batchjudge error."""


class ConfigurationError(BatchJudgeError):
    """Raised when the backend configuration is unusable."""


class TransportError(BatchJudgeError):
    """
    Raised when a request could not be completed after retrying.

    Parameters
    ----------
    message : str
        Human readable summary.
    status_code : int | None
        HTTP status of the last response, ``None`` on network failures.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SubmissionRejectedError(BatchJudgeError):
    """
    Raised when the backend refuses a submission payload.

    Parameters
    ----------
    message : str
        Human readable summary.
    status_code : int | None
        HTTP status returned by the backend.
    body : str
        Raw response body, kept for diagnostics.
    """

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
