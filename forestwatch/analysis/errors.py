"""
Analysis failure types.

Every failure from the hosted model is raised as an :class:`AnalysisError`
subclass whose message reads ``Analysis service error: <detail>``.  The
session store records ``str(exc)`` and never retries.
"""
from __future__ import annotations


class AnalysisError(Exception):
    prefix = "Analysis service error"

    def __init__(self, detail: str):
        super().__init__(f"{self.prefix}: {detail}")
        self.detail = detail


class TransportError(AnalysisError):
    """Network failure before a response arrived."""


class MalformedResponseError(AnalysisError):
    """Response was empty, not JSON, or did not match the schema."""


class ServiceError(AnalysisError):
    """The service answered with an error."""


class MissingCredentialsError(ServiceError):
    """No API key configured."""
