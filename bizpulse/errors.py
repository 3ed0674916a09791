"""
Tagged error variants shared by the pipeline.

Only FatalPipelineError (and its subclasses) is allowed to abort a single
business's run; everything else is converted to a warning or a fallback value
at the stage boundary.
"""
from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class TransientError(PipelineError):
    """An external collaborator was unreachable or returned a transport-level failure."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(f"[{source}] {message}" if source else message)


class MalformedResponseError(PipelineError):
    """A generation call returned empty or non-JSON output."""

    def __init__(self, message: str, raw: Optional[str] = None):
        self.raw = raw
        super().__init__(message)


class FatalPipelineError(PipelineError):
    """Aborts the run for one business; surfaced as success=False."""


class RecordNotFoundError(FatalPipelineError):
    """The business could not be located in the registry."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Business {identifier} not found in registry")


class SkippedRecordError(FatalPipelineError):
    """The record exists but cannot be processed (missing name, inactive licence)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
