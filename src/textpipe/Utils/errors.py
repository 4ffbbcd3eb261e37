from typing import Optional


class PipelineError(Exception):
    """Base class for failures raised by a pipeline stage."""

    def __init__(self, message: str, stage: Optional[str] = None):
        self.stage = stage
        super().__init__(message)


class SourceReadFailure(PipelineError):
    """The byte source raised before a clean end-of-stream."""


class SinkWriteFailure(PipelineError):
    """The byte sink rejected a write or flush."""


class ClosedSink(PipelineError):
    """put() on a buffer that was already closed. Always a programming error."""
