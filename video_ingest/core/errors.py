"""Typed failures raised by the ingestion pipeline components."""


class PipelineError(Exception):
    """Base class for every failure the orchestrator knows how to classify."""


class StorageError(PipelineError):
    """Object store metadata lookup, signing or download failed."""


class AudioExtractionFailed(PipelineError):
    pass


class TranscriptionFailed(PipelineError):
    pass


class QuoteExtractionFailed(PipelineError):
    def __init__(self, reason: str):
        super().__init__(f"Failed to generate quotes: {reason}")
        self.reason = reason


class MetadataGenerationFailed(PipelineError):
    """A title/description/tags completion failed. Never fatal for a run."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"Failed to generate {field}: {reason}")
        self.field = field
        self.reason = reason


class RunAbandoned(PipelineError):
    """The video document is gone or already in `error`; the run must stop writing."""

    def __init__(self, video_id: str):
        super().__init__(f"Video {video_id} is no longer being processed")
        self.video_id = video_id
