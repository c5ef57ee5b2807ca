from __future__ import annotations


class CVForgeError(Exception):
    """Base class for errors raised by cvforge."""


class InvalidInput(CVForgeError):
    """A precondition was not met; nothing was sent to the engine."""


class NotFound(CVForgeError):
    """A profile operation referenced an entry id that does not exist."""


class OperationBusy(CVForgeError):
    """The pipeline is already running."""


class EngineError(CVForgeError):
    """The generation engine was unreachable or returned an error."""


class SchemaViolation(CVForgeError):
    """The engine response could not be decoded or had the wrong shape."""


class PipelineFailure(CVForgeError):
    pipeline = "pipeline"


class ExtractionFailed(PipelineFailure):
    pipeline = "extraction"


class TranslationFailed(PipelineFailure):
    pipeline = "translation"


class RecommendationFailed(PipelineFailure):
    pipeline = "recommendation"
