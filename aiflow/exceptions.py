class AIFlowError(Exception):
    """Base class for every error raised by aiflow."""


class InvalidDiffError(AIFlowError):
    pass


class DiffTooLargeError(InvalidDiffError):
    pass


class SegmentationError(AIFlowError):
    """Splitting or packing the diff produced nothing to send."""


class BatchProcessingError(AIFlowError):
    pass


class ContextLimitError(AIFlowError):
    pass


class LLMError(AIFlowError):
    pass


class EmptyResponseError(LLMError):
    pass


class ResponseParseError(LLMError):
    def __init__(self, stage, message):
        super().__init__(f"Invalid JSON response from AI in {stage}: {message}")
        self.stage = stage
