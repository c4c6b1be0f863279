class ExtractionError(Exception):
    """Raised when transaction extraction fails."""


class CompletionError(ExtractionError):
    """Raised when the text-completion provider returns an unusable response."""


class CompletionNetworkError(CompletionError):
    """Raised when the completion call fails due to network/infrastructure issues."""


class PromptLoadError(ExtractionError):
    """Raised when a bundled prompt file cannot be read."""
