"""Exception hierarchy for progress tracking."""


class ProgressError(Exception):
    """Base class for all tracker errors."""


class UninitializedProgressError(ProgressError):
    """Raised when an operation needs a bound user but none is set."""

    def __init__(self, message: str = "User progress not initialized"):
        super().__init__(message)


class PersistenceError(ProgressError):
    """The backing store failed to load, save or delete a snapshot."""


class DeserializationError(ProgressError):
    """A stored snapshot exists but cannot be parsed."""


class ExecutionError(ProgressError):
    """The code execution service could not run a submission."""


class UnsupportedLanguageError(ExecutionError):
    def __init__(self, language: str):
        super().__init__(f"Unsupported language: {language}")
        self.language = language
