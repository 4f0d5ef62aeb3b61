"""Error taxonomy for classification and history persistence."""


class XRayAIError(RuntimeError):
    """Base class for all application errors."""


class ClassificationError(XRayAIError):
    """Raised when an image could not be classified."""


class ModelUnavailable(ClassificationError):
    """The classifier model could not be found or loaded.

    Permanent for the lifetime of the adapter that raised it.
    """

    def __init__(self, message="Failed to find the ML model"):
        super().__init__(message)


class NoClassification(ClassificationError):
    """The classifier ran but returned no results."""

    def __init__(self, message="No classification results"):
        super().__init__(message)


class InferenceError(ClassificationError):
    """The classifier call itself failed."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class PersistenceError(XRayAIError):
    """Base class for history storage failures."""


class PersistenceReadError(PersistenceError):
    """Stored history is missing a field or cannot be decoded."""


class PersistenceWriteError(PersistenceError):
    """Stored history could not be written."""


__all__ = [
    'XRayAIError',
    'ClassificationError',
    'ModelUnavailable',
    'NoClassification',
    'InferenceError',
    'PersistenceError',
    'PersistenceReadError',
    'PersistenceWriteError',
]
