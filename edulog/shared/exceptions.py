"""
Exception hierarchy for EduLog.

None of these are fatal to the process: the service layer turns each one
into a user-visible notice and keeps the prior state.
"""


class EduLogError(Exception):
    """Base exception for all EduLog errors."""
    pass


class StorageError(EduLogError):
    """Raised when a durable key-value slot cannot be read or written."""
    pass


class RecordNotFoundError(EduLogError):
    """Raised when an operation targets a record id that is not in the store."""
    pass


class RosterFetchError(EduLogError):
    """Raised when the roster endpoint is unreachable or returns a malformed payload."""
    pass


class SyncDispatchError(EduLogError):
    """Raised when a record push could not be dispatched at all."""
    pass


class NormalizationError(EduLogError):
    """Base exception for text normalization failures."""
    pass


class EmptyInputError(NormalizationError):
    """Raised when there is no text to normalize."""
    pass


class NormalizationBusyError(NormalizationError):
    """Raised when a normalization is requested while another is pending."""
    pass


class NormalizationCredentialMissing(NormalizationError):
    """Raised before any network call when the API key is absent or too short."""
    pass


class InvalidCredentialError(NormalizationError):
    """Raised when the provider rejects the configured API key."""
    pass


class NormalizationEmptyResult(NormalizationError):
    """Raised when the provider answers with no text."""
    pass


class NormalizationFailed(NormalizationError):
    """Raised for any other normalization failure."""
    pass


class InvalidRecordError(EduLogError):
    """Raised when a record cannot be saved as given (e.g. blank content)."""
    pass
