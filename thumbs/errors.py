"""
Error taxonomy for thumbnail requests.

Every error carries the terminal ``Outcome`` of the request so the serving
shell can map it to a status code without knowing the concrete class.
"""

from enum import Enum


class Outcome(Enum):
    """Terminal state of one pipeline run."""
    OK = 'ok'
    BAD_REQUEST = 'bad_request'
    NOT_FOUND = 'not_found'
    STORAGE_ERROR = 'storage_error'
    GENERATION_ERROR = 'generation_error'


class ThumbsError(Exception):
    """Base class for all errors raised while serving a thumbnail."""
    outcome = Outcome.GENERATION_ERROR


class BadRequest(ThumbsError):
    """Raised when the request token or path cannot be turned into a descriptor."""
    outcome = Outcome.BAD_REQUEST


class InvalidRequestPath(BadRequest):
    """Raised when the path does not have the ``{token}/{source.ext}`` shape."""
    pass


class InvalidMode(BadRequest):
    pass


class InvalidDimensions(BadRequest):
    pass


class DimensionsTooLarge(BadRequest):
    """Raised when a requested dimension exceeds the configured maximum."""
    pass


class NotFound(ThumbsError):
    """Raised by stores when a key does not exist."""
    outcome = Outcome.NOT_FOUND


class SourceNotFound(NotFound):
    pass


class StorageError(ThumbsError):
    """Raised when a store backend fails to read or write."""
    outcome = Outcome.STORAGE_ERROR


class GenerationError(ThumbsError):
    """Raised when decoding, transforming or encoding fails."""
    outcome = Outcome.GENERATION_ERROR


class UnsupportedSourceFormat(GenerationError):
    """Raised when the source bytes match no registered signature."""
    pass


class DecodeFailed(GenerationError):
    pass


class UnsupportedOutputFormat(GenerationError):
    pass


class EncodeFailed(GenerationError):
    pass
