"""Exceptions raised while decoding FIT message records."""


class DecodeError(RuntimeError):
    """Base exception for decode failures."""


class ConfigurationError(DecodeError):
    """Raised when type or schema configuration makes decoding impossible."""


class UnknownTypeError(ConfigurationError):
    """Raised when a protocol type tag is not in the type catalog."""


class TypeIndexError(ConfigurationError):
    """Raised when a base type index is outside the type catalog."""


class CorruptionError(DecodeError):
    """Raised when the data contradicts its own definition."""


class CorruptSizeError(CorruptionError):
    """Raised when a field byte count does not fit its base type."""


class UnresolvedAltFieldError(CorruptionError):
    """Raised when no variant of an alternative field matches its selector."""
