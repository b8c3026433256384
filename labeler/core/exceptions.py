"""Custom exceptions for the labeler."""

class LabelerError(Exception):
    """Base labeler error."""
    pass

class ConfigError(LabelerError):
    """Configuration-related errors."""
    pass

class ValidationError(LabelerError):
    """Malformed label lines or annotation records."""
    pass

class ImageSourceError(LabelerError):
    """Image could not be opened or decoded."""
    pass

class ExportError(LabelerError):
    """Writing an export artifact failed."""
    pass

class SessionError(LabelerError):
    """Session file could not be read or written."""
    pass
