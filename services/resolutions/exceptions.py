"""
Resolution Engine Exceptions

Custom exceptions for template configuration, value lookup,
validation and register persistence.
"""


class DocumentError(Exception):
    """Base exception for all resolution engine errors."""
    pass


class ConfigurationError(DocumentError):
    """
    Raised when template configuration cannot be loaded.

    This includes YAML syntax errors, duplicate template ids
    and duplicate field ids within a template.
    """
    pass


class ValidationError(DocumentError):
    """
    Raised when a single template definition fails validation,
    or a template id cannot be found.
    """
    def __init__(self, message: str, field_id: str = None):
        self.field_id = field_id
        super().__init__(message)


class ResolutionError(DocumentError):
    """
    Raised when a value path cannot be resolved.

    Carries the path that failed.
    """
    def __init__(self, message: str, path: str = None):
        self.path = path
        super().__init__(message)


class MissingValueError(ResolutionError):
    """The path is not present in the value store."""
    pass


class TypeMismatchError(ResolutionError):
    """The path traverses through a value that is not a mapping."""
    pass


class PersistenceError(DocumentError):
    """
    Raised when the resolution register cannot be written.

    Always propagated to the caller.
    """
    def __init__(self, message: str, path: str = None):
        self.path = path
        super().__init__(message)


class PersistenceCorruptError(DocumentError):
    """
    The resolution register file could not be read or parsed.

    Recovered inside the sequence service by starting from an empty register.
    """
    pass
