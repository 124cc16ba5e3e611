"""
Custom Exceptions

Defines custom exception classes for the ImageSet Manager tool.
"""


class ImageSetManagerError(Exception):
    """Base exception class for ImageSet Manager errors"""
    pass


class ConfigurationError(ImageSetManagerError):
    """Raised when configuration is invalid or missing"""
    pass


class FetchError(ImageSetManagerError):
    """Raised when a catalog image cannot be pulled or extracted"""
    pass


class CatalogError(ImageSetManagerError):
    """Raised when catalog data cannot be located"""
    pass


class ParsingError(ImageSetManagerError):
    """Raised when data parsing fails"""
    pass


class UnparsableFileError(ParsingError):
    """Raised when a catalog file cannot be decoded by any strategy"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Unable to decode {path}: {reason}")
        self.path = path
        self.reason = reason


class MalformedConfigError(ParsingError):
    """Raised when a document is not a valid ImageSetConfiguration"""
    pass


class ReconcileError(ImageSetManagerError):
    """
    Per-operator reconciliation problem.

    Instances are collected into reconcile results rather than raised, so a
    batch of operators can partially succeed.
    """

    fatal = False

    def __init__(self, operator: str, message: str):
        super().__init__(message)
        self.operator = operator


class OperatorNotFoundError(ReconcileError):
    """The catalog has no data for the operator"""

    def __init__(self, operator: str):
        super().__init__(operator, f"Operator '{operator}' not found in catalog")


class ChannelNotFoundError(ReconcileError):
    """The operator exists but the configured channel does not"""

    def __init__(self, operator: str, channel: str, available=None):
        message = f"Channel '{channel}' not found for operator '{operator}'"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(operator, message)
        self.channel = channel
        self.available = list(available or [])


class VersionNotFoundError(ReconcileError):
    """A requested version is not published in the channel"""

    def __init__(self, operator: str, channel: str, version: str):
        super().__init__(
            operator, f"Version '{version}' not found in channel '{channel}' of operator '{operator}'"
        )
        self.channel = channel
        self.version = version


class MissingDefaultChannelError(ReconcileError):
    """Informational: the default channel came from the first-channel fallback"""

    def __init__(self, operator: str, fallback: str = None):
        if fallback:
            message = (f"Operator '{operator}' declares no default channel; "
                       f"using first channel '{fallback}'")
        else:
            message = f"Operator '{operator}' declares no default channel"
        super().__init__(operator, message)
        self.fallback = fallback
