"""Custom exceptions for gemindex."""


class GemIndexError(Exception):
    """Base exception for all gemindex operations."""


class ConfigurationError(GemIndexError):
    """Raised when configuration validation fails."""


class RegistryError(GemIndexError):
    """Raised when a registry query fails."""


class HostVersionError(GemIndexError):
    """Raised when the host ruby or rubygems version cannot be determined."""


class FileProcessingError(GemIndexError):
    """Raised when file operations fail."""
