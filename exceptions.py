# exceptions.py
"""
Error types raised by the particle engine.
"""


class ConfigurationError(ValueError):
    """The engine configuration is missing required fields or is malformed."""


class NotInitializedError(RuntimeError):
    """The canvas surface or loop was used before a configuration was applied."""


class PersistenceFormatError(ValueError):
    """A persisted position list could not be decoded."""
