"""
Exception types raised by graphalign.
"""


class GraphAlignError(Exception):
    """Base class for all graphalign errors."""


class ConfigurationError(GraphAlignError, ValueError):
    """Invalid engine, operator or objective parameters (raised before a run starts)."""


class InvalidStateError(GraphAlignError, RuntimeError):
    """A chromosome's fitness was read while it does not match its mapping."""


class DomainMismatchError(GraphAlignError, ValueError):
    """Two mappings that must share a key domain do not."""
