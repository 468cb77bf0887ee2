"""Exceptions raised by subfx.

Every failure is raised synchronously to the direct caller; nothing is
retried or rolled back.
"""


class SubfxError(Exception):
    """Base class for all subfx errors."""


class UnknownIdentifierError(SubfxError, LookupError):
    """No subscriber, fx or fx handler is registered under the identifier."""


class DependencyError(SubfxError, ValueError):
    """A subscriber's dependency list is invalid or cannot be resolved."""


class CircularValueError(SubfxError, ValueError):
    """A compared value directly or indirectly contains itself."""


class NotInitializedError(SubfxError, RuntimeError):
    """An operation ran before subfx.initialize()."""
