"""Custom exceptions for ImpactScope."""


class ImpactScopeError(Exception):
    """Base exception for all ImpactScope errors."""


class ConfigError(ImpactScopeError):
    """Configuration-related errors."""


class InvalidRequestError(ImpactScopeError):
    """A change request is missing a field or points outside the project."""


class FileSystemFailure(ImpactScopeError):
    """A project file or directory could not be read."""


class GraphError(ImpactScopeError):
    """Dependency graph errors."""


class ExternalServiceFailure(ImpactScopeError):
    """The CI history service was unreachable, slow or refused the request."""


class AnalysisCancelled(ImpactScopeError):
    """Raised when the caller's cancellation token fires mid-analysis."""
