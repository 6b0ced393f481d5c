from __future__ import annotations


class DashboardError(RuntimeError):
    """Base class for errors raised by the dashboard core."""


class ValidationError(DashboardError, ValueError):
    """Raised when an observation or filter value cannot be interpreted."""


class SourceUnavailable(DashboardError):
    """Raised when the observation source cannot be read."""
