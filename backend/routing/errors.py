# backend/routing/errors.py
"""Errors raised by the routing engine and its collaborators."""


class RoutingError(Exception):
    """Base class for routing failures."""
    pass


class DataSourceUnavailable(RoutingError):
    """Road data could not be fetched or loaded; the graph build failed."""
    pass


class GraphEmpty(RoutingError, LookupError):
    """Nearest-node lookup ran over an empty node index."""
    pass


class GraphNotReady(RoutingError):
    """A graph build is in flight and the caller asked not to wait."""
    pass
