"""Exceptions raised by the loaders and the navigation model."""


class TrendsError(Exception):
    """Base class for errors raised by lsg_trends."""


class DataLoadError(TrendsError):
    """A registry table could not be fetched or parsed."""

    def __init__(self, source, reason):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load {source}: {reason}")


class MapDataError(TrendsError):
    """Geometry for a map panel is missing or unreadable."""


class NavigationError(TrendsError):
    """A view transition was requested from a state that does not allow it."""
