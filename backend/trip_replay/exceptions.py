class ReplayError(Exception):
    """Base exception for trip replay errors."""


class FeedParseError(ReplayError):
    """Feed document could not be parsed."""


class FeedFetchError(ReplayError):
    """Feed document could not be downloaded."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


class GeometryLoadError(ReplayError):
    """Geometry layer document could not be parsed."""


class PlaybackError(ReplayError):
    """Invalid playback control request."""
