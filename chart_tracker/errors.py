"""Exceptions raised by the chart tracker."""


class TrackerError(Exception):
    """Base class for chart tracker errors."""


class UnexpectedStatusError(TrackerError):
    """A remote resource answered with a status other than 200."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"unexpected status code received: {status_code}")


class ArchiveParseError(TrackerError):
    """A chart archive could not be read."""


class InvalidDataURLError(TrackerError):
    """An inline data URL could not be decoded."""


class UnrecognizedImageFormatError(TrackerError):
    """Image data is not in a format the image store understands.

    Callers treat this as an expected outcome, not a failure.
    """


class JobError(TrackerError):
    """A job failed; the underlying error is chained as ``__cause__``."""


def wrap_error(message: str, cause: Exception, cls: type[TrackerError] = TrackerError) -> TrackerError:
    """Build ``cls("<message>: <cause>")`` chained to ``cause``."""
    err = cls(f"{message}: {cause}")
    err.__cause__ = cause
    return err
