"""Exceptions raised while externalizing a source map."""

from __future__ import annotations

MISSING_URL_MESSAGE = "When specifying a stream to write source map to you must specify a url."
MISSING_MAP_MESSAGE = "The code that you piped into exorcist contains no source map!"


class ExorcistError(Exception):
    """Base class for every fatal exorcist condition."""


class ParseError(ExorcistError, ValueError):
    """The inline source-map payload could not be decoded or parsed."""


class MissingMapError(ExorcistError):
    """No source map was found and the caller asked for that to be fatal."""

    def __init__(self, message: str = MISSING_MAP_MESSAGE):
        super().__init__(message)


class MissingUrlError(ExorcistError, ValueError):
    """A stream destination was given without an explicit url."""

    def __init__(self, message: str = MISSING_URL_MESSAGE):
        super().__init__(message)


class MapWriteError(ExorcistError, OSError):
    """Creating the map directory or writing the map failed."""
