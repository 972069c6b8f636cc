"""The exorcist transform: externalize the source map of a streamed document."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from exorcist.errors import MISSING_MAP_MESSAGE, MissingMapError
from exorcist.extractor import extract
from exorcist.models import RewriteOptions, TransformResult
from exorcist.rewriter import detect_newline, render_body, resolve_url, separate
from exorcist.writer import is_text_stream, write_map

logger = logging.getLogger(__name__)

MISSING_MAP_NOTICE = (
    f"{MISSING_MAP_MESSAGE}\n"
    "Therefore it was piped through as is and no external map file generated."
)


class Exorcist:
    """Externalizes the source map of one document.

    The map is written as JSON to ``options.destination`` and the document is
    returned with its ``sourceMappingURL`` pointing at the destination's file
    name (or at ``options.url``).

    ``on_missing_map`` is called with a descriptive message when the document
    has no source map and ``options.error_on_missing`` is false; the document
    is then passed through unchanged and no map is written.
    """

    def __init__(
        self,
        options: RewriteOptions,
        on_missing_map: Callable[[str], None] | None = None,
    ):
        """Bind options, failing fast on a stream destination without a url."""
        resolve_url(options)
        self.options = options
        self.on_missing_map = on_missing_map

    def transform(self, text: str) -> TransformResult:
        """Run the transform over a whole document.

        The map write finishes before the rewritten body is returned, so a
        consumer never sees the new annotation before the map exists.

        Raises:
            ParseError: The inline map is malformed.
            MissingMapError: No map was found and ``error_on_missing`` is set.
            MapWriteError: The map could not be written.
        """
        extraction = extract(text, map_dir=self.options.map_dir)

        if extraction.source_map is None:
            if self.options.error_on_missing:
                raise MissingMapError()
            logger.info("no source map found, passing document through")
            if self.on_missing_map:
                self.on_missing_map(MISSING_MAP_NOTICE)
            return TransformResult(status="missing-map", body=text, message=MISSING_MAP_NOTICE)

        separated = separate(extraction.source_map, text, self.options)
        write_map(self.options.destination, separated.json_text)

        body = render_body(extraction.body, separated.comment, detect_newline(text))
        logger.debug("emitting %d characters with annotation %s", len(body), separated.comment)
        return TransformResult(
            status="success",
            body=body,
            map_json=separated.json_text,
            url=separated.url,
        )

    def pipe(self, source: Any, sink: Any) -> TransformResult:
        """Read ``source`` fully, transform it, and write the result to ``sink`` in one flush.

        Nothing is written to ``sink`` when the transform fails.
        """
        result = self.transform(_read_all(source))
        _write_all(sink, result.body)
        return result


def exorcise(
    text: str,
    destination: Any,
    url: str | None = None,
    root: str | None = None,
    base: str | None = None,
    error_on_missing: bool = False,
    map_dir: Path | None = None,
    on_missing_map: Callable[[str], None] | None = None,
) -> TransformResult:
    """Convenience wrapper building ``RewriteOptions`` and running one transform."""
    options = RewriteOptions(
        destination=destination,
        url=url,
        root=root,
        base=base,
        error_on_missing=error_on_missing,
        map_dir=map_dir,
    )
    return Exorcist(options, on_missing_map=on_missing_map).transform(text)


def _read_all(source: Any) -> str:
    data = source.read()
    if isinstance(data, bytes):
        return data.decode("utf-8")
    return data


def _write_all(sink: Any, text: str) -> None:
    if is_text_stream(sink):
        sink.write(text)
    else:
        sink.write(text.encode("utf-8"))
    flush = getattr(sink, "flush", None)
    if callable(flush):
        flush()
