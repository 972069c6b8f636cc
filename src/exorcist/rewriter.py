"""Rewrite source-map metadata and build the replacement annotation."""

from __future__ import annotations

import json
import ntpath
import os
import posixpath
import re
from typing import Literal

from exorcist.errors import MissingUrlError
from exorcist.models import RewriteOptions, Separated, SourceMap

CommentStyle = Literal["line", "block"]

COMMENT_STYLE_RE = re.compile(r"^\s*/(/|\*)[@#]\s+sourceMappingURL", re.MULTILINE)
URL_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def apply_root(source_map: SourceMap, root: str | None) -> SourceMap:
    """Set ``sourceRoot`` to ``root`` when given, otherwise keep the existing value."""
    if root:
        source_map.source_root = root
    return source_map


def relative_sources(source_map: SourceMap, base: str | None) -> SourceMap:
    """Rewrite every entry of ``sources`` relative to ``base``."""
    if base:
        source_map.sources = [relative_to(base, source) for source in source_map.sources]
    return source_map


def relative_to(base: str, source: str) -> str:
    """Return ``source`` relative to ``base`` with POSIX separators.

    URL-like sources are returned as is. Windows paths on another drive have no
    relative form and are returned unchanged.
    """
    if URL_SCHEME_RE.match(source):
        return source
    try:
        relative = os.path.relpath(source, base)
    except ValueError:
        return source
    if os.sep != posixpath.sep:
        relative = relative.replace(ntpath.sep, posixpath.sep)
    return relative


def to_json(source_map: SourceMap) -> str:
    """Serialize with 2-space indentation using the source-map key names."""
    payload = source_map.model_dump(by_alias=True, exclude_none=True)
    return json.dumps(payload, indent=2, ensure_ascii=False)


def resolve_url(options: RewriteOptions) -> str:
    """Return the url the new annotation points to.

    Raises:
        MissingUrlError: If the destination is a stream and no url was given.
    """
    if options.url:
        return options.url
    if options.destination_is_stream:
        raise MissingUrlError()
    return options.destination.name


def detect_comment_style(text: str) -> CommentStyle:
    match = COMMENT_STYLE_RE.search(text)
    if match and match.group(1) == "*":
        return "block"
    return "line"


def build_comment(url: str, style: CommentStyle) -> str:
    if style == "block":
        return f"/*# sourceMappingURL={url} */"
    return f"//# sourceMappingURL={url}"


def detect_newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def separate(source_map: SourceMap, document: str, options: RewriteOptions) -> Separated:
    """Apply root/base rewrites and build the map JSON plus the new annotation.

    ``document`` is the original text, whose existing annotation decides
    between line and block comment syntax.
    """
    url = resolve_url(options)
    apply_root(source_map, options.root)
    relative_sources(source_map, options.base)
    return Separated(
        json_text=to_json(source_map),
        comment=build_comment(url, detect_comment_style(document)),
        url=url,
    )


def render_body(body: str, comment: str, newline: str) -> str:
    """Append ``comment`` as the final line of ``body``."""
    trimmed = body.rstrip("\r\n")
    if trimmed:
        return f"{trimmed}{newline}{comment}{newline}"
    return f"{comment}{newline}"
