"""Locate, decode, and strip the source-map annotation of a generated document."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from pydantic import ValidationError

from exorcist.errors import ParseError
from exorcist.models import Extraction, SourceMap

logger = logging.getLogger(__name__)

INLINE_MAP_RE = re.compile(
    r"^[ \t]*/(?P<kind>[/*])[@#][ \t]+sourceMappingURL="
    r"data:(?:(?:application|text)/json)?(?:;charset[:=](?P<charset>[^;,]+?))?(?:;(?P<base64>base64))?,"
    r"(?P<payload>.*)$",
    re.MULTILINE,
)

MAP_FILE_RE = re.compile(
    r"^[ \t]*(?://[@#][ \t]+sourceMappingURL=(?P<line_url>[^\s'\"`]+?)[ \t\r]*"
    r"|/\*[@#][ \t]+sourceMappingURL=(?P<block_url>[^*]+?)[ \t]*\*/[ \t\r]*)$",
    re.MULTILINE,
)


def extract(text: str, map_dir: Path | None = None) -> Extraction:
    """Split ``text`` into its body and the source map it references.

    Inline ``data:`` annotations are decoded directly. When none is present and
    ``map_dir`` is given, the last external ``sourceMappingURL=<file>``
    annotation is resolved against ``map_dir``.

    Only the last annotation is honored and removed; earlier ones stay in the
    body. A document without a usable annotation comes back unchanged with
    ``source_map`` set to ``None``.

    Raises:
        ParseError: If the referenced map is not valid base64, text, or JSON.
    """
    matches = list(INLINE_MAP_RE.finditer(text))
    if matches:
        match = matches[-1]
        payload = match.group("payload")
        if match.group("kind") == "*":
            payload = payload.rstrip().removesuffix("*/")
        raw = _decode_payload(
            payload.strip(),
            is_base64=bool(match.group("base64")),
            charset=match.group("charset") or "utf-8",
        )
        logger.debug("found inline source map annotation at offset %d", match.start())
        return Extraction(
            body=_strip_match(text, match),
            source_map=parse_map(raw),
            annotation=match.group(0).strip(),
        )

    if map_dir is not None:
        return _extract_map_file(text, Path(map_dir))

    return Extraction(body=text)


def parse_map(raw: str) -> SourceMap:
    """Parse JSON text into a ``SourceMap``, wrapping every failure in ``ParseError``."""
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Source map is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ParseError("Source map JSON must be an object")

    try:
        return SourceMap.model_validate(data)
    except ValidationError as exc:
        raise ParseError(f"Source map failed validation: {exc}") from exc


def _decode_payload(payload: str, is_base64: bool, charset: str) -> str:
    """Decode a data-URI payload into JSON text."""
    if not is_base64:
        try:
            return unquote(payload, encoding=charset, errors="strict")
        except (LookupError, UnicodeDecodeError) as exc:
            raise ParseError(f"Inline source map could not be decoded as {charset}: {exc}") from exc

    padded = payload + "=" * (-len(payload) % 4)
    # URL-safe alphabet uses - and _ in place of + and /
    altchars = b"-_" if ("-" in padded or "_" in padded) else None
    try:
        data = base64.b64decode(padded, altchars=altchars, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ParseError(f"Inline source map is not valid base64: {exc}") from exc

    try:
        return data.decode(charset)
    except (LookupError, UnicodeDecodeError) as exc:
        raise ParseError(f"Inline source map could not be decoded as {charset}: {exc}") from exc


def _extract_map_file(text: str, map_dir: Path) -> Extraction:
    """Resolve the last external annotation against ``map_dir``."""
    matches = list(MAP_FILE_RE.finditer(text))
    if not matches:
        return Extraction(body=text)

    match = matches[-1]
    url = (match.group("line_url") or match.group("block_url") or "").strip()
    if not url or url.startswith("data:") or "://" in url:
        return Extraction(body=text)

    map_path = map_dir / unquote(url)
    if not map_path.resolve().is_relative_to(map_dir.resolve()):
        logger.debug("external source map %s is outside %s", map_path, map_dir)
        return Extraction(body=text)
    if not map_path.is_file():
        logger.debug("external source map %s does not exist", map_path)
        return Extraction(body=text)

    logger.debug("found external source map %s", map_path)
    return Extraction(
        body=_strip_match(text, match),
        source_map=parse_map(map_path.read_text(encoding="utf-8")),
        annotation=match.group(0).strip(),
    )


def _strip_match(text: str, match: re.Match[str]) -> str:
    """Remove the matched annotation together with its line terminator."""
    end = match.end()
    if text.startswith("\r\n", end):
        end += 2
    elif text.startswith("\n", end):
        end += 1
    return text[: match.start()] + text[end:]
