"""Pydantic models shared by the extractor, rewriter, and transform layers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SourceMap(BaseModel):
    """A parsed source map. Unknown keys are kept so they survive serialization."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: int = 3
    file: str | None = None
    source_root: str = Field(default="", alias="sourceRoot")
    sources: list[str] = Field(default_factory=list)
    sources_content: list[str | None] | None = Field(default=None, alias="sourcesContent")
    names: list[str] = Field(default_factory=list)
    mappings: str = ""

    @field_validator("source_root", mode="before")
    @classmethod
    def _null_root_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @model_validator(mode="after")
    def _sources_content_matches_sources(self) -> SourceMap:
        if self.sources_content is not None and len(self.sources_content) != len(self.sources):
            raise ValueError(
                f"sourcesContent has {len(self.sources_content)} entries "
                f"but sources has {len(self.sources)}"
            )
        return self


class RewriteOptions(BaseModel):
    """Options for one exorcism run.

    ``destination`` is either a filesystem path or any object with a ``write``
    method. Strings and ``os.PathLike`` values are normalized to ``Path``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    destination: Any
    url: str | None = None
    root: str | None = None
    base: str | None = None
    error_on_missing: bool = False
    map_dir: Path | None = None

    @field_validator("destination")
    @classmethod
    def _normalize_destination(cls, value: Any) -> Any:
        if isinstance(value, (str, os.PathLike)):
            return Path(value)
        if callable(getattr(value, "write", None)):
            return value
        raise ValueError("destination must be a path or a writable stream")

    @property
    def destination_is_stream(self) -> bool:
        return not isinstance(self.destination, Path)


class Extraction(BaseModel):
    """Result of scanning a document for its source-map annotation."""

    body: str
    source_map: SourceMap | None = None
    annotation: str | None = None


class Separated(BaseModel):
    """Serialized map plus the annotation that replaces the inline one."""

    json_text: str
    comment: str
    url: str


class TransformResult(BaseModel):
    """Completion of a single transform: either ``success`` or ``missing-map``."""

    status: Literal["success", "missing-map"]
    body: str
    map_json: str | None = None
    url: str | None = None
    message: str | None = None
