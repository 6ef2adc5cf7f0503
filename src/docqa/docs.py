# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Immutable documentation object graph consumed by in-process rules.

The graph is produced by an external documentation tool and stored as a JSON
database. docqa never builds it from source code; it only loads and walks it.
"""

from __future__ import annotations

import json
from collections.abc import Collection, Iterator, Sequence
from pathlib import Path
from typing import Final, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import DocumentationGraphError

Visibility = Literal["public", "all"]

METHOD_KIND: Final[str] = "method"
PUBLIC_VISIBILITY: Final[str] = "public"
_OBJECTS_KEY: Final[str] = "objects"


class DocTag(BaseModel):
    """A single documentation tag such as ``@param`` or ``@return``."""

    model_config = ConfigDict(frozen=True)

    tag_name: str
    name: str | None = None
    text: str | None = None
    types: tuple[str, ...] = Field(default_factory=tuple)


class DocParameter(BaseModel):
    """Declared parameter of a method, including splat/keyword markers in ``name``."""

    model_config = ConfigDict(frozen=True)

    name: str
    default: str | None = None

    def render(self) -> str:
        """Return the parameter as ``name`` or ``name default``."""

        if self.default is None:
            return self.name
        return f"{self.name} {self.default}"


class DocObject(BaseModel):
    """A documented code object: namespace, method, constant and so on."""

    model_config = ConfigDict(frozen=True)

    path: str
    kind: str
    name: str
    file: str | None = None
    line: int | None = None
    visibility: str = PUBLIC_VISIBILITY
    scope: str = "instance"
    is_alias: bool = False
    is_explicit: bool = True
    parameters: tuple[DocParameter, ...] = Field(default_factory=tuple)
    docstring: str = ""
    raw_docstring: str | None = None
    tags: tuple[DocTag, ...] = Field(default_factory=tuple)

    @field_validator("parameters", mode="before")
    @classmethod
    def _coerce_parameters(cls, value: object) -> object:
        """Accept ``[name, default]`` pairs as produced by documentation dumps."""

        if not isinstance(value, (list, tuple)):
            return value
        coerced: list[object] = []
        for item in value:
            if isinstance(item, (list, tuple)):
                name = str(item[0]) if item else ""
                default = item[1] if len(item) > 1 else None
                coerced.append({"name": name, "default": None if default is None else str(default)})
            else:
                coerced.append(item)
        return coerced

    @property
    def title(self) -> str:
        """Return the display title (the fully qualified path)."""

        return self.path

    @property
    def all_docs(self) -> str:
        """Return the full docstring including tag lines."""

        if self.raw_docstring is not None:
            return self.raw_docstring
        return self.docstring

    @property
    def is_method(self) -> bool:
        """Return whether the object is a method."""

        return self.kind == METHOD_KIND

    def tag(self, tag_name: str) -> DocTag | None:
        """Return the first tag named ``tag_name`` or ``None``."""

        for tag in self.tags:
            if tag.tag_name == tag_name:
                return tag
        return None

    def tags_named(self, tag_name: str) -> tuple[DocTag, ...]:
        """Return every tag named ``tag_name`` in declaration order."""

        return tuple(tag for tag in self.tags if tag.tag_name == tag_name)

    def has_tag(self, tag_name: str) -> bool:
        """Return whether at least one tag named ``tag_name`` exists."""

        return self.tag(tag_name) is not None


class DocRegistry:
    """Ordered, read-only collection of :class:`DocObject` instances.

    Enumeration follows the order of the underlying database, which is stable
    but not alphabetical.
    """

    __slots__ = ("_objects", "_paths", "_root")

    def __init__(self, objects: Sequence[DocObject], *, root: Path | None = None) -> None:
        """Initialise the registry.

        Args:
            objects: Documentation objects in database order.
            root: Directory relative file paths are resolved against.
        """

        self._objects: tuple[DocObject, ...] = tuple(objects)
        self._paths = frozenset(obj.path for obj in self._objects)
        self._root = (root or Path.cwd()).resolve()

    @classmethod
    def load(cls, path: Path, *, root: Path | None = None) -> DocRegistry:
        """Load a registry from a JSON documentation database.

        The database is either a list of objects or a mapping with an
        ``objects`` list.

        Args:
            path: JSON file to read.
            root: Directory relative file paths are resolved against.

        Returns:
            DocRegistry: Loaded registry.

        Raises:
            DocumentationGraphError: If the file is missing, unreadable or malformed.
        """

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DocumentationGraphError(f"Cannot read documentation database {path}: {exc}") from exc
        entries = payload.get(_OBJECTS_KEY) if isinstance(payload, dict) else payload
        if not isinstance(entries, list):
            raise DocumentationGraphError(f"Documentation database {path} must contain a list of objects")
        try:
            objects = [DocObject.model_validate(entry) for entry in entries]
        except ValidationError as exc:
            raise DocumentationGraphError(f"Invalid documentation database {path}: {exc}") from exc
        return cls(objects, root=root if root is not None else path.parent)

    def __iter__(self) -> Iterator[DocObject]:
        return iter(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    @property
    def paths(self) -> frozenset[str]:
        """Return the path of every object in the registry."""

        return self._paths

    def iter_objects(
        self,
        files: Collection[Path | str] | None = None,
        *,
        visibility: Visibility = "public",
    ) -> Iterator[DocObject]:
        """Yield objects declared in ``files`` honouring ``visibility``.

        Args:
            files: Selected files; ``None`` selects every object.
            visibility: ``"public"`` skips protected and private objects.

        Yields:
            DocObject: Matching objects in registry order, each at most once.
        """

        selected = None if files is None else {self._key(entry) for entry in files}
        for obj in self._objects:
            if visibility == "public" and obj.visibility != PUBLIC_VISIBILITY:
                continue
            if selected is not None and (obj.file is None or self._key(obj.file) not in selected):
                continue
            yield obj

    def _key(self, value: Path | str) -> str:
        candidate = Path(value)
        if not candidate.is_absolute():
            candidate = self._root / candidate
        return candidate.resolve().as_posix()


__all__ = [
    "DocObject",
    "DocParameter",
    "DocRegistry",
    "DocTag",
    "Visibility",
]
