"""
Selector Schemas
================
Immutable, declarative descriptions of what to extract from a page.

A ``Schema`` is an ordered mapping of field name -> ``FieldSpec``. There are
exactly four FieldSpec variants:

- ``Scalar``          text (or one attribute) of the nodes matching a selector
- ``Collection``      repeated containers, each with its own child fields
- ``ExpandablePanel`` accordion / tab triggers and the panels they control
- ``Slide``           carousel slides nested under a container

Shapes are validated when the objects are built, so the extraction engine
never has to guard against malformed configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple, Union

from .errors import SchemaError


def _require_selector(value, owner: str, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise SchemaError(
            f"{owner}.{name} must be a non-empty selector string",
            {'value': value},
        )


def _freeze_fields(fields, owner: str) -> Mapping[str, "FieldSpec"]:
    if not isinstance(fields, Mapping) or not fields:
        raise SchemaError(f"{owner}.fields must be a non-empty mapping")
    frozen = {}
    for name, spec in fields.items():
        if not isinstance(name, str) or not name:
            raise SchemaError(f"{owner} field names must be non-empty strings", {'name': name})
        if not isinstance(spec, (Scalar, Collection, ExpandablePanel, Slide)):
            raise SchemaError(
                f"{owner}.{name} is not a FieldSpec",
                {'type': type(spec).__name__},
            )
        frozen[name] = spec
    return MappingProxyType(frozen)


@dataclass(frozen=True, eq=False)
class Scalar:
    """Text of every node matching ``selector``.

    ``fallbacks`` are tried in order when ``selector`` matches nothing.
    When ``attribute`` is set the attribute value is read instead of the
    text; ``href`` values are resolved against the catalog origin.
    A non-empty ``separator`` reads block text: each descendant string is
    trimmed and joined with it (raw page-text fields use a newline).
    """
    selector: str
    fallbacks: Tuple[str, ...] = ()
    attribute: Optional[str] = None
    separator: str = ""

    def __post_init__(self):
        _require_selector(self.selector, "Scalar", "selector")
        object.__setattr__(self, "fallbacks", tuple(self.fallbacks))
        for fallback in self.fallbacks:
            _require_selector(fallback, "Scalar", "fallbacks")
        if self.attribute is not None:
            _require_selector(self.attribute, "Scalar", "attribute")
        if not isinstance(self.separator, str):
            raise SchemaError("Scalar.separator must be a string", {'value': self.separator})

    @property
    def chain(self) -> Tuple[str, ...]:
        return (self.selector,) + self.fallbacks


@dataclass(frozen=True, eq=False)
class Collection:
    """Repeated containers; child fields are resolved inside each one."""
    container: str
    fields: Mapping[str, "FieldSpec"]

    def __post_init__(self):
        _require_selector(self.container, "Collection", "container")
        object.__setattr__(self, "fields", _freeze_fields(self.fields, "Collection"))


@dataclass(frozen=True, eq=False)
class ExpandablePanel:
    """Accordion triggers and their content panels.

    ``fields`` must hold a ``content`` Scalar and may hold a ``title``
    Scalar. On the structured tier ``trigger`` selects the trigger buttons;
    on retry tiers it selects a single modal container.
    """
    trigger: str
    fields: Mapping[str, "FieldSpec"]

    def __post_init__(self):
        _require_selector(self.trigger, "ExpandablePanel", "trigger")
        fields = _freeze_fields(self.fields, "ExpandablePanel")
        if not isinstance(fields.get('content'), Scalar):
            raise SchemaError("ExpandablePanel.fields needs a 'content' Scalar")
        if 'title' in fields and not isinstance(fields['title'], Scalar):
            raise SchemaError("ExpandablePanel.fields['title'] must be a Scalar")
        object.__setattr__(self, "fields", fields)


@dataclass(frozen=True, eq=False)
class Slide:
    """Carousel slides under a container."""
    container: str
    slide: str
    fields: Mapping[str, "FieldSpec"]

    def __post_init__(self):
        _require_selector(self.container, "Slide", "container")
        _require_selector(self.slide, "Slide", "slide")
        object.__setattr__(self, "fields", _freeze_fields(self.fields, "Slide"))


FieldSpec = Union[Scalar, Collection, ExpandablePanel, Slide]


class Schema:
    """Ordered field name -> FieldSpec mapping."""

    def __init__(self, name: str, fields: Mapping[str, FieldSpec]):
        if not isinstance(name, str) or not name:
            raise SchemaError("Schema name must be a non-empty string")
        self.name = name
        self._fields = _freeze_fields(fields, f"Schema[{name}]")

    @property
    def fields(self) -> Mapping[str, FieldSpec]:
        return self._fields

    def items(self) -> Iterator[Tuple[str, FieldSpec]]:
        return iter(self._fields.items())

    def __contains__(self, name) -> bool:
        return name in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Schema({self.name!r}, fields={list(self._fields)})"
