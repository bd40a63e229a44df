"""
DOM Query Capability
====================
Defines the contract the extraction engine uses to read a rendered page.

The engine never talks to a browser directly. A navigation session hands
it a ``DomNode`` for the document root, and every selector query goes
through this interface. That keeps extraction a pure function of
(document, schema, tier) and lets tests feed plain HTML.

To plug in another backend:
    1. Subclass ``DomNode``
    2. Implement ``select``, ``select_one``, ``find_by_id``, ``text``, ``attr``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from bs4 import BeautifulSoup

_BS_PARSER = "lxml"


class DomNode(ABC):
    """Read-only view over one element (or the document root)."""

    @abstractmethod
    def select(self, selector: str) -> List["DomNode"]:
        """All descendants matching a CSS selector, in document order."""
        ...

    @abstractmethod
    def select_one(self, selector: str) -> Optional["DomNode"]:
        """First descendant matching a CSS selector, or None."""
        ...

    @abstractmethod
    def find_by_id(self, element_id: str) -> Optional["DomNode"]:
        """Descendant with the given id attribute, or None."""
        ...

    @abstractmethod
    def text(self, separator: str = "") -> str:
        """Text content.

        With the default empty ``separator`` this is the raw concatenated
        text (untrimmed). A non-empty ``separator`` joins the trimmed
        text of each descendant string, so block boundaries survive.
        """
        ...

    @abstractmethod
    def attr(self, name: str) -> Optional[str]:
        """Attribute value, or None when absent."""
        ...


class SoupNode(DomNode):
    """``DomNode`` backed by a BeautifulSoup tag."""

    def __init__(self, tag):
        self._tag = tag

    @classmethod
    def from_html(cls, html: str) -> "SoupNode":
        """Parse an HTML snapshot into a document-root node."""
        return cls(BeautifulSoup(html or "", _BS_PARSER))

    def select(self, selector: str) -> List[DomNode]:
        return [SoupNode(tag) for tag in self._tag.select(selector)]

    def select_one(self, selector: str) -> Optional[DomNode]:
        tag = self._tag.select_one(selector)
        return SoupNode(tag) if tag is not None else None

    def find_by_id(self, element_id: str) -> Optional[DomNode]:
        if not element_id:
            return None
        tag = self._tag.find(id=element_id)
        return SoupNode(tag) if tag is not None else None

    def text(self, separator: str = "") -> str:
        if separator:
            return self._tag.get_text(separator=separator, strip=True)
        return self._tag.get_text()

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):
            # multi-valued attributes such as class
            return " ".join(value)
        return value

    def __repr__(self) -> str:
        name = getattr(self._tag, 'name', None) or 'document'
        return f"<SoupNode {name}>"
