"""
Page Extraction Engine
======================
Applies a selector ``Schema`` to a rendered page and returns a flat record.

Extraction is a pure function of (document, schema, tier). It never raises:
a selector that matches nothing, or that the DOM backend rejects, resolves
to an empty value and the rest of the record is still produced.

Tier semantics:
- tier 0 (structured pass) reads every match and condenses it; a top-level
  scalar with no match becomes ``''``
- tiers > 0 (retry passes) read the first match inside collections and use
  ``None`` for a top-level scalar with no match
- expandable panels follow two distinct paths: tier 0 walks accordion
  triggers and resolves their ``aria-controls`` panels, retry tiers read a
  single modal container directly
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .dom import DomNode
from .models import ExtractedRecord, FieldValue
from .schema import Collection, ExpandablePanel, FieldSpec, Scalar, Schema, Slide
from .utils import collapse_whitespace, resolve_href

logger = logging.getLogger(__name__)

# Fields that must always come out as a single string (or None)
CANONICAL_TEXT_FIELDS = ('pre_title', 'title', 'subtitle', 'description')

# Slide fields with this name keep their list items as a sequence
LIST_ITEM_FIELD = 'description'


class PageExtractor:
    """
    Turns a document snapshot into an ``ExtractedRecord``.
    """

    def __init__(self, base_origin: str):
        """
        Args:
            base_origin: Catalog origin (``scheme://host``) used to resolve
                         relative ``href`` values
        """
        self.base_origin = base_origin.rstrip('/')

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(
        self,
        document: DomNode,
        schema: Schema,
        tier: int = 0,
        url: str = "",
        link_text: str = "",
    ) -> ExtractedRecord:
        """
        Extract every schema field from ``document``.

        Args:
            document: Root node of the rendered page
            schema: Fields to extract
            tier: Retry tier (0 = structured pass)
            url: Page URL, copied onto the record
            link_text: Anchor text the page was discovered by

        Returns:
            Record with one key per schema field plus ``url`` and ``link_text``
        """
        record: ExtractedRecord = {}

        for name, spec in schema.items():
            try:
                record[name] = self._extract_top_level(name, spec, document, tier)
            except Exception as e:
                logger.warning(f"[EXTRACT] {schema.name}.{name} failed on {url or '?'}: {e}")
                record[name] = None

        for key in CANONICAL_TEXT_FIELDS:
            if isinstance(record.get(key), list):
                joined = " ".join(str(v) for v in record[key] if v).strip()
                record[key] = joined or None

        record['url'] = url
        record['link_text'] = link_text
        return record

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _extract_top_level(self, name: str, spec: FieldSpec, root: DomNode, tier: int) -> FieldValue:
        if isinstance(spec, Scalar):
            value = self._condense(self._values(self._query_chain(root, spec.chain), spec), spec)
            if value is None:
                return '' if tier == 0 else None
            return value
        return self._extract_structured(spec, root, root, tier)

    def _extract_structured(self, spec: FieldSpec, scope: DomNode, root: DomNode, tier: int) -> FieldValue:
        if isinstance(spec, Collection):
            return self._extract_collection(spec, scope, root, tier)
        if isinstance(spec, ExpandablePanel):
            if tier == 0:
                return self._extract_panels(spec, scope, root)
            return self._extract_modal(spec, scope)
        return self._extract_slides(spec, scope, root, tier)

    # ------------------------------------------------------------------
    # Structured fields
    # ------------------------------------------------------------------

    def _extract_collection(self, spec: Collection, scope: DomNode, root: DomNode, tier: int) -> List[Dict[str, Any]]:
        containers = self._query_all(scope, spec.container)
        if not containers:
            logger.debug(f"[EXTRACT] No containers found for: {spec.container}")
            return []

        items = []
        for container in containers:
            item: Dict[str, Any] = {}
            for name, child in spec.fields.items():
                if not isinstance(child, Scalar):
                    item[name] = self._extract_structured(child, container, root, tier)
                elif tier == 0:
                    item[name] = self._condense(
                        self._values(self._query_chain(container, child.chain), child), child
                    )
                else:
                    nodes = self._query_chain(container, child.chain)
                    values = self._values(nodes[:1], child)
                    item[name] = values[0] if values else None
            items.append(item)
        return items

    def _extract_panels(self, spec: ExpandablePanel, scope: DomNode, root: DomNode) -> List[Dict[str, str]]:
        """Accordion triggers -> ``[{title, content}]`` via aria-controls."""
        content_spec = spec.fields['content']
        panels = []
        for trigger in self._query_all(scope, spec.trigger):
            title = (trigger.attr('aria-label') or '').strip() or trigger.text().strip()
            panel = root.find_by_id((trigger.attr('aria-controls') or '').strip())
            if panel is None:
                continue
            content = " ".join(self._values(self._query_chain(panel, content_spec.chain), content_spec))
            panels.append({'title': title, 'content': content})
        return panels

    def _extract_modal(self, spec: ExpandablePanel, scope: DomNode) -> Optional[Dict[str, Any]]:
        """Single modal container -> ``{title, content: [...]}``.

        Content keeps one slot per matched item; an empty item is ``None``.
        """
        matches = self._query_all(scope, spec.trigger)
        if not matches:
            logger.debug(f"[EXTRACT] Modal element not found for: {spec.trigger}")
            return None
        modal = matches[0]

        title = None
        title_spec = spec.fields.get('title')
        if title_spec is not None:
            values = self._values(self._query_chain(modal, title_spec.chain)[:1], title_spec)
            title = values[0] if values else None

        content_spec = spec.fields['content']
        content = [
            self._read(node, content_spec) or None
            for node in self._query_chain(modal, content_spec.chain)
        ]
        return {'title': title, 'content': content}

    def _extract_slides(self, spec: Slide, scope: DomNode, root: DomNode, tier: int) -> List[Dict[str, Any]]:
        slides = []
        for container in self._query_all(scope, spec.container):
            for slide in self._query_all(container, spec.slide):
                item: Dict[str, Any] = {}
                for name, child in spec.fields.items():
                    if not isinstance(child, Scalar):
                        item[name] = self._extract_structured(child, slide, root, tier)
                    elif name == LIST_ITEM_FIELD:
                        entries = []
                        for node in self._query_chain(slide, child.chain):
                            entries.extend(
                                text for text in (li.text().strip() for li in self._query_all(node, 'li'))
                                if text
                            )
                        item[name] = entries
                    else:
                        item[name] = self._condense(
                            self._values(self._query_chain(slide, child.chain), child), child
                        )
                slides.append(item)
        return slides

    # ------------------------------------------------------------------
    # Selector helpers
    # ------------------------------------------------------------------

    def _query_all(self, scope: DomNode, selector: str) -> List[DomNode]:
        try:
            return scope.select(selector)
        except Exception as e:
            logger.debug(f"[EXTRACT] Selector not usable: {selector!r} ({e})")
            return []

    def _query_chain(self, scope: DomNode, chain: Sequence[str]) -> List[DomNode]:
        """First selector in the chain with at least one match wins."""
        for selector in chain:
            nodes = self._query_all(scope, selector)
            if nodes:
                return nodes
        return []

    def _read(self, node: DomNode, spec: Scalar) -> Optional[str]:
        """Trimmed text (or attribute value) of one node, possibly empty."""
        if spec.attribute:
            raw = node.attr(spec.attribute)
            if spec.attribute == 'href':
                return resolve_href(raw, self.base_origin)
            return (raw or '').strip()
        return node.text(spec.separator).strip()

    def _values(self, nodes: Sequence[DomNode], spec: Scalar) -> List[str]:
        """Non-empty trimmed texts (or attribute values) of ``nodes``."""
        return [value for value in (self._read(node, spec) for node in nodes) if value]

    @staticmethod
    def _condense(values: List[str], spec: Scalar) -> FieldValue:
        """One value stays as-is, several are joined (URL lists stay lists)."""
        if not values:
            return None
        if len(values) == 1:
            return values[0]
        if spec.attribute:
            return values
        return collapse_whitespace(" ".join(values))
