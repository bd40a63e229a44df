"""
Tiered Retry Controller
=======================
Replays failed targets against successively looser schemas.

Per target the state machine is::

    Pending(tier 0) -> Extracted | Failed
    Failed          -> Pending(tier 1) -> Extracted | Failed -> Pending(tier 2) ...

Tiers are an ordered, fixed list. Each pass processes the *whole* current
failed set before the next tier starts; passes never interleave. A target
leaves the failed set as soon as one tier produces a record its success
predicate accepts. A target that exhausts every tier stays queued until a
later run succeeds or the queue is cleared.

Failures are isolated per target: any exception while navigating or
extracting turns into a failed-queue entry and the loop moves on.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .driver import NavigationSession
from .extractor import PageExtractor
from .models import MISSING_REQUIRED_FIELDS, CrawlTarget, ExtractedRecord, FailedTarget
from .monitor import PhaseMetrics, PhaseMonitor, TargetTiming
from .presets import (
    COMPACT_SCHEMA,
    CONTENT_CONTAINER_SCHEMA,
    CONTENT_CONTAINER_SELECTORS,
    LEGACY_SCHEMA,
    PAGE_BODY_SCHEMA,
    STRUCTURED_SCHEMA,
)
from .retry_queue import FailedTargetQueue
from .schema import Schema
from .store import RecordStore

logger = logging.getLogger(__name__)


def _present(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def has_title_and_pre_title(record: ExtractedRecord) -> bool:
    """Structured tiers succeed with a non-empty title AND pre-title."""
    return _present(record.get('title')) and _present(record.get('pre_title'))


def has_content(record: ExtractedRecord) -> bool:
    """Body-only tiers succeed with non-empty content."""
    return _present(record.get('content'))


@dataclass(frozen=True)
class Tier:
    """One rung of the ladder: a schema, its success predicate and a wait policy."""
    level: int
    schema: Schema
    is_success: Callable[[ExtractedRecord], bool]
    wait_until: str = "load"
    timeout_ms: int = 0
    ready_selectors: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return f"tier-{self.level} {self.schema.name}"


def default_tiers(config) -> List[Tier]:
    """The catalog ladder, strictest first."""
    return [
        Tier(0, STRUCTURED_SCHEMA, has_title_and_pre_title,
             wait_until="load", timeout_ms=config.primary_timeout_ms),
        Tier(1, LEGACY_SCHEMA, has_title_and_pre_title,
             wait_until="load", timeout_ms=config.retry_timeout_ms),
        Tier(2, COMPACT_SCHEMA, has_title_and_pre_title,
             wait_until="load", timeout_ms=config.retry_timeout_ms),
        Tier(3, CONTENT_CONTAINER_SCHEMA, has_content,
             wait_until="networkidle", timeout_ms=config.content_timeout_ms,
             ready_selectors=CONTENT_CONTAINER_SELECTORS),
        Tier(4, PAGE_BODY_SCHEMA, has_content,
             wait_until="networkidle", timeout_ms=config.content_timeout_ms),
    ]


class RetryLadder:
    """
    Runs the initial pass and the retry tiers over a durable failed queue.
    """

    def __init__(
        self,
        tiers: Sequence[Tier],
        queue: FailedTargetQueue,
        store: RecordStore,
        extractor: PageExtractor,
        session_factory: Callable[[], NavigationSession],
        delay_between_pages: float = 0.0,
    ):
        """
        Args:
            tiers: Ordered tiers; ``tiers[0]`` is the initial pass
            queue: Durable failed set
            store: Canonical store successful records are upserted into
            extractor: Extraction engine
            session_factory: Returns a fresh, unopened navigation session
            delay_between_pages: Pause between targets (seconds)
        """
        if not tiers:
            raise ValueError("RetryLadder needs at least one tier")
        self.tiers = list(tiers)
        self.queue = queue
        self.store = store
        self.extractor = extractor
        self.session_factory = session_factory
        self.delay_between_pages = delay_between_pages

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def run_initial(self, targets: Sequence[CrawlTarget]) -> PhaseMetrics:
        """Apply the first tier to a list of discovered targets."""
        return self.run_tier(self.tiers[0], targets)

    def run_ladder(self) -> List[PhaseMetrics]:
        """Replay the failed set through every retry tier, one tier at a time."""
        results = []
        for tier in self.tiers[1:]:
            pending = self.queue.targets()
            if not pending:
                logger.info(f"[LADDER] No failed targets left before {tier.name}")
                break
            logger.info(f"[LADDER] {tier.name}: retrying {len(pending)} failed targets")
            results.append(self.run_tier(tier, pending))
        remaining = len(self.queue)
        if remaining:
            logger.warning(f"[LADDER] {remaining} targets exhausted every tier")
        return results

    def run_tier(self, tier: Tier, targets: Sequence[CrawlTarget]) -> PhaseMetrics:
        """Process ``targets`` with one tier inside a single session."""
        monitor = PhaseMonitor(tier.name)
        monitor.start()
        total = len(targets)

        with self.session_factory() as session:
            for index, target in enumerate(targets, 1):
                logger.info(
                    f"[LADDER] Processing {index}/{total}: {target.url}"
                    f"{' (Retry Mode)' if tier.level > 0 else ''}"
                )
                monitor.record(self._process(session, tier, target))
                if self.delay_between_pages > 0 and index < total:
                    time.sleep(self.delay_between_pages)

        return monitor.finish()

    # ------------------------------------------------------------------
    # Per target
    # ------------------------------------------------------------------

    def _process(self, session: NavigationSession, tier: Tier, target: CrawlTarget) -> TargetTiming:
        timing = TargetTiming(url=target.url)
        started = time.monotonic()
        try:
            session.goto(target.url, wait_until=tier.wait_until, timeout_ms=tier.timeout_ms)
            if tier.ready_selectors:
                found = session.wait_for_any(tier.ready_selectors, tier.timeout_ms)
                if found is None:
                    logger.warning(f"[LADDER] No ready selector on {target.url}, extracting anyway")
            navigated = time.monotonic()
            timing.navigate_ms = (navigated - started) * 1000

            record = self.extractor.extract(
                session.document(),
                tier.schema,
                tier.level,
                url=target.url,
                link_text=target.display_name,
            )
            timing.extract_ms = (time.monotonic() - navigated) * 1000
        except Exception as e:
            logger.error(f"[LADDER] Error processing {target.url}: {e}")
            self._mark_failed(target, str(e) or type(e).__name__)
            timing.status = "error"
            return timing

        if not tier.is_success(record):
            logger.warning(
                f"[LADDER] Incomplete data for {target.display_name or target.url}. Marking as failed."
            )
            self._mark_failed(target, MISSING_REQUIRED_FIELDS)
            timing.status = "missing"
            return timing

        self.store.upsert(record)
        self.queue.remove(target.url)
        logger.info(f"[LADDER] Saved {record.get('title') or target.display_name or target.url}")
        return timing

    def _mark_failed(self, target: CrawlTarget, reason: str) -> Optional[FailedTarget]:
        if self.store.contains(target.url):
            logger.info(f"[LADDER] {target.url} already captured, not enqueued")
            return None
        entry = FailedTarget.from_target(target, reason)
        self.queue.add(entry)
        return entry
