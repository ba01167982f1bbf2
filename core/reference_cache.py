"""
Process-wide, read-mostly cache of the four reference corpora.

The cache is an explicit object built around a ``ReferenceSource`` (a mapping of
corpus name to a zero-argument fetch callable), so the database-backed source
used in production and the static fixtures used in tests are interchangeable.

Each corpus is loaded lazily on first access and held until ``invalidate()``
clears it (or until the optional TTL expires). Concurrent callers that hit a
cold corpus share one in-flight ``Future``; a failed or timed-out fetch degrades
to the last known-good snapshot, or an empty tuple, and never raises.
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_for_futures
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from core.app_logging import get_logger, log_event
from core.reference_records import (
    AllergenDefinition,
    GRASIngredientRecord,
    NDINotificationRecord,
    OldDietaryIngredientRecord,
)

logger = get_logger(__name__)


class Corpus(str, Enum):
    ALLERGENS = "allergens"
    GRAS = "gras"
    NDI = "ndi"
    ODI = "odi"


RECORD_TYPES = {
    Corpus.ALLERGENS: AllergenDefinition,
    Corpus.GRAS: GRASIngredientRecord,
    Corpus.NDI: NDINotificationRecord,
    Corpus.ODI: OldDietaryIngredientRecord,
}

Fetcher = Callable[[], Iterable[Any]]
ReferenceSource = Mapping[Corpus, Fetcher]


def parse_corpus(name: Any) -> Corpus:
    """Accept a ``Corpus`` or its string value; anything else is a ValueError."""
    if isinstance(name, Corpus):
        return name
    try:
        return Corpus(str(name).strip().lower())
    except ValueError:
        valid = ", ".join(c.value for c in Corpus)
        raise ValueError(f"Unknown reference corpus: {name!r} (expected one of: {valid})")


@dataclass(frozen=True)
class ReferenceSnapshot:
    """All four corpora as seen by one matching call."""
    allergens: Tuple[AllergenDefinition, ...] = ()
    gras: Tuple[GRASIngredientRecord, ...] = ()
    ndi: Tuple[NDINotificationRecord, ...] = ()
    odi: Tuple[OldDietaryIngredientRecord, ...] = ()


@dataclass
class _CorpusEntry:
    data: Optional[tuple] = None
    loaded_at: Optional[float] = None
    last_good: Optional[tuple] = None
    in_flight: Optional[Future] = None
    # Fetch still running after an invalidation; the next load waits for it
    superseded: Optional[Future] = None
    generation: int = 0
    last_error: Optional[str] = None


class StaticReferenceSource(dict):
    """In-memory ``ReferenceSource`` built from records or plain dicts."""

    def __init__(
        self,
        allergens: Sequence[Any] = (),
        gras: Sequence[Any] = (),
        ndi: Sequence[Any] = (),
        odi: Sequence[Any] = (),
    ):
        super().__init__()
        for corpus, items in (
            (Corpus.ALLERGENS, allergens),
            (Corpus.GRAS, gras),
            (Corpus.NDI, ndi),
            (Corpus.ODI, odi),
        ):
            record_type = RECORD_TYPES[corpus]
            records = tuple(
                item if isinstance(item, record_type) else record_type.model_validate(item)
                for item in items
            )
            self[corpus] = self._fetcher(records)

    @staticmethod
    def _fetcher(records: tuple) -> Fetcher:
        return lambda: records


class ReferenceDataCache:
    def __init__(
        self,
        source: ReferenceSource,
        ttl_seconds: Optional[float] = None,
        fetch_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        max_workers: int = 4,
    ):
        missing = [c.value for c in Corpus if c not in source]
        if missing:
            raise ValueError(f"Reference source is missing corpora: {', '.join(missing)}")
        self._source = dict(source)
        self._ttl = ttl_seconds if ttl_seconds and ttl_seconds > 0 else None
        self._fetch_timeout = fetch_timeout
        self._clock = clock
        self._max_workers = max_workers
        self._lock = threading.Lock()
        self._entries: Dict[Corpus, _CorpusEntry] = {c: _CorpusEntry() for c in Corpus}
        self._executor: Optional[ThreadPoolExecutor] = None

    # ------------------------------------------------------------------ access

    def get_cached_allergens(self) -> Tuple[AllergenDefinition, ...]:
        return self.get(Corpus.ALLERGENS)

    def get_cached_gras_ingredients(self) -> Tuple[GRASIngredientRecord, ...]:
        return self.get(Corpus.GRAS)

    def get_cached_ndi_notifications(self) -> Tuple[NDINotificationRecord, ...]:
        return self.get(Corpus.NDI)

    def get_cached_odi_ingredients(self) -> Tuple[OldDietaryIngredientRecord, ...]:
        return self.get(Corpus.ODI)

    def snapshot(self) -> ReferenceSnapshot:
        return ReferenceSnapshot(
            allergens=self.get(Corpus.ALLERGENS),
            gras=self.get(Corpus.GRAS),
            ndi=self.get(Corpus.NDI),
            odi=self.get(Corpus.ODI),
        )

    def get(self, corpus: Any) -> tuple:
        corpus = parse_corpus(corpus)
        with self._lock:
            entry = self._entries[corpus]
            if entry.data is not None and not self._expired(entry):
                log_event(logger, f"{corpus.value} cache hit", level=logging.DEBUG, count=len(entry.data))
                return entry.data
            future = entry.in_flight
            if future is None:
                log_event(logger, f"{corpus.value} cache miss - fetching from reference source")
                previous, entry.superseded = entry.superseded, None
                future = self._pool().submit(self._load, corpus, entry.generation, previous)
                entry.in_flight = future

        try:
            return future.result(timeout=self._fetch_timeout)
        except FutureTimeoutError:
            reason = f"fetch timed out after {self._fetch_timeout}s"
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
        return self._fallback(corpus, reason)

    # ------------------------------------------------------------- lifecycle

    def invalidate(self, *corpora: Any) -> Tuple[Corpus, ...]:
        """Clear the named corpora (all when none given); next access re-fetches."""
        targets = tuple(parse_corpus(c) for c in corpora) or tuple(Corpus)
        with self._lock:
            for corpus in targets:
                entry = self._entries[corpus]
                entry.data = None
                entry.loaded_at = None
                if entry.in_flight is not None and not entry.in_flight.done():
                    entry.superseded = entry.in_flight
                entry.in_flight = None
                entry.generation += 1
        log_event(logger, "Reference caches invalidated", corpora=",".join(c.value for c in targets))
        return targets

    def stats(self) -> Dict[str, Optional[Dict[str, Any]]]:
        now = self._clock()
        out: Dict[str, Optional[Dict[str, Any]]] = {}
        with self._lock:
            for corpus, entry in self._entries.items():
                if entry.last_good is None and entry.in_flight is None and entry.last_error is None:
                    out[corpus.value] = None
                    continue
                age = now - entry.loaded_at if entry.loaded_at is not None else None
                out[corpus.value] = {
                    "count": len(entry.data) if entry.data is not None else 0,
                    "age_seconds": age,
                    "expires_in_seconds": (self._ttl - age) if (self._ttl and age is not None) else None,
                    "is_valid": entry.data is not None and not self._expired(entry, now),
                    "loading": entry.in_flight is not None,
                    "last_error": entry.last_error,
                }
        return out

    def close(self, wait: bool = False):
        """Stop the fetch pool. Queued fetches are cancelled; ``wait`` joins running ones."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)

    # --------------------------------------------------------------- helpers

    def _pool(self) -> ThreadPoolExecutor:
        # Caller holds self._lock
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="reference-fetch"
            )
        return self._executor

    def _expired(self, entry: _CorpusEntry, now: Optional[float] = None) -> bool:
        if self._ttl is None or entry.loaded_at is None:
            return False
        now = self._clock() if now is None else now
        return now - entry.loaded_at >= self._ttl

    def _load(self, corpus: Corpus, generation: int, previous: Optional[Future] = None) -> tuple:
        if previous is not None:
            # At most one fetch per corpus hits the source at a time
            wait_for_futures([previous])
        record_type = RECORD_TYPES[corpus]
        try:
            raw = self._source[corpus]()
            records = tuple(
                item if isinstance(item, record_type) else record_type.model_validate(item)
                for item in (raw or ())
            )
        except Exception as e:
            log_event(logger, f"Failed to fetch {corpus.value} reference data", level=logging.ERROR,
                      exc_info=True, error=e)
            with self._lock:
                entry = self._entries[corpus]
                entry.last_error = f"{type(e).__name__}: {e}"
                if entry.generation == generation:
                    entry.in_flight = None
            raise

        with self._lock:
            entry = self._entries[corpus]
            entry.last_good = records
            entry.last_error = None
            if entry.generation == generation:
                entry.data = records
                entry.loaded_at = self._clock()
                entry.in_flight = None
        log_event(logger, f"{corpus.value} cache refreshed", count=len(records))
        return records

    def _fallback(self, corpus: Corpus, reason: str) -> tuple:
        with self._lock:
            stale = self._entries[corpus].last_good
        if stale is not None:
            log_event(logger, f"Serving stale {corpus.value} reference data", level=logging.WARNING,
                      reason=reason, count=len(stale))
            return stale
        log_event(logger, f"No {corpus.value} reference data available, matching against empty corpus",
                  level=logging.WARNING, reason=reason)
        return ()
