"""
Product Cache — holds the one catalog snapshot the chat answers from.

Refresh policy:
  - fresh snapshot (younger than the TTL)       → served as-is
  - expired/empty and nobody refreshing         → this caller fetches
  - someone refreshing and a snapshot exists    → stale snapshot served at once
  - someone refreshing and no snapshot yet      → wait for that refresh

At most one fetch runs at a time. The snapshot is a tuple that is only ever
replaced, so readers never see a half-updated catalog.
"""

import threading
import time
from typing import Callable, Dict, Optional, Tuple, Any

from app_config import CACHE_TTL_SECONDS
from chat_logger import get_logger
from errors import CatalogUnavailable
from models import ProductRecord

logger = get_logger("lpj_chat")

Snapshot = Tuple[ProductRecord, ...]


class _Refresh:
    """One in-flight fetch. ``done`` fires on success and on failure."""

    def __init__(self):
        self.done = threading.Event()
        self.products: Optional[Snapshot] = None
        self.error: Optional[BaseException] = None


class ProductCache:
    """Single-flight, stale-on-error cache over a catalog fetcher."""

    def __init__(
        self,
        fetcher,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetcher = fetcher
        self._ttl = ttl_seconds
        self._clock = clock

        self._lock = threading.Lock()
        self._products: Snapshot = ()
        self._last_updated: Optional[float] = None   # clock() of last successful fetch
        self._refresh: Optional[_Refresh] = None     # set while a fetch is in flight
        self._warmup_thread: Optional[threading.Thread] = None

    # ─────────────────────────────────────────────
    # READ PATH
    # ─────────────────────────────────────────────

    def get(self) -> Snapshot:
        """
        Return the freshest snapshot available without waiting on someone
        else's refresh once any data exists.

        Raises:
            CatalogUnavailable: no data has ever been fetched and the
                refresh that was supposed to provide it failed.
        """
        with self._lock:
            if self._products and not self._is_expired():
                logger.debug(
                    f"Cache HIT | age_s={self._age_seconds():.0f} | products={len(self._products)}"
                )
                return self._products

            if self._refresh is None:
                refresh = self._refresh = _Refresh()
                owner = True
            elif self._products:
                logger.info(
                    f"Cache STALE | refresh in progress, serving {len(self._products)} existing products"
                )
                return self._products
            else:
                refresh = self._refresh
                owner = False

        if owner:
            return self._run_refresh(refresh)

        logger.info("Cache WAIT | waiting for first catalog load")
        refresh.done.wait()
        if refresh.error is not None:
            raise CatalogUnavailable("No product data available") from refresh.error
        return refresh.products

    # ─────────────────────────────────────────────
    # REFRESH
    # ─────────────────────────────────────────────

    def _run_refresh(self, refresh: _Refresh) -> Snapshot:
        age = self._age_seconds()
        logger.info(
            "Cache MISS | loading products from catalog"
            + (f" | previous snapshot age_s={age:.0f}" if age is not None else "")
        )
        start_time = time.time()
        stale: Snapshot = ()

        try:
            products = tuple(self._fetcher.fetch_all())
        except Exception as e:
            refresh.error = e
            with self._lock:
                stale = self._products
            logger.error(f"Cache UPDATE FAILED | error={e}")
        else:
            refresh.products = products
            with self._lock:
                self._products = products
                self._last_updated = self._clock()
            elapsed_ms = round((time.time() - start_time) * 1000)
            logger.info(f"Cache UPDATED | products={len(products)} | load_time_ms={elapsed_ms}")
        finally:
            with self._lock:
                self._refresh = None
            refresh.done.set()

        if refresh.error is None:
            return refresh.products
        if stale:
            logger.warning(f"Cache FALLBACK | serving {len(stale)} stale products")
            return stale
        raise CatalogUnavailable("No product data available") from refresh.error

    def warm_up(self) -> threading.Thread:
        """Start the first load in the background; requests may join it."""
        def _warm():
            start_time = time.time()
            logger.info("Cache WARM-UP | loading products at startup")
            try:
                products = self.get()
            except CatalogUnavailable as e:
                elapsed_ms = round((time.time() - start_time) * 1000)
                logger.error(f"Cache WARM-UP FAILED after {elapsed_ms}ms | error={e.__cause__ or e}")
                return
            elapsed_ms = round((time.time() - start_time) * 1000)
            logger.info(f"Cache READY | products={len(products)} | load_time_ms={elapsed_ms}")

        self._warmup_thread = threading.Thread(target=_warm, name="catalog-warm-up", daemon=True)
        self._warmup_thread.start()
        return self._warmup_thread

    # ─────────────────────────────────────────────
    # INTROSPECTION
    # ─────────────────────────────────────────────

    @property
    def is_refreshing(self) -> bool:
        with self._lock:
            return self._refresh is not None

    def status(self) -> Dict[str, Any]:
        with self._lock:
            age = self._age_seconds()
            return {
                "products_loaded": len(self._products),
                "age_seconds": round(age) if age is not None else None,
                "ttl_seconds": self._ttl,
                "expired": self._is_expired(),
                "refreshing": self._refresh is not None,
            }

    def _age_seconds(self) -> Optional[float]:
        if self._last_updated is None:
            return None
        return self._clock() - self._last_updated

    def _is_expired(self) -> bool:
        age = self._age_seconds()
        return age is None or age > self._ttl
