"""
Pytest configuration and fixtures for the shop chat tests.

Provides deterministic stand-ins for the catalog source, the language model
and the clock, plus a small catalog modelled on the LPJ Studios shop.
"""

import threading
from decimal import Decimal
from typing import Iterable, Optional, Tuple

import pytest

from models import Money, ProductRecord, ProductVariant


class FakeCatalogFetcher:
    """
    Catalog fetcher double.

    ``gate``: when set to an Event, fetch_all() blocks until it is set, so
    tests can hold a refresh in flight.
    """

    def __init__(self, products: Iterable[ProductRecord] = (), error: Optional[BaseException] = None,
                 gate: Optional[threading.Event] = None):
        self.products = tuple(products)
        self.error = error
        self.gate = gate
        self.started = threading.Event()
        self.calls = 0
        self._lock = threading.Lock()

    def fetch_all(self) -> Tuple[ProductRecord, ...]:
        with self._lock:
            self.calls += 1
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.products


class FakeLLMClient:
    """Records prompts and returns canned content or raises ``error``."""

    def __init__(self, content: str = "<div>Antwort</div>", error: Optional[BaseException] = None):
        self.content = content
        self.error = error
        self.prompts = []

    def generate(self, prompt: str) -> dict:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return {
            "content": self.content,
            "input_tokens": 100,
            "output_tokens": 20,
            "total_tokens": 120,
            "model": "fake-model",
            "latency_ms": 1,
        }


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_product(
    handle: str,
    title: str,
    variants: Iterable[Tuple[str, bool]] = (("Default Title", True),),
    price_min: str = "349.00",
    price_max: Optional[str] = None,
    currency: str = "EUR",
    tags: Iterable[str] = (),
    description: str = "Handgefertigt in Aschau im Chiemgau.",
    product_type: Optional[str] = "Decken",
) -> ProductRecord:
    price = Money(Decimal(price_min), currency)
    return ProductRecord(
        id=f"gid://shopify/Product/{handle}",
        title=title,
        handle=handle,
        description=description,
        description_html=f"<p>{description}</p>",
        product_type=product_type,
        tags=tuple(tags),
        price_min=price,
        price_max=Money(Decimal(price_max or price_min), currency),
        variants=tuple(
            ProductVariant(
                id=f"gid://shopify/ProductVariant/{handle}-{i}",
                title=label,
                price=price,
                available_for_sale=available,
            )
            for i, (label, available) in enumerate(variants)
        ),
        image_urls=(f"https://cdn.shopify.com/{handle}.jpg",),
    )


@pytest.fixture
def catalog() -> Tuple[ProductRecord, ...]:
    """Seven products; allow-listed sheep wool handles are not in allow-list order."""
    return (
        make_product(
            "lpj-mountainplaid", "Mountain Plaid",
            variants=(("grau", True), ("beige", False)),
            tags=("Schafwolle",),
        ),
        make_product("lpj-cloud-plaid", "Cloud Plaid", price_min="489.00", tags=("Kaschmir",)),
        make_product("lpj-sheep-plaid", "Sheep Plaid", price_min="289.00"),
        make_product(
            "lpj-mountain-rug", "Mountain Rug",
            variants=(("ecru", True), ("camel", True)),
            price_min="890.00", price_max="1490.00", product_type="Teppiche",
        ),
        make_product("lpj-lodge-plaid", "Lodge Plaid", price_min="329.00"),
        make_product("waermflasche-wolle", "Wärmflasche Wolle", price_min="59.00", product_type="Accessoires"),
        make_product("lpj-alpen-plaid", "Alpen Plaid", price_min="419.00", tags=("Wolle", "Seide", "Kaschmir")),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher(catalog) -> FakeCatalogFetcher:
    return FakeCatalogFetcher(catalog)


@pytest.fixture
def llm() -> FakeLLMClient:
    return FakeLLMClient()
