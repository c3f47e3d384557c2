"""
Shopify Storefront client — fetches the product catalog in one GraphQL query.

The cache calls ``fetch_all()``; every failure mode is reported as
``UpstreamFetchFailure`` so the cache can decide between stale data and
``CatalogUnavailable``.
"""

import time
from typing import List, Optional, Tuple

import requests

from app_config import (
    SHOPIFY_STORE_DOMAIN,
    SHOPIFY_STOREFRONT_ACCESS_TOKEN,
    SHOPIFY_API_VERSION,
    CATALOG_PAGE_SIZE,
    CATALOG_VARIANTS_PER_PRODUCT,
    REQUEST_TIMEOUT,
)
from chat_logger import get_logger, mask_secret
from errors import UpstreamFetchFailure
from models import Money, ProductRecord, ProductVariant

logger = get_logger("lpj_chat")

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

PRODUCTS_QUERY = """
query getProducts($first: Int!, $variants: Int!) {
  products(first: $first) {
    edges {
      node {
        id
        title
        description
        descriptionHtml
        handle
        productType
        tags
        priceRange {
          minVariantPrice { amount currencyCode }
          maxVariantPrice { amount currencyCode }
        }
        variants(first: $variants) {
          edges {
            node {
              id
              title
              price { amount currencyCode }
              availableForSale
            }
          }
        }
        images(first: 1) {
          edges {
            node { url altText }
          }
        }
      }
    }
  }
}
"""


class ShopifyCatalogClient:
    """Queries the Storefront API with the storefront access token."""

    def __init__(
        self,
        store_domain: str = SHOPIFY_STORE_DOMAIN,
        access_token: str = SHOPIFY_STOREFRONT_ACCESS_TOKEN,
        api_version: str = SHOPIFY_API_VERSION,
        page_size: int = CATALOG_PAGE_SIZE,
        variants_per_product: int = CATALOG_VARIANTS_PER_PRODUCT,
        timeout: int = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.store_domain = store_domain
        self.access_token = access_token
        self.api_version = api_version
        self.page_size = page_size
        self.variants_per_product = variants_per_product
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update(JSON_HEADERS)

    @property
    def endpoint(self) -> str:
        return f"https://{self.store_domain}/api/{self.api_version}/graphql.json"

    def fetch_all(self) -> Tuple[ProductRecord, ...]:
        """Fetch up to ``page_size`` products and normalize them."""
        if not self.store_domain or not self.access_token:
            logger.warning("Catalog: Shopify credentials not configured")
            raise UpstreamFetchFailure("Shopify credentials not configured")

        logger.info(
            f"Catalog request: POST {self.endpoint} | first={self.page_size} | "
            f"token={mask_secret(self.access_token)}"
        )
        start_time = time.time()

        try:
            response = self.session.post(
                self.endpoint,
                headers={"X-Shopify-Storefront-Access-Token": self.access_token},
                json={
                    "query": PRODUCTS_QUERY,
                    "variables": {
                        "first": self.page_size,
                        "variants": self.variants_per_product,
                    },
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            body = e.response.text[:300] if e.response is not None else "N/A"
            logger.error(f"Catalog: HTTP {status} from Storefront API | body={body}")
            raise UpstreamFetchFailure(f"Storefront API returned HTTP {status}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Catalog: request failed | error={e}")
            raise UpstreamFetchFailure(f"Storefront API request failed: {e}") from e
        except ValueError as e:
            logger.error("Catalog: response body is not valid JSON")
            raise UpstreamFetchFailure("Storefront API returned invalid JSON") from e

        if not isinstance(data, dict):
            raise UpstreamFetchFailure("Storefront API returned an unexpected payload")

        if data.get("errors"):
            messages = "; ".join(err.get("message", "?") for err in data["errors"])
            logger.error(f"Catalog: GraphQL errors | errors={messages}")
            raise UpstreamFetchFailure(f"Storefront API errors: {messages}")

        edges = ((data.get("data") or {}).get("products") or {}).get("edges")
        if edges is None:
            raise UpstreamFetchFailure("Storefront API response has no products")

        try:
            products = tuple(parse_product(edge.get("node") or {}) for edge in edges)
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"Catalog: malformed product data | error={e}")
            raise UpstreamFetchFailure(f"Malformed product data: {e}") from e

        elapsed_ms = round((time.time() - start_time) * 1000)
        logger.info(f"Catalog response: {len(products)} products | response_time_ms={elapsed_ms}")
        for i, product in enumerate(products, start=1):
            logger.debug(f"Catalog: {i}. \"{product.title}\" (handle={product.handle}, variants={len(product.variants)})")

        return products


def _edge_nodes(connection: Optional[dict]) -> List[dict]:
    if not connection:
        return []
    return [edge.get("node") or {} for edge in connection.get("edges", [])]


def parse_product(node: dict) -> ProductRecord:
    """Convert one Storefront product node into a ProductRecord."""
    price_range = node.get("priceRange") or {}

    variants = tuple(
        ProductVariant(
            id=v.get("id", ""),
            title=v.get("title", ""),
            price=Money.from_raw(v.get("price")),
            available_for_sale=bool(v.get("availableForSale", False)),
        )
        for v in _edge_nodes(node.get("variants"))
    )

    image_urls = tuple(
        img["url"] for img in _edge_nodes(node.get("images")) if img.get("url")
    )

    return ProductRecord(
        id=node.get("id", ""),
        title=node.get("title", ""),
        handle=node.get("handle", ""),
        description=node.get("description") or "",
        description_html=node.get("descriptionHtml") or "",
        product_type=node.get("productType") or None,
        tags=tuple(node.get("tags") or ()),
        price_min=Money.from_raw(price_range.get("minVariantPrice")),
        price_max=Money.from_raw(price_range.get("maxVariantPrice")),
        variants=variants,
        image_urls=image_urls,
    )
