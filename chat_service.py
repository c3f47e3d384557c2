"""
Chat Service — answers one customer message.

Steps:
  1. Validate and classify the message
  2. Load the catalog snapshot from the cache
  3. Compose the prompt for that category
  4. Ask the language model
Only this module (and the HTTP route on top of it) decides what the
customer sees when something goes wrong.
"""

import time
from typing import Optional

from app_config import MAX_RESPONSE_PRODUCTS, STOREFRONT_DOMAIN
from chat_logger import get_logger, sanitize_log_string, shorten
from classifier import classify
from errors import CatalogUnavailable, InvalidRequest, ModelFailure, ModelOverloaded
from llm_client import sanitize_for_llm
from models import ChatReply
from product_cache import ProductCache
from product_formatter import format_product
import response_composer

logger = get_logger("lpj_chat")

CATALOG_UNAVAILABLE_MESSAGE = (
    "Unser Produktkatalog ist gerade nicht erreichbar. "
    "Bitte versuche es in ein paar Minuten erneut."
)
MODEL_OVERLOADED_MESSAGE = (
    "Unser KI-Assistent ist momentan überlastet. Bitte versuche es in wenigen "
    "Sekunden erneut oder stelle eine spezifischere Frage."
)
MODEL_FAILURE_MESSAGE = (
    "Entschuldigung, es gab ein Problem bei der Beantwortung deiner Frage. "
    "Versuche es später erneut."
)


class ChatService:
    """Sequences cache, classifier, composer and language model per request."""

    def __init__(
        self,
        cache: ProductCache,
        llm_client,
        storefront_domain: str = STOREFRONT_DOMAIN,
        max_products: int = MAX_RESPONSE_PRODUCTS,
    ):
        self.cache = cache
        self.llm_client = llm_client
        self.storefront_domain = storefront_domain
        self.max_products = max_products

    def handle(self, message: Optional[str]) -> ChatReply:
        """
        Answer one message.

        Raises:
            InvalidRequest: message missing or blank
        """
        if not isinstance(message, str) or not message.strip():
            raise InvalidRequest("Nachricht ist erforderlich")
        message = message.strip()

        start_time = time.time()
        logger.info(f'Chat request | message="{sanitize_log_string(shorten(message))}"')

        # ─── Step 1: Classify ───
        tag = classify(message)
        logger.info(f"Step 1: Classified category={tag.value}")

        # ─── Step 2: Catalog snapshot ───
        cache_start = time.time()
        try:
            products = self.cache.get()
        except CatalogUnavailable as e:
            logger.error(f"Step 2: Catalog unavailable | error={e.__cause__ or e}")
            return ChatReply(
                response=CATALOG_UNAVAILABLE_MESSAGE,
                category=tag,
                success=False,
                error="catalog_unavailable",
                metadata={"response_time_ms": _ms_since(start_time)},
            )
        cache_ms = _ms_since(cache_start)
        logger.info(f"Step 2: Loaded {len(products)} products | cache_time_ms={cache_ms}")

        # ─── Step 3: Compose prompt ───
        payload = response_composer.build(
            tag, products, sanitize_for_llm(message), self.storefront_domain
        )
        logger.info(f"Step 3: Prompt composed | products_in_prompt={len(payload.products)}")

        metadata = {
            "products_total": len(products),
            "products_in_prompt": len(payload.products),
            "cache_time_ms": cache_ms,
        }
        ui_products = [
            format_product(p, self.storefront_domain) for p in products[: self.max_products]
        ]

        # ─── Step 4: Language model ───
        llm_start = time.time()
        try:
            result = self.llm_client.generate(payload.text)
        except ModelOverloaded:
            metadata.update(llm_time_ms=_ms_since(llm_start), response_time_ms=_ms_since(start_time))
            logger.warning("Step 4: Model overloaded, sending retry-later message")
            return ChatReply(
                response=MODEL_OVERLOADED_MESSAGE,
                products=ui_products,
                category=tag,
                error="model_overloaded",
                metadata=metadata,
            )
        except ModelFailure as e:
            metadata.update(llm_time_ms=_ms_since(llm_start), response_time_ms=_ms_since(start_time))
            logger.error(f"Step 4: Model failure | error={sanitize_log_string(str(e))}")
            return ChatReply(
                response=MODEL_FAILURE_MESSAGE,
                products=ui_products,
                category=tag,
                success=False,
                error="model_failure",
                metadata=metadata,
            )

        metadata.update(
            llm_time_ms=_ms_since(llm_start),
            response_time_ms=_ms_since(start_time),
            model=result.get("model"),
            total_tokens=result.get("total_tokens"),
        )
        logger.info(
            f"Step 5: Reply generated | category={tag.value} | "
            f"llm_time_ms={metadata['llm_time_ms']} | response_time_ms={metadata['response_time_ms']}"
        )

        return ChatReply(
            response=result["content"],
            products=ui_products,
            category=tag,
            metadata=metadata,
        )


def _ms_since(start: float) -> int:
    return round((time.time() - start) * 1000)
