"""
Tests for ChatService: request sequencing and the customer-facing
fallbacks for catalog and model failures.
"""

import pytest

from chat_service import (
    CATALOG_UNAVAILABLE_MESSAGE,
    MODEL_FAILURE_MESSAGE,
    MODEL_OVERLOADED_MESSAGE,
    ChatService,
)
from conftest import FakeCatalogFetcher, FakeLLMClient
from errors import InvalidRequest, ModelFailure, ModelOverloaded, UpstreamFetchFailure
from models import CategoryTag
from product_cache import ProductCache

DOMAIN = "lpj-studios.com"


@pytest.fixture
def service(fetcher, llm, clock):
    return ChatService(ProductCache(fetcher, clock=clock), llm, storefront_domain=DOMAIN, max_products=5)


class TestValidation:
    @pytest.mark.parametrize("message", [None, "", "   ", 42])
    def test_rejects_missing_or_blank_message(self, service, llm, message):
        with pytest.raises(InvalidRequest):
            service.handle(message)
        assert llm.prompts == []


class TestHappyPath:
    def test_reply(self, service, llm):
        reply = service.handle("Welche Farben hat die Mountain Plaid?")

        assert reply.success is True
        assert reply.error is None
        assert reply.response == llm.content
        assert reply.category == CategoryTag.COLORS
        assert reply.metadata["products_total"] == 7
        assert reply.metadata["products_in_prompt"] == 7
        assert reply.metadata["model"] == "fake-model"

    def test_ui_products_capped(self, service):
        reply = service.handle("Hallo")
        assert len(reply.products) == 5
        assert reply.products[0]["handle"] == "lpj-mountainplaid"
        assert reply.products[0]["url"] == "https://lpj-studios.com/products/lpj-mountainplaid"

    def test_prompt_carries_message(self, service, llm):
        service.handle("Welche Größen gibt es für das Cloud Plaid?")
        assert "Kundenfrage: Welche Größen gibt es für das Cloud Plaid?" in llm.prompts[0]

    def test_sheep_wool_prompt_is_filtered(self, service, llm):
        reply = service.handle("Ich suche eine Decke aus reiner Schafwolle")
        prompt = llm.prompts[0]

        assert reply.category == CategoryTag.SHEEP_WOOL_BLANKETS
        assert reply.metadata["products_in_prompt"] == 3
        assert "**Mountain Plaid**" in prompt
        assert "**Cloud Plaid**" not in prompt
        assert "**Mountain Rug**" not in prompt

    def test_price_range_reaches_prompt_intact(self, service, llm):
        reply = service.handle("Welche Plaids kosten 300 - 500 €?")
        assert reply.category == CategoryTag.PRICE
        assert "Kundenfrage: Welche Plaids kosten 300 - 500 €?" in llm.prompts[0]

    def test_pii_removed_from_prompt(self, service, llm):
        service.handle("Habt ihr Teppiche? Antwort bitte an anna@example.de")
        assert "anna@example.de" not in llm.prompts[0]
        assert "[EMAIL]" in llm.prompts[0]

    def test_cache_reused_across_requests(self, service, fetcher):
        service.handle("Hallo")
        service.handle("Habt ihr Teppiche?")
        assert fetcher.calls == 1


class TestFallbacks:
    def test_catalog_unavailable(self, llm, clock):
        cache = ProductCache(FakeCatalogFetcher(error=UpstreamFetchFailure("down")), clock=clock)
        reply = ChatService(cache, llm, storefront_domain=DOMAIN).handle("Habt ihr Teppiche?")

        assert reply.success is False
        assert reply.error == "catalog_unavailable"
        assert reply.response == CATALOG_UNAVAILABLE_MESSAGE
        assert reply.category == CategoryTag.RUGS
        assert llm.prompts == []

    def test_model_overloaded(self, fetcher, clock):
        llm = FakeLLMClient(error=ModelOverloaded("503 UNAVAILABLE"))
        reply = ChatService(ProductCache(fetcher, clock=clock), llm, storefront_domain=DOMAIN).handle("Hallo")

        assert reply.success is True
        assert reply.error == "model_overloaded"
        assert reply.response == MODEL_OVERLOADED_MESSAGE
        assert len(reply.products) == 5

    def test_model_failure(self, fetcher, clock):
        llm = FakeLLMClient(error=ModelFailure("API key not valid"))
        reply = ChatService(ProductCache(fetcher, clock=clock), llm, storefront_domain=DOMAIN).handle("Hallo")

        assert reply.success is False
        assert reply.error == "model_failure"
        assert reply.response == MODEL_FAILURE_MESSAGE
