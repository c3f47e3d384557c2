"""
LPJ Studios — Shop Chat API Backend
Runs on port 5009 with /chat endpoint.

Usage:
    python server.py

Endpoints:
    POST http://localhost:5009/chat     Body: {"message": "..."}
    GET  http://localhost:5009/health
"""

from typing import Optional

from flask import Flask
from flask_cors import CORS

from app_config import PORT, DEBUG, SHOPIFY_STORE_DOMAIN, LLM_PROVIDER, LLM_MODEL
from catalog_client import ShopifyCatalogClient
from chat_logger import get_logger
from chat_service import ChatService
from llm_client import LLMClient
from product_cache import ProductCache
from routes import chat_bp

logger = get_logger("lpj_chat")


def build_chat_service() -> ChatService:
    """Wire the production collaborators together."""
    cache = ProductCache(ShopifyCatalogClient())
    return ChatService(cache=cache, llm_client=LLMClient())


def create_app(chat_service: Optional[ChatService] = None) -> Flask:
    app = Flask(__name__)
    CORS(app)
    app.config["CHAT_SERVICE"] = chat_service or build_chat_service()
    app.register_blueprint(chat_bp)
    return app


if __name__ == "__main__":
    print("=" * 60)
    print("  LPJ Studios — Shop Chat API Server")
    print("=" * 60)
    print()

    service = build_chat_service()
    # Load the catalog in the background; the first request joins this load
    service.cache.warm_up()

    app = create_app(service)

    logger.info(f"Shop: {SHOPIFY_STORE_DOMAIN or 'NOT SET'} | LLM: {LLM_PROVIDER}/{LLM_MODEL}")
    print()
    print(f"🚀 Starting server on http://localhost:{PORT}")
    print(f"   POST http://localhost:{PORT}/chat")
    print(f"   GET  http://localhost:{PORT}/health")
    print()

    app.run(
        host="0.0.0.0",
        port=PORT,
        debug=DEBUG,
        threaded=True,
        use_reloader=False,
    )
