"""
Application configuration module for the LPJ Studios Shop Chat API.
Contains environment variables, constants, and settings.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ═══════════════════════════════════════════
# SHOPIFY STOREFRONT
# ═══════════════════════════════════════════

SHOPIFY_STORE_DOMAIN = os.getenv("SHOPIFY_STORE_DOMAIN", "")
SHOPIFY_STOREFRONT_ACCESS_TOKEN = os.getenv("SHOPIFY_STOREFRONT_ACCESS_TOKEN", "")
SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2024-01")

# Domain used for customer-facing product links
STOREFRONT_DOMAIN = os.getenv("STOREFRONT_DOMAIN", SHOPIFY_STORE_DOMAIN or "lpj-studios.myshopify.com")

CATALOG_PAGE_SIZE = int(os.getenv("CATALOG_PAGE_SIZE", "50"))
CATALOG_VARIANTS_PER_PRODUCT = int(os.getenv("CATALOG_VARIANTS_PER_PRODUCT", "5"))
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))  # seconds

# ═══════════════════════════════════════════
# PRODUCT CACHE
# ═══════════════════════════════════════════

CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", str(30 * 60)))  # 30 minutes

# Maximum number of products returned alongside a chat reply
MAX_RESPONSE_PRODUCTS = 5

# ═══════════════════════════════════════════
# APP SETTINGS
# ═══════════════════════════════════════════

PORT = int(os.getenv("PORT", 5009))
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# ═══════════════════════════════════════════
# LLM CONFIGURATION
# ═══════════════════════════════════════════

# LLM Provider settings
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini")  # gemini, openai, anthropic
LLM_MODEL = os.getenv("LLM_MODEL", "gemini-2.0-flash")
LLM_API_KEY = os.getenv("LLM_API_KEY", "") or os.getenv("GEMINI_API_KEY", "")
LLM_API_BASE_URL = os.getenv("LLM_API_BASE_URL", "")

# LLM behavior settings
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "2048"))
LLM_TIMEOUT_SECONDS = int(os.getenv("LLM_TIMEOUT_SECONDS", "60"))
