"""
Product Formatter

Renders ProductRecords two ways:
  - render_product_block(): the text block the language model reads
  - format_product():       the clean dict returned to the chat UI
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Tuple

from models import Money, ProductRecord

CURRENCY_SYMBOLS = {"EUR": "€"}

MATERIAL_TAG_TERMS = ("wolle", "kaschmir", "baumwolle", "seide", "alpaka")

FALLBACK_DESCRIPTION = "Hochwertige Qualität aus unserem exklusiven Sortiment"

SOLD_OUT_NOTE = " ⚠️ Aktuell ausverkauft - auf Anfrage gerne wieder herstellbar!"


# ─────────────────────────────────────────────
# PRICES
# ─────────────────────────────────────────────

def format_price(money: Money) -> str:
    """349.0 EUR → '349.00 €'"""
    amount = money.amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    symbol = CURRENCY_SYMBOLS.get(money.currency_code, money.currency_code)
    return f"{amount} {symbol}".strip()


def format_price_range(price_min: Money, price_max: Money) -> str:
    """Single figure when both ends match, 'min - max' otherwise."""
    low = format_price(price_min)
    high = format_price(price_max)
    return low if low == high else f"{low} - {high}"


# ─────────────────────────────────────────────
# VARIANTS & AVAILABILITY
# ─────────────────────────────────────────────

def availability_note(product: ProductRecord) -> str:
    """
    Three mutually exclusive states:
      - every variant sold out  → SOLD_OUT_NOTE
      - some variants sold out  → note naming exactly those variant labels
      - nothing sold out        → ''
    """
    sold_out = product.sold_out_variants
    if not sold_out:
        return ""
    if not product.available_variants:
        return SOLD_OUT_NOTE
    labels = ", ".join(v.title for v in sold_out)
    noun = "Farben" if len(sold_out) > 1 else "Farbe"
    return f' ({noun} "{labels}" aktuell ausverkauft - auf Anfrage herstellbar)'


def variant_labels(product: ProductRecord) -> List[str]:
    """Real, purchasable variant labels; Shopify's placeholder title is skipped."""
    return [v.title for v in product.available_variants if not v.is_default]


def material_tags(product: ProductRecord) -> List[str]:
    return [
        tag for tag in product.tags
        if any(term in tag.lower() for term in MATERIAL_TAG_TERMS)
    ]


# ─────────────────────────────────────────────
# LLM CONTEXT BLOCK
# ─────────────────────────────────────────────

def product_url(storefront_domain: str, handle: str) -> str:
    return f"https://{storefront_domain}/products/{handle}"


def render_product_block(product: ProductRecord, storefront_domain: str) -> str:
    """One product as the model sees it."""
    description = clean_html(product.description) or FALLBACK_DESCRIPTION

    materials = material_tags(product)
    material_info = f" Material: {', '.join(materials)}." if materials else ""

    note = availability_note(product)
    if len(product.variants) > 1:
        variant_info = f" Verfügbar in {len(product.variants)} Varianten.{note}"
    else:
        variant_info = note

    variant_list = ""
    if len(product.variants) > 1:
        labels = variant_labels(product)
        if labels:
            variant_list = f" ECHTE VARIANTEN: [{'], ['.join(labels)}]"

    price = format_price_range(product.price_min, product.price_max)
    url = product_url(storefront_domain, product.handle)
    link = f'<a href="{url}" target="_blank" rel="noopener noreferrer">[Zum Produkt]</a>'

    return (
        f"**{product.title}**: {description}{material_info}{variant_info}{variant_list} "
        f"Preis: {price} {link}"
    )


def render_product_context(products: Tuple[ProductRecord, ...], storefront_domain: str) -> str:
    return "\n\n".join(render_product_block(p, storefront_domain) for p in products)


# ─────────────────────────────────────────────
# UI PAYLOAD
# ─────────────────────────────────────────────

def format_product(product: ProductRecord, storefront_domain: str) -> dict:
    """Convert a ProductRecord to the clean response format."""
    return {
        "id": product.id,
        "title": product.title,
        "handle": product.handle,
        "url": product_url(storefront_domain, product.handle),
        "product_type": product.product_type,
        "description": clean_html(product.description),
        "tags": list(product.tags),
        "price_min": str(product.price_min.amount),
        "price_max": str(product.price_max.amount),
        "currency": product.price_min.currency_code,
        "price_label": format_price_range(product.price_min, product.price_max),
        "available": bool(product.available_variants) or not product.variants,
        "variants": [
            {
                "id": v.id,
                "title": v.title,
                "price": str(v.price.amount),
                "available": v.available_for_sale,
            }
            for v in product.variants
        ],
        "image": product.image_urls[0] if product.image_urls else None,
    }


def clean_html(html: str) -> str:
    """Strip HTML tags from description."""
    if not html:
        return ""
    clean = re.sub(r'<[^>]+>', '', html)
    clean = re.sub(r'\s+', ' ', clean).strip()
    return clean
