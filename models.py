"""
Data models for the LPJ Studios shop chat.
"""

from enum import Enum
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple, List, Dict, Any


DEFAULT_VARIANT_TITLE = "Default Title"


class CategoryTag(Enum):
    # Color questions
    COLORS                 = "colors"

    # Blankets / plaids by material
    SHEEP_WOOL_BLANKETS    = "sheep_wool_blankets"
    WOOL_MIX_BLANKETS      = "wool_mix_blankets"
    CASHMERE_BLANKETS      = "cashmere_blankets"
    WOOL_BLANKETS          = "wool_blankets"

    # Craftsmanship, price justification, origin
    SPECIAL                = "special"

    # General consultation and its narrower variants
    DETAILED               = "detailed"
    SIZES                  = "sizes"
    PRICE                  = "price"
    MATERIAL               = "material"

    # ──── Rugs (made to order) ────
    RUGS                   = "rugs"
    RUG_COLORS             = "rug_colors"


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency_code: str

    @classmethod
    def from_raw(cls, raw: Optional[dict]) -> "Money":
        """Build from a Storefront ``{"amount": "349.0", "currencyCode": "EUR"}`` node."""
        raw = raw or {}
        try:
            amount = Decimal(str(raw.get("amount", "0")))
        except InvalidOperation as e:
            raise ValueError(f"invalid price amount: {raw.get('amount')!r}") from e
        if not amount.is_finite():
            raise ValueError(f"invalid price amount: {amount}")
        if amount < 0:
            raise ValueError(f"negative price amount: {amount}")
        return cls(amount=amount, currency_code=raw.get("currencyCode", "") or "")


@dataclass(frozen=True)
class ProductVariant:
    id: str
    title: str
    price: Money
    available_for_sale: bool

    @property
    def is_default(self) -> bool:
        return self.title == DEFAULT_VARIANT_TITLE


@dataclass(frozen=True)
class ProductRecord:
    id: str
    title: str
    handle: str
    price_min: Money
    price_max: Money
    description: str = ""
    description_html: str = ""
    product_type: Optional[str] = None
    tags: Tuple[str, ...] = ()
    variants: Tuple[ProductVariant, ...] = ()
    image_urls: Tuple[str, ...] = ()

    @property
    def available_variants(self) -> Tuple[ProductVariant, ...]:
        return tuple(v for v in self.variants if v.available_for_sale)

    @property
    def sold_out_variants(self) -> Tuple[ProductVariant, ...]:
        return tuple(v for v in self.variants if not v.available_for_sale)


@dataclass(frozen=True)
class PromptPayload:
    """Everything the language model gets for one request."""
    tag: CategoryTag
    products: Tuple[ProductRecord, ...]
    instructions: str
    product_context: str
    formatting_contract: str
    message: str

    @property
    def text(self) -> str:
        parts = [
            self.instructions,
            f"Verfügbare Produkte:\n{self.product_context}",
            f"Kundenfrage: {self.message}",
        ]
        if self.formatting_contract:
            parts.append(self.formatting_contract)
        return "\n\n".join(parts)


@dataclass
class ChatReply:
    response: str
    products: List[Dict[str, Any]] = field(default_factory=list)
    category: Optional[CategoryTag] = None
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
