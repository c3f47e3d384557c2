"""
Response Composer — turns (category, catalog snapshot, message) into the
prompt the language model answers.

Per category there is at most one product filter (PRODUCT_FILTERS) and
exactly one instruction builder (INSTRUCTION_BUILDERS). Every prompt ends
with the same FORMATTING_CONTRACT.
"""

from typing import Callable, Dict, Tuple

from app_config import STOREFRONT_DOMAIN
from chat_logger import get_logger
from models import CategoryTag, ProductRecord, PromptPayload
from product_formatter import render_product_context, product_url

logger = get_logger("lpj_chat")

Products = Tuple[ProductRecord, ...]

# Pure sheep wool blankets, identified by handle. Descriptions do not tell
# sheep wool from blends reliably, so this list is maintained by hand and
# must follow handle changes in the shop.
SHEEP_WOOL_BLANKET_HANDLES = (
    "lpj-mountainplaid",     # Mountain Plaid
    "lpj-lodge-plaid",       # Lodge Plaid
    "lpj-handcraft-plaid",   # Handcrafted Plaid
    "hand-crochet-plaid",    # Handcrocheted Plaid
    "lpj-sheep-plaid",       # Sheep Plaid
)

RUG_MADE_TO_ORDER_ANSWER = (
    "Der Teppich wird ganz nach deinen Größen- und Farbwünschen gefertigt. "
    "Kontaktiere uns deshalb bitte über den Shop (Kontaktformular siehe unten) "
    "oder bei einem Besuch in unserem Studio in Aschau im Chiemgau, um deinen "
    "individuellen LPJ Rug zu entwickeln!"
)


def formatting_contract(storefront_domain: str) -> str:
    """Presentation structure the model must reproduce for every product."""
    link = product_url(storefront_domain, "[handle]")
    return f"""ANTWORT-FORMAT für ALLE Produkttypen:
Verwende für JEDES Produkt EXAKT diese HTML-Struktur:

<div style="border-left: 4px solid #2563eb; background-color: #f8fafc; padding: 16px; border-radius: 8px; margin: 16px 0;">
<h3 style="color: #2563eb; margin: 0; font-size: 1.25rem; font-weight: 600;"><a href="{link}" target="_blank" rel="noopener noreferrer" style="color: #2563eb; text-decoration: none;">Produktname</a></h3>
<p style="margin: 12px 0 0 0; color: #374151; line-height: 1.6;">Beschreibung. Verfügbare Farben: [Farben]. Preis: XXX €</p>
</div>

VERFÜGBARKEITS-HINWEISE:
- Wenn Produkt komplett ausverkauft: "⚠️ Aktuell ausverkauft - auf Anfrage gerne wieder herstellbar!"
- Wenn einzelne Farben ausverkauft: "(Farbe XXX aktuell ausverkauft - auf Anfrage herstellbar)"
- Verwende die Verfügbarkeits-Infos aus den Produktdaten

WICHTIG:
- Produktname muss anklickbarer Link sein
- NIEMALS andere HTML-Strukturen verwenden
- IMMER diese exakte Box-Formatierung"""


# ─────────────────────────────────────────────
# FILTERS
# ─────────────────────────────────────────────

def _only_sheep_wool_blankets(products: Products) -> Products:
    allowed = set(SHEEP_WOOL_BLANKET_HANDLES)
    kept = tuple(p for p in products if p.handle in allowed)

    present = {p.handle for p in kept}
    missing = [h for h in SHEEP_WOOL_BLANKET_HANDLES if h not in present]
    logger.debug(f"Composer: sheep wool blankets kept {len(kept)} of {len(products)}")
    if missing:
        logger.debug(f"Composer: allow-listed handles not in catalog: {missing}")
    return kept


PRODUCT_FILTERS: Dict[CategoryTag, Callable[[Products], Products]] = {
    CategoryTag.SHEEP_WOOL_BLANKETS: _only_sheep_wool_blankets,
}


# ─────────────────────────────────────────────
# INSTRUCTION BUILDERS
# ─────────────────────────────────────────────

def _advisor(topic: str) -> str:
    return f"Du bist ein Shopping-Berater für LPJ Studios. {topic}"


def _colors_instructions() -> str:
    return _advisor("Der Kunde fragt nach verfügbaren Farben.") + """

KRITISCHE ANWEISUNG für ALLE Farbfragen:
1. VERWENDE AUSSCHLIESSLICH die "ECHTE VARIANTEN" Liste aus den Produktdaten
2. Wenn du "ECHTE VARIANTEN: [beige / Kaschmir], [gelb / Kaschmir], [grau / Kaschmir]" siehst
3. Verwende den Text VOR dem "/" als Farbname
4. ERFINDE NIEMALS Farbnamen, die nicht in den Produktdaten stehen!

VERBOTEN: Jegliche erfundenen Farbnamen oder Beschreibungen!
NUR die echten Varianten-Titel verwenden!"""


def _sheep_wool_instructions() -> str:
    return _advisor("Der Kunde fragt SPEZIFISCH nach DECKEN aus SCHAFWOLLE.") + """

WICHTIGER HINWEIS: Der Kunde will NUR DECKEN/PLAIDS, KEINE anderen Produkte!
Die Produktliste enthält bereits nur die Decken aus reiner Schafwolle.

ABSOLUT VERBOTEN zu zeigen:
- Wärmflaschen (sind KEINE Decken!)
- Alle Kissen, Teppiche, Rugs
- Kaschmir-Decken und Wollmix-Decken"""


def _wool_mix_instructions() -> str:
    return _advisor("Der Kunde fragt nach WOLLMIX-DECKEN.") + """

STRIKTE FILTERUNG für Wollmix-Decken:
- MAXIMAL 10 Produkte zeigen
- NUR Decken/Plaids mit Wollmischungen (z.B. Alpen Plaid = Wolle+Seide+Kaschmir, Candy Plaid = verschiedene Wollarten)
- KEINE reinen Schafwoll-Decken (Mountain Plaid)
- KEINE reinen Kaschmir-Decken (Cloud Plaid)
- KEINE Kissen, Wärmflaschen, Teppiche"""


def _cashmere_instructions() -> str:
    return _advisor("Der Kunde fragt nach KASCHMIR-DECKEN.") + """

STRIKTE FILTERUNG für Kaschmir-Decken:
- MAXIMAL 10 Produkte zeigen
- NUR Decken/Plaids mit Kaschmir (z.B. Cloud Plaid, C' Plaid, eventuell Yoga Plaid)
- KEINE reinen Schafwoll-Decken
- KEINE Kissen, Wärmflaschen, Teppiche"""


def _wool_blanket_instructions() -> str:
    return _advisor("Der Kunde fragt nach DECKEN aus WOLLE.") + """

WICHTIGE FILTERUNG:
- Zeige NUR echte DECKEN/PLAIDS aus Wolle
- KEINE Teppiche (Rugs) zeigen
- KEINE Wärmflaschen zeigen
- KEINE Hundekissen zeigen
- MAXIMAL 10 Produkte zeigen"""


def _special_instructions() -> str:
    return _advisor("Der Kunde stellt eine Frage zu den Besonderheiten der Produkte.") + """

DYNAMISCHE ANTWORT-STRATEGIE:
- Analysiere die SPEZIFISCHE Frage des Kunden
- Wenn nach "besonders/einzigartig" → Fokus auf Handwerkskunst und Materialien
- Wenn nach "teuer/Preis" → Erkläre Wert durch Qualität und Arbeitszeit
- Wenn nach "Herstellung" → Details zu Produktionsverfahren
- Wenn nach "Nachhaltigkeit" → Recycling und Upcycling betonen
- Wenn nach "Herkunft" → Materialherkunft und Fertigung im Studio erklären
- Wenn nach "Unterschied" → Was macht LPJ anders als andere

IMMER: Wähle 2-3 passende BEISPIEL-Produkte, die die Antwort am besten illustrieren.
NIEMALS: Alle Produkte auflisten - antworte gezielt auf die Frage!"""


def _rug_instructions(topic: str) -> str:
    return _advisor(topic) + f"""

KRITISCH: ALLE Teppiche (Rugs) werden individuell gefertigt!
- Mountain Rug, Handcrafted Rug, P' Rug Serie und alle anderen Rugs - ALLE individuell
- NIEMALS feste Farben oder Größen als einzige Option anzeigen
- IMMER diese Antwort verwenden:

"{RUG_MADE_TO_ORDER_ANSWER}"

EGAL welcher Rug-Name erwähnt wird - IMMER individuell anfertigbar!"""


def _rugs_instructions() -> str:
    return _rug_instructions("Der Kunde fragt nach TEPPICHEN.")


def _rug_colors_instructions() -> str:
    return _rug_instructions("Der Kunde fragt nach TEPPICH-FARBEN.")


def _sizes_instructions() -> str:
    return _advisor("Der Kunde fragt nach verfügbaren Größen.") + """

- Nenne Größen nur, wenn sie in den Produktdaten oder Varianten stehen
- Erfinde KEINE Maße"""


def _detailed_instructions(focus: str = "") -> str:
    text = """Du bist ein exklusiver Shopping-Berater für LPJ Studios - einer Manufaktur für hochwertige, handgefertigte Textilien.

WICHTIGE ANWEISUNGEN FÜR DIE BERATUNG:
- KEINE Standardeinleitungen oder Begrüßungen - komm direkt zur Sache
- Die Qualitäts-Beschreibung "Bei LPJ Studios legen wir größten Wert auf Qualität..." NUR verwenden wenn:
  * Kunde nach Qualität/Materialien fragt
  * Preise gerechtfertigt werden müssen
  * Erste Produktvorstellung bei neuen Kunden
- Erkläre die besonderen Materialien (Kaschmir, mongolische Schafswolle, etc.)
- Rechtfertige die Preise durch Qualität, Handarbeit und exklusive Materialien
- Beschreibe jedes Produkt ausführlich in einem eigenen Absatz
- Gehe auf die Herkunft und Herstellung ein

Positioniere LPJ Studios als Premium-Marke für Menschen, die Wert auf Qualität und Exklusivität legen."""
    if focus:
        text += f"\n\nSCHWERPUNKT: {focus}"
    return text


def _price_instructions() -> str:
    return _detailed_instructions("Der Kunde fragt nach Preisen. Nenne die exakten Preise aus den Produktdaten.")


def _material_instructions() -> str:
    return _detailed_instructions("Der Kunde fragt nach Materialien. Nutze die Material-Angaben aus den Produktdaten.")


INSTRUCTION_BUILDERS: Dict[CategoryTag, Callable[[], str]] = {
    CategoryTag.COLORS:              _colors_instructions,
    CategoryTag.SHEEP_WOOL_BLANKETS: _sheep_wool_instructions,
    CategoryTag.WOOL_MIX_BLANKETS:   _wool_mix_instructions,
    CategoryTag.CASHMERE_BLANKETS:   _cashmere_instructions,
    CategoryTag.WOOL_BLANKETS:       _wool_blanket_instructions,
    CategoryTag.SPECIAL:             _special_instructions,
    CategoryTag.DETAILED:            _detailed_instructions,
    CategoryTag.SIZES:               _sizes_instructions,
    CategoryTag.PRICE:               _price_instructions,
    CategoryTag.MATERIAL:            _material_instructions,
    CategoryTag.RUGS:                _rugs_instructions,
    CategoryTag.RUG_COLORS:          _rug_colors_instructions,
}


# ─────────────────────────────────────────────
# ENTRY POINT
# ─────────────────────────────────────────────

def filter_products(tag: CategoryTag, products: Products) -> Products:
    product_filter = PRODUCT_FILTERS.get(tag)
    return product_filter(products) if product_filter else tuple(products)


def build(
    tag: CategoryTag,
    products: Products,
    message: str,
    storefront_domain: str = STOREFRONT_DOMAIN,
) -> PromptPayload:
    """Assemble the prompt payload for one chat message."""
    retained = filter_products(tag, tuple(products))
    return PromptPayload(
        tag=tag,
        products=retained,
        instructions=INSTRUCTION_BUILDERS[tag](),
        product_context=render_product_context(retained, storefront_domain),
        formatting_contract=formatting_contract(storefront_domain),
        message=message,
    )
