import re
from typing import Dict, List, Optional, Sequence

from bharatshop.models.product import FASHION, FOOD, PriceRange, UserPreference

# Phrases that signal a canonical keyword in Indian shopping queries.
KEYWORD_MAP: Dict[str, List[str]] = {
    "vegan": ["vegan", "plant-based", "plant based", "no animal", "pure veg"],
    "vegetarian": ["vegetarian", "veg"],
    "protein": ["protein", "proteins", "protein-rich", "proteinaceous"],
    "gluten-free": ["gluten-free", "gluten free", "no gluten", "without gluten"],
    "summer": ["summer", "hot", "heat", "warm weather", "grishma"],
    "winter": ["winter", "cold", "cool", "shita"],
    "monsoon": ["monsoon", "rainy", "rain", "wet", "varsha"],
    "ethnic": ["ethnic", "traditional", "indian", "cultural", "desi"],
    "casual": ["casual", "everyday", "regular", "daily", "informal"],
    "breakfast": ["breakfast", "morning", "morning meal", "subah", "nashta"],
    "snack": ["snack", "snacks", "munchies", "small bites", "light food", "nashta"],
    "festive": ["festive", "festival", "celebration", "tyohar", "party"],
    "organic": ["organic", "natural", "chemical-free", "pure"],
    "cotton": ["cotton", "soft fabric", "breathable", "natural fabric"],
    "linen": ["linen", "flax", "breathable fabric"],
    "light": ["light", "lightweight", "airy", "thin"],
    "trendy": ["trendy", "fashionable", "stylish", "modern", "in style"],
}

DIETARY_KEYS = ["vegan", "vegetarian", "protein", "gluten-free", "organic"]
SEASONS = ["summer", "winter", "monsoon"]

PRICE_PATTERNS = [
    re.compile(r"under ₹(\d+)", re.IGNORECASE),
    re.compile(r"less than ₹(\d+)", re.IGNORECASE),
    re.compile(r"below ₹(\d+)", re.IGNORECASE),
    re.compile(r"within ₹(\d+)", re.IGNORECASE),
]

FOOD_TOKENS = ["food", "snack", "breakfast", "eat", "meal", "munch", "diet", "protein", "cookies", "bars"]
BREAKFAST_TOKENS = ["breakfast", "morning"]
SNACK_TOKENS = ["snack", "munch", "bite"]

FASHION_TOKENS = ["cloth", "wear", "dress", "fashion", "outfit", "kurta", "ethnic", "saree", "shirt", "tee", "t-shirt"]
ETHNIC_TOKENS = ["ethnic", "traditional", "indian", "kurta", "saree"]
CASUAL_TOKENS = ["casual", "everyday", "tee", "t-shirt", "shirt"]

OCCASION_TOKENS = [
    ("casual", ["casual", "everyday", "daily"]),
    ("festive", ["festive", "festival", "celebration", "party"]),
    ("office", ["office", "work", "formal"]),
]

MATERIALS = ["cotton", "linen"]

STYLE_TOKENS = [
    ("trendy", ["trendy", "stylish", "modern"]),
    ("traditional", ["traditional", "ethnic", "indian"]),
    ("light", ["light", "lightweight", "airy"]),
]

def _contains_any(text: str, tokens: Sequence[str]) -> bool:
    return any(tok in text for tok in tokens)

def _extract_price_range(text: str) -> Optional[PriceRange]:
    for pattern in PRICE_PATTERNS:
        m = pattern.search(text)
        if m:
            return PriceRange(min=0, max=int(m.group(1)))
    return None

def _extract_dietary(text: str) -> List[str]:
    dietary: List[str] = []
    for key in DIETARY_KEYS:
        if key not in dietary and _contains_any(text, KEYWORD_MAP[key]):
            dietary.append(key)
    return dietary

def _extract_season(text: str) -> Optional[str]:
    for season in SEASONS:
        if _contains_any(text, KEYWORD_MAP[season]):
            return season
    return None

def _extract_occasion(text: str) -> Optional[str]:
    for occasion, tokens in OCCASION_TOKENS:
        if _contains_any(text, tokens):
            return occasion
    return None

def extract_preferences(message: str) -> UserPreference:
    """Parse a free-text shopping request into a UserPreference.

    Matching is plain substring search on the lower-cased message, so the
    result is deterministic and the function never raises.
    """
    text = (message or "").lower()
    prefs = UserPreference()

    prefs.price_range = _extract_price_range(text)
    prefs.dietary = _extract_dietary(text)

    # Food takes precedence over fashion
    if _contains_any(text, FOOD_TOKENS):
        prefs.category = FOOD
        if _contains_any(text, BREAKFAST_TOKENS):
            prefs.sub_category = "breakfast"
        elif _contains_any(text, SNACK_TOKENS):
            prefs.sub_category = "snacks"
    elif _contains_any(text, FASHION_TOKENS):
        prefs.category = FASHION
        if _contains_any(text, ETHNIC_TOKENS):
            prefs.sub_category = "ethnic"
        elif _contains_any(text, CASUAL_TOKENS):
            prefs.sub_category = "casual"

    prefs.season = _extract_season(text)
    prefs.occasion = _extract_occasion(text)
    prefs.material = [m for m in MATERIALS if m in text]
    prefs.style = [style for style, tokens in STYLE_TOKENS if _contains_any(text, tokens)]

    return prefs
