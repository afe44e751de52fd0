import math
from typing import List, Tuple

from bharatshop.core.preferences import KEYWORD_MAP
from bharatshop.models.product import FASHION, FOOD, MatchScore, Product, UserPreference

BASE_MATCH_PERCENTAGE = 50
MIN_MATCH_PERCENTAGE = 50
MAX_MATCH_PERCENTAGE = 99

PRICE_POINTS = 30
PRICE_TOLERANCE = 1.10
CATEGORY_POINTS = 25
SUB_CATEGORY_POINTS = 15
DIETARY_POINTS = 10
VEGETARIAN_POINTS = 8
SEASON_POINTS = 15
ALL_SEASON_POINTS = 10
OCCASION_POINTS = 15
MATERIAL_POINTS = 10
STYLE_POINTS = 5

SEASON_REASONS = {
    "summer": "perfect for hot summer days",
    "winter": "ideal for cold winter weather",
    "monsoon": "suitable for rainy monsoon season",
}

OCCASION_REASONS = {
    "festive": "designed for festive occasions",
    "casual": "perfect for casual everyday wear",
    "office": "suitable for office and formal settings",
}

def format_amount(value: float) -> str:
    """Render 250.0 as '250' and 12.5 as '12.5'."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"

def _dietary_points(pref: str, product: Product) -> int:
    if pref == "vegan" and product.is_vegan:
        return DIETARY_POINTS
    if pref == "vegetarian" and product.is_vegan:
        return VEGETARIAN_POINTS
    if pref == "gluten-free" and product.is_gluten_free:
        return DIETARY_POINTS
    if pref == "protein" and product.protein_content:
        if product.protein_content > 10:
            return DIETARY_POINTS
        if product.protein_content > 5:
            return 5
    if pref == "organic" and "organic" in product.tags:
        return DIETARY_POINTS
    return 0

def _style_matches(style: str, product: Product) -> bool:
    tokens = [style] + KEYWORD_MAP.get(style, [])
    return any(tok in tag for tag in product.tags for tok in tokens)

def weighted_points(product: Product, prefs: UserPreference) -> Tuple[int, int]:
    """Return (earned, possible) points over every factor that applies."""
    earned = 0
    possible = 0

    if prefs.price_range is not None:
        possible += PRICE_POINTS
        if product.price <= prefs.price_range.max:
            earned += PRICE_POINTS
        elif product.price <= prefs.price_range.max * PRICE_TOLERANCE:
            earned += PRICE_POINTS // 2

    if prefs.category:
        possible += CATEGORY_POINTS
        if product.category == prefs.category:
            earned += CATEGORY_POINTS

    if prefs.sub_category and prefs.category == product.category:
        possible += SUB_CATEGORY_POINTS
        if product.sub_category == prefs.sub_category:
            earned += SUB_CATEGORY_POINTS

    if product.category == FOOD:
        for pref in prefs.dietary:
            possible += DIETARY_POINTS
            earned += _dietary_points(pref, product)

    if product.category == FASHION:
        if prefs.season and product.season:
            possible += SEASON_POINTS
            if prefs.season in product.season:
                earned += SEASON_POINTS
            elif "all" in product.season:
                earned += ALL_SEASON_POINTS

        if prefs.occasion and product.occasion:
            possible += OCCASION_POINTS
            if prefs.occasion in product.occasion:
                earned += OCCASION_POINTS

        if prefs.material and product.material:
            possible += MATERIAL_POINTS
            if product.material in prefs.material:
                earned += MATERIAL_POINTS

        for style in prefs.style:
            possible += STYLE_POINTS
            if _style_matches(style, product):
                earned += STYLE_POINTS

    return earned, possible

def calculate_match_percentage(product: Product, prefs: UserPreference) -> int:
    earned, possible = weighted_points(product, prefs)
    if possible == 0:
        return BASE_MATCH_PERCENTAGE
    # half rounds up
    percentage = int(math.floor(earned / possible * 100 + 0.5))
    return min(max(percentage, MIN_MATCH_PERCENTAGE), MAX_MATCH_PERCENTAGE)

def match_reasons(product: Product, prefs: UserPreference) -> List[str]:
    reasons: List[str] = []

    if prefs.price_range is not None and product.price <= prefs.price_range.max:
        reasons.append(f"fits your budget at ₹{format_amount(product.price)}")

    if product.category == FOOD:
        if "vegan" in prefs.dietary and product.is_vegan:
            reasons.append("perfect for your vegan diet")
        if "gluten-free" in prefs.dietary and product.is_gluten_free:
            reasons.append("suitable for gluten-free needs")
        if "protein" in prefs.dietary and product.protein_content:
            reasons.append(f"provides {format_amount(product.protein_content)}g of protein per serving")
        if "organic" in prefs.dietary and "organic" in product.tags:
            reasons.append("made with organic ingredients")

    if product.category == FASHION:
        summer = prefs.season == "summer"
        if product.material == "cotton" and ("cotton" in prefs.material or summer):
            reasons.append("made with breathable cotton")
        elif product.material == "linen" and ("linen" in prefs.material or summer):
            reasons.append("crafted from cool linen fabric")

        if prefs.season in SEASON_REASONS and prefs.season in product.season:
            reasons.append(SEASON_REASONS[prefs.season])

        if prefs.occasion in OCCASION_REASONS and prefs.occasion in product.occasion:
            reasons.append(OCCASION_REASONS[prefs.occasion])

    return reasons

def join_reasons(reasons: List[str]) -> str:
    """Join clauses into one sentence: 'A.', 'A and b.', 'A, b, and c.'"""
    if not reasons:
        return ""
    first = reasons[0][:1].upper() + reasons[0][1:]
    clauses = [first] + list(reasons[1:])
    if len(clauses) == 1:
        sentence = clauses[0]
    elif len(clauses) == 2:
        sentence = f"{clauses[0]} and {clauses[1]}"
    else:
        sentence = ", ".join(clauses[:-1]) + f", and {clauses[-1]}"
    return sentence + "."

def generate_match_reason(product: Product, prefs: UserPreference) -> str:
    reasons = match_reasons(product, prefs)
    if not reasons:
        if product.category == FOOD:
            return "This premium food item aligns with your preferences."
        return f"This stylish {product.sub_category} item matches your fashion preferences."
    return join_reasons(reasons)

def score(product: Product, prefs: UserPreference) -> MatchScore:
    return MatchScore(
        match_percentage=calculate_match_percentage(product, prefs),
        match_reason=generate_match_reason(product, prefs),
    )
