from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

FOOD = "food"
FASHION = "fashion"

@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float
    category: str
    sub_category: str
    description: str = ""
    image: str = ""
    tags: Tuple[str, ...] = ()
    # food
    is_vegan: Optional[bool] = None
    is_gluten_free: Optional[bool] = None
    protein_content: Optional[float] = None
    dietary_info: Tuple[str, ...] = ()
    # fashion
    material: Optional[str] = None
    season: Tuple[str, ...] = ()
    occasion: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "Product":
        """Build a product from a catalog record (camelCase keys)."""
        return cls(
            id=str(item["id"]),
            name=item["name"],
            price=item["price"],
            category=item["category"],
            sub_category=item.get("subCategory", ""),
            description=item.get("description", ""),
            image=item.get("image", ""),
            tags=tuple(item.get("tags", [])),
            is_vegan=item.get("isVegan"),
            is_gluten_free=item.get("isGlutenFree"),
            protein_content=item.get("proteinContent"),
            dietary_info=tuple(item.get("dietaryInfo", [])),
            material=item.get("material"),
            season=tuple(item.get("season", [])),
            occasion=tuple(item.get("occasion", [])),
        )

@dataclass(frozen=True)
class PriceRange:
    min: float
    max: float

@dataclass
class UserPreference:
    category: Optional[str] = None
    sub_category: Optional[str] = None
    price_range: Optional[PriceRange] = None
    dietary: List[str] = field(default_factory=list)
    season: Optional[str] = None
    occasion: Optional[str] = None
    material: List[str] = field(default_factory=list)
    style: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.category is None
            and self.sub_category is None
            and self.price_range is None
            and not self.dietary
            and self.season is None
            and self.occasion is None
            and not self.material
            and not self.style
        )

@dataclass(frozen=True)
class MatchScore:
    match_percentage: int
    match_reason: str

@dataclass(frozen=True)
class ScoredProduct:
    product: Product
    match_percentage: int
    match_reason: str
