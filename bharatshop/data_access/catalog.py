from dataclasses import dataclass
from typing import List, Optional, Sequence

from bharatshop.data_access.loader import load_products
from bharatshop.models.product import PriceRange, Product
from bharatshop.utils.logger import logger

@dataclass(frozen=True)
class CatalogFilters:
    category: Optional[str] = None
    sub_category: Optional[str] = None
    price_range: Optional[PriceRange] = None

def _searchable_text(product: Product) -> str:
    return " ".join(
        [product.name, product.description, product.category, product.sub_category, " ".join(product.tags)]
    ).lower()

class Catalog:
    """Read-only product catalog with keyword search and id lookup."""

    def __init__(self, products: Sequence[Product]) -> None:
        self._products = tuple(products)
        self._by_id = {p.id: p for p in self._products}

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "Catalog":
        return cls(load_products(path))

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(product_id)

    def fetch_products(self, query: str, filters: Optional[CatalogFilters] = None) -> List[Product]:
        """Keyword and filter search.

        A product matches the query when any whitespace-separated term occurs in
        its name, description, category, sub-category or tags. Explicit category
        and price filters are applied on top. Never raises: on unexpected errors
        the full catalog is returned.
        """
        filters = filters or CatalogFilters()
        logger.debug(f"Searching with query={query!r} and filters={filters}")
        try:
            results = list(self._products)

            terms = query.lower().split() if query else []
            if terms:
                results = [p for p in results if any(t in _searchable_text(p) for t in terms)]

            if filters.category:
                results = [p for p in results if p.category.lower() == filters.category.lower()]

            if filters.price_range is not None:
                low, high = filters.price_range.min, filters.price_range.max
                results = [p for p in results if low <= p.price <= high]

            return results
        except Exception as e:
            logger.error(f"Error fetching products, returning full catalog: {e}")
            return list(self._products)
