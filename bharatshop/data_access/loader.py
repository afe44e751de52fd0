import json
from dataclasses import replace
from typing import Any, List, Optional

from bharatshop.config.paths import PRODUCTS_PATH, PLACEHOLDER_IMAGE
from bharatshop.models.product import Product
from bharatshop.utils.exceptions import DataLoadError
from bharatshop.utils.logger import logger

def _load_json(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        logger.error(f"File not found: {path}")
        raise DataLoadError(f"File not found: {path}") from e
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {path}")
        raise DataLoadError(f"Invalid JSON in {path}") from e

def _with_image_fallback(product: Product) -> Product:
    if product.image:
        return product
    return replace(product, image=PLACEHOLDER_IMAGE)

def load_products(path: Optional[str] = None) -> List[Product]:
    path = path or PRODUCTS_PATH
    raw = _load_json(path)
    try:
        products = [_with_image_fallback(Product.from_dict(item)) for item in raw]
    except (KeyError, TypeError) as e:
        logger.error(f"Malformed product record in {path}: {e}")
        raise DataLoadError(f"Malformed product record in {path}") from e
    logger.info(f"Loaded {len(products)} products from {path}")
    return products
