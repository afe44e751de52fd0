import os

# bharatshop/config/paths.py

# CONFIG_DIR = .../bharatshop/config  → bharatshop  → project root
CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))      # .../bharatshop/config
PACKAGE_DIR = os.path.dirname(CONFIG_DIR)                    # .../bharatshop
PROJECT_ROOT = os.path.dirname(PACKAGE_DIR)                  # .../BharatShop Assistant

DATA_DIR = os.path.join(PROJECT_ROOT, "data")

PRODUCTS_PATH = os.environ.get(
    "BHARATSHOP_PRODUCTS_PATH", os.path.join(DATA_DIR, "products.json")
)

PLACEHOLDER_IMAGE = "/images/product-placeholder.svg"
