# catalog_import/scripts/import_marketplace.py
# Marketplace (Shopee) exports -> storefront products
# Usage: python -m catalog_import.scripts.import_marketplace   (configuration from .env)
from catalog_import.scripts._cli import main_exit
from catalog_import.sync.runs import import_marketplace


def main():
    main_exit(import_marketplace)


if __name__ == "__main__":
    main()
