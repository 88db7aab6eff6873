# catalog_import/scripts/import_pos.py
# POS (KiotViet) export -> storefront products
# Usage: python -m catalog_import.scripts.import_pos   (configuration from .env)
from catalog_import.scripts._cli import main_exit
from catalog_import.sync.runs import import_pos


def main():
    main_exit(import_pos)


if __name__ == "__main__":
    main()
