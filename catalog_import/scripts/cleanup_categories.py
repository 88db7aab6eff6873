# catalog_import/scripts/cleanup_categories.py
# Delete categories no product uses
# Usage: python -m catalog_import.scripts.cleanup_categories   (configuration from .env)
from catalog_import.scripts._cli import main_exit
from catalog_import.sync.runs import cleanup_categories


def main():
    main_exit(cleanup_categories)


if __name__ == "__main__":
    main()
