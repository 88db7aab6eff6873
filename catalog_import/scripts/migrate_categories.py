# catalog_import/scripts/migrate_categories.py
# Flat category paths -> category tree
# Usage: python -m catalog_import.scripts.migrate_categories   (configuration from .env)
from catalog_import.scripts._cli import main_exit
from catalog_import.sync.runs import migrate_categories


def main():
    main_exit(migrate_categories)


if __name__ == "__main__":
    main()
