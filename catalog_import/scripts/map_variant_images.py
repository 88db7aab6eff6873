# catalog_import/scripts/map_variant_images.py
# Backfill variant option images from the media sheet
# Usage: python -m catalog_import.scripts.map_variant_images   (configuration from .env)
from catalog_import.scripts._cli import main_exit
from catalog_import.sync.runs import map_variant_images


def main():
    main_exit(map_variant_images)


if __name__ == "__main__":
    main()
