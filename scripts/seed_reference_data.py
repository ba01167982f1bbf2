"""
Create the reference tables and seed the starter corpora.

Run from the project root:
    python -m scripts.seed_reference_data
    python -m scripts.seed_reference_data --schema-only
"""
import argparse
import json
from pathlib import Path

import psycopg2

from core.db import ReferenceDatabase

DATA_DIR = Path(__file__).parent.parent / "data"
ALLERGENS_FILE = DATA_DIR / "major_allergens.json"
ODI_FILE = DATA_DIR / "old_dietary_ingredients.json"


def load_rows(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        rows = json.load(f)
    if not isinstance(rows, list):
        raise ValueError(f"{path}: expected a JSON list of rows")
    return rows


def seed_reference_data(database: ReferenceDatabase = None, schema_only: bool = False) -> bool:
    database = database or ReferenceDatabase()

    print("Creating reference tables...")
    try:
        database.init_schema()
    except psycopg2.Error as e:
        print(f"Error creating tables: {e}")
        return False
    print("  major_allergens, gras_ingredients, ndi_ingredients, old_dietary_ingredients ready")

    if schema_only:
        return True

    for label, path, upsert in (
        ("major allergens", ALLERGENS_FILE, database.upsert_allergens),
        ("old dietary ingredients", ODI_FILE, database.upsert_old_dietary_ingredients),
    ):
        print(f"\nSeeding {label} from {path.name}")
        try:
            rows = load_rows(path)
        except (OSError, ValueError) as e:
            print(f"Error reading {path}: {e}")
            return False
        try:
            count = upsert(rows)
        except psycopg2.Error as e:
            print(f"Error seeding {label}: {e}")
            return False
        print(f"  Upserted {count} rows")

    print("\n" + "=" * 60)
    print("Reference data seeded. Invalidate the running API's cache to pick it up:")
    print("  POST /api/admin/invalidate-cache")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the ingredient reference tables")
    parser.add_argument("--schema-only", action="store_true", help="Create tables without seeding rows")
    args = parser.parse_args()
    ok = seed_reference_data(schema_only=args.schema_only)
    raise SystemExit(0 if ok else 1)
