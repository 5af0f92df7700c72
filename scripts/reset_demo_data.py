"""
Reset Demo Data

Drops every table, recreates the schema and reseeds the demo sanctuary
(organizations, team, clients, proposals, invoices, classes, drive).

Usage:
    python scripts/reset_demo_data.py [--empty]
"""
import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sanctuary.config import DATABASE_URL, DEFAULT_PASSWORD
from sanctuary.database import reset_db


def main() -> int:
    parser = argparse.ArgumentParser(description="Reset the sanctuary database to demo data")
    parser.add_argument("--empty", action="store_true", help="Recreate the schema without seeding")
    args = parser.parse_args()

    print(f"Resetting database: {DATABASE_URL}")
    try:
        reset_db(seed=not args.empty)
    except Exception as e:
        print(f"✗ Reset failed: {e}")
        return 1

    if args.empty:
        print("✓ Empty schema created")
    else:
        print("✓ Demo data seeded")
        print(f"  Sign in as admin@sadaya.com with password '{DEFAULT_PASSWORD}'")
    return 0


if __name__ == "__main__":
    sys.exit(main())
