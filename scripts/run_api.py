"""
Sanctuary API Launcher

Starts the FastAPI business hub service.

Usage:
    python scripts/run_api.py --host 127.0.0.1 --port 8010

Environment Variables:
    SADAYA_API_PORT: API port (default: 8010)
    SADAYA_API_HOST: Bind address (default: 127.0.0.1)
    SADAYA_DB_URL: SQLAlchemy database URL (default: sqlite file under sanctuary/data)
"""
import argparse
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn

from sanctuary.config import API_BIND_HOST, API_PORT, DATABASE_URL


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Sadaya Sanctuary business hub API")
    parser.add_argument("--host", default=API_BIND_HOST)
    parser.add_argument("--port", type=int, default=API_PORT)
    parser.add_argument("--reload", action="store_true", help="Reload on source changes")
    args = parser.parse_args()

    print("=" * 60)
    print("Sadaya Sanctuary API")
    print("=" * 60)
    print(f"API Address: {args.host}:{args.port}")
    print(f"Database: {DATABASE_URL}")
    print("=" * 60)

    # Startup validation reads these back
    os.environ["SADAYA_API_PORT"] = str(args.port)
    os.environ["SADAYA_API_HOST"] = args.host

    uvicorn.run("sanctuary.service:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
