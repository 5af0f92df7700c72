"""
Sanctuary Portal Launcher

Starts the Flask web portal that renders pages from the API.

Usage:
    python scripts/run_portal.py --port 5010

Environment Variables:
    SADAYA_API_BASE_URL: API base URL (default: http://127.0.0.1:8010)
    SADAYA_PORTAL_PORT: Flask server port (default: 5010)
    SADAYA_PORTAL_HOST: Flask bind address (default: 127.0.0.1)
    SADAYA_PORTAL_DEBUG: Enable Flask debug mode (default: false)
"""
import argparse
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from portal.service import app, BASE_URL
from sanctuary.config import LOG_LEVEL, LOG_FILE, PORTAL_BIND_HOST, PORTAL_PORT
from sanctuary.startup_profile import StartupProfile, validate_portal_profile
from shared.logging_config import setup_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the Sadaya Sanctuary web portal")
    parser.add_argument("--host", default=PORTAL_BIND_HOST)
    parser.add_argument("--port", type=int, default=PORTAL_PORT)
    args = parser.parse_args()
    debug = os.getenv("SADAYA_PORTAL_DEBUG", "false").lower() in {"true", "1", "yes"}

    setup_logging("PORTAL", level=LOG_LEVEL, log_file=LOG_FILE)

    print("=" * 60)
    print("Sadaya Sanctuary Portal")
    print("=" * 60)
    print(f"API: {BASE_URL}")
    print(f"Bind Address: {args.host}:{args.port}")
    print(f"Debug Mode: {debug}")

    try:
        validate_portal_profile(StartupProfile(role="PORTAL", host=args.host, port=args.port), BASE_URL)
    except ValueError as e:
        print(f"✗ Invalid portal profile: {e}")
        return 1

    print("=" * 60)
    print(f"Portal available at: http://{args.host}:{args.port}")
    print("=" * 60)

    try:
        app.run(host=args.host, port=args.port, debug=debug, use_reloader=False)
    except KeyboardInterrupt:
        print("\nShutting down portal...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
