#!/usr/bin/env python3
"""
Launch script for Trail Survey Backend.

Usage:
    python run_server.py [export_folder] [--port PORT] [--host HOST]

Examples:
    python run_server.py                    # Write trails to ./data/trails
    python run_server.py /path/to/trails    # Use custom export folder
    python run_server.py --port 5000        # Run on port 5000
"""

import argparse
import os
import sys
from pathlib import Path

# Add trailsurvey to path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    parser = argparse.ArgumentParser(description="Trail Survey Backend Server")
    parser.add_argument(
        "export_folder",
        nargs="?",
        default="./data/trails",
        help="Folder stopped trails are written to as CSV (default: ./data/trails)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)"
    )
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for all interfaces)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Run in debug mode"
    )

    args = parser.parse_args()

    export_folder = Path(args.export_folder)

    print("Trail Survey Backend")
    print("=" * 40)
    print(f"Export folder: {export_folder.absolute()}")
    print(f"Server: http://{args.host}:{args.port}")
    print("=" * 40)

    # Picked up by the FastAPI lifespan
    os.environ["TRAIL_EXPORT_FOLDER"] = str(export_folder)

    print("\nAPI Endpoints:")
    print("  GET  /                            - Health check")
    print("  GET  /health                      - Detailed health")
    print("  POST /sessions                    - Create session")
    print("  POST /sessions/{id}/start|stop    - Toggle tracking")
    print("  POST /sessions/{id}/samples       - Push attitude + GPS sample")
    print("  POST /sessions/{id}/calibrate     - Set zero reference")
    print("  GET  /sessions/{id}/corridor      - Colored corridor lines")
    print("  GET  /sessions/{id}/export.csv    - Trail CSV")
    print("\nStarting server...")

    import uvicorn

    uvicorn.run(
        "trailsurvey.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
