#!/usr/bin/env python3
"""
Start the Darkfall Gear Optimizer Web Server

Usage:
    python start_server.py [--port PORT] [--host HOST] [--data-dir DIR]

Example:
    python start_server.py --port 8080 --data-dir ./data
"""

import argparse
import os
import sys

# Add paths
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dataset_loader import DATA_DIR_ENV, resolve_data_dir


def main():
    parser = argparse.ArgumentParser(description='Darkfall Gear Optimizer Web Server')
    parser.add_argument('--port', type=int, default=8000, help='Port to run the server on')
    parser.add_argument('--host', type=str, default='127.0.0.1', help='Host to bind to')
    parser.add_argument('--data-dir', type=str, default=None,
                        help=f'Directory holding config.json, armor.csv and results-*.json '
                             f'(default: ${DATA_DIR_ENV} or ./data)')
    parser.add_argument('--reload', action='store_true', help='Enable auto-reload for development')
    args = parser.parse_args()

    # The app module reads the data directory from the environment,
    # which also reaches reloader subprocesses
    data_dir = resolve_data_dir(args.data_dir).resolve()
    os.environ[DATA_DIR_ENV] = str(data_dir)

    print("=" * 60)
    print("Darkfall Gear Optimizer")
    print("=" * 60)
    print()
    print(f"Data directory: {data_dir}")
    print(f"Starting server at http://{args.host}:{args.port}")
    print(f"API Documentation at http://{args.host}:{args.port}/docs")
    print()
    print("Press Ctrl+C to stop the server.")
    print("=" * 60)

    import uvicorn
    uvicorn.run(
        "api:app",
        host=args.host,
        port=args.port,
        reload=args.reload
    )

if __name__ == "__main__":
    main()
