#!/usr/bin/env python
"""
Footfall API Server Entry Point

Usage:
    Development:  python run_server.py --dev
    Memory store: python run_server.py --dev --memory
    Production:   python run_server.py
    Gunicorn:     python run_server.py --gunicorn
"""

import argparse
import os
import subprocess

import uvicorn

APP = "footfall.main:app"


def main():
    parser = argparse.ArgumentParser(description="Tourism Footfall API Server")
    parser.add_argument("--dev", action="store_true", help="Auto-reload and debug logging")
    parser.add_argument("--gunicorn", action="store_true", help="Run under Gunicorn")
    parser.add_argument("--memory", action="store_true", help="Use the in-memory store")
    parser.add_argument("--port", type=int, default=None, help="Port (default: API_PORT or 8000)")
    args = parser.parse_args()

    if args.memory:
        os.environ["FOOTFALL_STORE_BACKEND"] = "memory"
    if args.port:
        os.environ["API_PORT"] = str(args.port)

    # settings are read after the overrides above are in the environment
    from footfall.config.settings import get_settings
    settings = get_settings()

    if args.gunicorn:
        print("🚀 Starting footfall API with Gunicorn...")
        subprocess.run(["gunicorn", APP, "-c", "gunicorn.conf.py"], check=True)
    elif args.dev:
        print("🚀 Starting footfall API in development mode...")
        uvicorn.run(
            APP,
            host=settings.api_host,
            port=settings.api_port,
            reload=True,
            reload_dirs=["footfall"],
            log_level="debug",
        )
    else:
        print("🚀 Starting footfall API with Uvicorn...")
        uvicorn.run(
            APP,
            host=settings.api_host,
            port=settings.api_port,
            workers=1 if settings.footfall.store_backend == "memory" else settings.api_workers,
            log_level=settings.monitoring.log_level.lower(),
            proxy_headers=True,
            server_header=False,
        )


if __name__ == "__main__":
    main()
