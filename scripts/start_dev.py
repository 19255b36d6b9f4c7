#!/usr/bin/env python3
"""
Development startup script.

Starts the storefront and back-office services in development mode.
"""

import os
import sys
import subprocess
import time
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

SERVICES = [
    ("🛒 Storefront", "storefront.main:app", 8000),
    ("🗂  Back office", "backoffice.main:app", 8002),
]


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import uvicorn
        import httpx
        import jwt
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_env():
    """Check if .env file exists."""
    env_file = PROJECT_ROOT / "config" / ".env"
    env_example = PROJECT_ROOT / "config" / ".env.example"

    if env_file.exists():
        print("✓ Configuration file found")
        return True
    elif env_example.exists():
        print("! Configuration file not found, copying from example...")
        import shutil
        shutil.copy(env_example, env_file)
        print("✓ Created config/.env from example")
        print("  Please edit config/.env with your shop API URL")
        return True
    else:
        print("✗ No configuration file found")
        return False


def start_services():
    """Start both services in development mode."""
    processes = []

    try:
        for title, target, port in SERVICES:
            print(f"\n{title} on http://localhost:{port} ...")
            processes.append(
                subprocess.Popen(
                    [
                        sys.executable, "-m", "uvicorn",
                        target,
                        "--reload",
                        "--host", "0.0.0.0",
                        "--port", str(port),
                    ],
                    cwd=PROJECT_ROOT,
                    env={**os.environ, "PYTHONPATH": str(PROJECT_ROOT)},
                )
            )
            time.sleep(1)

        print("\n" + "=" * 60)
        print("Services started successfully!")
        print("=" * 60)
        for title, _, port in SERVICES:
            print(f"\n📍 {title.split(' ', 1)[1].strip()} API: http://localhost:{port}/docs")
        print("\nPress Ctrl+C to stop all services")
        print("=" * 60)

        # Wait for processes
        for p in processes:
            p.wait()

    except KeyboardInterrupt:
        print("\n\nShutting down services...")
        for p in processes:
            p.terminate()
        for p in processes:
            p.wait()
        print("All services stopped.")


def main():
    print("=" * 60)
    print("Avangard Shop - Development Server")
    print("=" * 60)

    # Pre-flight checks
    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    if not check_env():
        sys.exit(1)

    print("\n✓ All checks passed!")

    # Start services
    start_services()


if __name__ == "__main__":
    main()
