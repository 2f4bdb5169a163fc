"""Production startup script for the Inbound Digital Audit API.

This script handles:
1. Checking that the audit store answers (if enabled)
2. Starting the API server with proper configuration
3. Graceful shutdown handling
"""

import asyncio
import os
import signal
import sys

sys.path.insert(0, ".")

from api.config import get_settings  # noqa: E402
from api.store import build_store  # noqa: E402


async def check_store() -> bool:
    """Ping the configured audit store before serving traffic."""
    settings = get_settings()
    print(f"Checking {settings.store_backend} audit store...")
    store = build_store(settings)
    try:
        return await store.ping()
    finally:
        await store.close()


def start_api() -> None:
    """Start the FastAPI application with uvicorn."""
    port = os.getenv("PORT", "8000")
    workers = os.getenv("API_WORKERS", "1")
    host = os.getenv("API_HOST", "0.0.0.0")

    print(f"Starting API server on {host}:{port} with {workers} worker(s)...")

    os.execvp(
        "uvicorn",
        [
            "uvicorn",
            "api.main:app",
            "--host",
            host,
            "--port",
            port,
            "--workers",
            workers,
            "--proxy-headers",
            "--forwarded-allow-ips",
            "*",
        ],
    )


def signal_handler(signum: int, _frame: object) -> None:
    """Handle shutdown signals gracefully."""
    print(f"Received signal {signum}, shutting down...")
    sys.exit(0)


def main() -> None:
    """Main entry point."""
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    check_enabled = os.getenv("CHECK_STORE", "true").lower() == "true"

    if check_enabled and not asyncio.run(check_store()):
        print("Audit store did not answer, but continuing with startup...")

    start_api()


if __name__ == "__main__":
    main()
