"""Run the FastAPI server using env-based configuration.

This script reads:
- `REVIEW_MANAGER_API_HOST` (default: 127.0.0.1)
- `REVIEW_MANAGER_API_PORT` (default: 8000)

It then starts Uvicorn with the already-configured `app`.

Usage
-----
python examples/api_server_fastapi/run.py
"""

from __future__ import annotations

import os

import uvicorn

from review_manager.config import get_env_int

# Import locally so this works when running from inside this folder.
from main import app  # type: ignore  # noqa: E402


def _get_host() -> str:
    return os.getenv("REVIEW_MANAGER_API_HOST", "127.0.0.1").strip() or "127.0.0.1"


def _get_port() -> int:
    port = get_env_int(os.environ, "REVIEW_MANAGER_API_PORT", 8000)
    if not (1 <= port <= 65535):
        raise RuntimeError("REVIEW_MANAGER_API_PORT must be in range [1, 65535]")
    return port


if __name__ == "__main__":
    uvicorn.run(app, host=_get_host(), port=_get_port())
