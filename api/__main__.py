"""
Run the API with uvicorn: `python -m api`.
"""
from __future__ import annotations

import logging
import os
import sys

import uvicorn

from api.deps import get_port, validate_settings
from filmle_backend.utils.env import ConfigError

logger = logging.getLogger("api")


def main() -> int:
    logging.basicConfig(
        level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        validate_settings()
    except ConfigError as exc:
        logger.error(f"Error: {exc}")
        return 1

    port = get_port()
    logger.info(f"Server is running on port {port}")
    uvicorn.run("api.main:app", host=os.getenv("HOST", "0.0.0.0"), port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
