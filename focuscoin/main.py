"""
Entry point — start the FocusCoin API.

Usage:
    python -m focuscoin.main
    uvicorn focuscoin.api.app:app --host 127.0.0.1 --port 3000 --reload
"""

import logging

import uvicorn

from .config import config


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main():
    setup_logging()
    uvicorn.run(
        "focuscoin.api.app:app",
        host=config.api_host,
        port=config.api_port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
