"""Entry point: ``python -m bicimarket``."""

import logging
import socket
import sys

import uvicorn

from .config import settings

logger = logging.getLogger("bicimarket")


def port_taken(host: str, port: int) -> bool:
    """True when something already accepts connections on ``host:port``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.settimeout(0.5)
        return s.connect_ex((host, port)) == 0


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    if port_taken(settings.host, settings.port):
        logger.error("%s:%d is taken; is another BiciMarket server running?", settings.host, settings.port)
        return 1
    uvicorn.run(
        "bicimarket.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
