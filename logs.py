# logs.py
import logging

logger = logging.getLogger("coin_arena")


def configure_logging(level: str | int = logging.INFO):
    """Attach a console handler to the server logger (once)."""
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        logger.addHandler(handler)
    logger.setLevel(level)


def log(msg: str, client_id: str | None = None, level: int = logging.INFO, exc_info=False):
    """Timestamped logger used throughout the server.

    Messages carry a ``[SERVER]`` tag, or ``[SERVER:<client id>]`` when they
    concern a single connection.
    """
    prefix = "[SERVER]" if client_id is None else f"[SERVER:{client_id}]"
    logger.log(level, f"{prefix} {msg}", exc_info=exc_info)
