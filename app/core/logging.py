# app/core/logging.py
import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger once. Modules log through
    logging.getLogger(__name__) and inherit this setup.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # SQL echo is too noisy at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    _configured = True
