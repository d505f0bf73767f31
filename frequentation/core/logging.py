"""
➡️ But : Configurer les logs de l'application une seule fois, au démarrage.

Chaque module déclare son logger :

logger = logging.getLogger(__name__)

et configure_logging() branche un handler console avec le niveau défini dans settings.LOG_LEVEL.
"""

import logging

from frequentation.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    level = (level or settings.LOG_LEVEL or "INFO").upper()

    root = logging.getLogger("frequentation")
    root.setLevel(level)

    # idempotent : uvicorn --reload ré-importe l'app
    if not any(getattr(h, "_frequentation", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._frequentation = True  # type: ignore[attr-defined]
        root.addHandler(handler)
