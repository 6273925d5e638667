from __future__ import annotations

import logging

from jobscribe.config import get_settings

# pdfplumber logs every parsed object through pdfminer; the HTTP clients log each request.
NOISY_LOGGERS: dict[str, int] = {
    "pdfminer": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "openai": logging.WARNING,
    "urllib3": logging.WARNING,
}

_LOG_CONFIGURED = False


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once; later calls are no-ops."""
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    settings = get_settings()
    root_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=root_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for name, floor in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(floor, root_level))
    logging.getLogger(__name__).debug("Logging configured env=%s level=%s", settings.app_env, root_level)
    _LOG_CONFIGURED = True
