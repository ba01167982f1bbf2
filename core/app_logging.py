import logging
import sys
import threading
from typing import Any, Optional

ROOT_LOGGER_NAME = "labelcheck"

_LOG_LOCK = threading.Lock()
_CONFIGURED = False


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Install the stream handler on the root ``labelcheck`` logger once."""
    global _CONFIGURED
    with _LOG_LOCK:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        if level:
            logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
        if _CONFIGURED:
            return logger
        if not level:
            logger.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
        _CONFIGURED = True
        return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the ``labelcheck`` logger, e.g. ``labelcheck.core.reference_cache``."""
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def truncate_text(text: Any, max_len: int = 200) -> str:
    s = str(text if text is not None else "")
    if len(s) > max_len:
        return s[:max_len] + f"...[truncated {len(s) - max_len} chars]"
    return s


def log_event(
    logger: logging.Logger,
    message: str,
    *,
    level: int = logging.INFO,
    exc_info: bool = False,
    **context: Any,
) -> None:
    """Log ``message`` followed by ``key=value`` context pairs. Never raises."""
    if context:
        pairs = " ".join(f"{key}={truncate_text(value)}" for key, value in context.items())
        message = f"{message} {pairs}"
    try:
        logger.log(level, message, exc_info=exc_info)
    except Exception:
        try:
            logger.error(f"Logging failure: {truncate_text(message)}")
        except Exception:
            pass
