import logging
import os
import sys

from .config import settings

FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging():
    """Install stdout (and optional file) handlers on the root logger once."""
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # uvicorn and pytest bring their own handlers
    if not root.handlers:
        handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        if settings.LOG_FILE:
            try:
                log_dir = os.path.dirname(settings.LOG_FILE)
                if log_dir:
                    os.makedirs(log_dir, exist_ok=True)
                handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))
            except OSError as e:
                root.warning("Failed to initialize file logging: %s", e)
        formatter = logging.Formatter(FORMAT)
        for handler in handlers:
            handler.setFormatter(formatter)
            root.addHandler(handler)

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
