"""
Logging configuration shared by the CLI and the API server.
"""
import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger once.

    Calling this again only updates the level, so the CLI and the API can
    both call it without stacking handlers.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not root.handlers:
        fmt = logging.Formatter(LOG_FORMAT)

        sh = logging.StreamHandler()
        sh.setFormatter(fmt)
        root.addHandler(sh)

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            fh.setFormatter(fmt)
            root.addHandler(fh)

    # Third-party clients are chatty at INFO
    for noisy in ("httpx", "httpcore", "groq", "anthropic"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root
