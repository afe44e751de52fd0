import logging
import os
from typing import Optional

LOG_LEVEL = os.environ.get("BHARATSHOP_LOG_LEVEL", "INFO").upper()

logger = logging.getLogger("bharatshop")
if not logger.handlers:
    logger.setLevel(LOG_LEVEL)
    ch = logging.StreamHandler()
    fmt = logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)
    # Streamlit installs its own root handlers
    logger.propagate = False

def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Child of the package logger, e.g. get_logger("services.gemini")."""
    if name:
        return logging.getLogger(f"bharatshop.{name}")
    return logger
