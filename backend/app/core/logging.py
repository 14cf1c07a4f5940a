from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

from app.core.config import settings

"""
Application logger setup.
"""

logger = logging.getLogger("dashboard")
logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
# uvicorn configures root logging through dictConfig, keep our handlers independent of it.
logger.propagate = False

handler = logging.StreamHandler(sys.stdout)
handler.setLevel(logging.DEBUG)

formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
handler.setFormatter(formatter)

# One file per process start: <log_dir>/dashboard_YYYYMMDD_HHMMSS.log
_logs_dir = Path(settings.log_dir)
_logs_dir.mkdir(parents=True, exist_ok=True)
_ts = datetime.now().strftime("%Y%m%d_%H%M%S")
_log_file_path = _logs_dir / f"dashboard_{_ts}.log"
file_handler = logging.FileHandler(_log_file_path, encoding="utf-8")
file_handler.setLevel(logging.DEBUG)
file_handler.setFormatter(formatter)

if not logger.handlers:
    logger.addHandler(handler)
    logger.addHandler(file_handler)

for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
    ext_logger = logging.getLogger(name)
    ext_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    if not ext_logger.handlers:
        ext_logger.addHandler(handler)
        ext_logger.addHandler(file_handler)

logger.debug(
    "Logging configured "
    f"(level={logging.getLevelName(logger.level)}, log_file={str(_log_file_path)})"
)
