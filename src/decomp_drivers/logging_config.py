from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", log_dir: str | Path = "reports") -> Path | None:
    """Configure root logging; at DEBUG also write a timestamped log file.

    Returns the path of the debug log file, if one was opened.
    """
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=lvl, format=LOG_FORMAT)

    if str(level).upper() != "DEBUG":
        return None
    out_dir = Path(log_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = out_dir / f"decomp_debug_{ts}.txt"
    fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(fh)
    logging.getLogger(__name__).info("Writing DEBUG logs to %s", log_path)
    return log_path


__all__ = ["setup_logging", "LOG_FORMAT"]
