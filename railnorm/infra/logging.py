# railnorm/infra/logging.py
# -*- coding: utf-8 -*-

"""
Logging setup shared by the library, the CLIs and the tests.

Usage
-----
    from railnorm.infra.logging import init_logging, get_logger

    init_logging(level="DEBUG")
    _log = get_logger(__name__)
    _log.debug("compute: route=%s", route_id)

Conventions
-----------
- Records go to stderr; CLIs print their JSON result on stdout.
- Format: [YYYY-MM-DD HH:MM:SS][LEVEL][logger.name] message
- RAILNORM_LOG_LEVEL, when set, wins over the `level` argument.
- DEBUG for engine inputs/outputs, INFO for decisions and counts,
  WARNING for skipped data, ERROR with traceback for unexpected failures.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

LEVEL_ENV_VAR = "RAILNORM_LOG_LEVEL"
DEFAULT_LOGS_DIR = Path("logs")

_FORMAT = "[{asctime}][{levelname}][{name}] {message}"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_state = {
      "logs_dir": DEFAULT_LOGS_DIR
    , "log_file": None
}


# ────────────────────────────────────────────────────────────────────────────────
# Internals
# ────────────────────────────────────────────────────────────────────────────────

def _resolve_level(level: str) -> int:
    name = os.getenv(LEVEL_ENV_VAR) or level
    numeric = logging.getLevelName(str(name).upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def _per_run_file(logs_dir: Path) -> Path:
    """logs/<script>__<YYYYmmdd-HHMMSS>.log"""
    script = Path(sys.argv[0] or "railnorm").stem
    if not script or script == "-m":
        script = "railnorm"
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return logs_dir / f"{script}__{stamp}.log"


# ────────────────────────────────────────────────────────────────────────────────
# Public API
# ────────────────────────────────────────────────────────────────────────────────

def init_logging(
      level: str = "INFO"
    , *
    , force: bool = True
    , write_output: bool = False
    , log_file: Optional[Path] = None
    , logs_dir: Optional[Path] = None
    , stream: Optional[TextIO] = None
) -> None:
    """
    Configure the root logger.

    Parameters
    ----------
    level : str
        "DEBUG" | "INFO" | "WARNING" | "ERROR". Unknown names fall back to INFO.
    force : bool
        Drop handlers already attached to the root logger first.
    write_output : bool
        Also write to a per-run file under `logs_dir` (default `logs/`).
    log_file : Optional[Path]
        Explicit file to write to (implies file output).
    logs_dir : Optional[Path]
        Directory for the per-run file.
    stream : Optional[TextIO]
        Console stream; stderr when omitted.
    """
    numeric_level = _resolve_level(level)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT, style="{")

    root = logging.getLogger()
    if force:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(numeric_level)

    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    _state["log_file"] = None
    if log_file is not None or write_output:
        if log_file is None:
            target_dir = Path(logs_dir) if logs_dir is not None else DEFAULT_LOGS_DIR
            path = _per_run_file(target_dir)
        else:
            path = Path(log_file)
            target_dir = path.parent
        target_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

        _state["logs_dir"] = target_dir
        _state["log_file"] = path.resolve()

    get_logger(__name__).debug("logging ready (level=%s)", logging.getLevelName(numeric_level))


def get_logs_dir() -> Path:
    """Directory used by the last `init_logging` call that wrote a file."""
    return _state["logs_dir"]


def get_current_log_path() -> Optional[Path]:
    """
    File the current run is logging to, or None when logging to the console only.
    """
    return _state["log_file"]


def log_banner(
      log: logging.Logger
    , msg: str
    , *
    , char: str = "="
    , width: int = 60
) -> None:
    """
    INFO bar / message / bar, used by the CLIs to mark the start of a run.
    """
    bar = char * width
    for line in (bar, msg, bar):
        log.info(line)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
