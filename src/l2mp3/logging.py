"""Loguru setup shared by the CLI and the conversion pipeline.

Every record carries `run_id` once `bind_run` has been called; records
emitted inside `album_context` also carry `album`. Structured events go
through `log_event` so the JSON sink sees an `action` field plus whatever
the caller attaches.
"""
from __future__ import annotations

import sys
import uuid
from typing import Any, Optional

from loguru import logger

_CONSOLE_FORMAT = "<level>{level: <8}</level> | <green>{time:HH:mm:ss}</green> | {message}"
_TRUNCATED = "... (truncated)"


def setup_console(level: str = "INFO") -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=_CONSOLE_FORMAT,
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )


def setup_json(path: str, level: str = "DEBUG") -> None:
    logger.add(path, level=level.upper(), serialize=True, enqueue=True)


def configure_logging(log_level: str = "INFO", log_json_path: Optional[str] = None) -> None:
    setup_console(log_level)
    if log_json_path:
        setup_json(log_json_path)


def bind_run(run_id: Optional[str] = None) -> str:
    """Tag all subsequent records with a run id (generated when not given)."""
    rid = run_id or str(uuid.uuid4())
    logger.configure(extra={"run_id": rid})
    return rid


def album_context(album: str):
    return logger.contextualize(album=album)


def log_event(action: str, **fields: Any) -> None:
    """Emit one structured record.

    None-valued fields are dropped. The reserved fields `msg` (defaults to
    the action) and `level` (defaults to INFO) shape the record itself.
    """
    extra = {k: v for k, v in fields.items() if v is not None}
    message = extra.pop("msg", action)
    level = str(extra.pop("level", "INFO")).upper()
    logger.bind(action=action, **extra).log(level, message)


def truncate(text: str, max_len: int = 4096, max_lines: int = 20) -> str:
    """Keep the tail of noisy tool output: at most `max_lines`, then `max_len` chars."""
    if not text:
        return ""
    lines = text.strip().splitlines()
    out = "\n".join(lines)
    if len(lines) > max_lines:
        out = "\n".join([_TRUNCATED, *lines[-max_lines:]])
    if len(out) > max_len:
        out = f"{_TRUNCATED}\n{out[-max_len:]}"
    return out
