from __future__ import annotations

import logging
import os
from typing import Final, Optional

_HANDLER_ATTACHED: bool = False
_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(override: Optional[str] = None) -> int:
	level_name = (override or os.getenv("ARCHSCAN_LOG_LEVEL", "INFO")).upper()
	return getattr(logging, level_name, logging.INFO)


def configure(level: Optional[str] = None) -> None:
	"""Attach a single stream handler to the root logger."""
	global _HANDLER_ATTACHED

	resolved = _resolve_level(level)
	root = logging.getLogger()
	if not _HANDLER_ATTACHED:
		handler = logging.StreamHandler()
		handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
		root.addHandler(handler)
		_HANDLER_ATTACHED = True
	root.setLevel(resolved)


def get_logger(name: str) -> logging.Logger:
	return logging.getLogger(name)
