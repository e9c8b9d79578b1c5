from __future__ import annotations


class ArchScanError(Exception):
	"""Base class for errors raised by archscan."""


class FatalConfigError(ArchScanError):
	"""The configured root cannot be used, so no source unit can be located."""

	def __init__(self, root: str, reason: str):
		super().__init__(f"Unusable root {root}: {reason}")
		self.root = root
		self.reason = reason


class ParseError(ArchScanError):
	"""Source text could not be parsed into a syntax tree."""

	def __init__(self, message: str, line: int = 0, column: int = 0):
		super().__init__(message)
		self.line = line
		self.column = column
