from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Protocol, Set, Tuple

from .errors import FatalConfigError
from .log import get_logger
from .model import Diagnostic, DiagnosticKind, Family, SourceUnit

logger = get_logger(__name__)


EXTENSION_FAMILY: Dict[str, Family] = {
	".js": Family.TREE,
	".jsx": Family.TREE,
	".mjs": Family.TREE,
	".cjs": Family.TREE,
	".py": Family.PATTERN,
	".json": Family.PATTERN,
}

DEFAULT_EXCLUDED_DIRS: Tuple[str, ...] = (
	"node_modules",
	".git",
	"__pycache__",
	"dist",
	"build",
	"venv",
	".venv",
	"env",
	"vendor",
	".pytest_cache",
)

DEFAULT_EXCLUDED_FILES: Tuple[str, ...] = ("*.min.js", "*.min.css")


class DirEntry(NamedTuple):
	name: str
	is_dir: bool
	is_file: bool
	size: int = 0


class FileSystem(Protocol):
	def exists(self, path: str) -> bool: ...

	def is_dir(self, path: str) -> bool: ...

	def read_text(self, path: str) -> str: ...

	def list_dir(self, path: str) -> List[DirEntry]: ...


class LocalFileSystem:
	"""FileSystem backed by the local disk.

	Errors surface as FileNotFoundError or PermissionError (any other OSError
	is passed through unchanged).
	"""

	def exists(self, path: str) -> bool:
		return os.path.exists(path)

	def is_dir(self, path: str) -> bool:
		return os.path.isdir(path)

	def read_text(self, path: str) -> str:
		with open(path, "r", encoding="utf-8", errors="replace") as fh:
			return fh.read()

	def list_dir(self, path: str) -> List[DirEntry]:
		entries: List[DirEntry] = []
		with os.scandir(path) as it:
			for entry in it:
				is_file = entry.is_file()
				size = entry.stat().st_size if is_file else 0
				entries.append(DirEntry(entry.name, entry.is_dir(), is_file, size))
		return entries


def detect_family(filename: str) -> Optional[Family]:
	_, ext = os.path.splitext(filename)
	return EXTENSION_FAMILY.get(ext.lower())


def normalize_target(target: str) -> str:
	# Targets may be written with either separator.
	return os.path.join(*target.replace("\\", "/").split("/"))


def relative_path(root: str, path: str) -> str:
	"""Root-relative POSIX path, the form every unit and diagnostic carries."""
	return Path(os.path.relpath(path, root)).as_posix()


class Locator:
	"""Resolves configured targets under a root into SourceUnits.

	Scan order is the contract the aggregator relies on: targets in configured
	order; within a directory, files before subdirectories, siblings sorted by
	name.
	"""

	def __init__(
		self,
		root: str,
		targets: List[str],
		max_depth: int = 2,
		excluded_dirs: Tuple[str, ...] = DEFAULT_EXCLUDED_DIRS,
		excluded_files: Tuple[str, ...] = DEFAULT_EXCLUDED_FILES,
		max_file_size: int = 10 * 1024 * 1024,
		fs: Optional[FileSystem] = None,
	):
		self.root = os.path.abspath(root)
		self.targets = list(targets)
		self.max_depth = max_depth
		self.excluded_dirs: Set[str] = set(excluded_dirs)
		self.excluded_files = tuple(excluded_files)
		self.max_file_size = max_file_size
		self.fs: FileSystem = fs or LocalFileSystem()
		self.diagnostics: List[Diagnostic] = []

	def _note(self, kind: DiagnosticKind, path: str, reason: str) -> None:
		rel_path = relative_path(self.root, path)
		logger.warning("%s: %s (%s)", kind.value, rel_path, reason)
		self.diagnostics.append(Diagnostic(kind=kind, path=rel_path, reason=reason))

	def check_root(self) -> None:
		if not self.fs.exists(self.root):
			raise FatalConfigError(self.root, "does not exist")
		if not self.fs.is_dir(self.root):
			raise FatalConfigError(self.root, "is not a directory")

	def _is_excluded_file(self, name: str) -> bool:
		return any(fnmatch.fnmatch(name, pattern) for pattern in self.excluded_files)

	def _walk(self, directory: str, depth: int) -> List[str]:
		"""Return candidate file paths under directory, or [] if it cannot be listed."""
		if depth >= self.max_depth:
			return []
		try:
			entries = self.fs.list_dir(directory)
		except OSError as exc:
			self._note(DiagnosticKind.SUBTREE_UNREADABLE, directory, str(exc) or type(exc).__name__)
			return []

		files: List[str] = []
		subdirs: List[str] = []
		for entry in sorted(entries, key=lambda e: e.name):
			path = os.path.join(directory, entry.name)
			if entry.is_dir:
				if entry.name not in self.excluded_dirs:
					subdirs.append(path)
			elif entry.is_file and detect_family(entry.name) is not None:
				if self._is_excluded_file(entry.name):
					continue
				if entry.size > self.max_file_size:
					logger.debug("skipping oversized file %s (%d bytes)", path, entry.size)
					continue
				files.append(path)
		for sub in subdirs:
			files.extend(self._walk(sub, depth + 1))
		return files

	def _load(self, path: str) -> Optional[SourceUnit]:
		family = detect_family(path)
		if family is None:
			return None
		try:
			content = self.fs.read_text(path)
		except OSError as exc:
			self._note(DiagnosticKind.READ_FAILURE, path, str(exc) or type(exc).__name__)
			return None
		rel_path = relative_path(self.root, path)
		return SourceUnit(path=path, rel_path=rel_path, family=family, content=content)

	def locate(self) -> List[SourceUnit]:
		self.check_root()
		units: List[SourceUnit] = []
		seen: Set[str] = set()
		for target in self.targets:
			# "." and "a/../b" style targets must dedupe against plain ones.
			full = os.path.normpath(os.path.join(self.root, normalize_target(target)))
			if not self.fs.exists(full):
				self._note(DiagnosticKind.PATH_ABSENT, full, "target not found")
				continue
			if self.fs.is_dir(full):
				candidates = self._walk(full, 0)
			elif self._is_excluded_file(os.path.basename(full)):
				candidates = []
			else:
				candidates = [full]
			for path in candidates:
				if path in seen:
					continue
				unit = self._load(path)
				if unit is not None:
					seen.add(path)
					units.append(unit)
		logger.info("located %d source units under %s", len(units), self.root)
		return units


def to_component_name(rel_path: str) -> str:
	return os.path.splitext(os.path.basename(rel_path))[0]
