from __future__ import annotations

import json
import os
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel

from .fs_scan import FileSystem, LocalFileSystem, normalize_target, relative_path
from .log import get_logger
from .model import Diagnostic, DiagnosticKind

logger = get_logger(__name__)


class ManifestSpec(BaseModel):
	category: str
	path: str
	kind: Literal["npm", "pip"]
	packages: List[str] = []


def parse_npm(text: str, packages: List[str]) -> Dict[str, str]:
	data = json.loads(text)
	merged: Dict[str, str] = {}
	for section in ("engines", "devDependencies", "dependencies"):
		values = data.get(section) or {}
		if isinstance(values, dict):
			merged.update({str(k): str(v) for k, v in values.items()})
	if not packages:
		return merged
	return {name: merged.get(name, "latest") for name in packages}


def parse_requirements(text: str) -> Dict[str, str]:
	deps: Dict[str, str] = {}
	for line in text.splitlines():
		line = line.split("#", 1)[0].strip()
		if "==" in line:
			name, version = line.split("==", 1)
			deps[name.strip()] = version.strip()
	return deps


def read_tech_stack(
	root: str,
	specs: List[ManifestSpec],
	fs: Optional[FileSystem] = None,
) -> Tuple[Dict[str, Dict[str, str]], List[Diagnostic]]:
	fs = fs or LocalFileSystem()
	stack: Dict[str, Dict[str, str]] = {}
	diagnostics: List[Diagnostic] = []
	for spec in specs:
		path = os.path.join(root, normalize_target(spec.path))
		rel_path = relative_path(root, path)
		try:
			text = fs.read_text(path)
		except FileNotFoundError:
			diagnostics.append(Diagnostic(kind=DiagnosticKind.PATH_ABSENT, path=rel_path, reason="manifest not found"))
			continue
		except OSError as exc:
			diagnostics.append(Diagnostic(kind=DiagnosticKind.READ_FAILURE, path=rel_path, reason=str(exc)))
			continue
		try:
			if spec.kind == "npm":
				deps = parse_npm(text, spec.packages)
			else:
				deps = parse_requirements(text)
		except (ValueError, AttributeError) as exc:
			diagnostics.append(Diagnostic(kind=DiagnosticKind.PARSE_FAILURE, path=rel_path, reason=str(exc)))
			continue
		logger.debug("read %d packages for %s from %s", len(deps), spec.category, path)
		stack.setdefault(spec.category, {}).update(deps)
	return stack, diagnostics
