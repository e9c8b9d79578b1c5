from __future__ import annotations

import json
from typing import Dict, List, Optional

from pydantic import BaseModel

from .fs_scan import DEFAULT_EXCLUDED_DIRS, DEFAULT_EXCLUDED_FILES
from .manifests import ManifestSpec
from .model import Direction
from .patterns import PatternRule


class LayerSpec(BaseModel):
	name: str
	root: Optional[str] = None
	components: List[str] = []


class ChannelSemantics(BaseModel):
	direction: Direction
	payload_shape: str = ""
	frequency_class: str = ""


class Catalogue(BaseModel):
	"""Domain knowledge supplied to the aggregator, never derived from source."""

	layers: List[LayerSpec] = []
	channels: Dict[str, ChannelSemantics] = {}
	threshold_pattern: str = r"THRESHOLD|MIN_|MAX_|LIMIT"


class ScanConfig(BaseModel):
	root: str
	targets: List[str] = []
	max_depth: int = 2
	excluded_dirs: List[str] = list(DEFAULT_EXCLUDED_DIRS)
	excluded_files: List[str] = list(DEFAULT_EXCLUDED_FILES)
	max_file_size: int = 10 * 1024 * 1024
	workers: int = 1
	registration_receivers: List[str] = ["ipcMain"]
	registration_methods: List[str] = ["on", "handle"]
	rules: List[PatternRule] = []
	manifests: List[ManifestSpec] = []
	catalogue: Catalogue = Catalogue()

	@classmethod
	def from_file(cls, path: str, **overrides) -> "ScanConfig":
		with open(path, "r", encoding="utf-8") as fh:
			data = json.load(fh)
		data.update({k: v for k, v in overrides.items() if v is not None})
		return cls.model_validate(data)
