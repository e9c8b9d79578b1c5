"""Default targets, rules and catalogues for the Electron + Polygon trading tool layout."""

from __future__ import annotations

from typing import List

from .config import Catalogue, ChannelSemantics, LayerSpec, ScanConfig
from .manifests import ManifestSpec
from .model import Direction, Family
from .patterns import (
	BracketedFieldRule,
	ConstantBindingRule,
	LiteralScanRule,
	PatternRule,
	PrefixedCallableRule,
)

DEFAULT_TARGETS: List[str] = [
	"electron/main.js",
	"electron/src/main",
	"electron/src/renderer/bridge",
	"electron/src/renderer/modules",
	"electron/config",
	"polygon",
]

DEFAULT_RULES: List[PatternRule] = [
	PrefixedCallableRule(name="ws_handlers", prefixes=["on_"], paths=["polygon/websocket.py"]),
	PrefixedCallableRule(name="validators", prefixes=["validate_"], paths=["polygon/validators/*"]),
	PrefixedCallableRule(name="cache_ops", prefixes=["cache_"], paths=["polygon/core.py"]),
	PrefixedCallableRule(name="storage_ops", prefixes=["save_", "load_"], paths=["polygon/storage.py"]),
	PrefixedCallableRule(name="calculations", prefixes=["calc", "compute"], families=[Family.PATTERN]),
	BracketedFieldRule(name="market_data", label="Market Data Format", header=r"MarketData|marketData"),
	BracketedFieldRule(name="scanner_config", label="Scanner Configuration", header=r"Scanner.*Config"),
	BracketedFieldRule(name="window_state", label="Window State", header=r"Window.*State"),
	BracketedFieldRule(name="grid_config", label="Grid Configuration", header=r"GridConfig|gridConfig"),
	LiteralScanRule(name="websocket_url", pattern=r"wss?://[^\s'\"]+", families=[Family.PATTERN]),
	LiteralScanRule(
		name="websocket_client",
		pattern=r"class\s+(\w+WebSocket\w*)[^:]*:",
		families=[Family.PATTERN],
	),
	LiteralScanRule(name="cache_capacity", pattern=r"cache.*?=.*?LRU.*?\(.*?(\d+).*?\)", ignore_case=True),
	LiteralScanRule(name="rate_limit", pattern=r"rate_limit.*?[:=]\s*(\d+)", ignore_case=True),
	LiteralScanRule(name="buffer_size", pattern=r"buffer_size.*?[:=]\s*(\d+)", ignore_case=True),
	ConstantBindingRule(name="constants", families=[Family.PATTERN]),
]

DEFAULT_CATALOGUE = Catalogue(
	layers=[
		LayerSpec(
			name="Electron Frontend",
			components=[
				"Multi-window management (Scanner, Positions, Charts)",
				"IPC Bridge for process communication",
				"ag-Grid integration for real-time updates",
				"Perspective.js for data visualization",
			],
		),
		LayerSpec(name="Electron Main Process", root="electron/src/main"),
		LayerSpec(name="Python Backend", root="polygon"),
	],
	channels={
		"market-data": ChannelSemantics(
			direction=Direction.FORWARD,
			payload_shape="{ symbol, price, volume, timestamp }",
			frequency_class="Real-time",
		),
		"window-state": ChannelSemantics(
			direction=Direction.BACKWARD,
			payload_shape="{ bounds, data, preferences }",
			frequency_class="On change",
		),
		"scanner-config": ChannelSemantics(
			direction=Direction.BOTH,
			payload_shape="{ conditions, columns, filters }",
			frequency_class="On demand",
		),
	},
)

DEFAULT_MANIFESTS: List[ManifestSpec] = [
	ManifestSpec(
		category="Frontend",
		path="electron/package.json",
		kind="npm",
		packages=["electron", "ag-grid-community", "node"],
	),
	ManifestSpec(category="Backend", path="requirements.txt", kind="pip"),
]


def default_config(root: str, **overrides) -> ScanConfig:
	data = dict(
		root=root,
		targets=list(DEFAULT_TARGETS),
		rules=list(DEFAULT_RULES),
		manifests=list(DEFAULT_MANIFESTS),
		catalogue=DEFAULT_CATALOGUE,
	)
	data.update({k: v for k, v in overrides.items() if v is not None})
	return ScanConfig(**data)
