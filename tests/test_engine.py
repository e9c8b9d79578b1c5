from __future__ import annotations

import json
import os

import pytest

from archscan.catalogue import default_config
from archscan.config import ScanConfig
from archscan.engine import ExtractionEngine, analyze
from archscan.errors import FatalConfigError
from archscan.model import DiagnosticKind, Direction, Family, SourceUnit
from archscan.patterns import BracketedFieldRule, LiteralScanRule


def test_full_run_on_sample_codebase(sample_root):
	run = analyze(default_config(str(sample_root)))
	model = run.model

	assert run.units == [
		"electron/main.js",
		"electron/src/main/Broken.js",
		"electron/src/main/WindowManager.js",
		"polygon/__init__.py",
		"polygon/websocket.py",
		"polygon/validators/quotes.py",
	]
	assert [(l.name, l.components[-2:]) for l in model.layers][1:] == [
		("Electron Main Process", ("Broken", "WindowManager")),
		("Python Backend", ("websocket",)),
	]
	assert [(c.channel, c.kind, c.direction) for c in model.channels] == [
		("market-data", "on", Direction.FORWARD),
		("custom-channel", "handle", None),
	]
	assert model.thresholds == {"MAX_WINDOWS": "4", "MAX_RECONNECT_ATTEMPTS": "5"}
	assert model.data_structures["Window State"].fields == {"bounds": "Object", "maximized": "boolean"}
	assert model.data_structures["Window State"].rel_path == "electron/src/main/WindowManager.js"
	assert model.endpoints["websocket_url"] == "wss://socket.polygon.io/stocks"
	assert model.endpoints["websocket_client"] == "PolygonWebSocketClient"
	assert model.components["polygon/websocket.py"].callables == {"ws_handlers": ("on_message", "on_error")}
	assert model.components["polygon/validators/quotes.py"].callables == {
		"validators": ("validate_price", "validate_volume")
	}
	assert model.tech_stack == {
		"Frontend": {"electron": "^28.0.0", "ag-grid-community": "31.0.0", "node": ">=18"},
		"Backend": {"websockets": "12.0", "pydantic": "2.5.0"},
	}


def test_parse_failure_is_recorded_and_unit_stays_pattern_eligible(sample_root):
	(sample_root / "electron/src/main/Broken.js").write_text(
		"const GridConfig = { rows: 10 };\nclass Broken {\n  method( {\n"
	)
	run = analyze(default_config(str(sample_root)))
	parse_failures = [d for d in run.diagnostics if d.kind is DiagnosticKind.PARSE_FAILURE]
	assert [d.path for d in parse_failures] == ["electron/src/main/Broken.js"]
	assert run.model.components["electron/src/main/Broken.js"].classes == ()
	assert run.model.data_structures["Grid Configuration"].fields == {"rows": "10"}


def test_absent_targets_become_diagnostics_not_units(sample_root):
	run = analyze(default_config(str(sample_root)))
	absent = [d.path for d in run.diagnostics if d.kind is DiagnosticKind.PATH_ABSENT]
	assert "electron/src/renderer/bridge" in absent
	assert "electron/config" in absent
	referenced = set(run.model.components)
	for channel in run.model.channels:
		referenced.add(channel.rel_path)
	for entry in run.model.data_structures.values():
		referenced.add(entry.rel_path)
	assert referenced <= set(run.units)


def test_runs_are_idempotent(sample_root):
	config = default_config(str(sample_root))
	assert analyze(config) == analyze(config)


def test_parallel_and_sequential_extraction_agree(sample_root):
	config = default_config(str(sample_root))
	sequential = analyze(config, workers=1)
	parallel = analyze(config, workers=4)
	assert parallel.model == sequential.model
	assert parallel.diagnostics == sequential.diagnostics


def test_missing_root_yields_single_fatal_error(tmp_path):
	with pytest.raises(FatalConfigError) as info:
		analyze(default_config(str(tmp_path / "missing")))
	assert "missing" in info.value.root


def test_last_write_wins_follows_pinned_scan_order(tmp_path):
	(tmp_path / "a.js").write_text("const MarketData = { symbol: string };\n")
	(tmp_path / "b.py").write_text("MarketData = { price: float, volume: int }\n")
	rule = BracketedFieldRule(name="md", label="Market Data Format", header="MarketData")

	forward = analyze(ScanConfig(root=str(tmp_path), targets=["a.js", "b.py"], rules=[rule]))
	assert forward.model.data_structures["Market Data Format"].fields == {"price": "float", "volume": "int"}

	backward = analyze(ScanConfig(root=str(tmp_path), targets=["b.py", "a.js"], rules=[rule]))
	assert backward.model.data_structures["Market Data Format"].fields == {"symbol": "string"}

	walked = analyze(ScanConfig(root=str(tmp_path), targets=["."], rules=[rule]))
	assert walked.units == ["a.js", "b.py"]
	assert walked.model.data_structures["Market Data Format"].rel_path == "b.py"


def test_dispatch_table_covers_every_family():
	engine = ExtractionEngine(ScanConfig(root="."))
	assert set(engine.dispatch) == set(Family)
	unit = SourceUnit(path="/x/a.py", rel_path="a.py", family=Family.PATTERN, content="class A {}")
	assert engine.extract(unit).structure.declarations == []


def test_config_file_round_trip(tmp_path, sample_root):
	config_path = tmp_path / "scan.json"
	config_path.write_text(
		json.dumps(
			{
				"targets": ["electron/main.js"],
				"rules": [{"kind": "literal-scan", "name": "reply", "pattern": "reply\\('(\\w+)'"}],
				"catalogue": {"channels": {"market-data": {"direction": "A↔B"}}},
			}
		),
		encoding="utf-8",
	)
	config = ScanConfig.from_file(str(config_path), root=str(sample_root), workers=None)
	run = analyze(config)
	assert run.units == ["electron/main.js"]
	assert run.model.endpoints == {"reply": "ack"}
	assert run.model.channels[0].direction is Direction.BOTH


class _ExplodingRule(LiteralScanRule):
	def _matches(self, unit):
		raise ValueError("cannot record match")


def test_failing_rule_becomes_diagnostic_for_that_unit(tmp_path):
	(tmp_path / "a.py").write_text("b = 1\nMAX_B = 2\n")
	(tmp_path / "c.js").write_text("const b = 1;\n")
	rules = [
		LiteralScanRule(name="optional", pattern=r"(zzz)?b"),
		_ExplodingRule(name="boom", pattern="b"),
		LiteralScanRule(name="after", pattern=r"MAX_\w+"),
	]
	run = analyze(ScanConfig(root=str(tmp_path), targets=["a.py", "c.js"], rules=rules))

	assert run.units == ["a.py", "c.js"]
	assert run.model.endpoints == {"optional": "b", "after": "MAX_B"}
	failures = [(d.kind, d.path) for d in run.diagnostics]
	assert failures == [(DiagnosticKind.RULE_FAILURE, "a.py"), (DiagnosticKind.RULE_FAILURE, "c.js")]
	assert run.diagnostics[0].reason.startswith("boom: ")


def test_every_diagnostic_path_is_root_relative(sample_root):
	(sample_root / "requirements.txt").unlink()
	run = analyze(default_config(str(sample_root)))
	by_kind = {}
	for d in run.diagnostics:
		by_kind.setdefault(d.kind, []).append(d.path)
	assert by_kind[DiagnosticKind.PARSE_FAILURE] == ["electron/src/main/Broken.js"]
	assert "electron/config" in by_kind[DiagnosticKind.PATH_ABSENT]
	assert "requirements.txt" in by_kind[DiagnosticKind.PATH_ABSENT]
	assert not any(os.path.isabs(d.path) for d in run.diagnostics)


def test_dot_target_and_file_target_count_once(tmp_path):
	(tmp_path / "a.js").write_text("ipcMain.on('x', () => {});\n")
	run = analyze(ScanConfig(root=str(tmp_path), targets=[".", "a.js", "./a.js"]))
	assert run.units == ["a.js"]
	assert [(c.channel, c.rel_path) for c in run.model.channels] == [("x", "a.js")]
