from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from .aggregate import aggregate
from .config import ScanConfig
from .errors import ParseError
from .fs_scan import FileSystem, Locator
from .js_parse import StructuralExtractor
from .log import get_logger
from .manifests import read_tech_stack
from .model import (
	AnalysisRun,
	Diagnostic,
	DiagnosticKind,
	Family,
	PatternMatch,
	SourceUnit,
	StructuralFacts,
	UnitExtraction,
)
from .patterns import PatternRule

logger = get_logger(__name__)

Extractor = Callable[[SourceUnit], UnitExtraction]


class ExtractionEngine:
	"""Per-unit extraction, dispatched on the unit's language family."""

	def __init__(self, config: ScanConfig):
		self.rules: List[PatternRule] = list(config.rules)
		self.structural = StructuralExtractor(
			set(config.registration_receivers),
			set(config.registration_methods),
		)
		self.dispatch: Dict[Family, Extractor] = {
			Family.TREE: self._extract_tree,
			Family.PATTERN: self._extract_pattern,
		}

	def _match(self, unit: SourceUnit, diagnostics: List[Diagnostic]) -> List[PatternMatch]:
		"""Apply every rule in order. A rule that fails only loses its own matches."""
		matches: List[PatternMatch] = []
		for rule in self.rules:
			try:
				matches.extend(rule.apply(unit))
			except (re.error, ValueError) as exc:
				logger.warning("rule %s failed on %s: %s", rule.name, unit.rel_path, exc)
				diagnostics.append(
					Diagnostic(kind=DiagnosticKind.RULE_FAILURE, path=unit.rel_path, reason=f"{rule.name}: {exc}")
				)
		return matches

	def _extract_tree(self, unit: SourceUnit) -> UnitExtraction:
		diagnostics: List[Diagnostic] = []
		try:
			structure = self.structural.extract(unit)
		except ParseError as exc:
			logger.warning("parse failure in %s: %s", unit.rel_path, exc)
			structure = StructuralFacts()
			diagnostics.append(Diagnostic(kind=DiagnosticKind.PARSE_FAILURE, path=unit.rel_path, reason=str(exc)))
		matches = self._match(unit, diagnostics)
		return UnitExtraction(
			rel_path=unit.rel_path,
			family=unit.family,
			structure=structure,
			matches=matches,
			diagnostics=diagnostics,
		)

	def _extract_pattern(self, unit: SourceUnit) -> UnitExtraction:
		diagnostics: List[Diagnostic] = []
		matches = self._match(unit, diagnostics)
		return UnitExtraction(
			rel_path=unit.rel_path,
			family=unit.family,
			matches=matches,
			diagnostics=diagnostics,
		)

	def extract(self, unit: SourceUnit) -> UnitExtraction:
		return self.dispatch[unit.family](unit)

	def extract_all(self, units: List[SourceUnit], workers: int = 1) -> List[UnitExtraction]:
		"""Extract every unit; the result list always follows the order of units."""
		if workers <= 1 or len(units) <= 1:
			return [self.extract(unit) for unit in units]
		with ThreadPoolExecutor(max_workers=workers) as pool:
			# map() yields in submission order, which is the join barrier.
			return list(pool.map(self.extract, units))


def analyze(config: ScanConfig, fs: Optional[FileSystem] = None, workers: Optional[int] = None) -> AnalysisRun:
	"""Run one full pass. Raises FatalConfigError when the root is unusable."""
	locator = Locator(
		config.root,
		config.targets,
		max_depth=config.max_depth,
		excluded_dirs=tuple(config.excluded_dirs),
		excluded_files=tuple(config.excluded_files),
		max_file_size=config.max_file_size,
		fs=fs,
	)
	units = locator.locate()

	engine = ExtractionEngine(config)
	extractions = engine.extract_all(units, workers if workers is not None else config.workers)

	tech_stack, manifest_diagnostics = read_tech_stack(locator.root, config.manifests, fs=fs)
	model = aggregate(extractions, config.catalogue, engine.rules, tech_stack)

	diagnostics = list(locator.diagnostics)
	for extraction in extractions:
		diagnostics.extend(extraction.diagnostics)
	diagnostics.extend(manifest_diagnostics)

	logger.info(
		"analyzed %d units (%d with failures): %d channels, %d data structures, %d thresholds, %d diagnostics",
		len(units),
		sum(1 for e in extractions if not e.ok),
		len(model.channels),
		len(model.data_structures),
		len(model.thresholds),
		len(diagnostics),
	)
	return AnalysisRun(
		root=locator.root,
		units=[unit.rel_path for unit in units],
		model=model,
		diagnostics=diagnostics,
	)
