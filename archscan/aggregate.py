from __future__ import annotations

import posixpath
import re
from typing import Dict, List, Optional

from .config import Catalogue
from .fs_scan import to_component_name
from .model import (
	ArchitectureModel,
	Channel,
	ComponentFacts,
	DataStructure,
	Layer,
	UnitExtraction,
)
from .patterns import BracketedFieldRule, ConstantBindingRule, LiteralScanRule, PatternRule, PrefixedCallableRule


class ModelBuilder:
	"""Mutable accumulator for one run; freeze() hands out the read-only model."""

	def __init__(self) -> None:
		self._layers: List[Layer] = []
		self._data_structures: Dict[str, DataStructure] = {}
		self._channels: List[Channel] = []
		self._thresholds: Dict[str, str] = {}
		self._tech_stack: Dict[str, Dict[str, str]] = {}
		self._components: Dict[str, ComponentFacts] = {}
		self._endpoints: Dict[str, str] = {}
		self._frozen = False

	def _check(self) -> None:
		if self._frozen:
			raise RuntimeError("model already frozen")

	def add_layer(self, layer: Layer) -> None:
		self._check()
		self._layers.append(layer)

	def set_data_structure(self, label: str, structure: DataStructure) -> None:
		# Last write wins.
		self._check()
		self._data_structures[label] = structure

	def add_channel(self, channel: Channel) -> None:
		self._check()
		self._channels.append(channel)

	def add_threshold(self, name: str, value: str) -> None:
		# First write wins.
		self._check()
		self._thresholds.setdefault(name, value)

	def add_endpoint(self, name: str, value: str) -> None:
		self._check()
		self._endpoints.setdefault(name, value)

	def set_component(self, rel_path: str, facts: ComponentFacts) -> None:
		self._check()
		self._components[rel_path] = facts

	def set_tech_stack(self, stack: Dict[str, Dict[str, str]]) -> None:
		self._check()
		self._tech_stack = {category: dict(deps) for category, deps in stack.items()}

	def freeze(self) -> ArchitectureModel:
		self._check()
		self._frozen = True
		return ArchitectureModel(
			layers=self._layers,
			data_structures=self._data_structures,
			channels=self._channels,
			thresholds=self._thresholds,
			tech_stack=self._tech_stack,
			components=self._components,
			endpoints=self._endpoints,
		)


def _layer_components(root: Optional[str], extractions: List[UnitExtraction]) -> List[str]:
	if root is None:
		return []
	root = posixpath.normpath(root.replace("\\", "/"))
	if root == ".":
		root = ""
	names: List[str] = []
	for extraction in extractions:
		if posixpath.dirname(extraction.rel_path) != root:
			continue
		name = to_component_name(extraction.rel_path)
		if name.startswith("__") or name in names:
			continue
		names.append(name)
	return names


def _component_facts(extraction: UnitExtraction, rules: Dict[str, PatternRule]) -> ComponentFacts:
	structure = extraction.structure
	callables: Dict[str, List[str]] = {}
	for match in extraction.matches:
		if isinstance(rules.get(match.rule), PrefixedCallableRule):
			callables.setdefault(match.rule, []).append(match.fields["name"])
	return ComponentFacts(
		classes=[d for d in structure.declarations if d.kind == "class"],
		functions=[d for d in structure.declarations if d.kind == "function"],
		imports=structure.imports,
		exports=structure.exports,
		callables=callables,
	)


def aggregate(
	extractions: List[UnitExtraction],
	catalogue: Catalogue,
	rules: List[PatternRule],
	tech_stack: Optional[Dict[str, Dict[str, str]]] = None,
) -> ArchitectureModel:
	"""Reduce per-unit results, given in scan order, into one frozen model."""
	builder = ModelBuilder()
	by_name: Dict[str, PatternRule] = {rule.name: rule for rule in rules}
	bound_like = re.compile(catalogue.threshold_pattern)

	for spec in catalogue.layers:
		components = list(spec.components)
		for name in _layer_components(spec.root, extractions):
			if name not in components:
				components.append(name)
		builder.add_layer(Layer(name=spec.name, components=components))

	for extraction in extractions:
		builder.set_component(extraction.rel_path, _component_facts(extraction, by_name))

		for call in extraction.structure.registrations:
			semantics = catalogue.channels.get(call.channel)
			builder.add_channel(
				Channel(
					channel=call.channel,
					kind=call.method,
					rel_path=call.rel_path,
					direction=semantics.direction if semantics else None,
					payload_shape=semantics.payload_shape if semantics else "",
					frequency_class=semantics.frequency_class if semantics else "",
				)
			)

		for binding in extraction.structure.bindings:
			if bound_like.search(binding.name):
				builder.add_threshold(binding.name, binding.value)

		for match in extraction.matches:
			rule = by_name.get(match.rule)
			if isinstance(rule, BracketedFieldRule):
				builder.set_data_structure(
					rule.label,
					DataStructure(fields=match.fields, rel_path=match.rel_path),
				)
			elif isinstance(rule, ConstantBindingRule):
				name = match.fields["name"]
				if bound_like.search(name):
					builder.add_threshold(name, match.fields["value"])
			elif isinstance(rule, LiteralScanRule):
				value = match.fields.get("value") or next(iter(match.fields.values()), "")
				builder.add_endpoint(rule.name, value)

	if tech_stack:
		builder.set_tech_stack(tech_stack)
	return builder.freeze()
