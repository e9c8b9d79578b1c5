"""Named text-pattern rules applied to raw source text.

Rules are plain pydantic models so they can be loaded from configuration
files. Each rule only looks at one unit at a time.
"""

from __future__ import annotations

import fnmatch
import re
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field, field_validator

from .model import Family, PatternMatch, SourceUnit

# identifier : value, value ends at the next comma, semicolon or newline
_FIELD_RE = re.compile(r"(\w+)\s*:\s*([^,\n;]+)")
_CONSTANT_RE = re.compile(r"^([A-Z][A-Z0-9_]*)\s*=\s*(.+?)\s*$", re.MULTILINE)
_LITERAL_RE = re.compile(r"""^(-?\d[\d_]*(\.\d+)?([eE][-+]?\d+)?|True|False|None|'[^']*'|"[^"]*")$""")


def _compiles(pattern: str) -> str:
	try:
		re.compile(pattern)
	except re.error as exc:
		raise ValueError(f"invalid regular expression {pattern!r}: {exc}") from exc
	return pattern


class _Rule(BaseModel):
	name: str
	families: List[Family] = []
	paths: List[str] = []

	def applies_to(self, unit: SourceUnit) -> bool:
		if self.families and unit.family not in self.families:
			return False
		if self.paths and not any(fnmatch.fnmatch(unit.rel_path, p) for p in self.paths):
			return False
		return True

	def apply(self, unit: SourceUnit) -> List[PatternMatch]:
		if not self.applies_to(unit):
			return []
		return self._matches(unit)

	def _matches(self, unit: SourceUnit) -> List[PatternMatch]:
		raise NotImplementedError


class PrefixedCallableRule(_Rule):
	kind: Literal["prefixed-callable"] = "prefixed-callable"
	prefixes: List[str]
	keyword: str = "def"

	def _matches(self, unit: SourceUnit) -> List[PatternMatch]:
		alternatives = "|".join(re.escape(p) for p in self.prefixes)
		regex = re.compile(rf"\b{re.escape(self.keyword)}\s+((?:{alternatives})\w*)\s*\(")
		return [
			PatternMatch(rule=self.name, rel_path=unit.rel_path, fields={"name": m.group(1)})
			for m in regex.finditer(unit.content)
		]


class BracketedFieldRule(_Rule):
	"""Fields of the first brace block following a header.

	Extraction stops at the first closing brace, so a value that itself
	contains braces is cut short. Treat the result as best-effort.
	"""

	kind: Literal["bracketed-field"] = "bracketed-field"
	label: str
	header: str

	@field_validator("header")
	@classmethod
	def check_header(cls, value: str) -> str:
		return _compiles(value)

	def _matches(self, unit: SourceUnit) -> List[PatternMatch]:
		block = re.search(rf"(?:{self.header})[^{{]*{{([^}}]+)}}", unit.content)
		if block is None:
			return []
		fields = {m.group(1): m.group(2).strip() for m in _FIELD_RE.finditer(block.group(1))}
		return [PatternMatch(rule=self.name, rel_path=unit.rel_path, fields=fields)]


class LiteralScanRule(_Rule):
	kind: Literal["literal-scan"] = "literal-scan"
	pattern: str
	ignore_case: bool = False

	@field_validator("pattern")
	@classmethod
	def check_pattern(cls, value: str) -> str:
		return _compiles(value)

	def _matches(self, unit: SourceUnit) -> List[PatternMatch]:
		flags = re.IGNORECASE if self.ignore_case else 0
		m = re.search(self.pattern, unit.content, flags)
		if m is None:
			return []
		fields = {k: v for k, v in m.groupdict().items() if v is not None}
		if not fields:
			first = m.group(1) if m.re.groups else None
			fields = {"value": first if first is not None else m.group(0)}
		return [PatternMatch(rule=self.name, rel_path=unit.rel_path, fields=fields)]


class ConstantBindingRule(_Rule):
	"""Module-level UPPER_CASE assignments whose right side is a plain literal."""

	kind: Literal["constant-binding"] = "constant-binding"

	def _matches(self, unit: SourceUnit) -> List[PatternMatch]:
		matches: List[PatternMatch] = []
		for m in _CONSTANT_RE.finditer(unit.content):
			value = m.group(2).split("#", 1)[0].strip()
			if _LITERAL_RE.match(value):
				matches.append(
					PatternMatch(
						rule=self.name,
						rel_path=unit.rel_path,
						fields={"name": m.group(1), "value": value},
					)
				)
		return matches


PatternRule = Annotated[
	Union[PrefixedCallableRule, BracketedFieldRule, LiteralScanRule, ConstantBindingRule],
	Field(discriminator="kind"),
]

