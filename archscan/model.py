from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Dict, List, Mapping, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer


class Family(str, Enum):
	TREE = "tree"
	PATTERN = "pattern"


class DiagnosticKind(str, Enum):
	PATH_ABSENT = "path_absent"
	SUBTREE_UNREADABLE = "subtree_unreadable"
	PARSE_FAILURE = "parse_failure"
	READ_FAILURE = "read_failure"
	RULE_FAILURE = "rule_failure"


class Direction(str, Enum):
	FORWARD = "A→B"
	BACKWARD = "B→A"
	BOTH = "A↔B"


def _freeze(value: Mapping) -> Mapping:
	return MappingProxyType(dict(value))


def _thaw(value: Mapping) -> dict:
	return dict(value)


# Validated as a dict, held as a read-only proxy, dumped as a plain dict.
StrMap = Annotated[
	Dict[str, str],
	AfterValidator(_freeze),
	PlainSerializer(_thaw, return_type=Dict[str, str]),
]


class _Frozen(BaseModel):
	model_config = ConfigDict(frozen=True)


class _DeepFrozen(BaseModel):
	# Defaults go through validation too, so empty mappings are proxies as well.
	model_config = ConfigDict(frozen=True, validate_default=True)


class SourceUnit(_Frozen):
	path: str
	rel_path: str
	family: Family
	content: str


class Diagnostic(_Frozen):
	kind: DiagnosticKind
	path: str
	reason: str


class MethodSignature(_DeepFrozen):
	name: str
	parameters: Tuple[str, ...] = ()
	is_async: bool = False


class Declaration(_DeepFrozen):
	kind: str  # "class" or "function"
	name: str
	methods: Tuple[MethodSignature, ...] = ()
	parameters: Tuple[str, ...] = ()
	is_async: bool = False


class RegistrationCall(_Frozen):
	receiver: str
	method: str
	channel: str
	rel_path: str


class LiteralBinding(_Frozen):
	name: str
	value: str
	rel_path: str


class PatternMatch(_Frozen):
	rule: str
	rel_path: str
	fields: Dict[str, str] = {}


class StructuralFacts(_Frozen):
	declarations: List[Declaration] = []
	registrations: List[RegistrationCall] = []
	bindings: List[LiteralBinding] = []
	imports: List[str] = []
	exports: List[str] = []


class UnitExtraction(_Frozen):
	rel_path: str
	family: Family
	structure: StructuralFacts = StructuralFacts()
	matches: List[PatternMatch] = []
	diagnostics: List[Diagnostic] = []

	@property
	def ok(self) -> bool:
		return not self.diagnostics


class Layer(_DeepFrozen):
	name: str
	components: Tuple[str, ...] = ()


class DataStructure(_DeepFrozen):
	fields: StrMap = {}
	rel_path: str


class Channel(_DeepFrozen):
	channel: str
	kind: str
	rel_path: str
	direction: Optional[Direction] = None
	payload_shape: str = ""
	frequency_class: str = ""


CallableMap = Annotated[
	Dict[str, Tuple[str, ...]],
	AfterValidator(_freeze),
	PlainSerializer(_thaw, return_type=Dict[str, Tuple[str, ...]]),
]


class ComponentFacts(_DeepFrozen):
	classes: Tuple[Declaration, ...] = ()
	functions: Tuple[Declaration, ...] = ()
	imports: Tuple[str, ...] = ()
	exports: Tuple[str, ...] = ()
	callables: CallableMap = {}


DataStructureMap = Annotated[
	Dict[str, DataStructure],
	AfterValidator(_freeze),
	PlainSerializer(_thaw, return_type=Dict[str, DataStructure]),
]
TechStackMap = Annotated[
	Dict[str, StrMap],
	AfterValidator(_freeze),
	PlainSerializer(_thaw, return_type=Dict[str, StrMap]),
]
ComponentMap = Annotated[
	Dict[str, ComponentFacts],
	AfterValidator(_freeze),
	PlainSerializer(_thaw, return_type=Dict[str, ComponentFacts]),
]


class ArchitectureModel(_DeepFrozen):
	"""Aggregate root of a run.

	Sequences are tuples and mappings are read-only proxies all the way down,
	so neither assignment nor in-place mutation can change a built model.
	"""

	layers: Tuple[Layer, ...] = ()
	data_structures: DataStructureMap = {}
	channels: Tuple[Channel, ...] = ()
	thresholds: StrMap = {}
	tech_stack: TechStackMap = {}
	components: ComponentMap = {}
	endpoints: StrMap = {}

	# Read-only views for renderers.
	def layer_view(self) -> Tuple[Layer, ...]:
		return self.layers

	def data_structure_view(self) -> Mapping[str, DataStructure]:
		return self.data_structures

	def channel_view(self) -> Tuple[Channel, ...]:
		return self.channels

	def threshold_view(self) -> Mapping[str, str]:
		return self.thresholds

	def tech_stack_view(self) -> Mapping[str, Mapping[str, str]]:
		return self.tech_stack


class AnalysisRun(_Frozen):
	root: str
	units: List[str] = []
	model: ArchitectureModel
	diagnostics: List[Diagnostic] = []
