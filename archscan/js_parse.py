from __future__ import annotations

from typing import Any, Iterator, List, Optional, Set

from tree_sitter_language_pack import get_parser

from .errors import ParseError
from .model import (
	Declaration,
	LiteralBinding,
	MethodSignature,
	RegistrationCall,
	SourceUnit,
	StructuralFacts,
)

PARAM_PLACEHOLDER = "param"

_FUNCTION_VALUES = {"arrow_function", "function", "function_expression", "generator_function"}
_LITERAL_VALUES = {"number", "string", "true", "false"}


def parse_source(text: str) -> Any:
	"""Parse JavaScript text into a tree-sitter tree.

	Raises ParseError when the grammar had to recover from a syntax error.
	"""
	parser = get_parser("javascript")
	try:
		tree = parser.parse(text.encode("utf-8"))
	except (ValueError, TypeError) as exc:
		raise ParseError(str(exc)) from exc
	root = tree.root_node
	if root.has_error:
		bad = _first_error(root)
		line, column = (bad.start_point[0] + 1, bad.start_point[1] + 1) if bad is not None else (0, 0)
		raise ParseError(f"syntax error at {line}:{column}", line, column)
	return tree


def _walk(node: Any) -> Iterator[Any]:
	# Pre-order, document order, no recursion.
	stack = [node]
	while stack:
		current = stack.pop()
		yield current
		stack.extend(reversed(current.children))


def _first_error(root: Any) -> Optional[Any]:
	for node in _walk(root):
		if node.type == "ERROR" or node.is_missing:
			return node
	return None


def _text(node: Any) -> str:
	return node.text.decode("utf-8", errors="replace")


def _string_value(node: Optional[Any]) -> Optional[str]:
	if node is None or node.type != "string":
		return None
	return _text(node)[1:-1]


def _is_async(node: Any) -> bool:
	return any(child.type == "async" for child in node.children)


def _param_name(node: Any) -> str:
	if node.type == "identifier":
		return _text(node)
	if node.type == "assignment_pattern":
		left = node.child_by_field_name("left")
		if left is not None and left.type == "identifier":
			return _text(left)
	return PARAM_PLACEHOLDER


def _parameters(node: Any) -> List[str]:
	params = node.child_by_field_name("parameters")
	if params is None:
		# Single unparenthesised arrow parameter.
		single = node.child_by_field_name("parameter")
		return [_param_name(single)] if single is not None else []
	return [_param_name(p) for p in params.named_children if p.type != "comment"]


def _class_declaration(node: Any) -> Optional[Declaration]:
	name_node = node.child_by_field_name("name")
	body = node.child_by_field_name("body")
	if name_node is None or body is None:
		return None
	methods: List[MethodSignature] = []
	for member in body.named_children:
		if member.type != "method_definition":
			continue
		key = member.child_by_field_name("name")
		if key is None:
			continue
		methods.append(
			MethodSignature(
				name=_text(key),
				parameters=_parameters(member),
				is_async=_is_async(member),
			)
		)
	return Declaration(kind="class", name=_text(name_node), methods=methods)


def _function_declaration(name: str, node: Any) -> Declaration:
	return Declaration(
		kind="function",
		name=name,
		parameters=_parameters(node),
		is_async=_is_async(node),
	)


def _literal_text(node: Optional[Any]) -> Optional[str]:
	if node is None:
		return None
	if node.type in _LITERAL_VALUES:
		return _text(node)
	if node.type == "unary_expression":
		argument = node.child_by_field_name("argument")
		operator = node.child_by_field_name("operator")
		if argument is not None and argument.type == "number" and operator is not None and _text(operator) in {"-", "+"}:
			return _text(node)
	return None


def _top_level_functions(root: Any) -> Iterator[Declaration]:
	for stmt in root.named_children:
		if stmt.type == "export_statement":
			inner = stmt.child_by_field_name("declaration")
			if inner is None:
				continue
			stmt = inner
		if stmt.type in {"function_declaration", "generator_function_declaration"}:
			name = stmt.child_by_field_name("name")
			if name is not None:
				yield _function_declaration(_text(name), stmt)
		elif stmt.type in {"lexical_declaration", "variable_declaration"}:
			for declarator in stmt.named_children:
				if declarator.type != "variable_declarator":
					continue
				name = declarator.child_by_field_name("name")
				value = declarator.child_by_field_name("value")
				if name is not None and name.type == "identifier" and value is not None and value.type in _FUNCTION_VALUES:
					yield _function_declaration(_text(name), value)


def _export_names(node: Any) -> List[str]:
	"""Names an export statement makes public.

	Any `export default ...` is recorded as "default", whatever it names locally.
	"""
	if any(child.type == "default" for child in node.children):
		return ["default"]
	declaration = node.child_by_field_name("declaration")
	if declaration is not None:
		if declaration.type in {"lexical_declaration", "variable_declaration"}:
			names = []
			for declarator in declaration.named_children:
				name = declarator.child_by_field_name("name") if declarator.type == "variable_declarator" else None
				if name is not None and name.type == "identifier":
					names.append(_text(name))
			return names
		name = declaration.child_by_field_name("name")
		return [_text(name)] if name is not None else []
	names = []
	for child in node.named_children:
		if child.type == "export_clause":
			for spec in child.named_children:
				alias = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
				if alias is not None:
					names.append(_text(alias))
		elif child.type == "namespace_export":
			# export * as ns from "x"
			names.extend(_text(c) for c in child.named_children)
	return names


class StructuralExtractor:
	"""Collects declarations and registration calls from JavaScript units."""

	def __init__(self, receivers: Set[str], methods: Set[str]):
		self.receivers = set(receivers)
		self.methods = set(methods)

	def _registration(self, node: Any, rel_path: str) -> Optional[RegistrationCall]:
		callee = node.child_by_field_name("function")
		if callee is None or callee.type != "member_expression":
			return None
		receiver = callee.child_by_field_name("object")
		method = callee.child_by_field_name("property")
		if receiver is None or method is None or receiver.type != "identifier":
			return None
		receiver_name, method_name = _text(receiver), _text(method)
		if receiver_name not in self.receivers or method_name not in self.methods:
			return None
		arguments = node.child_by_field_name("arguments")
		args = [a for a in arguments.named_children if a.type != "comment"] if arguments is not None else []
		channel = _string_value(args[0]) if args else None
		if channel is None:
			return None
		return RegistrationCall(receiver=receiver_name, method=method_name, channel=channel, rel_path=rel_path)

	def extract(self, unit: SourceUnit) -> StructuralFacts:
		"""Raises ParseError; callers convert it into a diagnostic."""
		tree = parse_source(unit.content)
		root = tree.root_node
		declarations: List[Declaration] = []
		registrations: List[RegistrationCall] = []
		bindings: List[LiteralBinding] = []
		imports: List[str] = []
		exports: List[str] = []

		for node in _walk(root):
			kind = node.type
			if kind == "class_declaration":
				decl = _class_declaration(node)
				if decl is not None:
					declarations.append(decl)
			elif kind == "call_expression":
				call = self._registration(node, unit.rel_path)
				if call is not None:
					registrations.append(call)
				callee = node.child_by_field_name("function")
				if callee is not None and callee.type == "identifier" and _text(callee) == "require":
					arguments = node.child_by_field_name("arguments")
					first = arguments.named_children[0] if arguments is not None and arguments.named_children else None
					source = _string_value(first)
					if source is not None:
						imports.append(source)
			elif kind == "import_statement":
				source = _string_value(node.child_by_field_name("source"))
				if source is not None:
					imports.append(source)
			elif kind == "export_statement":
				exports.extend(_export_names(node))
				# Re-exports also import their source.
				source = _string_value(node.child_by_field_name("source"))
				if source is not None:
					imports.append(source)
			elif kind == "variable_declarator":
				name = node.child_by_field_name("name")
				value = _literal_text(node.child_by_field_name("value"))
				if name is not None and name.type == "identifier" and value is not None:
					bindings.append(LiteralBinding(name=_text(name), value=value, rel_path=unit.rel_path))

		declarations.extend(_top_level_functions(root))
		return StructuralFacts(
			declarations=declarations,
			registrations=registrations,
			bindings=bindings,
			imports=imports,
			exports=exports,
		)
