"""Java server metadata extraction using tree-sitter.

Recovers, per class:
- Role: Struts form bean, Struts action, Spring controller
- Field metadata from field declarations and zero-argument accessors,
  including bean-validation constraints
- Request handler signatures for controllers
"""

import logging
from typing import Dict, Iterable, List, Optional

import tree_sitter
import tree_sitter_java

from .models import (
    MAX,
    MAX_LENGTH,
    MIN,
    MIN_LENGTH,
    PATTERN,
    REQUIRED,
    FieldMetadataBuilder,
    HandlerMethod,
    HandlerParameter,
    MetadataIndex,
    MetadataIndexBuilder,
    simple_name,
)
from .values import MISSING, annotation_arguments, as_int, as_list, node_text

logger = logging.getLogger(__name__)

_JAVA_LANGUAGE = tree_sitter.Language(tree_sitter_java.language())

_TYPE_DECLARATIONS = ("class_declaration", "enum_declaration", "record_declaration")
_SKIPPED_DECLARATIONS = ("interface_declaration", "annotation_type_declaration")
_ANNOTATION_NODES = ("marker_annotation", "annotation")

_REQUIRED_MARKERS = frozenset({"NotNull", "NotBlank", "NotEmpty"})
_MIN_MARKERS = frozenset({"Min", "DecimalMin"})
_MAX_MARKERS = frozenset({"Max", "DecimalMax"})
_CONTROLLER_MARKERS = frozenset({"Controller", "RestController"})

# Shortcut mapping annotations and their fixed verb (None: read from method=)
_MAPPING_MARKERS: Dict[str, Optional[str]] = {
    "RequestMapping": None,
    "GetMapping": "GET",
    "PostMapping": "POST",
    "PutMapping": "PUT",
    "DeleteMapping": "DELETE",
    "PatchMapping": "PATCH",
}


class JavaMetadataAnalyzer:
    """Folds every Java source file into one MetadataIndex."""

    def analyze(self, paths: Iterable[str]) -> MetadataIndex:
        index = MetadataIndexBuilder()
        count = 0
        for path in paths:
            self.analyze_file(path, index)
            count += 1
        result = index.build()
        logger.info(f"Java metadata: {count} files analyzed, {result!r}")
        return result

    def analyze_file(self, path: str, index: MetadataIndexBuilder) -> None:
        """Add one file's classes to the index; unreadable or broken files are skipped."""
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                source_text = f.read()
        except OSError as e:
            logger.warning(f"Failed to read Java source {path}: {e}")
            return
        self.analyze_source(source_text, index, path)

    def analyze_source(self, source_text: str, index: MetadataIndexBuilder, path: str = "<memory>") -> bool:
        source = source_text.encode("utf-8")
        parser = tree_sitter.Parser(_JAVA_LANGUAGE)
        tree = parser.parse(source)
        if tree.root_node.has_error:
            logger.warning(f"Skipping Java source with syntax errors: {path}")
            return False

        package_name = _extract_package(tree.root_node, source)
        for child in tree.root_node.named_children:
            if child.type in _TYPE_DECLARATIONS:
                self._visit_type(child, source, package_name, [], index)
        return True

    # =========================================================================
    # Type declarations
    # =========================================================================

    def _visit_type(
        self,
        node: tree_sitter.Node,
        source: bytes,
        package_name: str,
        enclosing: List[str],
        index: MetadataIndexBuilder,
    ) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        chain = enclosing + [node_text(name_node, source)]
        qualified_name = ".".join(([package_name] if package_name else []) + chain)

        superclass = _superclass_simple_name(node, source)
        if superclass:
            if superclass.endswith("ActionForm"):
                index.add_struts_form(qualified_name)
            if superclass.endswith("Action") or superclass.endswith("DispatchAction"):
                index.add_struts_action(qualified_name)

        is_controller = any(
            _annotation_simple_name(a, source) in _CONTROLLER_MARKERS
            for a in _annotations(node)
        )
        if is_controller:
            index.add_controller(qualified_name)

        members = _body_members(node)
        builders: Dict[str, FieldMetadataBuilder] = {}
        for member in members:
            if member.type == "field_declaration":
                self._collect_field(member, source, qualified_name, builders)
        for member in members:
            if member.type == "method_declaration":
                self._collect_accessor(member, source, qualified_name, builders)
        index.add_fields(qualified_name, builders)

        if is_controller:
            handlers = [
                handler
                for member in members
                if member.type == "method_declaration"
                for handler in [self._handler_method(member, source)]
                if handler is not None
            ]
            index.add_handlers(qualified_name, handlers)

        for member in members:
            if member.type in _TYPE_DECLARATIONS:
                self._visit_type(member, source, package_name, chain, index)

    # =========================================================================
    # Fields and accessors
    # =========================================================================

    def _collect_field(
        self,
        node: tree_sitter.Node,
        source: bytes,
        class_name: str,
        builders: Dict[str, FieldMetadataBuilder],
    ) -> None:
        type_node = node.child_by_field_name("type")
        field_type = node_text(type_node, source) if type_node is not None else None
        annotations = _annotations(node)
        for declarator in node.children_by_field_name("declarator"):
            name_node = declarator.child_by_field_name("name")
            if name_node is None:
                continue
            field_name = node_text(name_node, source)
            builder = builders.setdefault(field_name, FieldMetadataBuilder(class_name, field_name))
            builder.set_field_type(field_type)
            apply_constraints(builder, annotations, source)

    def _collect_accessor(
        self,
        node: tree_sitter.Node,
        source: bytes,
        class_name: str,
        builders: Dict[str, FieldMetadataBuilder],
    ) -> None:
        name_node = node.child_by_field_name("name")
        type_node = node.child_by_field_name("type")
        if name_node is None or type_node is None or type_node.type == "void_type":
            return
        if _parameter_nodes(node):
            return
        property_name = accessor_property(node_text(name_node, source))
        if property_name is None:
            return
        builder = builders.setdefault(property_name, FieldMetadataBuilder(class_name, property_name))
        builder.set_field_type(node_text(type_node, source), overwrite=False)
        apply_constraints(builder, _annotations(node), source)

    # =========================================================================
    # Request handlers
    # =========================================================================

    def _handler_method(self, node: tree_sitter.Node, source: bytes) -> Optional[HandlerMethod]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        for annotation in _annotations(node):
            marker = _annotation_simple_name(annotation, source)
            if marker not in _MAPPING_MARKERS:
                continue
            named, single = annotation_arguments(annotation, source)
            fixed_verb = _MAPPING_MARKERS[marker]
            if fixed_verb:
                verbs = [fixed_verb]
            else:
                verbs = [str(v).rsplit(".", 1)[-1].upper() for v in as_list(named.get("method", MISSING))]
            paths: List[str] = []
            value = named.get("value", MISSING)
            if value is MISSING and not named:
                value = single
            for path in as_list(value) + as_list(named.get("path", MISSING)):
                if str(path) not in paths:
                    paths.append(str(path))
            return HandlerMethod(
                method_name=node_text(name_node, source),
                http_methods=tuple(verbs or ["GET"]),
                paths=tuple(paths or ["/"]),
                parameters=tuple(_handler_parameters(node, source)),
            )
        return None


# =============================================================================
# Constraint annotations
# =============================================================================

def apply_constraints(
    builder: FieldMetadataBuilder,
    annotations: List[tree_sitter.Node],
    source: bytes,
) -> None:
    """Translate validation annotations into constraint names and attributes."""
    for annotation in annotations:
        marker = _annotation_simple_name(annotation, source)
        if marker in _REQUIRED_MARKERS:
            builder.add_constraint("required").put_attribute(REQUIRED, True)
        elif marker == "Size":
            named, _ = annotation_arguments(annotation, source)
            builder.add_constraint("size")
            builder.put_attribute(MIN_LENGTH, as_int(named.get("min", MISSING)))
            builder.put_attribute(MAX_LENGTH, as_int(named.get("max", MISSING)))
        elif marker in _MIN_MARKERS:
            builder.add_constraint("min")
            builder.put_attribute(MIN, _value_argument(annotation, source, "value"))
        elif marker in _MAX_MARKERS:
            builder.add_constraint("max")
            builder.put_attribute(MAX, _value_argument(annotation, source, "value"))
        elif marker == "Pattern":
            builder.add_constraint("pattern")
            builder.put_attribute(PATTERN, _value_argument(annotation, source, "regexp"))


def _value_argument(annotation: tree_sitter.Node, source: bytes, key: str):
    named, single = annotation_arguments(annotation, source)
    value = named.get(key, single)
    if value is MISSING or isinstance(value, list):
        return None
    return value


def accessor_property(method_name: str) -> Optional[str]:
    """``getCustomerId`` -> ``customerId``; None for non-accessors."""
    for prefix in ("get", "is"):
        if method_name.startswith(prefix) and len(method_name) > len(prefix):
            rest = method_name[len(prefix):]
            return rest[0].lower() + rest[1:]
    return None


# =============================================================================
# Tree helpers
# =============================================================================

def _extract_package(root: tree_sitter.Node, source: bytes) -> str:
    for child in root.named_children:
        if child.type == "package_declaration":
            text = node_text(child, source).strip()
            return text.replace("package", "", 1).rstrip(";").strip()
    return ""


def _modifiers(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    for child in node.children:
        if child.type == "modifiers":
            return child
    return None


def _annotations(node: tree_sitter.Node) -> List[tree_sitter.Node]:
    modifiers = _modifiers(node)
    if modifiers is None:
        return []
    return [child for child in modifiers.children if child.type in _ANNOTATION_NODES]


def _annotation_simple_name(annotation: tree_sitter.Node, source: bytes) -> str:
    name = annotation.child_by_field_name("name")
    if name is None:
        return ""
    return node_text(name, source).rsplit(".", 1)[-1]


def _superclass_simple_name(node: tree_sitter.Node, source: bytes) -> Optional[str]:
    superclass = node.child_by_field_name("superclass")
    if superclass is None:
        return None
    for child in superclass.named_children:
        return simple_name(node_text(child, source))
    return None


def _body_members(node: tree_sitter.Node) -> List[tree_sitter.Node]:
    body = node.child_by_field_name("body")
    if body is None:
        return []
    members: List[tree_sitter.Node] = []
    for child in body.named_children:
        if child.type == "enum_body_declarations":
            members.extend(child.named_children)
        else:
            members.append(child)
    return members


def _parameter_nodes(method: tree_sitter.Node) -> List[tree_sitter.Node]:
    parameters = method.child_by_field_name("parameters")
    if parameters is None:
        return []
    return [
        child for child in parameters.named_children
        if child.type in ("formal_parameter", "spread_parameter", "receiver_parameter")
    ]


def _handler_parameters(method: tree_sitter.Node, source: bytes) -> List[HandlerParameter]:
    result: List[HandlerParameter] = []
    for parameter in _parameter_nodes(method):
        if parameter.type == "receiver_parameter":
            continue
        name_node = parameter.child_by_field_name("name")
        type_node = parameter.child_by_field_name("type")
        if name_node is None:
            # spread parameters keep the name inside a variable_declarator
            for child in parameter.named_children:
                if child.type == "variable_declarator":
                    name_node = child.child_by_field_name("name")
        if type_node is None:
            for child in parameter.named_children:
                if child.type not in ("modifiers", "variable_declarator"):
                    type_node = child
                    break
        result.append(HandlerParameter(
            name=node_text(name_node, source) if name_node is not None else "",
            type_name=node_text(type_node, source) if type_node is not None else None,
            annotations=tuple(_annotation_simple_name(a, source) for a in _annotations(parameter)),
        ))
    return result
