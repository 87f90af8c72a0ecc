"""Server-side metadata models.

Field metadata is accumulated per class with a mutable builder while one
source file is processed, then frozen into ``FieldMetadata``. The index is
assembled once per run and is read-only afterwards.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Attribute keys carried in FieldMetadata.attributes
REQUIRED = "required"
MIN_LENGTH = "minLength"
MAX_LENGTH = "maxLength"
MIN = "min"
MAX = "max"
PATTERN = "pattern"


def simple_name(class_name: str) -> str:
    """``com.acme.web.OrderForm`` -> ``OrderForm`` (generic arguments dropped)."""
    if not class_name:
        return ""
    base = class_name.split("<", 1)[0].strip()
    return base.rsplit(".", 1)[-1]


def package_of(class_name: str) -> str:
    if not class_name or "." not in class_name:
        return ""
    return class_name.rsplit(".", 1)[0]


@dataclass(frozen=True)
class FieldMetadata:
    class_name: str
    field_name: str
    field_type: Optional[str]
    constraints: Tuple[str, ...] = ()
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def attribute(self, key: str) -> Any:
        return self.attributes.get(key)


class FieldMetadataBuilder:
    """Accumulates one property's metadata while a file is being analyzed.

    Constraint names are unique; attributes keep the first value written.
    """

    def __init__(self, class_name: str, field_name: str):
        self.class_name = class_name
        self.field_name = field_name
        self.field_type: Optional[str] = None
        self.constraints: List[str] = []
        self.attributes: Dict[str, Any] = {}

    def set_field_type(self, field_type: Optional[str], overwrite: bool = True) -> "FieldMetadataBuilder":
        if field_type and (overwrite or self.field_type is None):
            self.field_type = field_type
        return self

    def add_constraint(self, constraint: str) -> "FieldMetadataBuilder":
        if constraint and constraint not in self.constraints:
            self.constraints.append(constraint)
        return self

    def put_attribute(self, key: str, value: Any) -> "FieldMetadataBuilder":
        if value is not None and key not in self.attributes:
            self.attributes[key] = value
        return self

    def build(self) -> FieldMetadata:
        return FieldMetadata(
            class_name=self.class_name,
            field_name=self.field_name,
            field_type=self.field_type,
            constraints=tuple(self.constraints),
            attributes=MappingProxyType(dict(self.attributes)),
        )


@dataclass(frozen=True)
class HandlerParameter:
    name: str
    type_name: Optional[str]
    annotations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HandlerMethod:
    method_name: str
    http_methods: Tuple[str, ...]
    paths: Tuple[str, ...]
    parameters: Tuple[HandlerParameter, ...] = ()


class MetadataIndex:
    """Read-only view over everything recovered from the Java sources."""

    def __init__(
        self,
        fields_by_class: Dict[str, Dict[str, FieldMetadata]],
        handler_methods_by_controller: Dict[str, List[HandlerMethod]],
        struts_form_classes: List[str],
        struts_action_classes: List[str],
        controller_classes: List[str],
    ):
        self.fields_by_class: Mapping[str, Mapping[str, FieldMetadata]] = MappingProxyType({
            cls: MappingProxyType(dict(fields)) for cls, fields in fields_by_class.items()
        })
        self.handler_methods_by_controller: Mapping[str, Tuple[HandlerMethod, ...]] = MappingProxyType({
            cls: tuple(methods) for cls, methods in handler_methods_by_controller.items()
        })
        self.struts_form_classes: Tuple[str, ...] = tuple(struts_form_classes)
        self.struts_action_classes: Tuple[str, ...] = tuple(struts_action_classes)
        self.controller_classes: Tuple[str, ...] = tuple(controller_classes)

    @classmethod
    def empty(cls) -> "MetadataIndex":
        return cls({}, {}, [], [], [])

    def has_class(self, class_name: str) -> bool:
        return class_name in self.fields_by_class

    def is_handler_class(self, class_name: str) -> bool:
        return class_name in self.struts_action_classes or class_name in self.controller_classes

    def fields_of(self, class_name: str) -> Mapping[str, FieldMetadata]:
        return self.fields_by_class.get(class_name, MappingProxyType({}))

    def classes_with_simple_name(self, name: str) -> List[str]:
        wanted = name.lower()
        return [cls for cls in self.fields_by_class if simple_name(cls).lower() == wanted]

    def fields_named(self, field_name: str) -> List[FieldMetadata]:
        wanted = field_name.lower()
        return [
            meta
            for fields in self.fields_by_class.values()
            for name, meta in fields.items()
            if name.lower() == wanted
        ]

    def __repr__(self) -> str:
        return (
            f"MetadataIndex(classes={len(self.fields_by_class)}, "
            f"forms={len(self.struts_form_classes)}, actions={len(self.struts_action_classes)}, "
            f"controllers={len(self.controller_classes)})"
        )


class MetadataIndexBuilder:
    """Mutable accumulator folded over every analyzed file."""

    def __init__(self):
        self.fields_by_class: Dict[str, Dict[str, FieldMetadata]] = {}
        self.handler_methods_by_controller: Dict[str, List[HandlerMethod]] = {}
        self.struts_form_classes: List[str] = []
        self.struts_action_classes: List[str] = []
        self.controller_classes: List[str] = []

    def add_fields(self, class_name: str, builders: Dict[str, FieldMetadataBuilder]) -> None:
        if not builders:
            return
        fields = self.fields_by_class.setdefault(class_name, {})
        for name, builder in builders.items():
            fields[name] = builder.build()

    def add_handlers(self, class_name: str, handlers: List[HandlerMethod]) -> None:
        if handlers:
            self.handler_methods_by_controller.setdefault(class_name, []).extend(handlers)

    @staticmethod
    def _add_unique(items: List[str], class_name: str) -> None:
        if class_name not in items:
            items.append(class_name)

    def add_struts_form(self, class_name: str) -> None:
        self._add_unique(self.struts_form_classes, class_name)

    def add_struts_action(self, class_name: str) -> None:
        self._add_unique(self.struts_action_classes, class_name)

    def add_controller(self, class_name: str) -> None:
        self._add_unique(self.controller_classes, class_name)

    def build(self) -> MetadataIndex:
        return MetadataIndex(
            self.fields_by_class,
            self.handler_methods_by_controller,
            self.struts_form_classes,
            self.struts_action_classes,
            self.controller_classes,
        )
