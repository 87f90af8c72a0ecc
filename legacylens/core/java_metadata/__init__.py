# legacylens Java metadata - class roles, validation constraints and handler signatures

from .analyzer import JavaMetadataAnalyzer
from .models import (
    FieldMetadata,
    FieldMetadataBuilder,
    HandlerMethod,
    HandlerParameter,
    MetadataIndex,
    MetadataIndexBuilder,
    package_of,
    simple_name,
)

__all__ = [
    "JavaMetadataAnalyzer",
    "FieldMetadata",
    "FieldMetadataBuilder",
    "HandlerMethod",
    "HandlerParameter",
    "MetadataIndex",
    "MetadataIndexBuilder",
    "package_of",
    "simple_name",
]
