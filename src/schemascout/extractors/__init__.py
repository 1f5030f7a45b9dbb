"""Discovery phases: classes, relations and datatypes."""

from schemascout.extractors.base import BaseExtractor
from schemascout.extractors.class_extractor import ClassExtractor
from schemascout.extractors.datatype_extractor import DataTypeExtractor
from schemascout.extractors.relation_extractor import RelationExtractor

__all__ = [
    "BaseExtractor",
    "ClassExtractor",
    "DataTypeExtractor",
    "RelationExtractor",
]
