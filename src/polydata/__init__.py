"""polydata: immutable, schema-validated data classes with layered composition."""

from polydata.core.base import Constructor
from polydata.core.data import DataClass, data
from polydata.core.entity import Entity, EntityClass, entity, entity_mixin
from polydata.core.mixin import mixin
from polydata.core.polymorphic import PolymorphicDataClass, VariantConstructor, polymorphic_data
from polydata.core.polymorphic_entity import (
    PolymorphicEntityClass,
    polymorphic_entity,
    polymorphic_entity_mixin,
)
from polydata.core.record import Record
from polydata.errors import IdentityError, InvalidDataError, PolydataError, SchemaDefinitionError
from polydata.schema import Schema, merge_and, merge_discriminated

__version__ = "0.1.0"

__all__ = [
    "Constructor",
    "DataClass",
    "Entity",
    "EntityClass",
    "IdentityError",
    "InvalidDataError",
    "PolydataError",
    "PolymorphicDataClass",
    "PolymorphicEntityClass",
    "Record",
    "Schema",
    "SchemaDefinitionError",
    "VariantConstructor",
    "__version__",
    "data",
    "entity",
    "entity_mixin",
    "merge_and",
    "merge_discriminated",
    "mixin",
    "polymorphic_data",
    "polymorphic_entity",
    "polymorphic_entity_mixin",
]
