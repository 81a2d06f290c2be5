"""
Parameter type classification.

Decides whether a parameter type is a mockable contract (interface) or a
concrete value. Classification prefers what the compilation unit itself
declares and falls back to the naming convention otherwise.

Known limitation: the naming convention (`I` followed by an upper-case
letter) is a heuristic. A class named `IPAddress` is classified as an
interface unless it is declared in the same compilation unit, and an
interface not following the convention is classified as concrete.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from testforge.syntax.domain.models import CompilationUnitView


class TypeKind(Enum):
    INTERFACE = "interface"
    CONCRETE = "concrete"
    UNKNOWN = "unknown"


class TypeClassifier(Protocol):
    def classify(self, type_name: str) -> TypeKind: ...


def simple_type_name(type_name: str) -> str:
    """
    Reduce a written type to its simple name.

    Examples:
        >>> simple_type_name("Shop.Data.IRepository<Order>?")
        'IRepository'
        >>> simple_type_name("global::System.IDisposable")
        'IDisposable'
    """
    name = "".join(type_name.split()).rstrip("?")
    name = name.split("<", 1)[0]
    name = name.rsplit("::", 1)[-1]
    return name.rsplit(".", 1)[-1]


def _is_composite(type_name: str) -> bool:
    """Arrays, pointers and tuples are values whatever their element type."""
    stripped = type_name.strip().rstrip("?")
    return stripped.endswith("]") or stripped.endswith("*") or stripped.startswith("(")


class NamingConventionClassifier:
    """Classifies by the leading interface marker letter of the simple name."""

    def __init__(self, marker: str = "I") -> None:
        self.marker = marker

    def classify(self, type_name: str) -> TypeKind:
        if not type_name.strip():
            return TypeKind.UNKNOWN
        if _is_composite(type_name):
            return TypeKind.CONCRETE

        name = simple_type_name(type_name)
        if len(name) >= 2 and name[0] == self.marker and name[1].isupper():
            return TypeKind.INTERFACE
        return TypeKind.CONCRETE


class DeclaredTypeClassifier:
    """
    Classifies using the types declared in one compilation unit.

    Types the unit declares are classified by their declaration kind; all
    other types go to the fallback classifier.
    """

    def __init__(
        self,
        declared_interfaces: frozenset[str],
        declared_types: frozenset[str],
        fallback: TypeClassifier,
    ) -> None:
        self.declared_interfaces = declared_interfaces
        self.declared_types = declared_types
        self.fallback = fallback

    @classmethod
    def for_unit(cls, unit: CompilationUnitView, marker: str = "I") -> DeclaredTypeClassifier:
        return cls(
            declared_interfaces=unit.declared_interfaces,
            declared_types=unit.declared_types,
            fallback=NamingConventionClassifier(marker),
        )

    def classify(self, type_name: str) -> TypeKind:
        if type_name.strip() and not _is_composite(type_name):
            name = simple_type_name(type_name)
            if name in self.declared_interfaces:
                return TypeKind.INTERFACE
            if name in self.declared_types:
                return TypeKind.CONCRETE
        return self.fallback.classify(type_name)
