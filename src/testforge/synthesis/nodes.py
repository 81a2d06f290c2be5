"""
Output syntax tree for generated C# test files.

A deliberately small subset of C#: enough to express using directives, a
namespace, one class with fields and methods, and the local declarations,
assignments and invocations that test skeletons are made of. Every
synthesis rule builds these nodes; CSharpPrinter is the only place that
turns them into text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


# Expressions


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class MemberAccess:
    target: "Expression"
    member: str


@dataclass(frozen=True)
class Argument:
    value: "Expression"
    modifier: str = ""  # ref, out, in


@dataclass(frozen=True)
class Invocation:
    callee: "Expression"
    arguments: tuple[Argument, ...] = ()


@dataclass(frozen=True)
class ObjectCreation:
    type_name: str
    arguments: tuple[Argument, ...] = ()


@dataclass(frozen=True)
class DefaultLiteral:
    pass


@dataclass(frozen=True)
class StringLiteral:
    value: str


Expression = Union[Identifier, MemberAccess, Invocation, ObjectCreation, DefaultLiteral, StringLiteral]


# Statements


@dataclass(frozen=True)
class LocalDeclaration:
    """`Type name = value;`"""

    type_name: str
    name: str
    value: Expression


@dataclass(frozen=True)
class Assignment:
    """`target = value;`"""

    target: Expression
    value: Expression


@dataclass(frozen=True)
class ExpressionStatement:
    expression: Expression


Statement = Union[LocalDeclaration, Assignment, ExpressionStatement]


# Declarations


@dataclass(frozen=True)
class FieldDefinition:
    type_name: str
    name: str
    modifiers: tuple[str, ...] = ("private",)


@dataclass(frozen=True)
class MethodDefinition:
    name: str
    return_type: str = "void"
    modifiers: tuple[str, ...] = ("public",)
    attributes: tuple[str, ...] = ()
    body: tuple[Statement, ...] = ()


Member = Union[FieldDefinition, MethodDefinition]


@dataclass(frozen=True)
class ClassDefinition:
    name: str
    modifiers: tuple[str, ...] = ("public",)
    members: tuple[Member, ...] = ()


@dataclass(frozen=True)
class NamespaceDefinition:
    name: str
    classes: tuple[ClassDefinition, ...] = ()


@dataclass(frozen=True)
class UsingDirective:
    target: str
    is_global: bool = False


@dataclass(frozen=True)
class CompilationUnit:
    usings: tuple[UsingDirective, ...] = ()
    namespaces: tuple[NamespaceDefinition, ...] = ()
