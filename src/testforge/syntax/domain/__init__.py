"""Syntax domain package."""

from testforge.syntax.domain.models import (
    ClassDeclaration,
    CompilationUnitView,
    ConstructorDeclaration,
    ImportDirective,
    MethodDeclaration,
    NamespaceDeclaration,
    Parameter,
)

__all__ = [
    "CompilationUnitView",
    "ImportDirective",
    "NamespaceDeclaration",
    "ClassDeclaration",
    "ConstructorDeclaration",
    "MethodDeclaration",
    "Parameter",
]
