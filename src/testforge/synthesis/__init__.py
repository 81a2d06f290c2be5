"""Test synthesis package."""

from testforge.synthesis.classifier import (
    DeclaredTypeClassifier,
    NamingConventionClassifier,
    TypeClassifier,
    TypeKind,
)
from testforge.synthesis.engine import SynthesisEngine, generate
from testforge.synthesis.models import GeneratedTestUnit, SynthesisOptions, TestDialect

__all__ = [
    "SynthesisEngine",
    "generate",
    "GeneratedTestUnit",
    "SynthesisOptions",
    "TestDialect",
    "TypeKind",
    "TypeClassifier",
    "DeclaredTypeClassifier",
    "NamingConventionClassifier",
]
