"""
Synthesis domain models.

GeneratedTestUnit is the engine's only output. TestDialect names the test
and mock framework vocabulary the generated code uses; SynthesisOptions
bundles it with the per-run synthesis policy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from testforge.shared.infrastructure.config import EligibilityPolicy, Settings


@dataclass(frozen=True)
class GeneratedTestUnit:
    """
    One generated test file for exactly one originating class.

    Attributes:
        name: Suggested file stem, `<ClassName>Tests`
        source: Full generated C# text
        namespace: Qualified namespace of the class under test
    """

    name: str
    source: str
    namespace: str = ""

    @property
    def qualified_name(self) -> str:
        """File stem qualified by namespace, used to resolve name collisions."""
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"name": self.name, "namespace": self.namespace, "source": self.source}


@dataclass(frozen=True)
class TestDialect:
    """Test and mock framework vocabulary (NUnit + Moq by default)."""

    __test__ = False  # not a pytest test class

    test_framework_namespace: str = "NUnit.Framework"
    mock_framework_namespace: str = "Moq"
    mock_type: str = "Mock"
    mock_object_accessor: str = "Object"
    setup_attribute: str = "SetUp"
    test_attribute: str = "Test"
    failure_marker: str = "autogenerated"

    @classmethod
    def from_settings(cls, settings: Settings) -> TestDialect:
        return cls(
            test_framework_namespace=settings.test_framework_namespace,
            mock_framework_namespace=settings.mock_framework_namespace,
            mock_type=settings.mock_type,
            mock_object_accessor=settings.mock_object_accessor,
            setup_attribute=settings.setup_attribute,
            test_attribute=settings.test_attribute,
            failure_marker=settings.failure_marker,
        )


@dataclass(frozen=True)
class SynthesisOptions:
    eligibility_policy: EligibilityPolicy = EligibilityPolicy.HAS_METHODS
    interface_marker: str = "I"
    dialect: TestDialect = field(default_factory=TestDialect)

    @classmethod
    def from_settings(cls, settings: Settings) -> SynthesisOptions:
        return cls(
            eligibility_policy=settings.eligibility_policy,
            interface_marker=settings.interface_marker,
            dialect=TestDialect.from_settings(settings),
        )
