"""
Test Synthesis Engine.

Pure function from C# source text to generated test units. No I/O, no
shared mutable state: one engine can serve any number of concurrent
pipeline workers.
"""

from __future__ import annotations

import time
from typing import Optional

import structlog

from testforge.shared.domain.exceptions import UnsupportedConstruct
from testforge.shared.infrastructure.config import EligibilityPolicy
from testforge.synthesis.builder import SkeletonBuilder
from testforge.synthesis.classifier import DeclaredTypeClassifier
from testforge.synthesis.models import GeneratedTestUnit, SynthesisOptions
from testforge.synthesis.printer import CSharpPrinter
from testforge.syntax.domain.models import ClassDeclaration, CompilationUnitView
from testforge.syntax.providers.csharp_provider import CSharpSyntaxProvider

logger = structlog.get_logger(__name__)


class SynthesisEngine:
    """
    Generates NUnit/Moq test skeletons for every eligible class of a unit.

    Output is deterministic: identical source text always yields
    byte-identical units in the same order (namespace declaration order,
    then class declaration order, nested classes after their parent).

    Example:
        ```python
        engine = SynthesisEngine()
        for unit in engine.generate(source_text, "Orders/OrderService.cs"):
            print(unit.name)
            print(unit.source)
        ```
    """

    def __init__(
        self,
        options: Optional[SynthesisOptions] = None,
        provider: Optional[CSharpSyntaxProvider] = None,
        printer: Optional[CSharpPrinter] = None,
    ) -> None:
        self.options = options or SynthesisOptions()
        self.provider = provider or CSharpSyntaxProvider()
        self.printer = printer or CSharpPrinter()

    def generate(self, source_text: str, source_path: Optional[str] = None) -> tuple[GeneratedTestUnit, ...]:
        """
        Generate test units for one source file.

        Args:
            source_text: C# source code (required, no default source)
            source_path: Optional path used to attribute errors and logs

        Returns:
            One GeneratedTestUnit per eligible class

        Raises:
            ParseFailure: If the source is not a valid compilation unit
        """
        if not isinstance(source_text, str):
            raise TypeError(f"source_text must be str, not {type(source_text).__name__}")

        start_time = time.time()
        unit = self.provider.parse(source_text, source_path)
        units = self.generate_from_unit(unit)

        logger.info(
            "synthesis_completed",
            file_path=source_path,
            units=len(units),
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return units

    def generate_from_unit(self, unit: CompilationUnitView) -> tuple[GeneratedTestUnit, ...]:
        """Generate test units from an already parsed compilation unit."""
        classifier = DeclaredTypeClassifier.for_unit(unit, self.options.interface_marker)
        results: list[GeneratedTestUnit] = []

        for declaration in unit.iter_classes():
            if not self.is_eligible(declaration):
                logger.debug(
                    "class_not_eligible",
                    file_path=unit.source_path,
                    class_name=declaration.identifier,
                    policy=self.options.eligibility_policy.value,
                )
                continue

            builder = SkeletonBuilder(declaration, classifier, self.options.dialect)
            try:
                tree = builder.build(unit.imports)
            except UnsupportedConstruct as e:
                logger.warning(
                    "unsupported_construct_skipped",
                    file_path=unit.source_path,
                    class_name=declaration.identifier,
                    reason=str(e),
                )
                continue

            results.append(
                GeneratedTestUnit(
                    name=builder.test_class_name,
                    source=self.printer.print_unit(tree),
                    namespace=declaration.qualified_namespace,
                )
            )

        return tuple(results)

    def is_eligible(self, declaration: ClassDeclaration) -> bool:
        if self.options.eligibility_policy is EligibilityPolicy.ANY_CLASS:
            return True
        return len(declaration.methods) > 0


_default_engine: Optional[SynthesisEngine] = None


def generate(source_text: str, source_path: Optional[str] = None) -> tuple[GeneratedTestUnit, ...]:
    """Generate test units with a default-configured engine."""
    global _default_engine
    if _default_engine is None:
        _default_engine = SynthesisEngine()
    return _default_engine.generate(source_text, source_path)
