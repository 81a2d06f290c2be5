"""
Test class synthesis.

Turns one ClassDeclaration into the output syntax tree of its test file:
imports, a `<Namespace>.Tests` namespace and a `<Class>Tests` class with a
per-test SetUp method and one arrange-act-assert skeleton per public method.
"""

from __future__ import annotations

from typing import Optional

import structlog

from testforge.shared.domain.exceptions import UnsupportedConstruct
from testforge.synthesis.classifier import TypeClassifier, TypeKind
from testforge.synthesis.models import TestDialect
from testforge.synthesis.nodes import (
    Argument,
    Assignment,
    ClassDefinition,
    CompilationUnit,
    DefaultLiteral,
    ExpressionStatement,
    FieldDefinition,
    Identifier,
    Invocation,
    LocalDeclaration,
    Member,
    MemberAccess,
    MethodDefinition,
    NamespaceDefinition,
    ObjectCreation,
    Statement,
    StringLiteral,
    UsingDirective,
)
from testforge.syntax.domain.models import (
    ClassDeclaration,
    ConstructorDeclaration,
    ImportDirective,
    MethodDeclaration,
    Parameter,
)

logger = structlog.get_logger(__name__)

# Modifiers that must be repeated at the call site
_CALL_SITE_MODIFIERS = frozenset({"ref", "out", "in"})


def dependency_name(parameter: Parameter) -> str:
    """Mock field or local name for an interface-typed parameter."""
    return f"_{parameter.identifier.lstrip('@')}_dependency"


def under_test_name(declaration: ClassDeclaration) -> str:
    return f"_{declaration.identifier}UnderTest"


def select_constructor(declaration: ClassDeclaration) -> Optional[ConstructorDeclaration]:
    """
    Constructor with the fewest parameters, first declared on ties.

    Returns None when the class declares no constructor, which callers
    treat as an implicit parameterless one.
    """
    if not declaration.constructors:
        return None
    return min(declaration.constructors, key=lambda ctor: ctor.arity)


def _check_parameter(parameter: Parameter, owner: str) -> None:
    if not parameter.identifier or not parameter.type_name:
        raise UnsupportedConstruct(
            f"parameter without name or type in {owner}",
            context={"owner": owner, "parameter": parameter.identifier or None},
        )


class SkeletonBuilder:
    """
    Builds the test file syntax tree for one class under test.

    Args:
        declaration: Class under test
        classifier: Decides which parameter types are mocked
        dialect: Test and mock framework vocabulary
    """

    def __init__(
        self,
        declaration: ClassDeclaration,
        classifier: TypeClassifier,
        dialect: TestDialect,
    ) -> None:
        self.declaration = declaration
        self.classifier = classifier
        self.dialect = dialect

    @property
    def test_class_name(self) -> str:
        return f"{self.declaration.identifier}Tests"

    def build(self, imports: tuple[ImportDirective, ...]) -> CompilationUnit:
        """
        Build the complete test compilation unit.

        Raises:
            UnsupportedConstruct: If the class itself cannot be tested
                (generic classes, unusable constructor parameters)
        """
        if self.declaration.type_parameters:
            raise UnsupportedConstruct(
                f"generic class {self.declaration.identifier} has no synthesis rule",
                context={"class_name": self.declaration.identifier},
            )

        members: list[Member] = list(self.build_setup())
        members.extend(self.build_test_methods())

        namespace = self.declaration.namespace
        test_namespace = f"{namespace.name}.Tests" if namespace is not None else "Tests"
        return CompilationUnit(
            usings=self.build_usings(imports),
            namespaces=(
                NamespaceDefinition(
                    name=test_namespace,
                    classes=(ClassDefinition(name=self.test_class_name, members=tuple(members)),),
                ),
            ),
        )

    def build_usings(self, imports: tuple[ImportDirective, ...]) -> tuple[UsingDirective, ...]:
        usings = [UsingDirective(target=i.target, is_global=i.is_global) for i in imports]
        usings.append(UsingDirective(target=self.dialect.test_framework_namespace))
        usings.append(UsingDirective(target=self.dialect.mock_framework_namespace))
        qualified = self.declaration.qualified_namespace
        if qualified:
            usings.append(UsingDirective(target=qualified))
        return tuple(usings)

    def build_setup(self) -> list[Member]:
        """
        Fields and the SetUp method.

        Static classes get an empty SetUp only. Other classes get the
        under-test field, one mock field per interface-typed parameter of
        the selected constructor, and a SetUp that initializes every
        parameter and constructs the instance under test.
        """
        setup_name = self.dialect.setup_attribute
        if self.declaration.is_static:
            return [MethodDefinition(name=setup_name, attributes=(setup_name,))]

        constructor = select_constructor(self.declaration)
        parameters = constructor.parameters if constructor is not None else ()

        members: list[Member] = [
            FieldDefinition(type_name=self.declaration.identifier, name=under_test_name(self.declaration))
        ]
        body: list[Statement] = []
        arguments: list[Argument] = []

        for parameter in parameters:
            _check_parameter(parameter, f"{self.declaration.identifier} constructor")
            if self._is_interface(parameter):
                name = dependency_name(parameter)
                members.append(FieldDefinition(type_name=self._mock_type(parameter), name=name))
                body.append(Assignment(target=Identifier(name), value=ObjectCreation(self._mock_type(parameter))))
                self._pass_mock(parameter, body, arguments)
            else:
                body.append(LocalDeclaration(parameter.type_name, parameter.identifier, DefaultLiteral()))
                arguments.append(self._value_argument(parameter))

        body.append(
            Assignment(
                target=Identifier(under_test_name(self.declaration)),
                value=ObjectCreation(self.declaration.identifier, tuple(arguments)),
            )
        )
        members.append(MethodDefinition(name=setup_name, attributes=(setup_name,), body=tuple(body)))
        return members

    def build_test_methods(self) -> list[MethodDefinition]:
        """One test per public method; unsupported methods are skipped."""
        tests: list[MethodDefinition] = []
        seen: dict[str, int] = {}

        for method in self.declaration.methods:
            if not method.is_public:
                continue
            try:
                body = self.build_test_body(method)
            except UnsupportedConstruct as e:
                logger.warning(
                    "unsupported_construct_skipped",
                    class_name=self.declaration.identifier,
                    method=method.identifier,
                    reason=str(e),
                )
                continue

            # Overloads would otherwise produce duplicate test names
            name = f"{method.identifier}Test"
            seen[name] = seen.get(name, 0) + 1
            if seen[name] > 1:
                name = f"{name}{seen[name]}"

            tests.append(
                MethodDefinition(name=name, attributes=(self.dialect.test_attribute,), body=tuple(body))
            )
        return tests

    def build_test_body(self, method: MethodDeclaration) -> list[Statement]:
        """
        Arrange, act and assert statements for one method.

        Raises:
            UnsupportedConstruct: For generic methods and unusable parameters
        """
        if method.type_parameters:
            raise UnsupportedConstruct(
                f"generic method {method.identifier} has no synthesis rule",
                context={"method": method.identifier},
            )

        # Arrange
        body: list[Statement] = []
        arguments: list[Argument] = []
        for parameter in method.parameters:
            _check_parameter(parameter, method.identifier)
            if self._is_interface(parameter):
                mock_type = self._mock_type(parameter)
                body.append(LocalDeclaration(mock_type, dependency_name(parameter), ObjectCreation(mock_type)))
                self._pass_mock(parameter, body, arguments)
            else:
                body.append(LocalDeclaration(parameter.type_name, parameter.identifier, DefaultLiteral()))
                arguments.append(self._value_argument(parameter))

        # Act
        if method.is_static or self.declaration.is_static:
            target = Identifier(self.declaration.identifier)
        else:
            target = Identifier(under_test_name(self.declaration))
        invocation = Invocation(MemberAccess(target, method.identifier), tuple(arguments))

        # Assert
        fail = ExpressionStatement(
            Invocation(
                MemberAccess(Identifier("Assert"), "Fail"),
                (Argument(StringLiteral(self.dialect.failure_marker)),),
            )
        )
        if method.returns_void:
            body.append(ExpressionStatement(invocation))
            body.append(fail)
            return body

        body.append(LocalDeclaration(method.return_type, "actual", invocation))
        body.append(LocalDeclaration(method.return_type, "expected", DefaultLiteral()))
        body.append(
            ExpressionStatement(
                Invocation(
                    MemberAccess(Identifier("Assert"), "That"),
                    (
                        Argument(Identifier("actual")),
                        Argument(
                            Invocation(
                                MemberAccess(Identifier("Is"), "EqualTo"),
                                (Argument(Identifier("expected")),),
                            )
                        ),
                    ),
                )
            )
        )
        body.append(fail)
        return body

    def _is_interface(self, parameter: Parameter) -> bool:
        # UNKNOWN gets a default value like any concrete type
        return self.classifier.classify(parameter.type_name) is TypeKind.INTERFACE

    def _mock_type(self, parameter: Parameter) -> str:
        return f"{self.dialect.mock_type}<{parameter.type_name}>"

    def _mock_object(self, parameter: Parameter) -> MemberAccess:
        return MemberAccess(Identifier(dependency_name(parameter)), self.dialect.mock_object_accessor)

    def _pass_mock(self, parameter: Parameter, body: list[Statement], arguments: list[Argument]) -> None:
        """
        Pass the mocked object of an interface-typed parameter.

        A `ref`, `out` or `in` argument must be a variable, so the mocked
        object is first bound to a local named after the parameter.
        """
        if parameter.modifier in _CALL_SITE_MODIFIERS:
            body.append(LocalDeclaration(parameter.type_name, parameter.identifier, self._mock_object(parameter)))
            arguments.append(self._value_argument(parameter))
        else:
            arguments.append(Argument(self._mock_object(parameter)))

    def _value_argument(self, parameter: Parameter) -> Argument:
        modifier = parameter.modifier if parameter.modifier in _CALL_SITE_MODIFIERS else ""
        return Argument(Identifier(parameter.identifier), modifier)
