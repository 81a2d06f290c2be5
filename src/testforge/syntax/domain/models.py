"""
Syntax domain models.

Read-only view of one parsed C# compilation unit: imports, namespaces,
classes and their constructors, methods and parameters. Providers build
these objects top-down once per parse; nothing mutates them afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class ImportDirective:
    """A `using` directive, target kept verbatim (e.g. `static System.Math`)."""

    target: str
    is_global: bool = False


@dataclass(frozen=True)
class Parameter:
    """
    A constructor or method parameter.

    `type_name` is the type exactly as written in source; no semantic
    resolution is performed.
    """

    identifier: str
    type_name: str
    modifier: str = ""  # ref, out, in, params, this or empty


@dataclass(frozen=True)
class ConstructorDeclaration:
    parameters: tuple[Parameter, ...] = ()
    modifiers: frozenset[str] = frozenset()

    @property
    def arity(self) -> int:
        return len(self.parameters)


@dataclass(frozen=True)
class MethodDeclaration:
    identifier: str
    return_type: str
    parameters: tuple[Parameter, ...] = ()
    modifiers: frozenset[str] = frozenset()
    type_parameters: tuple[str, ...] = ()

    @property
    def is_public(self) -> bool:
        return "public" in self.modifiers

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def returns_void(self) -> bool:
        return self.return_type.strip() == "void"


@dataclass(eq=False)
class NamespaceDeclaration:
    """A namespace with its full dotted name and directly declared classes."""

    name: str
    classes: list[ClassDeclaration] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"NamespaceDeclaration(name={self.name!r}, classes={len(self.classes)})"


@dataclass(eq=False)
class ClassDeclaration:
    """
    A class declaration.

    `parent` is a back-reference to the enclosing class or namespace; the
    parent owns this object, never the other way round.
    """

    identifier: str
    parent: Union[ClassDeclaration, NamespaceDeclaration, None] = field(default=None, repr=False)
    modifiers: frozenset[str] = frozenset()
    constructors: list[ConstructorDeclaration] = field(default_factory=list)
    methods: list[MethodDeclaration] = field(default_factory=list)
    nested_classes: list[ClassDeclaration] = field(default_factory=list)
    type_parameters: tuple[str, ...] = ()

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def namespace(self) -> Optional[NamespaceDeclaration]:
        """Nearest enclosing namespace, or None for the global namespace."""
        node = self.parent
        while isinstance(node, ClassDeclaration):
            node = node.parent
        return node

    @property
    def qualified_namespace(self) -> str:
        """
        Namespace owning this class, including enclosing classes.

        Walks the parent chain up to the nearest namespace and joins the
        identifiers outer-to-inner: `Shop.Orders.Outer` for class `Inner`
        nested in `Outer` inside namespace `Shop.Orders`.
        """
        parts: list[str] = []
        node = self.parent
        while isinstance(node, ClassDeclaration):
            parts.insert(0, node.identifier)
            node = node.parent
        if node is not None:
            parts.insert(0, node.name)
        return ".".join(parts)

    def walk(self):
        """Yield this class and every nested class, depth-first."""
        yield self
        for nested in self.nested_classes:
            yield from nested.walk()


@dataclass(frozen=True)
class CompilationUnitView:
    """
    One parsed source file.

    `declared_interfaces` and `declared_types` hold the simple names of the
    interfaces and of the concrete types (class, struct, enum, record)
    declared anywhere in the unit. They are the only semantic information
    available to type classification.
    """

    imports: tuple[ImportDirective, ...] = ()
    namespaces: tuple[NamespaceDeclaration, ...] = ()
    declared_interfaces: frozenset[str] = frozenset()
    declared_types: frozenset[str] = frozenset()
    source_path: Optional[str] = None

    def iter_classes(self):
        """Yield every class in namespace order, then declaration order."""
        for namespace in self.namespaces:
            for declaration in namespace.classes:
                yield from declaration.walk()
