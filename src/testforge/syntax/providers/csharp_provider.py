"""
C# syntax provider using tree-sitter-c-sharp.

Parses C# source text (C# 1-12 syntax) without requiring a .NET runtime and
converts the tree-sitter parse tree into the read-only CompilationUnitView
consumed by test synthesis.
"""

from __future__ import annotations

import re
import time
from typing import Any, Optional

import structlog
import tree_sitter_c_sharp as tscs
from tree_sitter import Language, Parser

from testforge.shared.domain.exceptions import ParseFailure
from testforge.syntax.domain.models import (
    ClassDeclaration,
    CompilationUnitView,
    ConstructorDeclaration,
    ImportDirective,
    MethodDeclaration,
    NamespaceDeclaration,
    Parameter,
)

logger = structlog.get_logger(__name__)

_MODIFIER_KEYWORDS = frozenset(
    {
        "public",
        "private",
        "protected",
        "internal",
        "static",
        "async",
        "virtual",
        "override",
        "abstract",
        "sealed",
        "partial",
        "readonly",
        "const",
        "extern",
        "unsafe",
        "new",
        "volatile",
        "required",
        "file",
    }
)

_PARAMETER_MODIFIERS = frozenset({"ref", "out", "in", "this", "params"})

_INTERFACE_NODES = frozenset({"interface_declaration"})
_CONCRETE_TYPE_NODES = frozenset(
    {
        "class_declaration",
        "struct_declaration",
        "enum_declaration",
        "record_declaration",
        "record_struct_declaration",
        "delegate_declaration",
    }
)

_USING_PATTERN = re.compile(r"^\s*(global\s+)?using\s+(.*?)\s*;\s*$", re.DOTALL)


def _text(node: Any) -> str:
    return node.text.decode("utf8")


def _field(node: Any, *names: str) -> Optional[Any]:
    """Return the first child found under any of the given field names."""
    for name in names:
        child = node.child_by_field_name(name)
        if child is not None:
            return child
    return None


def _first_child_of_type(node: Any, *types: str) -> Optional[Any]:
    for child in node.children:
        if child.type in types:
            return child
    return None


def _modifiers(node: Any) -> frozenset[str]:
    """
    Collect declaration modifiers.

    Newer grammars wrap each keyword in a `modifier` node; older ones put the
    keyword tokens directly under the declaration.
    """
    found: set[str] = set()
    for child in node.children:
        if child.type == "modifier":
            found.add(_text(child).strip())
        elif child.type in _MODIFIER_KEYWORDS:
            found.add(child.type)
    return frozenset(found)


def _type_parameters(node: Any) -> tuple[str, ...]:
    type_list = _field(node, "type_parameters") or _first_child_of_type(node, "type_parameter_list")
    if type_list is None:
        return ()
    names = []
    for parameter in type_list.named_children:
        if parameter.type != "type_parameter":
            continue
        name = _field(parameter, "name") or _first_child_of_type(parameter, "identifier")
        names.append(_text(name) if name is not None else _text(parameter))
    return tuple(names)


def _parameter_modifier(node: Any) -> str:
    for child in node.children:
        if child.type in ("parameter_modifier", "modifier"):
            text = _text(child).strip()
            if text in _PARAMETER_MODIFIERS:
                return text
        elif child.type in _PARAMETER_MODIFIERS:
            return child.type
    return ""


def _parameters(node: Any) -> tuple[Parameter, ...]:
    """
    Extract parameters from a constructor or method declaration.

    Args:
        node: tree-sitter declaration node owning a parameter_list

    Returns:
        Parameters in declaration order; a parameter whose type cannot be
        found keeps an empty type name
    """
    parameter_list = _field(node, "parameters") or _first_child_of_type(node, "parameter_list")
    if parameter_list is None:
        return ()

    parameters: list[Parameter] = []
    for child in parameter_list.named_children:
        if child.type not in ("parameter", "parameter_array"):
            continue

        type_node = _field(child, "type")
        name_node = _field(child, "name")
        if name_node is None or type_node is None:
            for sub in child.named_children:
                if sub.type == "identifier":
                    name_node = sub
                elif type_node is None and sub.type not in (
                    "attribute_list",
                    "parameter_modifier",
                    "modifier",
                    "equals_value_clause",
                ):
                    type_node = sub

        modifier = "params" if child.type == "parameter_array" else _parameter_modifier(child)
        parameters.append(
            Parameter(
                identifier=_text(name_node) if name_node is not None else "",
                type_name=_text(type_node) if type_node is not None else "",
                modifier=modifier,
            )
        )
    return tuple(parameters)


def _first_error(node: Any) -> Optional[Any]:
    """Depth-first search for the first ERROR or MISSING node."""
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


class _UnitBuilder:
    """Walks one parse tree and assembles the compilation unit view."""

    def __init__(self, source_path: Optional[str]) -> None:
        self.source_path = source_path
        self.imports: list[ImportDirective] = []
        self.namespaces: list[NamespaceDeclaration] = []
        self.interfaces: set[str] = set()
        self.types: set[str] = set()
        self._file_namespace: Optional[NamespaceDeclaration] = None
        self._partials: dict[tuple[str, str], ClassDeclaration] = {}

    def build(self) -> CompilationUnitView:
        return CompilationUnitView(
            imports=tuple(self.imports),
            namespaces=tuple(self.namespaces),
            declared_interfaces=frozenset(self.interfaces),
            declared_types=frozenset(self.types),
            source_path=self.source_path,
        )

    def visit_unit(self, root: Any) -> None:
        self._collect_declared_names(root)
        for child in root.named_children:
            self._visit_top_level(child)

    def _visit_top_level(self, node: Any) -> None:
        if node.type == "using_directive":
            self._add_import(node)
        elif node.type == "namespace_declaration":
            self._visit_namespace(node, prefix="")
        elif node.type == "file_scoped_namespace_declaration":
            self._file_namespace = NamespaceDeclaration(name=self._namespace_name(node, ""))
            self.namespaces.append(self._file_namespace)
            # Older grammars nest the members under the declaration itself
            for child in node.named_children:
                if child.type == "using_directive":
                    self._add_import(child)
                elif child.type == "class_declaration":
                    self._attach(self._file_namespace.classes, self._visit_class(child, self._file_namespace))
        elif node.type == "class_declaration":
            if self._file_namespace is not None:
                self._attach(self._file_namespace.classes, self._visit_class(node, self._file_namespace))
            else:
                logger.debug(
                    "global_namespace_class_skipped",
                    file_path=self.source_path,
                    class_name=_text(_field(node, "name")) if _field(node, "name") else None,
                )

    def _add_import(self, node: Any) -> None:
        match = _USING_PATTERN.match(_text(node))
        if match is None:
            return
        target = " ".join(match.group(2).split())
        self.imports.append(ImportDirective(target=target, is_global=bool(match.group(1))))

    def _namespace_name(self, node: Any, prefix: str) -> str:
        name_node = _field(node, "name") or _first_child_of_type(node, "qualified_name", "identifier")
        name = "".join(_text(name_node).split()) if name_node is not None else ""
        return f"{prefix}.{name}" if prefix else name

    def _visit_namespace(self, node: Any, prefix: str) -> None:
        namespace = NamespaceDeclaration(name=self._namespace_name(node, prefix))
        self.namespaces.append(namespace)

        body = _field(node, "body") or _first_child_of_type(node, "declaration_list")
        if body is None:
            return
        for child in body.named_children:
            if child.type == "class_declaration":
                self._attach(namespace.classes, self._visit_class(child, namespace))
            elif child.type == "namespace_declaration":
                self._visit_namespace(child, prefix=namespace.name)
            elif child.type == "using_directive":
                self._add_import(child)

    def _attach(self, siblings: list[ClassDeclaration], declaration: ClassDeclaration) -> None:
        """
        Add a class to its container, folding partial declarations.

        Every later part of a partial class is merged into the first part
        seen with the same qualified namespace and identifier: its
        constructors, methods and nested classes are appended in
        declaration order and its modifiers are added.
        """
        if "partial" not in declaration.modifiers:
            siblings.append(declaration)
            return

        key = (declaration.qualified_namespace, declaration.identifier)
        first = self._partials.get(key)
        if first is None:
            self._partials[key] = declaration
            siblings.append(declaration)
            return

        first.modifiers = first.modifiers | declaration.modifiers
        first.constructors.extend(declaration.constructors)
        first.methods.extend(declaration.methods)
        for nested in declaration.nested_classes:
            nested.parent = first
            first.nested_classes.append(nested)
        logger.debug(
            "partial_class_merged",
            file_path=self.source_path,
            class_name=declaration.identifier,
            namespace=key[0],
        )

    def _visit_class(self, node: Any, parent: Any) -> ClassDeclaration:
        name_node = _field(node, "name") or _first_child_of_type(node, "identifier")
        declaration = ClassDeclaration(
            identifier=_text(name_node),
            parent=parent,
            modifiers=_modifiers(node),
            type_parameters=_type_parameters(node),
        )

        body = _field(node, "body") or _first_child_of_type(node, "declaration_list")
        if body is None:
            return declaration

        for member in body.named_children:
            if member.type == "constructor_declaration":
                declaration.constructors.append(
                    ConstructorDeclaration(parameters=_parameters(member), modifiers=_modifiers(member))
                )
            elif member.type == "method_declaration":
                method = self._visit_method(member, declaration)
                if method is not None:
                    declaration.methods.append(method)
            elif member.type == "class_declaration":
                self._attach(declaration.nested_classes, self._visit_class(member, declaration))

        return declaration

    def _visit_method(self, node: Any, owner: ClassDeclaration) -> Optional[MethodDeclaration]:
        name_node = _field(node, "name")
        return_node = _field(node, "returns", "type")
        if name_node is None or return_node is None:
            logger.debug(
                "method_shape_not_recognized",
                file_path=self.source_path,
                class_name=owner.identifier,
                text=_text(node)[:80],
            )
            return None

        return MethodDeclaration(
            identifier=_text(name_node),
            return_type=_text(return_node),
            parameters=_parameters(node),
            modifiers=_modifiers(node),
            type_parameters=_type_parameters(node),
        )

    def _collect_declared_names(self, root: Any) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in _INTERFACE_NODES or node.type in _CONCRETE_TYPE_NODES:
                name_node = _field(node, "name") or _first_child_of_type(node, "identifier")
                if name_node is not None:
                    target = self.interfaces if node.type in _INTERFACE_NODES else self.types
                    target.add(_text(name_node))
            stack.extend(node.named_children)


class CSharpSyntaxProvider:
    """
    C# syntax provider backed by tree-sitter-c-sharp.

    Produces a CompilationUnitView for one source text. A provider owns one
    tree-sitter Parser and must not be shared between threads; sharing it
    between coroutines on one event loop is fine because parse() never
    suspends.

    Example:
        ```python
        provider = CSharpSyntaxProvider()
        unit = provider.parse(source_text, "Services/UserService.cs")
        for declaration in unit.iter_classes():
            print(declaration.qualified_namespace, declaration.identifier)
        ```
    """

    def __init__(self) -> None:
        self._language = Language(tscs.language())
        self._parser = Parser(self._language)

    def parse(self, source_text: str, source_path: Optional[str] = None) -> CompilationUnitView:
        """
        Parse C# source text into a compilation unit view.

        Args:
            source_text: C# source code
            source_path: Optional path used to attribute errors

        Returns:
            CompilationUnitView of the source

        Raises:
            ParseFailure: If the source contains syntax errors
        """
        start_time = time.time()
        tree = self._parser.parse(bytes(source_text, "utf8"))
        root = tree.root_node

        if root.has_error:
            error_node = _first_error(root) or root
            line, column = error_node.start_point
            logger.warning(
                "csharp_parse_failed",
                file_path=source_path,
                line=line + 1,
                column=column,
            )
            raise ParseFailure(
                "source is not a valid C# compilation unit",
                source_path=source_path,
                line=line + 1,  # tree-sitter uses 0-based lines
                column=column,
            )

        builder = _UnitBuilder(source_path)
        builder.visit_unit(root)
        unit = builder.build()

        logger.debug(
            "csharp_parse_completed",
            file_path=source_path,
            namespaces=len(unit.namespaces),
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return unit
