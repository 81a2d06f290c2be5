"""
C# source printer for the output syntax tree.

Formatting is fixed: four-space indentation, Allman braces, one blank line
between methods and between the field block and the first method. The
output always ends with a single newline.
"""

from __future__ import annotations

from testforge.synthesis.nodes import (
    Argument,
    Assignment,
    ClassDefinition,
    CompilationUnit,
    DefaultLiteral,
    Expression,
    ExpressionStatement,
    FieldDefinition,
    Identifier,
    Invocation,
    LocalDeclaration,
    MemberAccess,
    MethodDefinition,
    NamespaceDefinition,
    ObjectCreation,
    Statement,
    StringLiteral,
    UsingDirective,
)

INDENT = "    "


def escape_string(value: str) -> str:
    """Escape a value for a regular (non-verbatim) C# string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


class CSharpPrinter:
    """Renders output syntax nodes as C# source text."""

    def print_unit(self, unit: CompilationUnit) -> str:
        lines: list[str] = [self.print_using(using) for using in unit.usings]
        for namespace in unit.namespaces:
            if lines:
                lines.append("")
            lines.extend(self._namespace_lines(namespace))
        return "\n".join(lines) + "\n"

    def print_using(self, using: UsingDirective) -> str:
        prefix = "global using" if using.is_global else "using"
        return f"{prefix} {using.target};"

    def print_expression(self, expression: Expression) -> str:
        if isinstance(expression, Identifier):
            return expression.name
        if isinstance(expression, MemberAccess):
            return f"{self.print_expression(expression.target)}.{expression.member}"
        if isinstance(expression, Invocation):
            return f"{self.print_expression(expression.callee)}({self._arguments(expression.arguments)})"
        if isinstance(expression, ObjectCreation):
            return f"new {expression.type_name}({self._arguments(expression.arguments)})"
        if isinstance(expression, DefaultLiteral):
            return "default"
        if isinstance(expression, StringLiteral):
            return escape_string(expression.value)
        raise TypeError(f"Unknown expression node: {type(expression).__name__}")

    def print_statement(self, statement: Statement) -> str:
        if isinstance(statement, LocalDeclaration):
            return f"{statement.type_name} {statement.name} = {self.print_expression(statement.value)};"
        if isinstance(statement, Assignment):
            return f"{self.print_expression(statement.target)} = {self.print_expression(statement.value)};"
        if isinstance(statement, ExpressionStatement):
            return f"{self.print_expression(statement.expression)};"
        raise TypeError(f"Unknown statement node: {type(statement).__name__}")

    def print_field(self, field: FieldDefinition) -> str:
        return f"{' '.join(field.modifiers)} {field.type_name} {field.name};"

    def print_method(self, method: MethodDefinition, depth: int = 0) -> list[str]:
        pad = INDENT * depth
        lines = [f"{pad}[{attribute}]" for attribute in method.attributes]
        lines.append(f"{pad}{' '.join(method.modifiers)} {method.return_type} {method.name}()")
        lines.append(f"{pad}{{")
        lines.extend(f"{pad}{INDENT}{self.print_statement(s)}" for s in method.body)
        lines.append(f"{pad}}}")
        return lines

    def _arguments(self, arguments: tuple[Argument, ...]) -> str:
        rendered = []
        for argument in arguments:
            value = self.print_expression(argument.value)
            rendered.append(f"{argument.modifier} {value}" if argument.modifier else value)
        return ", ".join(rendered)

    def _namespace_lines(self, namespace: NamespaceDefinition) -> list[str]:
        lines = [f"namespace {namespace.name}", "{"]
        for index, definition in enumerate(namespace.classes):
            if index:
                lines.append("")
            lines.extend(self._class_lines(definition, depth=1))
        lines.append("}")
        return lines

    def _class_lines(self, definition: ClassDefinition, depth: int) -> list[str]:
        pad = INDENT * depth
        lines = [f"{pad}{' '.join(definition.modifiers)} class {definition.name}", f"{pad}{{"]

        previous = None
        for member in definition.members:
            if isinstance(member, FieldDefinition):
                if isinstance(previous, MethodDefinition):
                    lines.append("")
                lines.append(f"{pad}{INDENT}{self.print_field(member)}")
            else:
                if previous is not None:
                    lines.append("")
                lines.extend(self.print_method(member, depth + 1))
            previous = member

        lines.append(f"{pad}}}")
        return lines
