"""
stackcc Abstract Syntax Tree (AST) Definitions
==============================================

This module defines the AST node types built by the parser and consumed
by the code generator.

Node Hierarchy
--------------
Node (base)
├── Program - root node, ordered list of statements
├── Statements
│   └── Return - return statement
└── Expressions
    ├── NumberLiteral - integer constant
    ├── Variable - variable reference with its resolved slot offset
    ├── Assign - assignment (right-associative, yields the stored value)
    └── BinaryOp - binary operators (+ - * / == != < <=)

Design Notes
------------
- All nodes are dataclasses; a non-leaf node owns its children.
- Each node stores its source location for error reporting. The location
  is keyword-only and excluded from equality, so two trees with the same
  shape compare equal wherever they came from in the source.
- There is no unary node: the parser rewrites -x as (0 - x) and drops +x.
- '>' and '>=' have no node either: the parser swaps the operands and
  uses LT / LE.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from stackcc.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass
class Node:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node starts
    """
    location: Optional[SourceLocation] = field(
        default=None, compare=False, repr=False, kw_only=True
    )


@dataclass
class Expression(Node):
    """Base class for nodes that evaluate to a value."""
    pass


# =============================================================================
# Expression Nodes
# =============================================================================

class BinaryOperator(Enum):
    """Binary operator types, valued by their source spelling."""
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="

    @property
    def is_comparison(self) -> bool:
        return self in (BinaryOperator.EQ, BinaryOperator.NE, BinaryOperator.LT, BinaryOperator.LE)


@dataclass
class NumberLiteral(Expression):
    """
    Integer constant.

    Attributes:
        value: The integer value
    """
    value: int


@dataclass
class Variable(Expression):
    """
    Variable reference.

    The parser resolves the slot while parsing, so the offset is known as
    soon as the node exists.

    Attributes:
        name: Variable name
        offset: Slot offset below the frame pointer, in bytes
    """
    name: str
    offset: int


@dataclass
class Assign(Expression):
    """
    Assignment expression.

    Attributes:
        target: The assigned variable
        value: The right-hand side; also the value of the whole expression
    """
    target: Expression
    value: Expression


@dataclass
class BinaryOp(Expression):
    """
    Binary operation.

    Attributes:
        operator: The operator
        left: Left operand (evaluated first; the dividend for DIV)
        right: Right operand
    """
    operator: BinaryOperator
    left: Expression
    right: Expression


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Return(Node):
    """
    Return statement.

    Attributes:
        value: The returned expression
    """
    value: Expression


Statement = Union[Expression, Return]


# =============================================================================
# Program Root Node
# =============================================================================

@dataclass
class Program(Node):
    """
    Root node: the top-level statements in source order.

    Attributes:
        statements: Statement nodes
    """
    statements: list[Statement] = field(default_factory=list)


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Dispatches on the node's class name. Subclasses override visit_*
    methods for the node types they care about.

    Usage:
        class CountNumbers(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_NumberLiteral(self, node):
                self.count += 1

        visitor = CountNumbers()
        visitor.visit(program)
    """

    def visit(self, node: Node) -> Any:
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: Node) -> None:
        """Visit all child nodes of an unhandled node type."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, Node):
                self.visit(field_value)
            elif isinstance(field_value, list):
                for item in field_value:
                    if isinstance(item, Node):
                        self.visit(item)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging.

    Usage:
        printer = ASTPrinter()
        print(printer.print(program))

    Output for "a = 1 + 2; return a":

        Program
          Assign
            Variable a @8
            BinaryOp +
              Number 1
              Number 2
          Return
            Variable a @8
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: Node) -> str:
        """Print the AST and return as string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _children(self, *nodes: Node) -> None:
        self.indent_level += 1
        for child in nodes:
            self.visit(child)
        self.indent_level -= 1

    def visit_Program(self, node: Program):
        self._emit("Program")
        self._children(*node.statements)

    def visit_Return(self, node: Return):
        self._emit("Return")
        self._children(node.value)

    def visit_Assign(self, node: Assign):
        self._emit("Assign")
        self._children(node.target, node.value)

    def visit_BinaryOp(self, node: BinaryOp):
        self._emit(f"BinaryOp {node.operator.value}")
        self._children(node.left, node.right)

    def visit_NumberLiteral(self, node: NumberLiteral):
        self._emit(f"Number {node.value}")

    def visit_Variable(self, node: Variable):
        self._emit(f"Variable {node.name} @{node.offset}")


def format_expression(node: Node) -> str:
    """
    Render a statement back to fully parenthesized source form.

    Used for assembly comments, e.g. "a = ((1 + 2) * 3)".
    """
    if isinstance(node, NumberLiteral):
        return str(node.value)
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, Assign):
        return f"{format_expression(node.target)} = {format_expression(node.value)}"
    if isinstance(node, BinaryOp):
        left = format_expression(node.left)
        right = format_expression(node.right)
        return f"({left} {node.operator.value} {right})"
    if isinstance(node, Return):
        return f"return {format_expression(node.value)}"
    return f"<{type(node).__name__}>"
