"""
x86-64 Code Generator for stackcc
=================================

This module generates x86-64 assembly (GNU assembler, Intel syntax) from
the stackcc AST. The whole program becomes a single function, `main`.

Code Generation Strategy
------------------------
The code generator uses a pure stack-machine model:

1. Every expression pushes exactly one 64-bit value on the native stack
2. Binary operations pop the right operand into RDI and the left into RAX,
   compute into RAX and push it back
3. Variables live in fixed slots below the frame pointer (RBP - offset)
4. Each statement's value is popped into RAX, so the last statement's value
   is the function result unless a `return` leaves earlier

Register Usage
--------------
| Register | Usage                                      |
|----------|--------------------------------------------|
| RAX      | Left operand, result, variable address     |
| RDI      | Right operand, value being stored          |
| RBP      | Frame pointer                              |
| RSP      | Operand stack top                          |
| AL       | Comparison result before zero-extension    |

Stack Frame Layout
------------------
    +----------------+
    | Return address |
    +----------------+
    | Saved RBP      |
    +----------------+ <- RBP
    | Variable 1     |  RBP - 8
    | Variable 2     |  RBP - 16
    | ...            |
    +----------------+ <- RBP - frame_size
    | Temp values    |  (expression evaluation)
    +----------------+ <- RSP

Example output for "a = 3; a * 2":
    .intel_syntax noprefix
    .globl main
    main:
            push    rbp
            mov     rbp, rsp
            sub     rsp, 208
            mov     rax, rbp
            sub     rax, 8
            push    rax
            push    3
            ...

Usage
-----
>>> from stackcc.compiler.parser import parse_source
>>> from stackcc.compiler.codegen import CodeGenerator
>>> program = parse_source("return 42")
>>> asm = CodeGenerator().generate(program)
"""

import logging
from typing import Optional

from stackcc.compiler.ast import (
    ASTVisitor,
    Program,
    Return,
    Assign,
    BinaryOp,
    BinaryOperator,
    NumberLiteral,
    Variable,
    format_expression,
)
from stackcc.compiler.errors import InternalInvariantError
from stackcc.compiler.symbols import SymbolTable

logger = logging.getLogger(__name__)

# Frame size for the default symbol table capacity (26 slots)
DEFAULT_FRAME_SIZE = SymbolTable().frame_size

# Range of a sign-extended 32-bit immediate operand
IMM32_MIN = -(2**31)
IMM32_MAX = 2**31 - 1

# Arithmetic instructions for the non-comparison operators
ARITHMETIC_INSTRUCTIONS = {
    BinaryOperator.ADD: "add",
    BinaryOperator.SUB: "sub",
    BinaryOperator.MUL: "imul",
}

# SETcc instruction for each comparison operator (signed compare)
COMPARISON_INSTRUCTIONS = {
    BinaryOperator.EQ: "sete",
    BinaryOperator.NE: "setne",
    BinaryOperator.LT: "setl",
    BinaryOperator.LE: "setle",
}


class CodeGenerator(ASTVisitor):
    """
    Generates x86-64 assembly from a Program AST.

    A generator instance can be reused; generate() resets all state.
    """

    def __init__(self):
        self._output: list[str] = []

    def generate(
        self,
        program: Program,
        frame_size: int = DEFAULT_FRAME_SIZE,
        output_comments: bool = False,
    ) -> str:
        """
        Generate assembly for a whole program.

        Args:
            program: The root AST node
            frame_size: Bytes to reserve for variable slots
            output_comments: Precede each statement with a source comment

        Returns:
            Complete assembly text, newline-terminated

        Raises:
            InternalInvariantError: If the AST violates a generator contract
        """
        self._output = []

        self._emit_header()
        self._emit_prologue(frame_size)

        for index, statement in enumerate(program.statements, start=1):
            if output_comments:
                self._emit_comment(f"stmt {index}: {format_expression(statement)}")
            self.visit(statement)
            if not isinstance(statement, Return):
                # Discard the statement value, keeping it as the implicit result
                self._emit_instruction("pop", "rax")

        if not program.statements:
            self._emit_instruction("mov", "rax, 0")

        self._emit_epilogue()

        logger.debug(
            f"Generated {len(self._output)} lines for "
            f"{len(program.statements)} statements"
        )
        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Assembly Output Methods
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        """Emit a line of assembly."""
        self._output.append(line)

    def _emit_comment(self, comment: str) -> None:
        self._emit(f"        # {comment}")

    def _emit_label(self, label: str) -> None:
        self._emit(f"{label}:")

    def _emit_instruction(self, mnemonic: str, operand: Optional[str] = None) -> None:
        """Emit an instruction with optional operand."""
        if operand:
            self._emit(f"        {mnemonic:<8}{operand}")
        else:
            self._emit(f"        {mnemonic}")

    # =========================================================================
    # Function Frame
    # =========================================================================

    def _emit_header(self) -> None:
        self._emit(".intel_syntax noprefix")
        self._emit(".globl main")
        self._emit_label("main")

    def _emit_prologue(self, frame_size: int) -> None:
        self._emit_instruction("push", "rbp")
        self._emit_instruction("mov", "rbp, rsp")
        self._emit_instruction("sub", f"rsp, {frame_size}")

    def _emit_epilogue(self) -> None:
        """Tear down the frame and return RAX."""
        self._emit_instruction("mov", "rsp, rbp")
        self._emit_instruction("pop", "rbp")
        self._emit_instruction("ret")

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_Return(self, node: Return) -> None:
        self.visit(node.value)
        self._emit_instruction("pop", "rax")
        self._emit_epilogue()

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_NumberLiteral(self, node: NumberLiteral) -> None:
        if IMM32_MIN <= node.value <= IMM32_MAX:
            self._emit_instruction("push", str(node.value))
        else:
            # push only takes a sign-extended 32-bit immediate
            self._emit_instruction("mov", f"rax, {node.value}")
            self._emit_instruction("push", "rax")

    def _emit_address(self, node: Variable) -> None:
        """Push the address of a variable slot."""
        self._emit_instruction("mov", "rax, rbp")
        self._emit_instruction("sub", f"rax, {node.offset}")
        self._emit_instruction("push", "rax")

    def visit_Variable(self, node: Variable) -> None:
        self._emit_address(node)
        self._emit_instruction("pop", "rax")
        self._emit_instruction("mov", "rax, [rax]")
        self._emit_instruction("push", "rax")

    def visit_Assign(self, node: Assign) -> None:
        if not isinstance(node.target, Variable):
            raise InternalInvariantError(
                "left side of assignment must be a variable",
                location=node.location,
            )

        self._emit_address(node.target)
        self.visit(node.value)
        self._emit_instruction("pop", "rdi")
        self._emit_instruction("pop", "rax")
        self._emit_instruction("mov", "[rax], rdi")
        # The stored value is the value of the assignment
        self._emit_instruction("push", "rdi")

    def visit_BinaryOp(self, node: BinaryOp) -> None:
        self.visit(node.left)
        self.visit(node.right)
        self._emit_instruction("pop", "rdi")
        self._emit_instruction("pop", "rax")

        op = node.operator
        if op in ARITHMETIC_INSTRUCTIONS:
            self._emit_instruction(ARITHMETIC_INSTRUCTIONS[op], "rax, rdi")
        elif op == BinaryOperator.DIV:
            # Sign-extend RAX into RDX:RAX; quotient lands in RAX
            self._emit_instruction("cqo")
            self._emit_instruction("idiv", "rdi")
        elif op.is_comparison:
            self._emit_instruction("cmp", "rax, rdi")
            self._emit_instruction(COMPARISON_INSTRUCTIONS[op], "al")
            self._emit_instruction("movzb", "rax, al")
        else:
            raise InternalInvariantError(
                f"unsupported binary operator '{op.value}'",
                location=node.location,
            )

        self._emit_instruction("push", "rax")

    def generic_visit(self, node) -> None:
        raise InternalInvariantError(
            f"cannot generate code for {type(node).__name__}",
            location=node.location,
        )
