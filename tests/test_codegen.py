"""
Code Generator Test Suite
=========================

Tests for x86-64 code generation: exact instruction sequences for each
node kind, program framing, the implicit result, statement comments and
contract violations.
"""

import pytest

from stackcc.compiler.codegen import CodeGenerator, COMPARISON_INSTRUCTIONS
from stackcc.compiler.parser import parse_source
from stackcc.compiler.ast import (
    Program,
    Assign,
    BinaryOp,
    BinaryOperator,
    NumberLiteral,
    Variable,
)
from stackcc.compiler.errors import InternalInvariantError


HEADER = [
    ".intel_syntax noprefix",
    ".globl main",
    "main:",
    "push rbp",
    "mov rbp, rsp",
    "sub rsp, 208",
]

EPILOGUE = [
    "mov rsp, rbp",
    "pop rbp",
    "ret",
]


def generate(program: Program, **kwargs) -> list[str]:
    """Generate code for an AST and return whitespace-normalized lines."""
    asm = CodeGenerator().generate(program, **kwargs)
    return [" ".join(line.split()) for line in asm.splitlines()]


def body(lines: list[str]) -> list[str]:
    """Strip the fixed header and the final epilogue."""
    assert lines[:len(HEADER)] == HEADER
    assert lines[-len(EPILOGUE):] == EPILOGUE
    return lines[len(HEADER):-len(EPILOGUE)]


# =============================================================================
# Program Framing Tests
# =============================================================================

class TestFraming:
    """Tests for the header, prologue and epilogue."""

    def test_full_listing(self, compile_asm):
        assert compile_asm("1+2") == HEADER + [
            "push 1",
            "push 2",
            "pop rdi",
            "pop rax",
            "add rax, rdi",
            "push rax",
            "pop rax",
        ] + EPILOGUE

    def test_empty_program_returns_zero(self, compile_asm):
        assert compile_asm("") == HEADER + ["mov rax, 0"] + EPILOGUE

    def test_output_ends_with_newline(self):
        asm = CodeGenerator().generate(parse_source("1"))
        assert asm.endswith("ret\n")

    def test_instruction_formatting(self):
        asm = CodeGenerator().generate(parse_source("1"))
        assert "        push    rbp" in asm.splitlines()
        assert "        ret" in asm.splitlines()

    def test_custom_frame_size(self):
        lines = generate(parse_source("1"), frame_size=32)
        assert "sub rsp, 32" in lines

    def test_each_statement_value_is_popped(self, compile_asm):
        lines = body(compile_asm("1; 2; 3"))
        assert lines == ["push 1", "pop rax", "push 2", "pop rax", "push 3", "pop rax"]

    def test_generator_is_reusable(self):
        generator = CodeGenerator()
        first = generator.generate(parse_source("1"))
        second = generator.generate(parse_source("1"))
        assert first == second


# =============================================================================
# Expression Tests
# =============================================================================

class TestExpressions:
    """Tests for expression code sequences."""

    def test_number(self, compile_asm):
        assert body(compile_asm("42")) == ["push 42", "pop rax"]

    def test_large_number_goes_through_rax(self, compile_asm):
        assert body(compile_asm("4294967296")) == [
            "mov rax, 4294967296",
            "push rax",
            "pop rax",
        ]

    def test_largest_imm32(self, compile_asm):
        assert body(compile_asm("2147483647"))[0] == "push 2147483647"

    def test_negative_literal_node(self):
        program = Program(statements=[NumberLiteral(-5)])
        assert body(generate(program))[0] == "push -5"

    def test_variable_load(self, compile_asm):
        assert body(compile_asm("a")) == [
            "mov rax, rbp",
            "sub rax, 8",
            "push rax",
            "pop rax",
            "mov rax, [rax]",
            "push rax",
            "pop rax",
        ]

    def test_second_variable_offset(self, compile_asm):
        lines = body(compile_asm("a; b"))
        assert "sub rax, 16" in lines

    @pytest.mark.parametrize("source,instructions", [
        ("1+2", ["add rax, rdi"]),
        ("1-2", ["sub rax, rdi"]),
        ("1*2", ["imul rax, rdi"]),
        ("1/2", ["cqo", "idiv rdi"]),
    ])
    def test_arithmetic(self, compile_asm, source, instructions):
        lines = body(compile_asm(source))
        assert lines == ["push 1", "push 2", "pop rdi", "pop rax"] + instructions + [
            "push rax",
            "pop rax",
        ]

    @pytest.mark.parametrize("source,setcc", [
        ("1==2", "sete"),
        ("1!=2", "setne"),
        ("1<2", "setl"),
        ("1<=2", "setle"),
    ])
    def test_comparison(self, compile_asm, source, setcc):
        lines = body(compile_asm(source))
        assert lines[4:8] == ["cmp rax, rdi", f"{setcc} al", "movzb rax, al", "push rax"]

    def test_every_comparison_operator_has_setcc(self):
        comparisons = {op for op in BinaryOperator if op.is_comparison}
        assert comparisons == set(COMPARISON_INSTRUCTIONS)

    @pytest.mark.parametrize("operator", [BinaryOperator.EQ, BinaryOperator.LE])
    def test_comparison_node_built_directly(self, operator):
        program = Program(statements=[BinaryOp(operator, NumberLiteral(1), NumberLiteral(2))])
        lines = body(generate(program))
        assert lines[4] == "cmp rax, rdi"
        assert lines[5] == f"{COMPARISON_INSTRUCTIONS[operator]} al"

    def test_greater_than_matches_mirrored_less_than(self, compile_asm):
        assert compile_asm("1>2") == compile_asm("2<1")
        assert compile_asm("a; b; a>=b") == compile_asm("a; b; b<=a")

    def test_unary_minus(self, compile_asm):
        assert body(compile_asm("-3"))[:2] == ["push 0", "push 3"]


# =============================================================================
# Assignment and Return Tests
# =============================================================================

class TestAssignmentAndReturn:
    """Tests for stores and explicit returns."""

    def test_assignment(self, compile_asm):
        assert body(compile_asm("a = 7")) == [
            "mov rax, rbp",
            "sub rax, 8",
            "push rax",
            "push 7",
            "pop rdi",
            "pop rax",
            "mov [rax], rdi",
            "push rdi",
            "pop rax",
        ]

    def test_return_emits_epilogue_without_pop(self, compile_asm):
        lines = compile_asm("return 5")
        assert lines == HEADER + ["push 5", "pop rax"] + EPILOGUE + EPILOGUE

    def test_code_after_return_is_still_emitted(self, compile_asm):
        lines = compile_asm("return 1; 2")
        assert lines.count("ret") == 2
        assert "push 2" in lines

    def test_non_variable_target_is_internal_error(self):
        program = Program(statements=[Assign(NumberLiteral(1), NumberLiteral(2))])
        with pytest.raises(InternalInvariantError):
            CodeGenerator().generate(program)

    def test_unknown_node_is_internal_error(self):
        program = Program(statements=[Program()])
        with pytest.raises(InternalInvariantError):
            CodeGenerator().generate(program)


# =============================================================================
# Comment Tests
# =============================================================================

class TestComments:
    """Tests for statement comments."""

    def test_comments_disabled_by_default(self, compile_asm):
        assert not any(line.startswith("#") for line in compile_asm("a = 1; a"))

    def test_statement_comments(self):
        program = parse_source("a = 1 + 2 * 3; return a")
        lines = generate(program, output_comments=True)
        assert "# stmt 1: a = (1 + (2 * 3))" in lines
        assert "# stmt 2: return a" in lines

    def test_comment_precedes_statement(self):
        program = Program(statements=[
            BinaryOp(BinaryOperator.ADD, NumberLiteral(1), Variable("x", 8)),
        ])
        lines = body(generate(program, output_comments=True))
        assert lines[0] == "# stmt 1: (1 + x)"
        assert lines[1] == "push 1"
