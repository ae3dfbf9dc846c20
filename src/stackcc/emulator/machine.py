"""
x86-64 Subset Emulator
======================

Executes the assembly produced by the stackcc code generator, so compiled
programs can be checked without an assembler, linker or x86-64 host.

Only the subset the code generator emits is modelled:

- 64-bit registers: RAX, RDI, RDX, RBP, RSP (two's-complement wrap)
- AL, the low byte of RAX
- Comparison state set by CMP and read by SETcc
- Word-addressed memory (8-byte words) backing the stack

Instructions
------------
| Mnemonic | Forms                                        |
|----------|----------------------------------------------|
| push     | reg, imm                                     |
| pop      | reg                                          |
| mov      | reg, reg / reg, imm / reg, [reg] / [reg], reg |
| add/sub  | reg, reg / reg, imm                          |
| imul     | reg, reg / reg, imm                          |
| cmp      | reg, reg / reg, imm                          |
| cqo      | (sign-extend RAX into RDX)                   |
| idiv     | reg (RDX:RAX / reg, truncating toward zero)  |
| sete, setne, setl, setle | al                           |
| movzb    | reg, al                                      |
| ret      |                                              |

Execution starts at the `main` label with a sentinel return address on the
stack and halts when `ret` pops that sentinel. The result is RAX read as a
signed 64-bit integer.

Example:
    >>> from stackcc import compile_source
    >>> from stackcc.emulator import run_assembly
    >>> run_assembly(compile_source("a = 6; a * 7"))
    42
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from stackcc.errors import StackccError

logger = logging.getLogger(__name__)

WORD_SIZE = 8
MASK64 = (1 << 64) - 1
SIGN_BIT = 1 << 63

# Initial stack pointer and the lowest address the stack may grow to
STACK_TOP = 0x7FFF_F000
STACK_SIZE = 1 << 20

# Return address pushed before entering main; popping it halts the machine
RETURN_SENTINEL = 0xDEAD_BEEF_0000

DEFAULT_STEP_LIMIT = 1_000_000

REGISTERS = ("rax", "rdi", "rdx", "rbp", "rsp")


def to_signed(value: int) -> int:
    """Interpret a 64-bit pattern as a signed integer."""
    value &= MASK64
    return value - (1 << 64) if value & SIGN_BIT else value


class EmulatorError(StackccError):
    """
    The emulator cannot continue.

    Raised for assembly it does not understand (unknown mnemonic or operand
    form, missing entry point) and for runtime faults (division by zero,
    stack corruption, step limit exceeded).
    """

    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        if line is not None:
            super().__init__(f"line {line}: {message}")
        else:
            super().__init__(message)


# =============================================================================
# Assembly Parsing
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    One parsed instruction.

    Attributes:
        mnemonic: Lower-case mnemonic
        operands: Operand strings, whitespace stripped
        line: Line number in the assembly text (1-indexed)
    """
    mnemonic: str
    operands: tuple[str, ...]
    line: int

    def __str__(self) -> str:
        if self.operands:
            return f"{self.mnemonic} {', '.join(self.operands)}"
        return self.mnemonic


def parse_assembly(text: str) -> tuple[list[Instruction], dict[str, int]]:
    """
    Split assembly text into instructions and a label table.

    Blank lines, '#' comments and directives (lines starting with '.') are
    skipped. Labels map to the index of the instruction that follows them.

    Returns:
        (instructions, labels)
    """
    instructions: list[Instruction] = []
    labels: dict[str, int] = {}

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line or line.startswith("."):
            continue

        if line.endswith(":"):
            labels[line[:-1].strip()] = len(instructions)
            continue

        parts = line.split(None, 1)
        mnemonic = parts[0].lower()
        operands: tuple[str, ...] = ()
        if len(parts) > 1:
            operands = tuple(op.strip() for op in parts[1].split(","))
        instructions.append(Instruction(mnemonic, operands, line_number))

    return instructions, labels


# =============================================================================
# Machine State
# =============================================================================

@dataclass
class MachineState:
    """
    Complete machine state.

    Register values are stored as unsigned 64-bit patterns.
    """
    rax: int = 0
    rdi: int = 0
    rdx: int = 0
    rbp: int = 0
    rsp: int = STACK_TOP
    ip: int = 0
    # Operands of the last cmp, as signed integers
    cmp_left: int = 0
    cmp_right: int = 0
    halted: bool = False
    steps: int = 0
    memory: dict[int, int] = field(default_factory=dict)


class Machine:
    """
    Emulator for the x86-64 subset emitted by the code generator.

    Example:
        >>> machine = Machine.from_assembly(asm_text)
        >>> result = machine.run()
        >>> machine.state.rsp == STACK_TOP
        True

    Attributes:
        instructions: Parsed program
        labels: Label name to instruction index
        step_limit: Maximum instructions executed by run()
        on_instruction: Optional hook called before each instruction with
            (index, instruction); return False to stop execution
    """

    def __init__(
        self,
        instructions: list[Instruction],
        labels: dict[str, int],
        step_limit: int = DEFAULT_STEP_LIMIT,
    ):
        self.instructions = instructions
        self.labels = labels
        self.step_limit = step_limit
        self.state = MachineState()
        self.on_instruction: Optional[Callable[[int, Instruction], bool]] = None
        self.reset()

    @classmethod
    def from_assembly(cls, text: str, step_limit: int = DEFAULT_STEP_LIMIT) -> "Machine":
        instructions, labels = parse_assembly(text)
        return cls(instructions, labels, step_limit)

    def reset(self) -> None:
        """
        Reset to the entry state: IP at main, sentinel return address pushed.

        Raises:
            EmulatorError: If there is no main label
        """
        if "main" not in self.labels:
            raise EmulatorError("no 'main' label in program")
        self.state = MachineState()
        self.state.ip = self.labels["main"]
        self._push(RETURN_SENTINEL)

    @property
    def result(self) -> int:
        """RAX as a signed integer."""
        return to_signed(self.state.rax)

    # ========================================
    # Execution
    # ========================================

    def run(self) -> Optional[int]:
        """
        Run until main returns.

        Returns:
            The signed value of RAX, or None if the on_instruction hook
            stopped execution first

        Raises:
            EmulatorError: On any fault, or when the step limit is exceeded
        """
        while not self.state.halted:
            if self.state.steps >= self.step_limit:
                raise EmulatorError(f"step limit of {self.step_limit} exceeded")
            if self.on_instruction and self.state.ip < len(self.instructions):
                if not self.on_instruction(self.state.ip, self.instructions[self.state.ip]):
                    return None
            self.step()

        logger.debug(f"Halted after {self.state.steps} steps, rax={self.result}")
        return self.result

    def step(self) -> None:
        """Execute exactly one instruction."""
        if self.state.halted:
            return
        if not 0 <= self.state.ip < len(self.instructions):
            raise EmulatorError("execution ran past the end of the program")

        inst = self.instructions[self.state.ip]
        self.state.ip += 1
        self.state.steps += 1

        handler = getattr(self, f"_op_{inst.mnemonic}", None)
        if handler is None:
            raise EmulatorError(f"unsupported instruction '{inst.mnemonic}'", inst.line)
        handler(inst)

    # ========================================
    # Registers, Memory and Stack
    # ========================================

    def _get_register(self, name: str, inst: Instruction) -> int:
        if name == "al":
            return self.state.rax & 0xFF
        if name not in REGISTERS:
            raise EmulatorError(f"unsupported register '{name}'", inst.line)
        return getattr(self.state, name)

    def _set_register(self, name: str, value: int, inst: Instruction) -> None:
        if name == "al":
            self.state.rax = (self.state.rax & ~0xFF & MASK64) | (value & 0xFF)
            return
        if name not in REGISTERS:
            raise EmulatorError(f"unsupported register '{name}'", inst.line)
        setattr(self.state, name, value & MASK64)

    def _read_memory(self, address: int, inst: Optional[Instruction] = None) -> int:
        """Read a word; never-written words read as zero."""
        self._check_address(address, inst)
        return self.state.memory.get(address, 0)

    def _write_memory(self, address: int, value: int, inst: Optional[Instruction] = None) -> None:
        self._check_address(address, inst)
        self.state.memory[address] = value & MASK64

    def _check_address(self, address: int, inst: Optional[Instruction]) -> None:
        line = inst.line if inst else None
        if address % WORD_SIZE:
            raise EmulatorError(f"unaligned memory access at {address:#x}", line)
        if not STACK_TOP - STACK_SIZE <= address < STACK_TOP:
            raise EmulatorError(f"memory access outside the stack at {address:#x}", line)

    def _push(self, value: int, inst: Optional[Instruction] = None) -> None:
        self.state.rsp = (self.state.rsp - WORD_SIZE) & MASK64
        self._write_memory(self.state.rsp, value, inst)

    def _pop(self, inst: Optional[Instruction] = None) -> int:
        value = self._read_memory(self.state.rsp, inst)
        self.state.rsp = (self.state.rsp + WORD_SIZE) & MASK64
        return value

    # ========================================
    # Operand Decoding
    # ========================================

    def _expect_operands(self, inst: Instruction, count: int) -> None:
        if len(inst.operands) != count:
            raise EmulatorError(
                f"'{inst.mnemonic}' takes {count} operand(s), got {len(inst.operands)}",
                inst.line,
            )

    @staticmethod
    def _is_memory(operand: str) -> bool:
        return operand.startswith("[") and operand.endswith("]")

    def _read_operand(self, operand: str, inst: Instruction) -> int:
        """Value of a register, immediate or [register] operand."""
        if self._is_memory(operand):
            address = self._get_register(operand[1:-1].strip(), inst)
            return self._read_memory(address, inst)
        if operand in REGISTERS or operand == "al":
            return self._get_register(operand, inst)
        try:
            return int(operand, 0) & MASK64
        except ValueError:
            raise EmulatorError(f"unsupported operand '{operand}'", inst.line) from None

    def _write_operand(self, operand: str, value: int, inst: Instruction) -> None:
        if self._is_memory(operand):
            address = self._get_register(operand[1:-1].strip(), inst)
            self._write_memory(address, value, inst)
        else:
            self._set_register(operand, value, inst)

    # ========================================
    # Instruction Handlers
    # ========================================

    def _op_push(self, inst: Instruction) -> None:
        self._expect_operands(inst, 1)
        self._push(self._read_operand(inst.operands[0], inst), inst)

    def _op_pop(self, inst: Instruction) -> None:
        self._expect_operands(inst, 1)
        self._set_register(inst.operands[0], self._pop(inst), inst)

    def _op_mov(self, inst: Instruction) -> None:
        self._expect_operands(inst, 2)
        dest, src = inst.operands
        if self._is_memory(dest) and self._is_memory(src):
            raise EmulatorError("memory-to-memory mov is not encodable", inst.line)
        self._write_operand(dest, self._read_operand(src, inst), inst)

    def _op_movzb(self, inst: Instruction) -> None:
        self._expect_operands(inst, 2)
        dest, src = inst.operands
        self._set_register(dest, self._read_operand(src, inst) & 0xFF, inst)

    def _binary(self, inst: Instruction, operation: Callable[[int, int], int]) -> None:
        self._expect_operands(inst, 2)
        dest, src = inst.operands
        left = to_signed(self._get_register(dest, inst))
        right = to_signed(self._read_operand(src, inst))
        self._set_register(dest, operation(left, right), inst)

    def _op_add(self, inst: Instruction) -> None:
        self._binary(inst, lambda a, b: a + b)

    def _op_sub(self, inst: Instruction) -> None:
        self._binary(inst, lambda a, b: a - b)

    def _op_imul(self, inst: Instruction) -> None:
        self._binary(inst, lambda a, b: a * b)

    def _op_cqo(self, inst: Instruction) -> None:
        self._expect_operands(inst, 0)
        self.state.rdx = MASK64 if self.state.rax & SIGN_BIT else 0

    def _op_idiv(self, inst: Instruction) -> None:
        """Signed RDX:RAX / operand; quotient to RAX, remainder to RDX."""
        self._expect_operands(inst, 1)
        divisor = to_signed(self._read_operand(inst.operands[0], inst))
        if divisor == 0:
            raise EmulatorError("division by zero", inst.line)

        dividend = (self.state.rdx << 64) | self.state.rax
        if dividend & (1 << 127):
            dividend -= 1 << 128

        quotient = abs(dividend) // abs(divisor)
        if (dividend < 0) != (divisor < 0):
            quotient = -quotient
        if not -SIGN_BIT <= quotient < SIGN_BIT:
            raise EmulatorError("division overflow", inst.line)

        remainder = dividend - quotient * divisor
        self.state.rax = quotient & MASK64
        self.state.rdx = remainder & MASK64

    def _op_cmp(self, inst: Instruction) -> None:
        self._expect_operands(inst, 2)
        self.state.cmp_left = to_signed(self._read_operand(inst.operands[0], inst))
        self.state.cmp_right = to_signed(self._read_operand(inst.operands[1], inst))

    def _setcc(self, inst: Instruction, condition: bool) -> None:
        self._expect_operands(inst, 1)
        self._set_register(inst.operands[0], 1 if condition else 0, inst)

    def _op_sete(self, inst: Instruction) -> None:
        self._setcc(inst, self.state.cmp_left == self.state.cmp_right)

    def _op_setne(self, inst: Instruction) -> None:
        self._setcc(inst, self.state.cmp_left != self.state.cmp_right)

    def _op_setl(self, inst: Instruction) -> None:
        self._setcc(inst, self.state.cmp_left < self.state.cmp_right)

    def _op_setle(self, inst: Instruction) -> None:
        self._setcc(inst, self.state.cmp_left <= self.state.cmp_right)

    def _op_ret(self, inst: Instruction) -> None:
        self._expect_operands(inst, 0)
        address = self._pop(inst)
        if address != RETURN_SENTINEL:
            raise EmulatorError(
                f"return through corrupted stack (return address {address:#x})",
                inst.line,
            )
        self.state.halted = True


# =============================================================================
# Convenience Functions
# =============================================================================

def run_assembly(text: str, step_limit: int = DEFAULT_STEP_LIMIT) -> int:
    """
    Execute assembly text and return main's result.

    Raises:
        EmulatorError: If the program cannot be executed
    """
    return Machine.from_assembly(text, step_limit).run()
