"""
stackcc Emulator
================

An emulator for the x86-64 instruction subset emitted by the stackcc code
generator. It lets compiled programs be executed and checked on any host.

Quick Start
-----------

    >>> from stackcc.emulator import run_assembly
    >>> run_assembly(asm_text)
    7

With tracing::

    >>> machine = Machine.from_assembly(asm_text)
    >>> machine.on_instruction = lambda ip, inst: print(ip, inst) or True
    >>> machine.run()
"""

from stackcc.emulator.machine import (
    Machine,
    MachineState,
    Instruction,
    EmulatorError,
    parse_assembly,
    run_assembly,
    to_signed,
    DEFAULT_STEP_LIMIT,
)

__all__ = [
    "Machine",
    "MachineState",
    "Instruction",
    "EmulatorError",
    "parse_assembly",
    "run_assembly",
    "to_signed",
    "DEFAULT_STEP_LIMIT",
]
