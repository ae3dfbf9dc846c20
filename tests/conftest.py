"""
stackcc Test Configuration
==========================

Shared fixtures for the stackcc test suite.

It provides:
- `run_program`: compile a program and execute it on the emulator
- `compile_asm`: compile a program to assembly lines
"""

import pytest

from stackcc.compiler import compile_source
from stackcc.emulator import run_assembly


@pytest.fixture
def run_program():
    """Compile source text and return the value main returns on the emulator."""
    def _run(source: str) -> int:
        return run_assembly(compile_source(source))
    return _run


@pytest.fixture
def compile_asm():
    """Compile source text and return the assembly lines, whitespace-normalized."""
    def _compile(source: str, **kwargs) -> list[str]:
        return [" ".join(line.split()) for line in compile_source(source, **kwargs).splitlines()]
    return _compile
