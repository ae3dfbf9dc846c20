"""
stackcc Command-Line Interface
==============================

This package provides the `stackcc` command, a Click-based front end to the
compiler and the emulator.
"""

__all__ = ["stackcc"]
