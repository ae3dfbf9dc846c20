"""
Variable Symbol Table
=====================

Maps variable names to storage slots in the stack frame of the compiled
function. There is a single flat namespace per compilation: no scoping and
no shadowing. Slots are assigned the first time a name is seen, in
first-occurrence order:

    a = 1; b = a; c = b + a

    | name | offset |
    |------|--------|
    | a    | 8      |
    | b    | 16     |
    | c    | 24     |

The generated code addresses a slot as `rbp - offset`, so offset 0 (the
saved frame pointer) is never handed out.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from stackcc.errors import SourceLocation
from stackcc.compiler.errors import CapacityExceededError

# Size in bytes of one variable slot on the target machine
WORD_SIZE = 8

# Number of slots in the statically reserved frame (26 * 8 = 208 bytes)
DEFAULT_CAPACITY = 26

# The System V ABI keeps the stack 16-byte aligned
STACK_ALIGNMENT = 16


@dataclass(frozen=True)
class VariableSlot:
    """
    A variable's storage slot.

    Attributes:
        name: Variable name
        offset: Distance in bytes below the frame pointer
    """
    name: str
    offset: int


class SymbolTable:
    """
    Registry of variable slots for one compilation.

    Example:
        >>> table = SymbolTable()
        >>> table.resolve_or_allocate("x")
        8
        >>> table.resolve_or_allocate("y")
        16
        >>> table.resolve_or_allocate("x")
        8
    """

    def __init__(self, word_size: int = WORD_SIZE, capacity: int = DEFAULT_CAPACITY):
        if word_size <= 0:
            raise ValueError(f"word size must be positive, got {word_size}")
        if capacity < 0:
            raise ValueError(f"capacity must not be negative, got {capacity}")
        self.word_size = word_size
        self.capacity = capacity
        self._slots: dict[str, VariableSlot] = {}
        self._max_offset = 0

    def resolve_or_allocate(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> int:
        """
        Return the offset of `name`, allocating a new slot on first use.

        Args:
            name: Variable name
            location: Where the name appears (for the capacity diagnostic)
            source_line: Source text of that line (for the capacity diagnostic)

        Returns:
            The slot offset in bytes

        Raises:
            CapacityExceededError: If a new slot would not fit in the frame
        """
        slot = self._slots.get(name)
        if slot is not None:
            return slot.offset

        if len(self._slots) >= self.capacity:
            raise CapacityExceededError(
                "variables", self.capacity, location=location, source_line=source_line
            )

        slot = VariableSlot(name=name, offset=self._max_offset + self.word_size)
        self._slots[name] = slot
        self._max_offset = slot.offset
        return slot.offset

    def lookup(self, name: str) -> Optional[VariableSlot]:
        """Return the slot for `name`, or None if it was never allocated."""
        return self._slots.get(name)

    @property
    def offsets(self) -> dict[str, int]:
        """Name to offset mapping, in allocation order."""
        return {slot.name: slot.offset for slot in self._slots.values()}

    @property
    def frame_size(self) -> int:
        """Bytes reserved for locals: room for every slot, 16-byte aligned."""
        size = self.capacity * self.word_size
        return (size + STACK_ALIGNMENT - 1) // STACK_ALIGNMENT * STACK_ALIGNMENT

    def __contains__(self, name: str) -> bool:
        return name in self._slots

    def __iter__(self) -> Iterator[VariableSlot]:
        return iter(self._slots.values())

    def __len__(self) -> int:
        return len(self._slots)
