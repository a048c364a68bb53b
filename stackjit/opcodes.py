"""Instruction set of the stack machine and bytecode decoding."""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, Iterable, Iterator, NamedTuple, Optional

_MASK = (1 << 64) - 1


class Opcode(IntEnum):
    """One-byte operation codes understood by the interpreter and the compiler."""

    SLOAD = 0x01
    SSTORE = 0x02
    PUSH = 0x03
    ADD = 0x04
    SUB = 0x05
    MUL = 0x06
    DIV = 0x07
    MOD = 0x08
    EQ = 0x09
    LT = 0x0A
    GT = 0x0B
    AND = 0x0C
    OR = 0x0D
    XOR = 0x0E
    DUP = 0x0F
    SWAP = 0x10
    STOP = 0xFF

    def operand_size(self) -> int:
        """Number of immediate operand bytes that follow this opcode."""
        return 1 if self in (Opcode.SLOAD, Opcode.SSTORE, Opcode.PUSH) else 0


class InvalidOpcodeError(ValueError):
    """Raised when a byte in the program is not a known opcode."""

    def __init__(self, opcode: int, offset: int) -> None:
        super().__init__(f"invalid opcode 0x{opcode:02x} at offset {offset}")
        self.opcode = opcode
        self.offset = offset


class TruncatedProgramError(ValueError):
    """Raised when an opcode that takes an operand ends the program."""

    def __init__(self, opcode: Opcode, offset: int) -> None:
        super().__init__(f"{opcode.name} at offset {offset} is missing its operand")
        self.opcode = opcode
        self.offset = offset


class _Instruction(NamedTuple):
    offset: int
    opcode: Opcode
    operand: Optional[int]


def _decode(code: Iterable[int]) -> Iterator[_Instruction]:
    """Yield the instructions of a program lazily, validating as it goes."""
    data = bytes(code)
    pc = 0
    while pc < len(data):
        byte = data[pc]
        try:
            opcode = Opcode(byte)
        except ValueError:
            raise InvalidOpcodeError(byte, pc) from None
        size = opcode.operand_size()
        if pc + size >= len(data) and size:
            raise TruncatedProgramError(opcode, pc)
        operand = data[pc + 1] if size else None
        yield _Instruction(pc, opcode, operand)
        pc += 1 + size


# Binary operations on unsigned 64-bit words; ``a`` is the deeper operand.
_BINARY_OPS: dict[Opcode, Callable[[int, int], int]] = {
    Opcode.ADD: lambda a, b: (a + b) & _MASK,
    Opcode.SUB: lambda a, b: (a - b) & _MASK,
    Opcode.MUL: lambda a, b: (a * b) & _MASK,
    Opcode.DIV: lambda a, b: a // b if b else 0,
    Opcode.MOD: lambda a, b: a % b if b else 0,
    Opcode.EQ: lambda a, b: int(a == b),
    Opcode.LT: lambda a, b: int(a < b),
    Opcode.GT: lambda a, b: int(a > b),
    Opcode.AND: lambda a, b: a & b,
    Opcode.OR: lambda a, b: a | b,
    Opcode.XOR: lambda a, b: a ^ b,
}