"""Reference interpreter for the stack machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .opcodes import _BINARY_OPS, Opcode, _decode


@dataclass
class VM:
    """Stack machine with a sparse word memory keyed by one-byte addresses."""

    memory: dict[int, int] = field(default_factory=dict)
    stack: list[int] = field(default_factory=list)

    def _pop(self, default: int = 0) -> int:
        return self.stack.pop() if self.stack else default

    def interpret(self, code: Iterable[int]) -> None:
        """Run a program until STOP or its end, updating stack and memory.

        Popping an empty stack yields 0, except the divisor of DIV and MOD,
        which defaults to 1.
        """
        for instruction in _decode(code):
            opcode = instruction.opcode
            match opcode:
                case Opcode.STOP:
                    break
                case Opcode.PUSH:
                    self.stack.append(instruction.operand)
                case Opcode.SSTORE:
                    self.memory[instruction.operand] = self._pop()
                case Opcode.SLOAD:
                    self.stack.append(self.memory.get(instruction.operand, 0))
                case Opcode.DUP:
                    self.stack.append(self.stack[-1] if self.stack else 0)
                case Opcode.SWAP:
                    if len(self.stack) >= 2:
                        self.stack[-1], self.stack[-2] = self.stack[-2], self.stack[-1]
                case _:
                    divisor_default = 1 if opcode in (Opcode.DIV, Opcode.MOD) else 0
                    b = self._pop(divisor_default)
                    a = self._pop()
                    self.stack.append(_BINARY_OPS[opcode](a, b))