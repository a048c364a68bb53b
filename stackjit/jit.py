"""Compiler from bytecode to a chain of pre-bound Python closures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, MutableSequence, Optional

from .opcodes import _BINARY_OPS, Opcode, _decode

_Step = Callable[[list, MutableSequence[int]], None]


def _pop(stack: list) -> int:
    return stack.pop() if stack else 0


def _compile_step(opcode: Opcode, operand: Optional[int]) -> Optional[_Step]:
    """Return the closure for one instruction, or None for STOP."""
    match opcode:
        case Opcode.STOP:
            return None
        case Opcode.PUSH:
            def push(stack, memory):
                stack.append(operand)
            return push
        case Opcode.SSTORE:
            def store(stack, memory):
                memory[operand] = _pop(stack)
            return store
        case Opcode.SLOAD:
            def load(stack, memory):
                stack.append(memory[operand])
            return load
        case Opcode.DUP:
            def dup(stack, memory):
                stack.append(stack[-1] if stack else 0)
            return dup
        case Opcode.SWAP:
            def swap(stack, memory):
                if len(stack) >= 2:
                    stack[-1], stack[-2] = stack[-2], stack[-1]
            return swap
        case _:
            operation = _BINARY_OPS[opcode]

            def binary(stack, memory):
                b = _pop(stack)
                a = _pop(stack)
                stack.append(operation(a, b))
            return binary


@dataclass(frozen=True)
class CompiledProgram:
    """A program compiled ahead of time; call it with a slot memory."""

    code: bytes
    steps: tuple = field(repr=False)

    def __call__(self, memory: MutableSequence[int]) -> None:
        """Execute against ``memory``, a sequence of word slots indexed by key."""
        stack: list = []
        for step in self.steps:
            step(stack, memory)


def make_jit(code: Iterable[int]) -> CompiledProgram:
    """Compile a whole program; every byte is validated, even after STOP."""
    data = bytes(code)
    steps = []
    halted = False
    for instruction in _decode(data):
        step = _compile_step(instruction.opcode, instruction.operand)
        if step is None:
            halted = True
        elif not halted:
            steps.append(step)
    return CompiledProgram(data, tuple(steps))