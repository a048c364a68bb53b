# stackjit

stackjit is a small stack-machine bytecode. It can run a program in two ways,
and it has a benchmark that compares the two.

- `stackjit.vm.VM` interprets a program one instruction at a time. It keeps
  its `stack` as a list and its `memory` as a dict from slot key to value.
  Both remain available after `interpret` returns.
- `stackjit.jit.make_jit` compiles a whole program ahead of time into a
  `CompiledProgram`, which is a chain of pre-bound Python closures. Call it
  with a mutable sequence of memory slots, such as a list of 256 ints, and it
  updates that sequence in place. Its working stack is thrown away when the
  call returns.

Arithmetic is unsigned 64-bit and wraps around. Division or modulo by zero
gives 0.

## Instruction set

The instructions are defined in `stackjit.opcodes.Opcode`, an `IntEnum`.
`Opcode.operand_size()` tells how many operand bytes follow each opcode.

| Opcode   | Byte | Operand | Effect                                 |
|----------|------|---------|----------------------------------------|
| `SLOAD`  | 0x01 | key     | push `memory[key]`                     |
| `SSTORE` | 0x02 | key     | pop a value into `memory[key]`         |
| `PUSH`   | 0x03 | value   | push a byte-sized constant             |
| `ADD`    | 0x04 |         | `a + b`                                |
| `SUB`    | 0x05 |         | `a - b`                                |
| `MUL`    | 0x06 |         | `a * b`                                |
| `DIV`    | 0x07 |         | `a // b` (0 when `b` is 0)             |
| `MOD`    | 0x08 |         | `a % b` (0 when `b` is 0)              |
| `EQ`     | 0x09 |         | `1` if `a == b`, else `0`              |
| `LT`     | 0x0A |         | `1` if `a < b`, else `0`               |
| `GT`     | 0x0B |         | `1` if `a > b`, else `0`               |
| `AND`    | 0x0C |         | `a & b`                                |
| `OR`     | 0x0D |         | `a \| b`                               |
| `XOR`    | 0x0E |         | `a ^ b`                                |
| `DUP`    | 0x0F |         | duplicate the top of the stack         |
| `SWAP`   | 0x10 |         | swap the top two values                |
| `STOP`   | 0xFF |         | end the program                        |

In this table, `b` is the top of the stack and `a` is the value below it.

### Edge cases

- Popping from an empty stack gives 0. `DUP` on an empty stack pushes 0.
  `SWAP` with fewer than two values does nothing.
- In the interpreter, a missing divisor for `DIV` or `MOD` counts as 1. In the
  compiled form it counts as 0, so the result is 0.
- A byte that is not an opcode raises `InvalidOpcodeError`. An instruction
  whose operand is missing raises `TruncatedProgramError`. Both errors are
  subclasses of `ValueError`.
- The interpreter decodes lazily and halts at `STOP`, so it never looks at the
  bytes that follow. `make_jit` validates the whole program, including any
  bytes after `STOP`.

## Usage

```python
from stackjit.opcodes import Opcode
from stackjit.vm import VM
from stackjit.jit import make_jit

code = bytes([Opcode.PUSH, 6, Opcode.PUSH, 7, Opcode.MUL,
              Opcode.SSTORE, 0, Opcode.STOP])

vm = VM()
vm.interpret(code)
print(vm.memory)          # {0: 42}

program = make_jit(code)
memory = [0] * 256
program(memory)
print(memory[0])          # 42
```

## Benchmark

```
stackjit-bench [--reports-dir DIR] [--seed N]
```

The benchmark generates random programs in five sizes, from "small" to
"xxlarge". Each program runs once through the interpreter. It is then
compiled and run once in compiled form, and all three steps are timed.

- Progress is printed as a table on standard output.
- A detailed log is written to `DIR/detailed-<timestamp>.log`.
- A summary with the averages and speedups is written to
  `DIR/summary-<timestamp>.log`.

`DIR` defaults to `reports`. The seed defaults to the current time.

The functions in `stackjit.bench` can also be used on their own:

- `random_program(rng, length)`
- `hex_code(code)`
- `mem_snapshot(mem)`
- `run_case(code)`, which returns a `CaseReport`
- `summarize(config, reports)`, which returns a `BenchmarkResults`
- `format_case(index, report)`
- `format_summary(results, configs)`

## What it does not do

The compiled form does not produce native machine code. It builds Python
closures once and calls them in order. The benchmark therefore compares two
Python execution strategies, and its timings reflect that.