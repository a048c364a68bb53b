"""A stack-machine bytecode with an interpreter, a closure compiler and a benchmark."""

__version__ = "0.1.0"
__all__ = ["opcodes", "vm", "jit", "bench"]