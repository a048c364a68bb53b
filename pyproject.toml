[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stackjit"
version = "0.1.0"
description = "A tiny stack-machine bytecode with an interpreter, a compiler to Python closures, and a benchmark harness"
requires-python = ">=3.10"
dependencies = []
keywords = ["bytecode", "interpreter", "jit", "stack-machine", "benchmark"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
stackjit-bench = "stackjit.bench:main"

[tool.hatch.build.targets.wheel]
packages = ["stackjit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
