[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trilisp"
version = "0.1.0"
description = "Small Lisp dialects: an arithmetic evaluator, an expression flattener, basic-block interpreters and a tree-rewriting Lisp interpreter"
requires-python = ">=3.10"
dependencies = []
keywords = ["lisp", "interpreter", "s-expression", "ssa", "basic-block", "phi", "three-address-code"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
trilisp-arith = "trilisp.arith:main"
trilisp-flatten = "trilisp.flatten:main"
trilisp-tri-if = "trilisp.tri_if:main"
trilisp-tri-call = "trilisp.tri_call:main"
trilisp-run = "trilisp.interpreter:main"

[tool.hatch.build.targets.wheel]
packages = ["trilisp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
