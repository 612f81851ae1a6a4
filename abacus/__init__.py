# Abacus language package
# This package provides a tokenizer, parser and tree-walking interpreter for the Abacus language.
from .interpreter import scan, parse_program, run_program, run_file, Interpreter
from .environment import Environment
from .errors import ParseError, ExecutionError

__all__ = [
    'scan',
    'parse_program',
    'run_program',
    'run_file',
    'Interpreter',
    'Environment',
    'ParseError',
    'ExecutionError',
]
