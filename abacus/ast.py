"""Abstract Syntax Tree (AST) definitions for the Abacus language.

Expression nodes (`Expr`) produce a value when evaluated; statement nodes
(`Stmt`) change the environment or write output. Nodes are built once by
the parser and may be evaluated many times, for instance inside a `while`
body or a function body, so the interpreter never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Any


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Expr(Node):
    pass


@dataclass
class Stmt(Node):
    pass


# Expressions

@dataclass
class Binary(Expr):
    left: Expr
    op: str  # token kind, e.g. 'PLUS', 'AND'
    right: Expr


@dataclass
class Unary(Expr):
    op: str  # 'BANG', 'MINUS' or 'PLUS'
    operand: Expr


@dataclass
class Literal(Expr):
    value: Any  # a Number, Text or Boolean


@dataclass
class Variable(Expr):
    name: str


@dataclass
class ArrayLiteral(Expr):
    elements: List[Expr]


@dataclass
class ArrayAccess(Expr):
    target: Expr
    index: Expr


@dataclass
class DictionaryLiteral(Expr):
    entries: List[Tuple[Expr, Expr]]


@dataclass
class Call(Expr):
    callee: Expr
    args: List[Expr]


@dataclass
class InputExpr(Expr):
    prompt: Expr


@dataclass
class AppendExpr(Expr):
    array: Expr
    element: Expr


@dataclass
class RemoveExpr(Expr):
    array: Expr
    index: Expr


@dataclass
class PutExpr(Expr):
    dictionary: Expr
    key: Expr
    value: Expr


@dataclass
class DictRemoveExpr(Expr):
    dictionary: Expr
    key: Expr


# Statements

@dataclass
class Print(Stmt):
    expr: Expr


@dataclass
class PrintUpper(Stmt):
    expr: Expr


@dataclass
class Var(Stmt):
    name: str
    expr: Expr


@dataclass
class Expression(Stmt):
    expr: Expr


@dataclass
class Block(Stmt):
    statements: List[Stmt]


@dataclass
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass
class Function(Stmt):
    name: str
    params: List[str]
    body: Block


@dataclass
class Return(Stmt):
    value: Optional[Expr]
