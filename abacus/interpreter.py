"""Interpreter for the Abacus language.

This module implements the complete Abacus pipeline: a tokenizer, a
recursive-descent parser producing an AST, and a tree-walking interpreter
that executes the statements against a chain of lexical environments.

Lexer problems are reported and skipped, a parse error aborts the whole
program before anything runs, and an execution error aborts only the
top-level statement that raised it.
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
import math
import builtins

from .values import (
    Number, Boolean, Text, Array, Dictionary, FunctionValue,
    EMPTY_TEXT, TRUE, FALSE, to_string, type_name, values_equal,
)
from .ast import (
    Expr, Stmt, Binary, Unary, Literal, Variable, ArrayLiteral, ArrayAccess,
    DictionaryLiteral, Call, InputExpr, AppendExpr, RemoveExpr, PutExpr,
    DictRemoveExpr, Print, PrintUpper, Var, Expression, Block, If, While,
    Function, Return,
)
from .errors import (
    LexError, ParseError, ExecutionError, TypeMismatch, IndexOutOfBounds,
    KeyNotFound, ArityMismatch, NotCallable, NotIndexable, ReturnSignal,
)
from .environment import Environment
from .builtin_function import BuiltinFunction, populate_global_environment

###############################################################################
# Tokenizer
###############################################################################

KEYWORDS = {
    'true': 'TRUE',
    'false': 'FALSE',
    'and': 'AND',
    'or': 'OR',
    'print': 'PRINT',
    'printupper': 'PRINTUPPER',
    'if': 'IF',
    'else': 'ELSE',
    'while': 'WHILE',
    'input': 'INPUT',
    'fun': 'FUN',
    'return': 'RETURN',
    'dict': 'DICT',
}

SINGLE_CHAR_TOKENS = {
    '(': 'LEFT_PAREN',
    ')': 'RIGHT_PAREN',
    '{': 'LEFT_BRACE',
    '}': 'RIGHT_BRACE',
    '[': 'LEFT_BRACKET',
    ']': 'RIGHT_BRACKET',
    ',': 'COMMA',
    ':': 'COLON',
    '+': 'PLUS',
    '-': 'MINUS',
    '*': 'STAR',
    '/': 'SLASH',
}

# operators that may be followed by '=' to form a two-character token
EQUAL_SUFFIXED = {
    '!': ('BANG', 'BANG_EQUAL'),
    '=': ('EQUAL', 'EQUAL_EQUAL'),
    '<': ('LESS', 'LESS_EQUAL'),
    '>': ('GREATER', 'GREATER_EQUAL'),
}

WHITESPACE = ' \r\t\n'


@dataclass(frozen=True)
class Token:
    kind: str
    lexeme: str
    value: Optional[float] = None  # only set for NUMBER tokens
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.kind} {self.lexeme} ({self.value!r})"
        return f"{self.kind} {self.lexeme}"


def _is_alpha(c: str) -> bool:
    return ('a' <= c <= 'z') or ('A' <= c <= 'Z') or c == '_'


def _is_digit(c: str) -> bool:
    return '0' <= c <= '9'


def _report_to_stderr(error: LexError):
    print(f"Lexer Error: {error.message}", file=sys.stderr)


def scan(source: str, report: Optional[Callable[[LexError], None]] = None) -> List[Token]:
    """Convert source code into a list of tokens ending with an EOF token.

    Scanning is best effort: an unexpected character, an unterminated
    string or a malformed number is passed to `report` and left out of the
    token stream, and scanning carries on with the following character.
    Strings have no escape sequences and may span lines.
    """
    if report is None:
        report = _report_to_stderr
    tokens: List[Token] = []
    i = 0
    line = 1
    col = 1
    length = len(source)

    def advance(n: int = 1):
        nonlocal i, col, line
        for _ in range(n):
            if i < length and source[i] == '\n':
                line += 1
                col = 1
            else:
                col += 1
            i += 1

    while i < length:
        c = source[i]
        start_i = i
        start_line, start_col = line, col
        if c in WHITESPACE:
            advance()
            continue
        if c in SINGLE_CHAR_TOKENS:
            tokens.append(Token(SINGLE_CHAR_TOKENS[c], c, None, start_line, start_col))
            advance()
            continue
        if c in EQUAL_SUFFIXED:
            single, double = EQUAL_SUFFIXED[c]
            if i + 1 < length and source[i + 1] == '=':
                tokens.append(Token(double, c + '=', None, start_line, start_col))
                advance(2)
            else:
                tokens.append(Token(single, c, None, start_line, start_col))
                advance()
            continue
        if c == '"':
            advance()  # opening quote
            while i < length and source[i] != '"':
                advance()
            if i >= length:
                report(LexError("Unterminated string."))
                continue
            advance()  # closing quote
            text = source[start_i + 1:i - 1]
            tokens.append(Token('STRING', text, None, start_line, start_col))
            continue
        if _is_digit(c) or c == '.':
            while i < length and (_is_digit(source[i]) or source[i] == '.'):
                advance()
            text = source[start_i:i]
            try:
                number = float(text)
            except ValueError:
                report(LexError(f"Invalid number format: {text}"))
                continue
            tokens.append(Token('NUMBER', text, number, start_line, start_col))
            continue
        if _is_alpha(c):
            while i < length and (_is_alpha(source[i]) or _is_digit(source[i])):
                advance()
            text = source[start_i:i]
            tokens.append(Token(KEYWORDS.get(text, 'IDENTIFIER'), text, None, start_line, start_col))
            continue
        report(LexError(f"Unexpected character: {c}"))
        advance()
    tokens.append(Token('EOF', '', None, line, col))
    return tokens


###############################################################################
# Parser implementation
###############################################################################

# Builtins rewritten into dedicated nodes at the call site, with their arity.
BUILTIN_ARITY = {
    'input': 1,
    'append': 2,
    'remove': 2,
    'put': 3,
    'dict_remove': 2,
}

ARITY_WORDS = {1: 'one argument', 2: 'two arguments', 3: 'three arguments'}

# token kinds that can begin an expression
EXPRESSION_START = {
    'NUMBER', 'STRING', 'TRUE', 'FALSE', 'IDENTIFIER', 'INPUT', 'DICT',
    'LEFT_PAREN', 'LEFT_BRACKET', 'BANG', 'MINUS', 'PLUS',
}


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def peek_next(self) -> Token:
        if self.pos + 1 >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[self.pos + 1]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def is_at_end(self) -> bool:
        return self.peek().kind == 'EOF'

    def advance(self) -> Token:
        if not self.is_at_end():
            self.pos += 1
        return self.previous()

    def match(self, *kinds: str) -> bool:
        if self.is_at_end():
            return False
        return self.peek().kind in kinds

    def accept(self, *kinds: str) -> Optional[Token]:
        if self.match(*kinds):
            return self.advance()
        return None

    def consume(self, kind: str, message: str) -> Token:
        if self.match(kind):
            return self.advance()
        raise self.error(message)

    def error(self, message: str) -> ParseError:
        token = self.peek()
        found = token.lexeme if token.kind != 'EOF' else 'end of input'
        return ParseError(f"{message} Found: {found}", token)

    def parse_program(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.is_at_end():
            statements.append(self.parse_statement())
        return statements

    def parse_statement(self) -> Stmt:
        if self.accept('FUN'):
            return self.parse_function()
        if self.accept('RETURN'):
            return self.parse_return()
        if self.accept('IF'):
            return self.parse_if()
        if self.accept('WHILE'):
            return self.parse_while()
        if self.accept('LEFT_BRACE'):
            return Block(self.parse_block())
        if self.accept('PRINT'):
            return Print(self.parse_expression())
        if self.accept('PRINTUPPER'):
            return PrintUpper(self.parse_expression())
        if self.match('IDENTIFIER') and self.peek_next().kind == 'EQUAL':
            return self.parse_var()
        return Expression(self.parse_expression())

    def parse_function(self) -> Function:
        name = self.consume('IDENTIFIER', "Expect function name after 'fun'.")
        self.consume('LEFT_PAREN', "Expect '(' after function name.")
        params: List[str] = []
        if not self.match('RIGHT_PAREN'):
            while True:
                param = self.consume('IDENTIFIER', "Expect parameter name.")
                params.append(param.lexeme)
                if not self.accept('COMMA'):
                    break
        self.consume('RIGHT_PAREN', "Expect ')' after parameters.")
        self.consume('LEFT_BRACE', "Expect '{' before function body.")
        body = Block(self.parse_block())
        return Function(name.lexeme, params, body)

    def parse_return(self) -> Return:
        # with no statement terminator, a value is present only if the
        # next token can begin an expression
        if self.match(*EXPRESSION_START):
            return Return(self.parse_expression())
        return Return(None)

    def parse_if(self) -> If:
        self.consume('LEFT_PAREN', "Expect '(' after 'if'.")
        condition = self.parse_expression()
        self.consume('RIGHT_PAREN', "Expect ')' after if condition.")
        then_branch = self.parse_statement()
        else_branch = None
        if self.accept('ELSE'):
            else_branch = self.parse_statement()
        return If(condition, then_branch, else_branch)

    def parse_while(self) -> While:
        self.consume('LEFT_PAREN', "Expect '(' after 'while'.")
        condition = self.parse_expression()
        self.consume('RIGHT_PAREN', "Expect ')' after while condition.")
        body = self.parse_statement()
        return While(condition, body)

    def parse_block(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.match('RIGHT_BRACE') and not self.is_at_end():
            statements.append(self.parse_statement())
        self.consume('RIGHT_BRACE', "Expect '}' after block.")
        return statements

    def parse_var(self) -> Var:
        name = self.advance()
        self.consume('EQUAL', "Expect '=' after variable name.")
        return Var(name.lexeme, self.parse_expression())

    # Expression parsing, lowest precedence first

    def parse_expression(self) -> Expr:
        return self.parse_or()

    def parse_binary(self, operand: Callable[[], Expr], *kinds: str) -> Expr:
        node = operand()
        while self.match(*kinds):
            op = self.advance()
            right = operand()
            node = Binary(node, op.kind, right)
        return node

    def parse_or(self) -> Expr:
        return self.parse_binary(self.parse_and, 'OR')

    def parse_and(self) -> Expr:
        return self.parse_binary(self.parse_equality, 'AND')

    def parse_equality(self) -> Expr:
        return self.parse_binary(self.parse_comparison, 'EQUAL_EQUAL', 'BANG_EQUAL')

    def parse_comparison(self) -> Expr:
        return self.parse_binary(self.parse_addition, 'LESS', 'LESS_EQUAL', 'GREATER', 'GREATER_EQUAL')

    def parse_addition(self) -> Expr:
        return self.parse_binary(self.parse_multiplication, 'PLUS', 'MINUS')

    def parse_multiplication(self) -> Expr:
        return self.parse_binary(self.parse_unary, 'STAR', 'SLASH')

    def parse_unary(self) -> Expr:
        if self.match('BANG', 'MINUS', 'PLUS'):
            op = self.advance()
            return Unary(op.kind, self.parse_unary())
        return self.parse_call()

    def parse_call(self) -> Expr:
        node = self.parse_primary()
        while True:
            if self.accept('LEFT_PAREN'):
                node = self.finish_call(node)
                continue
            if self.accept('LEFT_BRACKET'):
                index = self.parse_expression()
                self.consume('RIGHT_BRACKET', "Expect ']' after index.")
                node = ArrayAccess(node, index)
                continue
            break
        return node

    def finish_call(self, callee: Expr) -> Expr:
        args: List[Expr] = []
        if not self.match('RIGHT_PAREN'):
            while True:
                args.append(self.parse_expression())
                if not self.accept('COMMA'):
                    break
        paren = self.consume('RIGHT_PAREN', "Expect ')' after arguments.")
        if isinstance(callee, Variable) and callee.name in BUILTIN_ARITY:
            return self.builtin_call(callee.name, args, paren)
        return Call(callee, args)

    def builtin_call(self, name: str, args: List[Expr], paren: Token) -> Expr:
        arity = BUILTIN_ARITY[name]
        if len(args) != arity:
            raise ParseError(f"{name} expects exactly {ARITY_WORDS[arity]}.", paren)
        if name == 'input':
            return InputExpr(args[0])
        if name == 'append':
            return AppendExpr(args[0], args[1])
        if name == 'remove':
            return RemoveExpr(args[0], args[1])
        if name == 'put':
            return PutExpr(args[0], args[1], args[2])
        return DictRemoveExpr(args[0], args[1])

    def parse_primary(self) -> Expr:
        token = self.accept('NUMBER')
        if token:
            return Literal(Number(token.value, token.lexeme))
        token = self.accept('STRING')
        if token:
            return Literal(Text(token.lexeme))
        if self.accept('TRUE'):
            return Literal(TRUE)
        if self.accept('FALSE'):
            return Literal(FALSE)
        if self.accept('INPUT'):
            if not self.match('LEFT_PAREN'):
                raise self.error("Expect '(' after 'input'.")
            return Variable('input')
        if self.accept('LEFT_BRACKET'):
            elements: List[Expr] = []
            if not self.match('RIGHT_BRACKET'):
                while True:
                    elements.append(self.parse_expression())
                    if not self.accept('COMMA'):
                        break
            self.consume('RIGHT_BRACKET', "Expect ']' after array elements.")
            return ArrayLiteral(elements)
        if self.accept('DICT'):
            return self.parse_dictionary()
        token = self.accept('IDENTIFIER')
        if token:
            return Variable(token.lexeme)
        if self.accept('LEFT_PAREN'):
            expr = self.parse_expression()
            self.consume('RIGHT_PAREN', "Expect ')' after expression.")
            return expr
        token = self.peek()
        found = token.lexeme if token.kind != 'EOF' else 'end of input'
        raise ParseError(f"Expect expression at token: {found}", token)

    def parse_dictionary(self) -> DictionaryLiteral:
        self.consume('LEFT_BRACE', "Expect '{' after 'dict'.")
        entries = []
        if not self.match('RIGHT_BRACE'):
            while True:
                key = self.parse_expression()
                self.consume('COLON', "Expect ':' after dictionary key.")
                entries.append((key, self.parse_expression()))
                if not self.accept('COMMA'):
                    break
        self.consume('RIGHT_BRACE', "Expect '}' after dictionary entries.")
        return DictionaryLiteral(entries)


def parse_program(source: str, report: Optional[Callable[[LexError], None]] = None) -> List[Stmt]:
    """Scan and parse source code into a list of top-level statements.

    Raises ParseError on the first syntax error; no statements are
    returned in that case.
    """
    tokens = scan(source, report)
    parser = Parser(tokens)
    return parser.parse_program()


###############################################################################
# Interpreter implementation
###############################################################################

OPERATOR_SYMBOLS = {
    'PLUS': '+', 'MINUS': '-', 'STAR': '*', 'SLASH': '/',
    'LESS': '<', 'LESS_EQUAL': '<=', 'GREATER': '>', 'GREATER_EQUAL': '>=',
    'EQUAL_EQUAL': '==', 'BANG_EQUAL': '!=', 'AND': 'and', 'OR': 'or',
    'BANG': '!',
}


def divide(a: float, b: float) -> float:
    """Floating point division with infinities and NaN instead of errors."""
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


# Each Abacus call nests about six Python frames, so statements run on a
# worker thread whose stack is large enough for the raised frame limit.
RECURSION_LIMIT = 30_000
THREAD_STACK_SIZE = 512 * 1024 * 1024


def call_with_deep_stack(fn: Callable[..., Any], *args: Any) -> Any:
    """Call `fn(*args)` on a worker thread with a large stack and frame limit.

    The result is returned and any exception is re-raised in the caller.
    """
    outcome: Dict[str, Any] = {}

    def target():
        try:
            outcome['value'] = fn(*args)
        except BaseException as e:
            outcome['error'] = e

    previous_limit = sys.getrecursionlimit()
    previous_size = threading.stack_size(THREAD_STACK_SIZE)
    sys.setrecursionlimit(max(previous_limit, RECURSION_LIMIT))
    try:
        worker = threading.Thread(target=target, daemon=True)
        worker.start()
        worker.join()
    finally:
        threading.stack_size(previous_size)
        sys.setrecursionlimit(previous_limit)
    if 'error' in outcome:
        raise outcome['error']
    return outcome.get('value')


class Interpreter:
    """Core interpreter that executes Abacus statements."""
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = 'debug.txt',
                 out=None, err=None, interactive: bool = False):
        self.global_env = populate_global_environment()
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 and debug_file else None
        # None means sys.stdout / sys.stderr at the time of writing
        self.out = out
        self.err = err
        self.interactive = interactive
        self.error_count = 0

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=self.out or sys.stdout)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def write(self, text: str):
        print(text, file=self.out or sys.stdout)

    def report(self, message: str):
        self.error_count += 1
        print(message, file=self.err or sys.stderr)
        self.debug(message)

    def report_lex_error(self, error: LexError):
        self.report(f"Lexer Error: {error.message}")

    # Public API
    def run_source(self, source: str) -> int:
        """Parse and run a whole program; return the number of diagnostics."""
        before = self.error_count
        try:
            statements = parse_program(source, self.report_lex_error)
        except ParseError as e:
            self.report(f"Parse Error: {e.message}")
            return self.error_count - before
        self.run(statements)
        return self.error_count - before

    def run(self, statements: List[Stmt], env: Optional[Environment] = None) -> int:
        """Execute top-level statements in order; return how many failed.

        An execution error abandons the statement that raised it and is
        reported; execution continues with the next statement. Recursion is
        bounded by the worker thread's stack, see `call_with_deep_stack`.
        """
        if env is None:
            env = self.global_env
        return call_with_deep_stack(self.run_statements, statements, env)

    def run_statements(self, statements: List[Stmt], env: Environment) -> int:
        failed = 0
        for number, stmt in enumerate(statements, 1):
            if self.debug_level >= 1:
                self.debug(f"statement {number}: {type(stmt).__name__}")
            try:
                outcome = self.execute(stmt, env)
                if isinstance(outcome, ReturnSignal):
                    self.debug(f"return outside a function ignored in statement {number}")
            except ExecutionError as e:
                failed += 1
                self.report(f"Execution Error: {e.message}")
            except RecursionError:
                failed += 1
                self.report("Execution Error: Maximum recursion depth exceeded.")
        return failed

    def execute_block(self, statements: List[Stmt], env: Environment) -> Optional[ReturnSignal]:
        for stmt in statements:
            result = self.execute(stmt, env)
            # propagate return signals
            if isinstance(result, ReturnSignal):
                return result
        return None

    def execute(self, node: Stmt, env: Environment) -> Optional[ReturnSignal]:
        if isinstance(node, Print):
            self.write(to_string(self.evaluate(node.expr, env)))
            return None
        if isinstance(node, PrintUpper):
            self.write(to_string(self.evaluate(node.expr, env)).upper())
            return None
        if isinstance(node, Var):
            value = self.evaluate(node.expr, env)
            # an existing binding anywhere in the chain is overwritten in place
            if node.name in env:
                env.assign(node.name, value)
                if self.debug_level >= 2:
                    self.debug(f"assign {node.name} = {to_string(value)}")
            else:
                env.define(node.name, value)
                if self.debug_level >= 2:
                    self.debug(f"declare {node.name} = {to_string(value)}")
            return None
        if isinstance(node, Expression):
            self.evaluate(node.expr, env)
            return None
        if isinstance(node, Block):
            block_env = Environment(parent=env)
            return self.execute_block(node.statements, block_env)
        if isinstance(node, If):
            cond = self.expect_boolean(self.evaluate(node.condition, env), 'if')
            if self.debug_level >= 3:
                self.debug(f"if condition -> {to_string(cond)}")
            if cond.value:
                return self.execute(node.then_branch, env)
            if node.else_branch is not None:
                return self.execute(node.else_branch, env)
            return None
        if isinstance(node, While):
            while self.expect_boolean(self.evaluate(node.condition, env), 'while').value:
                res = self.execute(node.body, env)
                if isinstance(res, ReturnSignal):
                    return res
            return None
        if isinstance(node, Function):
            env.define(node.name, FunctionValue(node.name, node.params, node.body, env))
            if self.debug_level >= 2:
                self.debug(f"define function {node.name}({', '.join(node.params)})")
            return None
        if isinstance(node, Return):
            value = self.evaluate(node.value, env) if node.value is not None else EMPTY_TEXT
            return ReturnSignal(value)
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def evaluate(self, node: Expr, env: Environment) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Variable):
            return env.get(node.name)
        if isinstance(node, Binary):
            # both operands are always evaluated, including for 'and' and 'or'
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.op, left, right)
        if isinstance(node, Unary):
            operand = self.evaluate(node.operand, env)
            if node.op == 'MINUS':
                if not isinstance(operand, Number):
                    raise TypeMismatch(f"Operand of unary - must be a number, got {type_name(operand)}.")
                return Number(-operand.value)
            if node.op == 'BANG':
                return FALSE if self.expect_boolean(operand, '!').value else TRUE
            return operand
        if isinstance(node, ArrayLiteral):
            return Array([self.evaluate(el, env) for el in node.elements])
        if isinstance(node, DictionaryLiteral):
            entries: Dict[Any, Any] = {}
            for key_node, value_node in node.entries:
                key = self.evaluate(key_node, env)
                entries[key] = self.evaluate(value_node, env)
            return Dictionary(entries)
        if isinstance(node, ArrayAccess):
            target = self.evaluate(node.target, env)
            index = self.evaluate(node.index, env)
            if isinstance(target, Array):
                return target.items[self.array_index(target, index)]
            if isinstance(target, Dictionary):
                try:
                    return target.lookup(index)
                except KeyError:
                    raise KeyNotFound(f"Key not found: {to_string(index)}") from None
            raise NotIndexable(f"Attempted to index a non-array value of type {type_name(target)}.")
        if isinstance(node, Call):
            callee = self.evaluate(node.callee, env)
            args = [self.evaluate(arg, env) for arg in node.args]
            return self.call_function(callee, args)
        if isinstance(node, InputExpr):
            prompt = self.evaluate(node.prompt, env)
            if not self.interactive:
                return EMPTY_TEXT
            try:
                return Text(builtins.input(to_string(prompt)))
            except EOFError:
                return EMPTY_TEXT
        if isinstance(node, AppendExpr):
            array = self.expect_array(self.evaluate(node.array, env), 'append')
            array.items.append(self.evaluate(node.element, env))
            return array
        if isinstance(node, RemoveExpr):
            array = self.expect_array(self.evaluate(node.array, env), 'remove')
            index = self.array_index(array, self.evaluate(node.index, env))
            return Text(to_string(array.items.pop(index)))
        if isinstance(node, PutExpr):
            dictionary = self.expect_dictionary(self.evaluate(node.dictionary, env), 'put')
            key = self.evaluate(node.key, env)
            dictionary.put(key, self.evaluate(node.value, env))
            return dictionary
        if isinstance(node, DictRemoveExpr):
            dictionary = self.expect_dictionary(self.evaluate(node.dictionary, env), 'dict_remove')
            key = self.evaluate(node.key, env)
            try:
                return dictionary.remove(key)
            except KeyError:
                raise KeyNotFound(f"Key not found: {to_string(key)}") from None
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def call_function(self, func: Any, args: List[Any]) -> Any:
        if isinstance(func, BuiltinFunction):
            if len(args) != func.arity:
                raise ArityMismatch(f"{func.name} expects {func.arity} arguments but got {len(args)}.")
            return func.fn(args)
        if isinstance(func, FunctionValue):
            if len(args) != len(func.params):
                raise ArityMismatch(f"{func.name} expects {len(func.params)} arguments but got {len(args)}.")
            # new scope under the closure, not under the caller
            call_env = Environment(parent=func.closure)
            for param, arg in zip(func.params, args):
                call_env.define(param, arg)
            if self.debug_level >= 3:
                self.debug(f"call {func.name} at depth {call_env.depth()}")
            res = self.execute(func.body, call_env)
            if isinstance(res, ReturnSignal):
                return res.value
            return EMPTY_TEXT
        raise NotCallable(f"Can only call functions, got {type_name(func)}.")

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        symbol = OPERATOR_SYMBOLS[op]
        if op == 'PLUS':
            if isinstance(a, Text) or isinstance(b, Text):
                return Text(to_string(a) + to_string(b))
            if isinstance(a, Number) and isinstance(b, Number):
                return Number(a.value + b.value)
            raise TypeMismatch(f"Operator + cannot be applied to {type_name(a)} and {type_name(b)}.")
        if op in ('EQUAL_EQUAL', 'BANG_EQUAL'):
            eq = values_equal(a, b)
            return TRUE if (eq if op == 'EQUAL_EQUAL' else not eq) else FALSE
        if op in ('AND', 'OR'):
            left = self.expect_boolean(a, symbol).value
            right = self.expect_boolean(b, symbol).value
            result = (left and right) if op == 'AND' else (left or right)
            return TRUE if result else FALSE
        if not (isinstance(a, Number) and isinstance(b, Number)):
            raise TypeMismatch(f"Operands of {symbol} must be numbers, got {type_name(a)} and {type_name(b)}.")
        x, y = a.value, b.value
        if op == 'MINUS':
            return Number(x - y)
        if op == 'STAR':
            return Number(x * y)
        if op == 'SLASH':
            return Number(divide(x, y))
        if op == 'LESS':
            return TRUE if x < y else FALSE
        if op == 'LESS_EQUAL':
            return TRUE if x <= y else FALSE
        if op == 'GREATER':
            return TRUE if x > y else FALSE
        if op == 'GREATER_EQUAL':
            return TRUE if x >= y else FALSE
        raise TypeMismatch(f"Unknown operator: {symbol}")

    def array_index(self, array: Array, index: Any) -> int:
        if not isinstance(index, Number):
            raise TypeMismatch(f"Array index must be a number, got {type_name(index)}.")
        if not math.isfinite(index.value):
            raise IndexOutOfBounds("Array index out of bounds.")
        i = int(index.value)  # truncates toward zero
        if i < 0 or i >= len(array.items):
            raise IndexOutOfBounds("Array index out of bounds.")
        return i

    def expect_boolean(self, value: Any, context: str) -> Boolean:
        if not isinstance(value, Boolean):
            raise TypeMismatch(f"Operand of {context} must be a boolean, got {type_name(value)}.")
        return value

    def expect_array(self, value: Any, name: str) -> Array:
        if not isinstance(value, Array):
            raise TypeMismatch(f"{name} expects an array as first argument, got {type_name(value)}.")
        return value

    def expect_dictionary(self, value: Any, name: str) -> Dictionary:
        if not isinstance(value, Dictionary):
            raise TypeMismatch(f"{name} expects a dictionary as first argument, got {type_name(value)}.")
        return value


def run_program(source: str, debug_level: int = 0, **options) -> Interpreter:
    """Convenience function to parse and run an Abacus program from a source string."""
    interpreter = Interpreter(debug_level=debug_level, **options)
    try:
        interpreter.run_source(source)
    finally:
        interpreter.close()
    return interpreter


def run_file(file_path: str, debug_level: int = 0, **options) -> Interpreter:
    """Read a UTF-8 source file and run it, returning the interpreter instance."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, debug_level=debug_level, **options)
