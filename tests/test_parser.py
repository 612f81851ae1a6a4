import pytest
from abacus.ast import (
    AppendExpr, ArrayAccess, ArrayLiteral, Binary, Block, Call, DictionaryLiteral,
    DictRemoveExpr, Expression, Function, If, InputExpr, Literal, Print, PrintUpper,
    PutExpr, RemoveExpr, Return, Unary, Var, Variable, While,
)
from abacus.errors import ParseError
from abacus.interpreter import parse_program
from abacus.values import Boolean, Number, Text


def num(n):
    return Literal(Number(float(n)))


def test_multiplication_binds_tighter_than_addition():
    assert parse_program('print 1 + 2 * 3') == [
        Print(Binary(num(1), 'PLUS', Binary(num(2), 'STAR', num(3)))),
    ]


def test_binary_operators_are_left_associative():
    assert parse_program('print 8 - 4 - 2') == [
        Print(Binary(Binary(num(8), 'MINUS', num(4)), 'MINUS', num(2))),
    ]


def test_precedence_ladder():
    [stmt] = parse_program('print a or b and c == d < e')
    expected = Binary(
        Variable('a'), 'OR',
        Binary(Variable('b'), 'AND',
               Binary(Variable('c'), 'EQUAL_EQUAL',
                      Binary(Variable('d'), 'LESS', Variable('e')))))
    assert stmt == Print(expected)


def test_unary_operators_nest():
    assert parse_program('print -+!x') == [
        Print(Unary('MINUS', Unary('PLUS', Unary('BANG', Variable('x'))))),
    ]


def test_calls_and_indexing_chain():
    [stmt] = parse_program('f(x)[0](y)')
    assert stmt == Expression(
        Call(ArrayAccess(Call(Variable('f'), [Variable('x')]), num(0)), [Variable('y')]))


def test_identifier_equals_is_var_statement():
    assert parse_program('x = 1') == [Var('x', num(1))]
    assert parse_program('x == 1') == [Expression(Binary(Variable('x'), 'EQUAL_EQUAL', num(1)))]


def test_literals():
    [stmt] = parse_program('print [1, "a", true, false]')
    assert stmt == Print(ArrayLiteral([num(1), Literal(Text('a')), Literal(Boolean(True)), Literal(Boolean(False))]))


def test_number_literal_keeps_source_text():
    [stmt] = parse_program('print 2.50')
    assert stmt.expr.value.literal == '2.50'


def test_dictionary_literal():
    [stmt] = parse_program('d = dict{"a": 1, 2: [3]}')
    assert stmt == Var('d', DictionaryLiteral([
        (Literal(Text('a')), num(1)),
        (num(2), ArrayLiteral([num(3)])),
    ]))
    assert parse_program('d = dict{}') == [Var('d', DictionaryLiteral([]))]


def test_builtins_become_dedicated_nodes():
    statements = parse_program(
        'input("?") append(a, 1) remove(a, 0) put(d, "k", 2) dict_remove(d, "k")')
    assert statements == [
        Expression(InputExpr(Literal(Text('?')))),
        Expression(AppendExpr(Variable('a'), num(1))),
        Expression(RemoveExpr(Variable('a'), num(0))),
        Expression(PutExpr(Variable('d'), Literal(Text('k')), num(2))),
        Expression(DictRemoveExpr(Variable('d'), Literal(Text('k')))),
    ]


@pytest.mark.parametrize('source', [
    'input()',
    'append(a)',
    'remove(a, 1, 2)',
    'put(d, 1)',
    'dict_remove(d)',
])
def test_builtin_arity_is_checked_at_parse_time(source):
    with pytest.raises(ParseError, match='expects exactly'):
        parse_program(source)


def test_other_calls_are_not_checked_at_parse_time():
    assert parse_program('len(a, b, c)') == [
        Expression(Call(Variable('len'), [Variable('a'), Variable('b'), Variable('c')])),
    ]


def test_function_declaration():
    [stmt] = parse_program('fun add(a, b) { return a + b }')
    assert stmt == Function('add', ['a', 'b'], Block([Return(Binary(Variable('a'), 'PLUS', Variable('b')))]))


def test_function_body_must_be_block():
    with pytest.raises(ParseError, match="Expect '{' before function body"):
        parse_program('fun f() print 1')


def test_return_without_value():
    [stmt] = parse_program('fun f() { return }')
    assert stmt.body == Block([Return(None)])
    [stmt] = parse_program('fun g() { return print 1 }')
    assert stmt.body == Block([Return(None), Print(num(1))])


def test_if_else_and_while():
    statements = parse_program('if (x) print 1 else { print 2 } while (y) x = 1')
    assert statements == [
        If(Variable('x'), Print(num(1)), Block([Print(num(2))])),
        While(Variable('y'), Var('x', num(1))),
    ]


def test_printupper_statement():
    assert parse_program('printupper "hi"') == [PrintUpper(Literal(Text('hi')))]


def test_parse_error_carries_lexeme():
    with pytest.raises(ParseError) as exc_info:
        parse_program('print 1 print )')
    assert exc_info.value.lexeme == ')'
    assert exc_info.value.message == 'Expect expression at token: )'


def test_missing_closing_paren():
    with pytest.raises(ParseError, match=r"Expect '\)' after if condition. Found: print"):
        parse_program('if (x print 1')


def test_unterminated_block():
    with pytest.raises(ParseError, match="Expect '}' after block. Found: end of input"):
        parse_program('{ print 1')


def test_input_keyword_needs_call():
    with pytest.raises(ParseError, match="Expect '\\(' after 'input'"):
        parse_program('x = input')


def test_lexer_errors_do_not_stop_parsing():
    errors = []
    assert parse_program('print 1 ; print 2', report=errors.append) == [Print(num(1)), Print(num(2))]
    assert len(errors) == 1
