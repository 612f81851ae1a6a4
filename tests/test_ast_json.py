import io
import json
import pytest
from abacus.ast_json import ast_from_obj, ast_to_obj, program_from_obj, program_to_obj
from abacus.interpreter import Interpreter, parse_program

SOURCE = '''
fun area(w, h) { return w * h }
shapes = [dict{"w": 2.50, "h": 4}, dict{"w": 1, "h": 1}]
i = 0
while (i < len(shapes)) {
  s = shapes[i]
  if (area(s["w"], s["h"]) > 5) printupper "big " + s["w"] else print "small"
  i = i + 1
}
append(shapes, input("?"))
print remove(shapes, 2) == ""
print -i
'''


def run_statements(statements):
    out = io.StringIO()
    Interpreter(out=out, err=io.StringIO()).run(statements)
    return out.getvalue()


def test_program_survives_json_round_trip():
    statements = parse_program(SOURCE)
    document = json.loads(json.dumps(program_to_obj(statements)))
    assert program_from_obj(document) == statements


def test_loaded_program_runs_identically():
    statements = parse_program(SOURCE)
    loaded = program_from_obj(json.loads(json.dumps(program_to_obj(statements))))
    assert run_statements(loaded) == run_statements(statements) == 'BIG 2.50\nsmall\ntrue\n-2\n'


def test_number_literal_text_is_serialized():
    [stmt] = parse_program('print 2.50')
    obj = ast_to_obj(stmt)
    assert obj == {
        'type': 'Print',
        'expr': {'type': 'Literal', 'value': {'__value__': 'Number', 'value': 2.5, 'literal': '2.50'}},
    }
    assert ast_from_obj(obj).expr.value.literal == '2.50'


def test_unknown_node_type_is_rejected():
    with pytest.raises(ValueError, match='Unknown AST node type: Goto'):
        ast_from_obj({'type': 'Goto'})
    with pytest.raises(ValueError):
        program_from_obj({'type': 'Block', 'statements': []})
