from pathlib import Path
from abacus.interpreter import parse_program, Interpreter

PROGRAMS = Path(__file__).resolve().parent.parent / 'programs'


def test_program_4_closures(capsys):
    """Closures see the scope of their declaration.

    `inner` keeps returning the `x` of the call to `make` even after a
    global `x` is bound, and `next` keeps mutating the `count` local to
    the call of `counter` that created it.
    """
    with open(PROGRAMS / 'program_4.abacus', 'r', encoding='utf-8') as f:
        source = f.read()
    statements = parse_program(source)
    interp = Interpreter()
    interp.run(statements)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['10', '3']
