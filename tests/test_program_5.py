from pathlib import Path
from abacus.interpreter import parse_program, Interpreter

PROGRAMS = Path(__file__).resolve().parent.parent / 'programs'


def test_program_5_array_aliasing(capsys):
    with open(PROGRAMS / 'program_5.abacus', 'r', encoding='utf-8') as f:
        source = f.read()
    statements = parse_program(source)
    interp = Interpreter()
    interp.run(statements)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == [
        '[eggs, milk, butter]',
        '3',
        'butter',
        'eggs',
        '[milk, butter]',
        # remove yields text, so + concatenates
        '210',
    ]
