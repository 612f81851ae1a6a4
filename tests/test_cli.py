import json
import pytest
from abacus.__main__ import main


def write_program(tmp_path, source, name='prog.abacus'):
    path = tmp_path / name
    path.write_text(source, encoding='utf-8')
    return path


def test_runs_program_file(tmp_path, capsys):
    path = write_program(tmp_path, 'print "hi" print 2 * 3')
    main([str(path)])
    assert capsys.readouterr().out == 'hi\n6\n'


def test_exit_status_is_one_after_errors(tmp_path, capsys):
    path = write_program(tmp_path, 'print missing print "still"')
    with pytest.raises(SystemExit) as exc_info:
        main([str(path)])
    assert exc_info.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == 'still\n'
    assert captured.err == 'Execution Error: Undefined variable: missing\n'


def test_parse_error_exit(tmp_path, capsys):
    path = write_program(tmp_path, 'print (1')
    with pytest.raises(SystemExit):
        main([str(path)])
    captured = capsys.readouterr()
    assert captured.out == ''
    assert captured.err.startswith('Parse Error: ')


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([str(tmp_path / 'nope.abacus')])
    assert exc_info.value.code == 1
    assert 'not found' in capsys.readouterr().err


def test_tokens_flag_prints_token_stream(tmp_path, capsys):
    path = write_program(tmp_path, 'x = 1.0')
    main(['--tokens', str(path)])
    assert capsys.readouterr().out.splitlines() == [
        'IDENTIFIER x',
        'EQUAL =',
        'NUMBER 1.0 (1.0)',
        'EOF ',
    ]


def test_emit_ast_then_run_ast(tmp_path, capsys):
    path = write_program(tmp_path, 'fun twice(n) { return n * 2 } print twice(21)')
    main(['--emit-ast', str(path)])
    ast_path = tmp_path / 'prog.abacus.ast.json'
    assert capsys.readouterr().out.strip() == str(ast_path)
    document = json.loads(ast_path.read_text(encoding='utf-8'))
    assert document['type'] == 'Program'
    main(['--ast', str(ast_path)])
    assert capsys.readouterr().out == '42\n'


def test_interactive_input(tmp_path, monkeypatch, capsys):
    path = write_program(tmp_path, 'print "got " + input("> ")')
    monkeypatch.setattr('builtins.input', lambda prompt='': 'line')
    main(['--interactive', str(path)])
    assert capsys.readouterr().out == 'got line\n'


def test_verbose_writes_debug_file(tmp_path, monkeypatch, capsys):
    path = write_program(tmp_path, 'x = 1')
    monkeypatch.chdir(tmp_path)
    main(['-vv', str(path)])
    trace = (tmp_path / 'debug.txt').read_text(encoding='utf-8').splitlines()
    assert trace == ['statement 1: Var', 'declare x = 1']
