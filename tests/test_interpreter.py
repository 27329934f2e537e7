import pytest
from cizgikod.interpreter import Interpreter, run_program
from cizgikod.lexer import tokenize_lines
from cizgikod.types import Value


def run(lines, inputs=(), **options):
    output = []
    feed = iter(inputs)
    interp = Interpreter(read_line=lambda: next(feed), write_line=output.append, **options)
    result = interp.run(tokenize_lines(lines))
    return result, output


def no_input():
    raise AssertionError('input hook must not be called')


def test_declare_then_print():
    result, output = run(['^_^ keloğlan x _ 2 ^_^', '^_^ tospik ) x ( ^_^'])
    assert result.ok
    assert output == ['2']
    assert result.variables == {'x': Value.integer(2)}


def test_second_declaration_fails():
    result, output = run([
        '^_^ keloğlan x _ 1 ^_^',
        '^_^ tospik ) "ilk" ( ^_^',
        '^_^ keloğlan x _ 2 ^_^',
        '^_^ tospik ) "ikinci" ( ^_^',
    ])
    assert not result.ok
    assert result.error.name == 'NameError'
    assert output == ['ilk']
    assert result.variables['x'] == Value.integer(1)


def test_assignment_to_undeclared_name_fails():
    result, _ = run(['^_^ y _ 1 ^_^'])
    assert not result.ok
    assert result.error.name == 'NameError'
    result, _ = run(['^_^ y ._._ 1 ^_^'])
    assert not result.ok
    assert result.error.name == 'NameError'


@pytest.mark.parametrize('expr, expected', [
    ('1 ._. 2', Value.integer(3)),
    ('1 ._. 2.0', Value.double(3.0)),
    ('"a" ._. 5', Value.string('a5')),
    ('10 ,_, 2 ,_, 3', Value.integer(5)),
    ('2 *_* 3 *_* 2', Value.integer(64)),
    ('1 ._. 2 \\ 2', Value.integer(2)),
    (') 1 ._. 2 ( \\ 2', Value.integer(1)),
    ('1 ._. 1 __ 2', Value.boolean(True)),
    ('1 -: 2 # 3 :- 4', Value.boolean(False)),
    ('1 -: 2 $$ 3 :- 4', Value.boolean(True)),
])
def test_expression_values(expr, expected):
    result, _ = run([f'^_^ dede {expr} ^_^'])
    assert result.ok
    assert result.return_value == expected
    assert result.return_value.type is expected.type


@pytest.mark.parametrize('expr', ['5 \\ 0', '5 % 0', '5.0 \\ 0.0', '5.0 % 0.0'])
def test_division_and_modulo_by_zero(expr):
    result, _ = run([f'^_^ tospik ) {expr} ( ^_^'])
    assert not result.ok
    assert result.error.name == 'ZeroDivisionError'
    assert not result.error.is_structural


def test_while_false_runs_zero_times():
    result, output = run([
        '^_^ keloğlan i _ 10 ^_^',
        '^_^ pepe ) i -: 3 ( } ^_^ tospik ) "içeride" ( ^_^ ^_^ i _ i ._. 1 ^_^ { tontiş ^_^',
        '^_^ tospik ) "sonra" ( ^_^',
    ])
    assert result.ok
    assert output == ['sonra']
    assert result.variables['i'] == Value.integer(10)


def test_break_finishes_current_block_only():
    result, output = run([
        '^_^ keloğlan i _ 0 ^_^',
        '^_^ pepe ) rik ( }',
        '  ^_^ i _ i ._. 1 ^_^',
        '  ^_^ döfenşimos ) i __ 3 ( } ^_^ tontiş ^_^ ^_^ tospik ) "asla" ( ^_^ { tontiş ^_^',
        '  ^_^ tospik ) i ( ^_^',
        '{ tontiş ^_^',
        '^_^ tospik ) "son" ( ^_^',
    ])
    assert result.ok
    assert output == ['1', '2', 'son']
    assert result.variables['i'] == Value.integer(3)


def test_continue_skips_rest_of_body():
    result, output = run([
        '^_^ keloğlan i _ 0 ^_^',
        '^_^ pepe ) i -: 4 ( }',
        '  ^_^ i ._._ 1 ^_^',
        '  ^_^ döfenşimos ) i % 2 __ 0 ( } ^_^ şapşik ^_^ { tontiş ^_^',
        '  ^_^ tospik ) i ( ^_^',
        '{ tontiş ^_^',
    ])
    assert result.ok
    assert output == ['1', '3']


def test_skipped_if_branch_has_no_side_effects():
    result, output = run([
        '^_^ keloğlan x _ 1 ^_^',
        '^_^ döfenşimos ) morti ( }',
        '  ^_^ tospik ) "gizli" ( ^_^',
        '  ^_^ x _ 99 ^_^',
        '  ^_^ marsupilami ) x ( ^_^',
        '  ^_^ @@ ^_^',
        '{ tontiş ^_^',
        '^_^ tospik ) x ( ^_^',
    ])
    assert result.ok
    assert output == ['1']


def test_else_branch():
    lines = [
        '^_^ keloğlan x _ 0 ^_^',
        '^_^ marsupilami ) x ( ^_^',
        '^_^ döfenşimos ) x :- 0 ( } ^_^ tospik ) "pozitif" ( ^_^',
        '{ ornitorenk } ^_^ tospik ) "pozitif değil" ( ^_^ { tontiş ^_^',
    ]
    assert run(lines, ['5'])[1] == ['pozitif']
    assert run(lines, ['-5'])[1] == ['pozitif değil']


def test_taken_branch_skips_else_input():
    output = []
    interp = Interpreter(read_line=no_input, write_line=output.append)
    result = interp.run(tokenize_lines([
        '^_^ keloğlan x _ 0 ^_^',
        '^_^ döfenşimos ) rik ( } ^_^ tospik ) "evet" ( ^_^',
        '{ ornitorenk } ^_^ marsupilami ) x ( ^_^ { tontiş ^_^',
    ]))
    assert result.ok
    assert output == ['evet']


def test_if_condition_must_be_boolean():
    result, output = run(['^_^ döfenşimos ) 1 ( } ^_^ tospik ) 1 ( ^_^ { tontiş ^_^'])
    assert not result.ok
    assert result.error.name == 'TypeError'
    assert output == []


def test_while_with_non_boolean_condition_stops():
    result, output = run([
        '^_^ pepe ) 1 ( } ^_^ tospik ) "döngü" ( ^_^ { tontiş ^_^',
        '^_^ tospik ) "devam" ( ^_^',
    ])
    assert result.ok
    assert output == ['devam']


def test_return_inside_loop_halts_everything():
    result, output = run([
        '^_^ keloğlan i _ 0 ^_^',
        '^_^ pepe ) rik ( }',
        '  ^_^ i ._._ 1 ^_^',
        '  ^_^ döfenşimos ) i __ 2 ( } ^_^ dede i *_* 2 ^_^ { tontiş ^_^',
        '{ tontiş ^_^',
        '^_^ tospik ) "asla" ( ^_^',
    ])
    assert result.ok
    assert result.return_value == Value.integer(4)
    assert output == []


def test_break_outside_loop_stops_program():
    result, output = run(['^_^ tontiş ^_^', '^_^ tospik ) 1 ( ^_^'])
    assert result.ok
    assert output == []


def test_logical_operators_do_not_short_circuit():
    result, _ = run(['^_^ dede morti # 1 \\ 0 __ 0 ^_^'])
    assert not result.ok
    assert result.error.name == 'ZeroDivisionError'


def test_logical_operators_require_booleans():
    result, _ = run(['^_^ dede rik # 1 ^_^'])
    assert not result.ok
    assert result.error.name == 'TypeError'


def test_comparisons_do_not_chain():
    result, _ = run(['^_^ dede 1 -: 2 -: 3 ^_^'])
    assert not result.ok
    assert result.error.is_structural
    assert result.error.lexeme == '-:'
    assert result.error.kind == 'LESS_THAN'


def test_unbound_identifier_in_expression():
    result, _ = run(['^_^ tospik ) yok ( ^_^'])
    assert not result.ok
    assert result.error.name == 'NameError'


def test_unexpected_token_in_expression():
    result, _ = run(['^_^ tospik ) _ ( ^_^'])
    assert result.error.is_structural
    assert result.error.lexeme == '_'
    assert result.error.kind == 'ASSIGN'


def test_missing_group_closer():
    result, _ = run(['^_^ dede ) 1 ._. 2 ^_^'])
    assert result.error.is_structural
    assert result.error.lexeme == '^_^'


def test_missing_statement_markers():
    result, _ = run(['tospik ) 1 ( ^_^'])
    assert result.error.is_structural
    assert result.error.kind == 'PRINT'
    result, _ = run(['^_^ tospik ) 1 ('])
    assert result.error.is_structural
    assert result.error.lexeme == 'EOF'


def test_unknown_token_rejected_when_reached():
    result, _ = run(['^_^ @@ ^_^'])
    assert result.error.is_structural
    assert result.error.kind == 'UNKNOWN'


def test_unmatched_block():
    result, _ = run(['^_^ döfenşimos ) morti ( } ^_^ tospik ) 1 ( ^_^'])
    assert not result.ok
    assert result.error.is_structural
    result, _ = run(['^_^ pepe ) rik ( } ^_^ tospik ) 1 ( ^_^'])
    assert not result.ok
    assert result.error.is_structural


def test_missing_block_terminator():
    result, _ = run(['^_^ döfenşimos ) rik ( } ^_^ tospik ) 1 ( ^_^ { ^_^'])
    assert result.error.is_structural
    assert result.error.lexeme == '^_^'


def test_bare_expression_statement():
    result, output = run(['^_^ keloğlan x _ 1 ^_^', '^_^ x ._. 1 ^_^', '^_^ tospik ) x ( ^_^'])
    assert result.ok
    assert output == ['1']


def test_type_change_is_a_warning_by_default():
    lines = ['^_^ keloğlan x _ 1 ^_^', '^_^ x _ "bir" ^_^', '^_^ tospik ) x ( ^_^']
    result, output = run(lines)
    assert result.ok
    assert output == ['bir']
    assert len(result.warnings) == 1

    result, output = run(lines, strict_types=True)
    assert not result.ok
    assert result.error.name == 'TypeError'
    assert output == []


def test_input_converts_by_current_type():
    result, output = run([
        '^_^ keloğlan b _ morti ^_^',
        '^_^ keloğlan s _ "" ^_^',
        '^_^ keloğlan f _ 0.0 ^_^',
        '^_^ marsupilami ) b ( ^_^',
        '^_^ marsupilami ) s ( ^_^',
        '^_^ marsupilami ) f ( ^_^',
        '^_^ tospik ) s ._. b ._. f ( ^_^',
    ], ['Rik', 'iki kelime ', '0.5'])
    assert result.ok
    assert output == ['iki kelime true0.5']
    assert result.variables['f'] == Value.double(0.5)


def test_input_failures():
    result, _ = run(['^_^ keloğlan b _ rik ^_^', '^_^ marsupilami ) b ( ^_^'], ['evet'])
    assert result.error.name == 'ValueError'
    result, _ = run(['^_^ marsupilami ) yok ( ^_^'], ['1'])
    assert result.error.name == 'NameError'


def test_runs_are_independent():
    output = []
    interp = Interpreter(read_line=no_input, write_line=output.append)
    tokens = tokenize_lines(['^_^ keloğlan x _ 2 ^_^', '^_^ tospik ) x ( ^_^'])
    first = interp.run(tokens)
    second = interp.run(tokens)
    assert first.ok and second.ok
    assert output == ['2', '2']


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    output = []
    with Interpreter(write_line=output.append, debug_level=4, debug_file=str(debug_file)) as interp:
        interp.run_source('^_^ keloğlan x _ 1 ^_^\n^_^ x _ "a" ^_^')
    trace = debug_file.read_text(encoding='utf-8')
    assert 'Program started' in trace
    assert 'Next token' in trace
    assert 'declare x' in trace
    assert 'Warning: type mismatch' in trace


def test_run_program_uses_console(capsys):
    result = run_program('^_^ tospik ) "konsol" ( ^_^')
    assert result.ok
    assert capsys.readouterr().out == 'konsol\n'


def test_zero_to_negative_power_prints_infinity():
    result, output = run([
        '^_^ tospik ) 0.0 *_* ) 0.0 ,_, 1.0 ( ( ^_^',
        '^_^ tospik ) 0 *_* ) 0 ,_, 1 ( ( ^_^',
    ])
    assert result.ok
    assert output == ['inf', '9223372036854775807']


def test_deeply_nested_groups_fail_the_run():
    depth = 1500
    line = '^_^ tospik ) ' + ') ' * depth + '1' + ' (' * depth + ' ( ^_^'
    result, output = run([line])
    assert not result.ok
    assert result.error.is_structural
    assert output == []


def test_huge_integer_literal_is_unknown():
    result, _ = run(['^_^ tospik ) ' + '9' * 5000 + ' ( ^_^'])
    assert not result.ok
    assert result.error.kind == 'UNKNOWN'
