from pyfront.lexical import tokenize, write_tokens, write_errors
from pyfront.tokens import TokenKind, ErrorKind

K = TokenKind


def pairs(source):
    tokens, _ = tokenize(source)
    return [(t.kind, t.lexeme) for t in tokens if t.kind is not K.END_OF_FILE]


def kinds(source):
    tokens, _ = tokenize(source)
    return [t.kind for t in tokens]


def error_kinds(source):
    _, errors = tokenize(source)
    return [e.kind for e in errors]


def test_simple_assignment():
    assert pairs("x = 5\n") == [
        (K.IDENTIFIER, "x"), (K.OPERATOR, "="), (K.NUMBER, "5"), (K.NEWLINE, "\\n"),
    ]


def test_function_header_and_block():
    assert pairs("def f():\n    return 1\n") == [
        (K.KEYWORD, "def"), (K.IDENTIFIER, "f"), (K.DELIMITER, "("), (K.DELIMITER, ")"),
        (K.OPERATOR, ":"), (K.NEWLINE, "\\n"), (K.INDENT, ""), (K.KEYWORD, "return"),
        (K.NUMBER, "1"), (K.NEWLINE, "\\n"), (K.DEDENT, ""),
    ]


def test_multiple_decimals_keeps_longest_prefix():
    tokens, errors = tokenize("3.14.15")
    assert tokens[0].kind is K.NUMBER
    assert tokens[0].lexeme == "3.14"
    assert [e.kind for e in errors] == [ErrorKind.MULTIPLE_DECIMALS]
    assert errors[0].lexeme == "3.14.15"


def test_sequence_ends_with_single_eof():
    for source in ("", "x", "x\n", "if a:\n    b"):
        ks = kinds(source)
        assert ks[-1] is K.END_OF_FILE
        assert ks.count(K.END_OF_FILE) == 1


def test_missing_trailing_newline_is_supplied():
    assert kinds("x") == [K.IDENTIFIER, K.NEWLINE, K.END_OF_FILE]
    assert kinds("") == [K.END_OF_FILE]


def test_columns_are_one_based():
    tokens, _ = tokenize("x = 5\n")
    assert [t.column for t in tokens[:3]] == [1, 3, 5]


def test_maximal_munch_operators():
    assert pairs("a **= b\n")[1] == (K.OPERATOR, "**=")
    assert pairs("a != b\n")[1] == (K.OPERATOR, "!=")
    assert pairs("a //= b\n")[1] == (K.OPERATOR, "//=")
    assert pairs("def f() -> int:\n")[4] == (K.OPERATOR, "->")


def test_walrus_and_plain_colon():
    assert pairs("(n := 10)\n")[2] == (K.OPERATOR, ":=")
    assert pairs("else:\n")[1] == (K.OPERATOR, ":")


def test_lone_bang_is_unrecognized():
    tokens, errors = tokenize("a ! b\n")
    assert [e.kind for e in errors] == [ErrorKind.UNRECOGNIZED_CHARACTER]
    assert [t.lexeme for t in tokens if t.kind is K.IDENTIFIER] == ["a", "b"]


def test_unrecognized_character_is_skipped():
    tokens, errors = tokenize("x = $5\n")
    assert errors[0].kind is ErrorKind.UNRECOGNIZED_CHARACTER
    assert errors[0].lexeme == "$"
    assert (K.NUMBER, "5") in [(t.kind, t.lexeme) for t in tokens]


def test_negative_literal_after_operator_or_delimiter():
    assert pairs("x = -5\n")[2] == (K.NUMBER, "-5")
    assert pairs("f(a, -1)\n")[4] == (K.NUMBER, "-1")


def test_minus_is_binary_after_operand():
    assert pairs("y = x-5\n")[3:5] == [(K.OPERATOR, "-"), (K.NUMBER, "5")]
    assert pairs("y = f(a)-1\n")[6:8] == [(K.OPERATOR, "-"), (K.NUMBER, "1")]


def test_exponent_sign_is_part_of_number():
    assert pairs("x = 1.5e-3\n")[2] == (K.NUMBER, "1.5e-3")


def test_hex_digits_are_not_exponents():
    assert pairs("x = 0x1e+2\n")[2:4] == [(K.NUMBER, "0x1e"), (K.OPERATOR, "+")]


def test_ellipsis():
    assert pairs("x = ...\n")[2] == (K.ELLIPSIS, "...")


def test_invalid_suffix_relexes_identifier():
    tokens, errors = tokenize("x = 12abc\n")
    assert [(t.kind, t.lexeme) for t in tokens[2:4]] == [(K.NUMBER, "12"), (K.IDENTIFIER, "abc")]
    assert [e.kind for e in errors] == [ErrorKind.INVALID_SUFFIX]


def test_malformed_number_sub_kinds():
    assert error_kinds("x = 5.\n") == [ErrorKind.TRAILING_DECIMAL]
    assert error_kinds("x = 1e\n") == [ErrorKind.INVALID_EXPONENT]
    assert error_kinds("x = 0x\n") == [ErrorKind.INVALID_BASE_PREFIX]
    assert error_kinds("x = 0b12\n") == [ErrorKind.INVALID_BASE_PREFIX]
    assert error_kinds("x = 3jj\n") == [ErrorKind.INVALID_COMPLEX]


def test_string_tokens():
    assert pairs('print("hi")\n') == [
        (K.IDENTIFIER, "print"), (K.DELIMITER, "("), (K.STRING_QUOTE, '"'),
        (K.STRING_LITERAL, "hi"), (K.STRING_QUOTE, '"'), (K.DELIMITER, ")"), (K.NEWLINE, "\\n"),
    ]


def test_empty_string_has_no_literal():
    assert pairs("s = ''\n")[2:4] == [(K.STRING_QUOTE, "'"), (K.STRING_QUOTE, "'")]


def test_string_prefix_joins_opening_quote():
    assert pairs('s = f"{x}"\n')[2:5] == [
        (K.STRING_QUOTE, 'f"'), (K.STRING_LITERAL, "{x}"), (K.STRING_QUOTE, '"'),
    ]
    assert pairs("s = rb'x'\n")[2] == (K.STRING_QUOTE, "rb'")


def test_escaped_quote_stays_in_literal():
    assert pairs('s = "a\\"b"\n')[3] == (K.STRING_LITERAL, 'a\\"b')


def test_unterminated_string_recovers_at_line_end():
    tokens, errors = tokenize('s = "abc\nx = 1\n')
    assert [e.kind for e in errors] == [ErrorKind.UNTERMINATED_STRING]
    assert errors[0].line == 1
    assert [(t.kind, t.lexeme) for t in tokens[2:5]] == [
        (K.STRING_QUOTE, '"'), (K.STRING_LITERAL, "abc"), (K.NEWLINE, "\\n"),
    ]
    assert (K.IDENTIFIER, "x") in [(t.kind, t.lexeme) for t in tokens]


def test_triple_quoted_string_after_assignment():
    tokens, errors = tokenize('x = """a\nb"""\ny = 1\n')
    assert errors == []
    assert [(t.kind, t.lexeme) for t in tokens[2:5]] == [
        (K.STRING_QUOTE, '"""'), (K.STRING_LITERAL, "a\nb"), (K.STRING_QUOTE, '"""'),
    ]
    y = [t for t in tokens if t.lexeme == "y"][0]
    assert y.line == 3


def test_triple_quoted_block_without_assignment_is_discarded():
    tokens, errors = tokenize('"""doc\nstring"""\nx = 1\n')
    assert errors == []
    assert K.STRING_QUOTE not in [t.kind for t in tokens]
    assert K.STRING_LITERAL not in [t.kind for t in tokens]


def test_mismatched_triple_quote():
    assert error_kinds("x = '''abc\"\"\"\n") == [ErrorKind.MISMATCHED_TRIPLE_QUOTE]


def test_unterminated_triple_quote():
    assert error_kinds('x = """abc\n') == [ErrorKind.UNTERMINATED_TRIPLE_QUOTE]
    assert error_kinds('"""abc\n') == [ErrorKind.UNTERMINATED_TRIPLE_QUOTE]


def test_comments_produce_no_tokens():
    assert pairs("x = 1  # note\n") == [
        (K.IDENTIFIER, "x"), (K.OPERATOR, "="), (K.NUMBER, "1"), (K.NEWLINE, "\\n"),
    ]


def test_nested_blocks_dedent_at_end():
    ks = kinds("if a:\n    if b:\n        c\n")
    assert ks.count(K.INDENT) == 2
    assert ks.count(K.DEDENT) == 2
    assert ks[-3:] == [K.DEDENT, K.DEDENT, K.END_OF_FILE]


def test_dedent_to_outer_level():
    ks = kinds("if a:\n    if b:\n        c\nd\n")
    d_index = ks.index(K.IDENTIFIER, ks.index(K.DEDENT))
    assert ks[d_index - 2:d_index] == [K.DEDENT, K.DEDENT]


def test_dedent_to_column_zero_keeps_base_level():
    tokens, errors = tokenize("if a:\n    if b:\n        c\nd\nif e:\n    f\n")
    assert errors == []
    ks = [t.kind for t in tokens]
    assert ks.count(K.INDENT) == ks.count(K.DEDENT) == 3


def test_blank_and_comment_lines_keep_indentation():
    ks = kinds("if a:\n    b\n\n# note\n    c\n")
    assert ks.count(K.INDENT) == 1
    assert ks.count(K.DEDENT) == 1


def test_tab_counts_to_next_multiple_of_eight():
    ks = kinds("if a:\n\tb\n        c\n")
    assert ks.count(K.INDENT) == 1


def test_inconsistent_dedent_is_reported():
    tokens, errors = tokenize("if a:\n        b\n    c\n")
    assert [e.kind for e in errors] == [ErrorKind.INDENTATION]
    assert errors[0].line == 3


def test_indent_and_dedent_balance():
    for source in ("if a:\n  b\n  if c:\n    d\n  e\nf\n", "class A:\n    def m(self):\n        pass\n"):
        ks = kinds(source)
        assert ks.count(K.INDENT) == ks.count(K.DEDENT)


def test_brackets_suppress_newlines():
    ks = kinds("x = [1,\n     2]\n")
    assert ks.count(K.NEWLINE) == 1
    assert K.INDENT not in ks


def test_backslash_joins_lines():
    ks = kinds("x = 1 + \\\n    2\n")
    assert ks.count(K.NEWLINE) == 1
    assert K.INDENT not in ks


def test_messy_input_terminates():
    source = "def (:\n\t  x = 3.4.5e\n'''\n  \"oops\n@@ $ ! ...\n"
    tokens, errors = tokenize(source)
    assert tokens[-1].kind is K.END_OF_FILE
    assert errors


def test_write_tokens_groups_by_line(tmp_path):
    tokens, errors = tokenize("if a:\n    b = 1\n")
    out = tmp_path / "tokens.txt"
    write_tokens(tokens, str(out))
    assert out.read_text(encoding="utf-8").splitlines() == [
        "1. (KEYWORD, if) (IDENTIFIER, a) (OPERATOR, :) (NEWLINE, \\n)",
        "2. (INDENT) (IDENTIFIER, b) (OPERATOR, =) (NUMBER, 1) (NEWLINE, \\n)",
        "3. (DEDENT)",
    ]


def test_write_errors(tmp_path):
    out = tmp_path / "lexical_errors.txt"
    write_errors([], str(out))
    assert out.read_text(encoding="utf-8") == "No lexical errors found.\n"
    _, errors = tokenize("x = 3.14.15\n")
    write_errors(errors, str(out))
    assert out.read_text(encoding="utf-8") == "1. (3.14.15, Multiple decimal points)\n"
