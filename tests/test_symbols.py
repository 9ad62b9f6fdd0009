from pyfront.lexical import tokenize
from pyfront.symbols import (
    build_symbol_table, write_symbol_table, ScopeMode, SymbolKind, GLOBAL_SCOPE,
)


def table_for(source, mode=ScopeMode.LEXICAL):
    tokens, _ = tokenize(source)
    return build_symbol_table(tokens, mode)


def test_numeric_assignment():
    table = table_for("x = 5\n")
    assert len(table) == 1
    entry = table.get("x", GLOBAL_SCOPE)
    assert entry.kind is SymbolKind.NUMERIC
    assert entry.value == "5"
    assert entry.lines == [1]


def test_def_marks_function():
    table = table_for("def f():\n    return 1\n")
    assert table.get("f").kind is SymbolKind.FUNCTION


def test_class_marks_class():
    table = table_for("class C:\n    pass\n")
    assert table.get("C").kind is SymbolKind.CLASS


def test_literal_kinds():
    table = table_for('s = "hi"\ne = ""\nb = True\nl = [1]\nd = {}\nn = None\n')
    assert (table.get("s").kind, table.get("s").value) == (SymbolKind.STRING, "hi")
    assert (table.get("e").kind, table.get("e").value) == (SymbolKind.STRING, "")
    assert (table.get("b").kind, table.get("b").value) == (SymbolKind.BOOLEAN, "True")
    assert (table.get("l").kind, table.get("l").value) == (SymbolKind.LIST, "[]")
    assert (table.get("d").kind, table.get("d").value) == (SymbolKind.DICT, "{}")
    assert table.get("n").kind is SymbolKind.UNKNOWN


def test_identifier_copy_is_single_hop():
    table = table_for("a = 1\nb = a\n")
    assert (table.get("b").kind, table.get("b").value) == (SymbolKind.NUMERIC, "1")


def test_call_result_is_not_copied():
    table = table_for("def f():\n    return 1\nb = f()\n")
    assert table.get("b").kind is SymbolKind.UNKNOWN


def test_builtins_registered_on_first_sighting():
    table = table_for("print(len(x))\n")
    assert table.get("print").kind is SymbolKind.BUILTIN_FUNCTION
    assert table.get("len").kind is SymbolKind.BUILTIN_FUNCTION
    assert table.get("x").kind is SymbolKind.UNKNOWN


def test_lines_are_not_repeated():
    table = table_for("x = 1\nx = x + 1\nprint(x)\n")
    assert table.get("x").lines == [1, 2, 3]


def test_ids_follow_creation_order():
    table = table_for("b = 1\na = 2\nb = 3\n")
    assert [(e.id, e.name) for e in table] == [(1, "b"), (2, "a")]


def test_function_body_is_its_own_scope():
    table = table_for("def f():\n    x = 1\nx = 2\n")
    assert table.get("x", "f").value == "1"
    assert table.get("x", GLOBAL_SCOPE).value == "2"


def test_parameters_belong_to_function():
    table = table_for("def f(a):\n    return a\n")
    assert ("a", "f") in table
    assert ("a", GLOBAL_SCOPE) not in table
    assert table.get("a", "f").lines == [1, 2]


def test_inline_body_opens_no_scope():
    table = table_for("def f(): return 1\nz = 2\n")
    assert ("z", GLOBAL_SCOPE) in table


def test_nested_scopes_pop_on_dedent():
    table = table_for("class A:\n    def m(self):\n        y = 1\n    z = 2\nw = 3\n")
    assert ("y", "m") in table
    assert ("z", "A") in table
    assert ("w", GLOBAL_SCOPE) in table
    assert table.get("m", "A").kind is SymbolKind.FUNCTION


def test_copy_resolves_through_enclosing_scopes():
    table = table_for("g = 'hi'\ndef f():\n    h = g\n")
    entry = table.get("h", "f")
    assert (entry.kind, entry.value) == (SymbolKind.STRING, "hi")


def test_block_mode_scopes_control_bodies():
    source = "if a:\n    y = 1\n"
    assert ("y", GLOBAL_SCOPE) in table_for(source)
    assert ("y", "if") in table_for(source, ScopeMode.BLOCK)


def test_lookup_prefers_innermost():
    table = table_for("x = 1\ndef f():\n    x = 'a'\n")
    assert table.lookup("x", ["f", GLOBAL_SCOPE]).kind is SymbolKind.STRING
    assert table.lookup("x", [GLOBAL_SCOPE]).kind is SymbolKind.NUMERIC
    assert table.lookup("missing", ["f", GLOBAL_SCOPE]) is None


def test_write_symbol_table(tmp_path):
    out = tmp_path / "symbol_table.txt"
    write_symbol_table(table_for("x = 5\ndef f(a):\n    return a\n"), str(out))
    assert out.read_text(encoding="utf-8").splitlines() == [
        "id. name | scope | kind | value | lines",
        "1. x | global | numeric | 5 | 1",
        "2. f | global | function | - | 2",
        "3. a | f | unknown | - | 2, 3",
    ]


def test_comment_or_blank_line_before_body_keeps_scope():
    for source in ("def f():\n    # doc\n    y = 1\n", "def f():\n\n\n    y = 1\n"):
        table = table_for(source)
        assert table.get("y", "f") is not None
        assert ("y", GLOBAL_SCOPE) not in table
