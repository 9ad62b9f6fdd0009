import argparse
import os
import sys

from .lexical import tokenize, write_tokens, write_errors
from .symbols import ScopeMode, build_symbol_table, write_symbol_table
from .parser import parse, write_parse_tree, write_syntax_errors, write_dot

INPUT_FILE = "input.txt"
TOKENS_FILE = "tokens.txt"
LEXICAL_ERRORS_FILE = "lexical_errors.txt"
SYMBOL_TABLE_FILE = "symbol_table.txt"
PARSE_TREE_FILE = "parse_tree.txt"
SYNTAX_ERRORS_FILE = "syntax_errors.txt"
DOT_FILE = "parse_tree.dot"


def main(argv=None):
    ap = argparse.ArgumentParser(prog="pyfront",
                                 description="Tokenize and parse a Python-like source file.")
    ap.add_argument("input", nargs="?", default=INPUT_FILE,
                    help=f"source file (default: {INPUT_FILE})")
    ap.add_argument("-o", "--outdir", default=".",
                    help="directory the output files are written to")
    ap.add_argument("--scope-mode", choices=[m.value for m in ScopeMode], default=ScopeMode.LEXICAL.value,
                    help="lexical: def/class bodies open scopes; block: if/for/while/elif/else do too")
    ap.add_argument("--dot", action="store_true",
                    help=f"also write the parse tree as Graphviz text ({DOT_FILE})")
    args = ap.parse_args(argv)

    try:
        with open(args.input, 'r', encoding='utf-8') as f:
            source_code = f.read()
    except FileNotFoundError:
        print(f"Error: Could not find {args.input}")
        return 1

    os.makedirs(args.outdir, exist_ok=True)

    def out(name):
        return os.path.join(args.outdir, name)

    tokens, lex_errors = tokenize(source_code)
    write_tokens(tokens, out(TOKENS_FILE))
    print(f"Tokenization complete. Output saved to {out(TOKENS_FILE)}")

    write_errors(lex_errors, out(LEXICAL_ERRORS_FILE))
    if lex_errors:
        print(f"{len(lex_errors)} lexical error(s) recorded in {out(LEXICAL_ERRORS_FILE)}")
    else:
        print(f"No lexical errors found. {out(LEXICAL_ERRORS_FILE)} created with a success message.")

    table = build_symbol_table(tokens, ScopeMode(args.scope_mode))
    write_symbol_table(table, out(SYMBOL_TABLE_FILE))
    print(f"Symbol table saved to {out(SYMBOL_TABLE_FILE)}")

    root, syntax_errors = parse(tokens)
    write_parse_tree(root, out(PARSE_TREE_FILE))
    write_syntax_errors(syntax_errors, out(SYNTAX_ERRORS_FILE))
    print(f"Wrote {out(PARSE_TREE_FILE)} and {out(SYNTAX_ERRORS_FILE)} "
          f"({len(syntax_errors)} syntax error(s))")

    if args.dot:
        write_dot(root, out(DOT_FILE))
        print(f"Parse tree graph saved to {out(DOT_FILE)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
