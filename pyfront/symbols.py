"""Scope-aware symbol table built from an already tokenized program.

Two passes over the token list: the first records every identifier under the
scope it appears in, the second infers a kind (and sometimes a value) from
simple assignments and from def/class headers.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .tokens import TokenKind

GLOBAL_SCOPE = "global"

# Registered as builtin_function the first time they are seen
BUILTIN_FUNCTIONS = ('print', 'format', 'len', 'range', 'input')

# Headers that open a pseudo-scope in BLOCK mode
BLOCK_KEYWORDS = ('if', 'for', 'while', 'elif', 'else')


class SymbolKind(Enum):
    UNKNOWN = "unknown"
    NUMERIC = "numeric"
    STRING = "string"
    BOOLEAN = "boolean"
    LIST = "list"
    DICT = "dict"
    FUNCTION = "function"
    CLASS = "class"
    BUILTIN_FUNCTION = "builtin_function"

    def __str__(self):
        return self.value


class ScopeMode(Enum):
    LEXICAL = "lexical"  # def/class bodies only
    BLOCK = "block"      # def/class plus if/for/while/elif/else bodies

    def __str__(self):
        return self.value


@dataclass
class SymbolEntry:
    id: int
    name: str
    scope: str
    kind: SymbolKind = SymbolKind.UNKNOWN
    value: Optional[str] = None
    lines: List[int] = field(default_factory=list)


class SymbolTable:
    """Entries keyed by (name, scope), kept in creation order."""

    def __init__(self):
        self.entries = OrderedDict()

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries.values())

    def __contains__(self, key):
        return key in self.entries

    def get(self, name, scope=GLOBAL_SCOPE) -> Optional[SymbolEntry]:
        return self.entries.get((name, scope))

    def add(self, name, scope, line):
        """Insert (name, scope) if new and record the line once."""
        entry = self.entries.get((name, scope))
        if entry is None:
            entry = SymbolEntry(len(self.entries) + 1, name, scope)
            if name in BUILTIN_FUNCTIONS:
                entry.kind = SymbolKind.BUILTIN_FUNCTION
            self.entries[(name, scope)] = entry
        if line not in entry.lines:
            entry.lines.append(line)
        return entry

    def lookup(self, name, scope_chain) -> Optional[SymbolEntry]:
        # innermost scope first
        for scope in scope_chain:
            entry = self.entries.get((name, scope))
            if entry is not None:
                return entry
        return None


class ScopeTracker:
    """Follows def/class (and in BLOCK mode control) bodies through INDENT/DEDENT."""

    def __init__(self, tokens, mode=ScopeMode.LEXICAL):
        self.tokens = tokens
        self.mode = mode
        self.stack = [(GLOBAL_SCOPE, 0)]
        self.depth = 0
        self.pending = None
        # parameters on a def header line belong to the function being declared
        self.header_scope = None
        self.declared_at = -1

    def _kind_at(self, i):
        if i < len(self.tokens):
            return self.tokens[i].kind
        return None

    def step(self, i):
        """Update the scope state for tokens[i]; call before examining it."""
        tok = self.tokens[i]
        if tok.kind is TokenKind.INDENT:
            self.depth += 1
            if self.pending is not None:
                self.stack.append((self.pending, self.depth))
                self.pending = None
        elif tok.kind is TokenKind.DEDENT:
            self.depth = max(self.depth - 1, 0)
            while len(self.stack) > 1 and self.stack[-1][1] > self.depth:
                self.stack.pop()
        elif tok.kind is TokenKind.NEWLINE:
            self.header_scope = None
            # a header with an inline body opens nothing; blank and
            # comment-only lines may sit between a header and its block
            j = i + 1
            while self._kind_at(j) is TokenKind.NEWLINE:
                j += 1
            if self._kind_at(j) is not TokenKind.INDENT:
                self.pending = None
        elif tok.kind is TokenKind.KEYWORD:
            if tok.lexeme in ('def', 'class') and self._kind_at(i + 1) is TokenKind.IDENTIFIER:
                self.pending = self.tokens[i + 1].lexeme
                self.declared_at = i + 1
                if tok.lexeme == 'def':
                    self.header_scope = self.pending
            elif self.mode is ScopeMode.BLOCK and tok.lexeme in BLOCK_KEYWORDS:
                self.pending = tok.lexeme

    def scope_of(self, i):
        if self.header_scope is not None and i > self.declared_at:
            return self.header_scope
        return self.stack[-1][0]

    def chain(self, i):
        names = [name for name, _ in reversed(self.stack)]
        if self.header_scope is not None and i > self.declared_at:
            names.insert(0, self.header_scope)
        return names


class SymbolTableBuilder:
    def __init__(self, tokens, mode=ScopeMode.LEXICAL):
        self.tokens = tokens
        self.mode = mode
        self.table = SymbolTable()

    def build(self) -> SymbolTable:
        self._record_identifiers()
        self._infer_kinds()
        return self.table

    def _peek(self, i):
        if i < len(self.tokens):
            return self.tokens[i]
        return None

    def _record_identifiers(self):
        tracker = ScopeTracker(self.tokens, self.mode)
        for i, tok in enumerate(self.tokens):
            tracker.step(i)
            if tok.kind is TokenKind.IDENTIFIER:
                self.table.add(tok.lexeme, tracker.scope_of(i), tok.line)

    def _infer_kinds(self):
        tracker = ScopeTracker(self.tokens, self.mode)
        for i, tok in enumerate(self.tokens):
            tracker.step(i)
            if tok.kind is TokenKind.KEYWORD and tok.lexeme in ('def', 'class'):
                name = self._peek(i + 1)
                if name is not None and name.kind is TokenKind.IDENTIFIER:
                    entry = self.table.get(name.lexeme, tracker.scope_of(i + 1))
                    if entry is not None:
                        entry.kind = SymbolKind.FUNCTION if tok.lexeme == 'def' else SymbolKind.CLASS
                continue
            if tok.kind is not TokenKind.IDENTIFIER:
                continue
            op = self._peek(i + 1)
            if op is None or op.kind is not TokenKind.OPERATOR or op.lexeme != '=':
                continue
            entry = self.table.get(tok.lexeme, tracker.scope_of(i))
            inferred = self._infer_value(i + 2, tracker.chain(i))
            if entry is not None and inferred is not None:
                entry.kind, entry.value = inferred

    def _infer_value(self, i, scope_chain):
        """Kind and value of the right-hand side starting at tokens[i], or None."""
        rhs = self._peek(i)
        if rhs is None:
            return None
        if rhs.kind is TokenKind.NUMBER:
            return SymbolKind.NUMERIC, rhs.lexeme
        if rhs.kind is TokenKind.STRING_QUOTE:
            literal = self._peek(i + 1)
            if literal is not None and literal.kind is TokenKind.STRING_LITERAL:
                return SymbolKind.STRING, literal.lexeme
            return SymbolKind.STRING, ""
        if rhs.kind is TokenKind.KEYWORD and rhs.lexeme in ('True', 'False'):
            return SymbolKind.BOOLEAN, rhs.lexeme
        if rhs.kind is TokenKind.DELIMITER and rhs.lexeme == '[':
            return SymbolKind.LIST, '[]'
        if rhs.kind is TokenKind.DELIMITER and rhs.lexeme == '{':
            return SymbolKind.DICT, '{}'
        if rhs.kind is TokenKind.IDENTIFIER:
            after = self._peek(i + 1)
            if after is not None and after.kind is TokenKind.DELIMITER and after.lexeme == '(':
                # call result, nothing known
                return None
            source = self.table.lookup(rhs.lexeme, scope_chain)
            if source is not None:
                return source.kind, source.value
        return None


def build_symbol_table(tokens, mode=ScopeMode.LEXICAL) -> SymbolTable:
    return SymbolTableBuilder(tokens, mode).build()


def write_symbol_table(table, filename="symbol_table.txt"):
    """Write the symbol table to a file.

    One header line, then one row per entry in creation order:
    ``id. name | scope | kind | value | lines``.
    """
    try:
        with open(filename, 'w', encoding='utf-8') as f:
            f.write("id. name | scope | kind | value | lines\n")
            for entry in table:
                value = entry.value if entry.value is not None else "-"
                lines = ", ".join(str(ln) for ln in entry.lines)
                f.write(f"{entry.id}. {entry.name} | {entry.scope} | {entry.kind} | {value} | {lines}\n")
    except IOError as e:
        print(f"Error writing symbol table file {filename}: {e}")
