"""Front end for a Python-like language: tokenizer, symbol table and parser."""
from .tokens import Token, TokenKind, ErrorKind, ErrorRecord
from .lexical import tokenize, Tokenizer
from .symbols import build_symbol_table, SymbolTable, SymbolEntry, SymbolKind, ScopeMode
from .parser import parse, Parser, Node, TokenNode, Rule, tree_to_lines, tree_to_dot

__all__ = [
    'Token', 'TokenKind', 'ErrorKind', 'ErrorRecord',
    'tokenize', 'Tokenizer',
    'build_symbol_table', 'SymbolTable', 'SymbolEntry', 'SymbolKind', 'ScopeMode',
    'parse', 'Parser', 'Node', 'TokenNode', 'Rule', 'tree_to_lines', 'tree_to_dot',
]
