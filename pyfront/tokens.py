from dataclasses import dataclass
from enum import Enum
from typing import Optional


# --- Token Definitions ---
class TokenKind(Enum):
    KEYWORD = "KEYWORD"
    IDENTIFIER = "IDENTIFIER"
    NUMBER = "NUMBER"
    OPERATOR = "OPERATOR"
    DELIMITER = "DELIMITER"
    STRING_QUOTE = "STRING_QUOTE"
    STRING_LITERAL = "STRING_LITERAL"
    NEWLINE = "NEWLINE"
    INDENT = "INDENT"
    DEDENT = "DEDENT"
    ELLIPSIS = "ELLIPSIS"
    END_OF_FILE = "END_OF_FILE"

    def __str__(self):
        return self.value


# Kinds that carry no source text of their own
STRUCTURAL_KINDS = frozenset({
    TokenKind.NEWLINE, TokenKind.INDENT, TokenKind.DEDENT, TokenKind.END_OF_FILE,
})

# Lexeme stored on NEWLINE tokens (backslash + n, keeps dumps one line per source line)
NEWLINE_LEXEME = "\\n"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: str
    line: int
    column: int = 0

    def __repr__(self):
        return f"({self.kind}, {self.lexeme})"


# --- Diagnostics ---
class ErrorKind(Enum):
    # lexical
    UNTERMINATED_STRING = "unterminated string"
    UNTERMINATED_TRIPLE_QUOTE = "unterminated triple-quoted region"
    MISMATCHED_TRIPLE_QUOTE = "mismatched triple quote"
    MULTIPLE_DECIMALS = "multiple decimal points"
    TRAILING_DECIMAL = "trailing decimal point"
    INVALID_EXPONENT = "invalid exponent"
    INVALID_BASE_PREFIX = "invalid base prefix"
    INVALID_COMPLEX = "invalid complex suffix"
    INVALID_SUFFIX = "invalid number suffix"
    UNRECOGNIZED_CHARACTER = "unrecognized character"
    INDENTATION = "indentation error"
    # syntactic
    EXPECTED_TOKEN = "expected token"
    UNEXPECTED_TOKEN = "unexpected token"
    OUTSIDE_LOOP = "outside loop"
    BAD_DICT_KEY = "unsupported dictionary key"
    UNSUPPORTED = "unsupported construct"


@dataclass(frozen=True)
class ErrorRecord:
    line: int
    message: str
    kind: Optional[ErrorKind] = None
    # offending source text, when there is one
    lexeme: str = ""

    def __str__(self):
        return f"Line {self.line}: {self.message}"
