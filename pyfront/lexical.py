from collections import OrderedDict
from enum import Enum
from typing import List, Optional, Tuple

from .classify import (
    DECIMAL_DIGITS, BASE_DIGITS, OPERATORS, OPERATOR_START_CHARS, DELIMITERS,
    is_keyword, is_number, longest_number_prefix,
)
from .tokens import Token, TokenKind, ErrorKind, ErrorRecord, NEWLINE_LEXEME, STRUCTURAL_KINDS

# Columns a tab advances the indentation width to (next multiple of)
TAB_SIZE = 8

QUOTES = frozenset('\'"')
SIGNS = frozenset('+-')
INLINE_WHITESPACE = frozenset(' \t\f\r')
OPENING_BRACKETS = frozenset('([{')
CLOSING_BRACKETS = frozenset(')]}')

# Identifier texts that may directly precede a quote as a string prefix
STRING_PREFIXES = frozenset({'r', 'b', 'u', 'f', 'rb', 'br', 'fr', 'rf'})


class State(Enum):
    START = 0
    IN_IDENTIFIER = 1
    IN_NUMBER = 2
    IN_OPERATOR = 3
    IN_STRING = 4
    IN_MULTILINE_STRING = 5
    IN_COMMENT = 6
    IN_MULTILINE_COMMENT = 7


class Tokenizer:
    def __init__(self, source_code):
        self.src = source_code
        self.pos = 0
        self.length = len(source_code)
        self.lineno = 1
        self.line_start = 0  # position of the first character of the current line

        self.state = State.START
        self.tokens: List[Token] = []
        self.errors: List[ErrorRecord] = []

        # Pending token: text so far plus where it started
        self.buf = ""
        self.tok_pos = 0
        self.tok_line = 1
        self.tok_col = 1

        # String bookkeeping
        self.quote = ''
        self.escape = False
        self.lit_line = 1
        self.lit_col = 1

        # Indentation tracking; the stack is strictly increasing from 0
        self.indent_stack = [0]
        self.at_line_start = True
        self.bracket_depth = 0

        self._handlers = {
            State.START: self._start,
            State.IN_IDENTIFIER: self._in_identifier,
            State.IN_NUMBER: self._in_number,
            State.IN_OPERATOR: self._in_operator,
            State.IN_STRING: self._in_string,
            State.IN_MULTILINE_STRING: self._in_multiline_string,
            State.IN_COMMENT: self._in_comment,
            State.IN_MULTILINE_COMMENT: self._in_multiline_comment,
        }

    # ---------- low level cursor ----------
    def peek(self, offset=0) -> Optional[str]:
        if self.pos + offset >= self.length:
            return None
        return self.src[self.pos + offset]

    def advance(self):
        if self.pos >= self.length:
            return None
        char = self.src[self.pos]
        self.pos += 1
        if char == '\n':
            self.lineno += 1
            self.line_start = self.pos
        return char

    def column(self):
        return self.pos - self.line_start + 1

    def log_error(self, lineno, thrown, kind, message=None):
        if message is None:
            message = kind.value.capitalize()
        self.errors.append(ErrorRecord(lineno, message, kind, thrown))

    def emit(self, kind, lexeme, line=None, col=None):
        if line is None:
            line, col = self.tok_line, self.tok_col
        self.tokens.append(Token(kind, lexeme, line, col))

    def _begin(self, state):
        self.state = state
        self.buf = ""
        self.tok_pos = self.pos
        self.tok_line = self.lineno
        self.tok_col = self.column()

    # ---------- driver ----------
    def tokenize(self) -> Tuple[List[Token], List[ErrorRecord]]:
        while True:
            if self.state is State.START and self.at_line_start and self.bracket_depth == 0:
                self._measure_indent()
            if self.pos >= self.length:
                if self.state is State.START:
                    break
                # flushing may rewind the cursor (number with a re-lexed suffix)
                self._flush_at_eof()
                continue
            self._handlers[self.state](self.src[self.pos])
        self._finish()
        return self.tokens, self.errors

    def _flush_at_eof(self):
        if self.state is State.IN_IDENTIFIER:
            self._flush_identifier()
        elif self.state is State.IN_NUMBER:
            self._finish_number()
        elif self.state is State.IN_OPERATOR:
            self._flush_operator()
        elif self.state is State.IN_STRING:
            self.log_error(self.tok_line, self.buf, ErrorKind.UNTERMINATED_STRING,
                           f"String started with {self.quote} was not closed before end of file")
            self._emit_literal()
        elif self.state is State.IN_MULTILINE_STRING:
            self.log_error(self.tok_line, self.quote * 3, ErrorKind.UNTERMINATED_TRIPLE_QUOTE,
                           f"String started with {self.quote * 3} was not closed before end of file")
            self._emit_literal()
        elif self.state is State.IN_MULTILINE_COMMENT:
            self.log_error(self.tok_line, self.quote * 3, ErrorKind.UNTERMINATED_TRIPLE_QUOTE,
                           f"Comment started with {self.quote * 3} was not closed before end of file")
        self.state = State.START

    def _finish(self):
        last = self.tokens[-1].kind if self.tokens else None
        if last is not None and last not in STRUCTURAL_KINDS:
            # last line had content but no newline
            self.emit(TokenKind.NEWLINE, NEWLINE_LEXEME, self.lineno, self.column())
        while len(self.indent_stack) > 1:
            self.indent_stack.pop()
            self.emit(TokenKind.DEDENT, "", self.lineno, 1)
        self.emit(TokenKind.END_OF_FILE, "", self.lineno, self.column())

    # ---------- indentation ----------
    def _measure_indent(self):
        width = 0
        while self.peek() is not None and self.peek() in INLINE_WHITESPACE:
            ch = self.advance()
            if ch == '\t':
                width += TAB_SIZE - (width % TAB_SIZE)
            elif ch == ' ':
                width += 1
        self.at_line_start = False
        nxt = self.peek()
        # blank and comment-only lines leave the indentation alone
        if nxt is None or nxt == '\n' or nxt == '#':
            return
        self._indent_to(width)

    def _indent_to(self, width):
        line, col = self.lineno, self.column()
        if width > self.indent_stack[-1]:
            self.indent_stack.append(width)
            self.emit(TokenKind.INDENT, "", line, col)
            return
        # widths are never negative, so the base level 0 is never popped
        while len(self.indent_stack) > 1 and width < self.indent_stack[-1]:
            self.indent_stack.pop()
            self.emit(TokenKind.DEDENT, "", line, col)
        if width != self.indent_stack[-1]:
            self.log_error(line, f"width {width}", ErrorKind.INDENTATION,
                           "Unindent does not match any outer indentation level")

    # ---------- states ----------
    def _start(self, char):
        # 1. Whitespace and line structure
        if char in INLINE_WHITESPACE:
            self.advance()
            return
        if char == '\n':
            line, col = self.lineno, self.column()
            self.advance()
            if self.bracket_depth == 0:
                self.emit(TokenKind.NEWLINE, NEWLINE_LEXEME, line, col)
                self.at_line_start = True
            return
        if char == '\\' and self._line_continues():
            return

        # 2. Ellipsis before any '.' handling
        if char == '.' and self.src.startswith('...', self.pos):
            line, col = self.lineno, self.column()
            self.pos += 3
            self.emit(TokenKind.ELLIPSIS, '...', line, col)
            return

        # 3. Identifiers and keywords
        if char.isalpha() or char == '_':
            self._begin(State.IN_IDENTIFIER)
            self.buf += self.advance()
            return

        # 4. Numbers (including '.5' and a negative literal where no operand precedes)
        if char in DECIMAL_DIGITS or (char == '.' and self.peek(1) in DECIMAL_DIGITS):
            self._begin(State.IN_NUMBER)
            self.buf += self.advance()
            return
        if char == '-' and self.peek(1) in DECIMAL_DIGITS and self._sign_allowed():
            self._begin(State.IN_NUMBER)
            self.buf += self.advance()
            return

        # 5. Strings and comments
        if char in QUOTES:
            self._begin(State.IN_STRING)
            self._begin_string('')
            return
        if char == '#':
            self.state = State.IN_COMMENT
            self.advance()
            return

        # 6. Operators (':' is an operator start for ':=')
        if char == ':' or char in OPERATOR_START_CHARS:
            self._begin(State.IN_OPERATOR)
            self.buf += self.advance()
            return

        # 7. Delimiters
        if char in DELIMITERS:
            line, col = self.lineno, self.column()
            self.advance()
            if char in OPENING_BRACKETS:
                self.bracket_depth += 1
            elif char in CLOSING_BRACKETS and self.bracket_depth > 0:
                self.bracket_depth -= 1
            self.emit(TokenKind.DELIMITER, char, line, col)
            return

        # 8. Illegal character
        self.log_error(self.lineno, char, ErrorKind.UNRECOGNIZED_CHARACTER)
        self.advance()

    def _line_continues(self):
        """Consume a backslash-newline pair (explicit line joining)."""
        offset = 1
        if self.peek(offset) == '\r':
            offset += 1
        if self.peek(offset) != '\n':
            return False
        for _ in range(offset + 1):
            self.advance()
        return True

    def _sign_allowed(self):
        if not self.tokens:
            return True
        last = self.tokens[-1]
        if last.kind is TokenKind.OPERATOR:
            return True
        return last.kind is TokenKind.DELIMITER and last.lexeme not in CLOSING_BRACKETS

    def _in_identifier(self, char):
        if char.isalnum() or char == '_':
            self.buf += self.advance()
            return
        if char in QUOTES and self.buf.lower() in STRING_PREFIXES:
            self._begin_string(self.buf)
            return
        self._flush_identifier()

    def _flush_identifier(self):
        kind = TokenKind.KEYWORD if is_keyword(self.buf) else TokenKind.IDENTIFIER
        self.emit(kind, self.buf)
        self.state = State.START

    def _in_number(self, char):
        if char == '.' and self.src.startswith('...', self.pos):
            self._finish_number()
            return
        if char.isalnum() or char == '_' or char == '.':
            self.buf += self.advance()
            body = self.buf.lstrip('-')
            is_hex = len(body) > 1 and body[0] == '0' and body[1] in 'xX'
            if char in 'eE' and not is_hex and self.peek() in SIGNS:
                self.buf += self.advance()
            return
        self._finish_number()

    def _finish_number(self):
        text = self.buf
        sign = '-' if text.startswith('-') else ''
        body = text[len(sign):]
        self.state = State.START

        if is_number(body):
            self.emit(TokenKind.NUMBER, text)
            return

        keep = longest_number_prefix(body)
        kind = self._classify_bad_number(body, keep)
        if keep:
            self.emit(TokenKind.NUMBER, sign + body[:keep])
        self.log_error(self.tok_line, text, kind)

        leftover = body[keep:]
        if kind is ErrorKind.INVALID_SUFFIX and (leftover[0].isalpha() or leftover[0] == '_'):
            # restart lexing at the suffix, which begins an identifier
            self.pos = self.tok_pos + len(sign) + keep

    @staticmethod
    def _classify_bad_number(body, keep):
        leftover = body[keep:]
        if len(body) >= 2 and body[0] == '0' and body[1].lower() in BASE_DIGITS:
            return ErrorKind.INVALID_BASE_PREFIX
        if body.count('.') > 1:
            return ErrorKind.MULTIPLE_DECIMALS
        if leftover.startswith('.'):
            return ErrorKind.TRAILING_DECIMAL
        if leftover[0] in 'jJ':
            return ErrorKind.INVALID_COMPLEX
        if leftover[0] in 'eE':
            return ErrorKind.INVALID_EXPONENT
        return ErrorKind.INVALID_SUFFIX

    def _in_operator(self, char):
        if self.buf == ':':
            # walrus, otherwise a plain ':'
            if char == '=':
                self.buf += self.advance()
            self._flush_operator()
            return
        if self.buf + char in OPERATORS:
            self.buf += self.advance()
            return
        self._flush_operator()

    def _flush_operator(self):
        if self.buf in OPERATORS or self.buf == ':':
            self.emit(TokenKind.OPERATOR, self.buf)
        else:
            self.log_error(self.tok_line, self.buf, ErrorKind.UNRECOGNIZED_CHARACTER)
        self.state = State.START

    # ---------- strings ----------
    def _begin_string(self, prefix):
        """Open a string at the quote under the cursor; tok_* already point at the prefix."""
        quote = self.peek()
        self.quote = quote
        self.escape = False
        self.buf = ""
        if self.src.startswith(quote * 3, self.pos):
            for _ in range(3):
                self.advance()
            if self._preceded_by_assignment(self.tok_pos):
                self.emit(TokenKind.STRING_QUOTE, prefix + quote * 3)
                self.state = State.IN_MULTILINE_STRING
            else:
                # documentation comment, discarded
                self.state = State.IN_MULTILINE_COMMENT
        else:
            self.advance()
            self.emit(TokenKind.STRING_QUOTE, prefix + quote)
            self.state = State.IN_STRING
        self.lit_line, self.lit_col = self.lineno, self.column()

    def _preceded_by_assignment(self, start):
        j = start - 1
        while j >= 0 and self.src[j].isspace():
            j -= 1
        return j >= 0 and self.src[j] == '='

    def _emit_literal(self):
        if self.buf:
            self.emit(TokenKind.STRING_LITERAL, self.buf, self.lit_line, self.lit_col)
        self.buf = ""

    def _in_string(self, char):
        if self.escape:
            self.buf += self.advance()
            self.escape = False
            return
        if char == '\\':
            self.buf += self.advance()
            self.escape = True
            return
        if char == self.quote:
            self._emit_literal()
            line, col = self.lineno, self.column()
            self.advance()
            self.emit(TokenKind.STRING_QUOTE, char, line, col)
            self.state = State.START
            return
        if char == '\n':
            # leave the newline for START so the NEWLINE token is still produced
            self.log_error(self.tok_line, self.buf, ErrorKind.UNTERMINATED_STRING,
                           f"String started with {self.quote} was not closed before end of line {self.tok_line}")
            self._emit_literal()
            self.state = State.START
            return
        self.buf += self.advance()

    def _in_multiline_string(self, char):
        if char in QUOTES and self.src.startswith(char * 3, self.pos):
            if char != self.quote:
                self.log_error(self.lineno, char * 3, ErrorKind.MISMATCHED_TRIPLE_QUOTE,
                               f"String started with {self.quote * 3} at line {self.tok_line} "
                               f"but closed with {char * 3}")
            self._emit_literal()
            line, col = self.lineno, self.column()
            self.pos += 3
            self.emit(TokenKind.STRING_QUOTE, char * 3, line, col)
            self.state = State.START
            return
        if char == '\\':
            self.buf += self.advance()
            if self.peek() is not None:
                self.buf += self.advance()
            return
        self.buf += self.advance()

    def _in_comment(self, char):
        if char == '\n':
            self.state = State.START
            return
        self.advance()

    def _in_multiline_comment(self, char):
        if char in QUOTES and self.src.startswith(char * 3, self.pos):
            if char != self.quote:
                self.log_error(self.lineno, char * 3, ErrorKind.MISMATCHED_TRIPLE_QUOTE,
                               f"Comment started with {self.quote * 3} at line {self.tok_line} "
                               f"but closed with {char * 3}")
            self.pos += 3
            self.state = State.START
            return
        if char == '\\':
            self.advance()
            if self.peek() is not None:
                self.advance()
            return
        self.advance()


def tokenize(source_code):
    """Tokenize source text; returns (tokens, lexical errors). Never raises on bad input."""
    return Tokenizer(source_code).tokenize()


# ---------- output files ----------
def format_token(token):
    if token.lexeme:
        return f"({token.kind}, {token.lexeme})"
    return f"({token.kind})"


def write_tokens(tokens, filename="tokens.txt"):
    lines_output = OrderedDict()
    for token in tokens:
        if token.kind is TokenKind.END_OF_FILE:
            break
        lines_output.setdefault(token.line, []).append(format_token(token))
    try:
        with open(filename, 'w', encoding='utf-8') as f:
            for lineno in sorted(lines_output.keys()):
                line_content = " ".join(lines_output[lineno])
                f.write(f"{lineno}. {line_content}\n")
    except IOError as e:
        print(f"Error writing to {filename}: {e}")


def write_errors(errors, filename="lexical_errors.txt"):
    try:
        with open(filename, 'w', encoding='utf-8') as f:
            if not errors:
                f.write('No lexical errors found.\n')
                return
            for err in errors:
                f.write(f"{err.line}. ({err.lexeme}, {err.message})\n")
    except IOError as e:
        print(f"Error writing lexical errors file {filename}: {e}")
