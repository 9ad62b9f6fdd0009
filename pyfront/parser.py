# Recursive descent parser for the Python-like token stream.
# Produces a concrete parse tree plus a list of syntax errors; a malformed
# statement is reported, skipped up to a synchronization point, and parsing
# carries on.

from enum import Enum
from itertools import count
from typing import List, Optional

from .tokens import Token, TokenKind, ErrorKind, ErrorRecord


class Rule(Enum):
    PROGRAM = "program"
    STATEMENT = "statement"
    ASSIGNMENT = "assignment"
    ASSIGN_TARGET = "assign_target"
    AUGMENTED_ASSIGNMENT = "augmented_assignment"
    FUNC_CALL = "func_call"
    ARGUMENT_LIST = "argument_list"
    KEYWORD_ARGUMENT = "keyword_argument"
    EXPRESSION_STMT = "expression_stmt"
    IMPORT_STMT = "import_stmt"
    IMPORT_ITEM = "import_item"
    DOTTED_NAME = "dotted_name"
    FUNC_DEF = "func_def"
    PARAM_LIST = "param_list"
    PARAM = "param"
    TYPE = "type"
    CLASS_DEF = "class_def"
    CLASS_BASES = "class_bases"
    TRY_STMT = "try_stmt"
    EXCEPT_CLAUSE = "except_clause"
    FINALLY_CLAUSE = "finally_clause"
    RETURN_STMT = "return_stmt"
    IF_STMT = "if_stmt"
    ELIF_STMT = "elif_stmt"
    ELSE_PART = "else_part"
    WHILE_STMT = "while_stmt"
    FOR_STMT = "for_stmt"
    BREAK_STMT = "break_stmt"
    CONTINUE_STMT = "continue_stmt"
    DEL_STMT = "del_stmt"
    PASS_STMT = "pass_stmt"
    RAISE_STMT = "raise_stmt"
    STATEMENT_LIST = "statement_list"
    LOOP_STATEMENT_LIST = "loop_statement_list"
    LOOP_STATEMENT = "loop_statement"
    EXPRESSION = "expression"
    INLINE_IF_ELSE = "inline_if_else"
    BOOL_TERM = "bool_term"
    BOOL_FACTOR = "bool_factor"
    REL_EXPR = "rel_expr"
    REL_OP = "rel_op"
    ARITH_EXPR = "arith_expr"
    TERM = "term"
    FACTOR = "factor"
    TRAILER = "trailer"
    STRING = "string"
    LIST_LITERAL = "list_literal"
    DICT_LITERAL = "dict_literal"
    DICT_PAIR = "dict_pair"

    def __str__(self):
        return self.value


# Token kinds synchronize() stops at
SYNC_KINDS = (TokenKind.KEYWORD, TokenKind.IDENTIFIER, TokenKind.DEDENT,
              TokenKind.NEWLINE, TokenKind.END_OF_FILE)

AUGMENTED_OPS = frozenset({'+=', '-=', '*=', '/=', '%=', '//=', '**=',
                           '&=', '|=', '^=', '<<=', '>>='})
COMPARISON_OPS = frozenset({'<', '>', '<=', '>=', '==', '!='})
ARITH_OPS = frozenset({'+', '-', '|', '&', '^', '<<', '>>'})
TERM_OPS = frozenset({'*', '/', '//', '%', '**'})
UNARY_OPS = frozenset({'+', '-', '~'})
LITERAL_KEYWORDS = frozenset({'True', 'False', 'None'})
LOOP_KEYWORDS = frozenset({'for', 'while'})
FUNCTION_KEYWORDS = frozenset({'def', 'class'})


# ---------- Parse Tree Node ----------
class Node:
    def __init__(self, name, value: Optional[str] = None, children: Optional[List['Node']] = None):
        self.name = name
        self.value = value
        self.children = children or []

    @property
    def label(self) -> str:
        if self.value:
            return f"{self.name} ({self.value})"
        return str(self.name)

    def add(self, node: Optional['Node']):
        # failed matches hand back None and leave no leaf behind
        if node is not None:
            self.children.append(node)

    def find(self, name) -> Optional['Node']:
        """First node called name in pre-order, or None."""
        if self.name == name:
            return self
        for child in self.children:
            found = child.find(name)
            if found is not None:
                return found
        return None

    def __repr__(self):
        return f"Node({self.label})"


class TokenNode(Node):
    def __init__(self, token: Token):
        super().__init__(token.kind, token.lexeme or None)
        self.token = token


# pretty print the tree with box-drawing connectors
def tree_to_lines(node: Node, prefix: str = '', is_last: bool = True, is_root: bool = True) -> List[str]:
    lines = []
    connector = '└── ' if is_last else '├── '
    lines.append(node.label if is_root else prefix + connector + node.label)
    if node.children:
        new_prefix = '' if is_root else prefix + ('    ' if is_last else '│   ')
        for i, child in enumerate(node.children):
            lines.extend(tree_to_lines(child, new_prefix, i == len(node.children) - 1, False))
    return lines


def _dot_escape(text: str) -> str:
    return text.replace('\\', '\\\\').replace('"', '\\"')


def tree_to_dot(root: Node) -> str:
    """Graphviz description of the tree; nodes are numbered in pre-order."""
    lines = [
        'digraph ParseTree {',
        '    node [shape=box, fontname="Arial"];',
        '    edge [arrowhead=vee];',
        '    rankdir=TB;',
    ]
    ids = count()

    def visit(node):
        node_id = next(ids)
        label = _dot_escape(str(node.name))
        if node.value:
            label += '\\n' + _dot_escape(node.value)
        lines.append(f'    node{node_id} [label="{label}"];')
        for child in node.children:
            child_id = visit(child)
            lines.append(f'    node{node_id} -> node{child_id};')
        return node_id

    visit(root)
    lines.append('}')
    return '\n'.join(lines) + '\n'


def describe(token: Token) -> str:
    if token.lexeme:
        return f"{token.kind} '{token.lexeme}'"
    return str(token.kind)


# ---------- Parser ----------
class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].kind is not TokenKind.END_OF_FILE:
            line = self.tokens[-1].line if self.tokens else 1
            self.tokens.append(Token(TokenKind.END_OF_FILE, "", line))
        self.i = 0
        self.errors: List[ErrorRecord] = []
        self.recovering = False

    def peek(self, offset=0) -> Token:
        idx = min(self.i + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def cur(self) -> Token:
        return self.peek()

    def advance(self):
        if self.cur().kind is not TokenKind.END_OF_FILE:
            self.i += 1

    def check(self, kind, lexeme=None, offset=0) -> bool:
        t = self.peek(offset)
        return t.kind is kind and (lexeme is None or t.lexeme == lexeme)

    def check_any(self, kind, lexemes, offset=0) -> bool:
        t = self.peek(offset)
        return t.kind is kind and t.lexeme in lexemes

    def take(self) -> TokenNode:
        """Consume the current token unconditionally."""
        node = TokenNode(self.cur())
        self.advance()
        self.recovering = False
        return node

    def match(self, kind, lexeme=None) -> Optional[TokenNode]:
        if self.check(kind, lexeme):
            return self.take()
        if not self.recovering:
            expected = f"{kind} '{lexeme}'" if lexeme else str(kind)
            self.error(f"expected {expected} but found {describe(self.cur())}", ErrorKind.EXPECTED_TOKEN)
        return None

    def report(self, msg, kind, line=None):
        t = self.cur()
        self.errors.append(ErrorRecord(t.line if line is None else line, msg, kind, t.lexeme))

    def error(self, msg, kind, line=None):
        # one diagnostic per desynchronization
        if self.recovering:
            return
        self.report(msg, kind, line)
        self.synchronize()

    def synchronize(self):
        start = self.i
        while self.cur().kind not in SYNC_KINDS:
            self.advance()
        if self.cur().kind in (TokenKind.NEWLINE, TokenKind.DEDENT):
            self.advance()
        if self.i == start:
            self.advance()
        self.recovering = True

    # Grammar functions follow. Each returns a Node.

    def parse(self) -> Node:
        return self.program()

    def program(self) -> Node:
        node = Node(Rule.PROGRAM)
        while not self.check(TokenKind.END_OF_FILE):
            node.add(self.statement())
        return node

    def statement_list(self) -> Optional[Node]:
        if self.recovering:
            self.recovering = False
            return None
        node = Node(Rule.STATEMENT_LIST)
        while not self.check(TokenKind.DEDENT) and not self.check(TokenKind.END_OF_FILE):
            node.add(self.statement())
        return node

    def loop_statement_list(self) -> Optional[Node]:
        if self.recovering:
            self.recovering = False
            return None
        node = Node(Rule.LOOP_STATEMENT_LIST)
        while not self.check(TokenKind.DEDENT) and not self.check(TokenKind.END_OF_FILE):
            node.add(self.loop_statement())
        return node

    def loop_statement(self) -> Optional[Node]:
        stmt = self.statement()
        if stmt is None:
            return None
        return Node(Rule.LOOP_STATEMENT, children=[stmt])

    def statement(self) -> Optional[Node]:
        if self.recovering:
            self.recovering = False
            return None
        node = Node(Rule.STATEMENT)
        t = self.cur()

        if t.kind is TokenKind.NEWLINE:
            node.add(self.take())
        elif t.kind is TokenKind.INDENT:
            # reported, then the block is parsed as if it belonged here
            self.report(f"unexpected {describe(t)}", ErrorKind.UNEXPECTED_TOKEN)
            node.add(self.take())
            node.add(self.statement_list())
            node.add(self.match(TokenKind.DEDENT))
        elif t.kind is TokenKind.KEYWORD:
            handler = self._keyword_handlers().get(t.lexeme)
            if handler is not None:
                node.add(handler())
            elif t.lexeme in LITERAL_KEYWORDS or t.lexeme == 'not':
                node.add(self.expression_stmt())
            else:
                self.error(f"unexpected {describe(t)}", ErrorKind.UNEXPECTED_TOKEN)
        elif t.kind is TokenKind.IDENTIFIER:
            op = self._assignment_operator()
            if op == '=':
                node.add(self.assignment())
            elif op is not None:
                node.add(self.augmented_assignment())
            elif self.check(TokenKind.DELIMITER, '(', 1) and self._call_ends_line():
                node.add(self.func_call())
                node.add(self.match(TokenKind.NEWLINE))
            else:
                node.add(self.expression_stmt())
        elif t.kind in (TokenKind.STRING_QUOTE, TokenKind.NUMBER, TokenKind.ELLIPSIS):
            node.add(self.expression_stmt())
        else:
            self.error(f"unexpected {describe(t)}", ErrorKind.UNEXPECTED_TOKEN)
        return node

    def _keyword_handlers(self):
        return {
            'import': self.import_stmt,
            'from': self.import_stmt,
            'def': self.func_def,
            'class': self.class_def,
            'try': self.try_stmt,
            'return': self.return_stmt,
            'if': self.if_stmt,
            'while': self.while_stmt,
            'for': self.for_stmt,
            'break': self.break_stmt,
            'continue': self.continue_stmt,
            'del': self.del_stmt,
            'pass': self.pass_stmt,
            'raise': self.raise_stmt,
        }

    def _assignment_operator(self) -> Optional[str]:
        """'=' or an augmented operator found at bracket depth 0 on this line."""
        depth = 0
        j = 0
        while True:
            t = self.peek(j)
            if t.kind in (TokenKind.NEWLINE, TokenKind.END_OF_FILE, TokenKind.INDENT, TokenKind.DEDENT):
                return None
            if t.kind is TokenKind.DELIMITER and t.lexeme in '([{':
                depth += 1
            elif t.kind is TokenKind.DELIMITER and t.lexeme in ')]}':
                depth -= 1
            elif t.kind is TokenKind.OPERATOR and depth == 0 and (t.lexeme == '=' or t.lexeme in AUGMENTED_OPS):
                return t.lexeme
            j += 1

    def _call_ends_line(self) -> bool:
        """True when NAME ( ... ) is the whole logical line."""
        depth = 0
        j = 1
        while True:
            t = self.peek(j)
            if t.kind in (TokenKind.NEWLINE, TokenKind.END_OF_FILE):
                return False
            if t.kind is TokenKind.DELIMITER and t.lexeme in '([{':
                depth += 1
            elif t.kind is TokenKind.DELIMITER and t.lexeme in ')]}':
                depth -= 1
                if depth == 0:
                    return self.check(TokenKind.NEWLINE, offset=j + 1)
            j += 1

    def _suite(self, parent: Node, loop=False):
        """Body after the colon: an indented block, or one statement on the same line."""
        if not self.recovering and not self.check(TokenKind.NEWLINE) and not self.check(TokenKind.INDENT):
            parent.add(self.loop_statement() if loop else self.statement())
            return
        parent.add(self.match(TokenKind.NEWLINE))
        # blank and comment-only lines before the first body line
        while self.check(TokenKind.NEWLINE):
            parent.add(self.take())
        indent = self.match(TokenKind.INDENT)
        if indent is None:
            return
        parent.add(indent)
        parent.add(self.loop_statement_list() if loop else self.statement_list())
        parent.add(self.match(TokenKind.DEDENT))

    # ----- simple statements -----
    def assignment(self) -> Node:
        node = Node(Rule.ASSIGNMENT)
        node.add(self.assign_target())
        if self.check(TokenKind.OPERATOR, ':'):
            # annotated target
            node.add(self.take())
            node.add(self.type_())
        node.add(self.match(TokenKind.OPERATOR, '='))
        node.add(self.expression())
        while self.check(TokenKind.DELIMITER, ','):
            node.add(self.take())
            node.add(self.expression())
        node.add(self.match(TokenKind.NEWLINE))
        return node

    def assign_target(self) -> Node:
        node = Node(Rule.ASSIGN_TARGET)
        node.add(self.match(TokenKind.IDENTIFIER))
        self._trailers(node)
        while self.check(TokenKind.DELIMITER, ','):
            node.add(self.take())
            node.add(self.match(TokenKind.IDENTIFIER))
            self._trailers(node)
        return node

    def augmented_assignment(self) -> Node:
        node = Node(Rule.AUGMENTED_ASSIGNMENT)
        node.add(self.assign_target())
        if self.check_any(TokenKind.OPERATOR, AUGMENTED_OPS):
            node.add(self.take())
        else:
            self.error(f"expected augmented assignment operator but found {describe(self.cur())}",
                       ErrorKind.EXPECTED_TOKEN)
        node.add(self.expression())
        node.add(self.match(TokenKind.NEWLINE))
        return node

    def func_call(self) -> Node:
        node = Node(Rule.FUNC_CALL)
        node.add(self.match(TokenKind.IDENTIFIER))
        node.add(self.match(TokenKind.DELIMITER, '('))
        if not self.check(TokenKind.DELIMITER, ')'):
            node.add(self.argument_list())
        node.add(self.match(TokenKind.DELIMITER, ')'))
        return node

    def argument_list(self) -> Node:
        node = Node(Rule.ARGUMENT_LIST)
        node.add(self._argument())
        while self.check(TokenKind.DELIMITER, ','):
            node.add(self.take())
            if self.check(TokenKind.DELIMITER, ')'):
                break
            node.add(self._argument())
        return node

    def _argument(self) -> Node:
        if self.check(TokenKind.IDENTIFIER) and self.check(TokenKind.OPERATOR, '=', 1):
            return self.keyword_argument()
        if self.check_any(TokenKind.OPERATOR, ('*', '**')):
            node = Node(Rule.EXPRESSION)
            node.add(self.take())
            node.add(self.expression())
            return node
        return self.expression()

    def keyword_argument(self) -> Node:
        node = Node(Rule.KEYWORD_ARGUMENT)
        node.add(self.match(TokenKind.IDENTIFIER))
        node.add(self.match(TokenKind.OPERATOR, '='))
        node.add(self.expression())
        return node

    def expression_stmt(self) -> Node:
        node = Node(Rule.EXPRESSION_STMT)
        node.add(self.expression())
        node.add(self.match(TokenKind.NEWLINE))
        return node

    def import_stmt(self) -> Node:
        node = Node(Rule.IMPORT_STMT)
        if self.check(TokenKind.KEYWORD, 'from'):
            node.add(self.take())
            node.add(self.dotted_name())
            node.add(self.match(TokenKind.KEYWORD, 'import'))
            if self.check(TokenKind.OPERATOR, '*'):
                node.add(self.take())
            else:
                parenthesized = self.check(TokenKind.DELIMITER, '(')
                if parenthesized:
                    node.add(self.take())
                self._import_items(node)
                if parenthesized:
                    node.add(self.match(TokenKind.DELIMITER, ')'))
        else:
            node.add(self.match(TokenKind.KEYWORD, 'import'))
            self._import_items(node)
        node.add(self.match(TokenKind.NEWLINE))
        return node

    def _import_items(self, parent: Node):
        parent.add(self.import_item())
        while self.check(TokenKind.DELIMITER, ','):
            parent.add(self.take())
            if self.check(TokenKind.DELIMITER, ')'):
                break
            parent.add(self.import_item())

    def import_item(self) -> Node:
        node = Node(Rule.IMPORT_ITEM)
        node.add(self.dotted_name())
        if self.check(TokenKind.KEYWORD, 'as'):
            node.add(self.take())
            node.add(self.match(TokenKind.IDENTIFIER))
        return node

    def dotted_name(self) -> Node:
        node = Node(Rule.DOTTED_NAME)
        # relative imports: leading dots, name optional after them
        leading = False
        while self.check(TokenKind.DELIMITER, '.') or self.check(TokenKind.ELLIPSIS):
            node.add(self.take())
            leading = True
        if leading and not self.check(TokenKind.IDENTIFIER):
            return node
        node.add(self.match(TokenKind.IDENTIFIER))
        while self.check(TokenKind.DELIMITER, '.'):
            node.add(self.take())
            node.add(self.match(TokenKind.IDENTIFIER))
        return node

    def return_stmt(self) -> Node:
        node = Node(Rule.RETURN_STMT)
        node.add(self.match(TokenKind.KEYWORD, 'return'))
        if not self.check(TokenKind.NEWLINE):
            node.add(self.expression())
            while self.check(TokenKind.DELIMITER, ','):
                node.add(self.take())
                node.add(self.expression())
        node.add(self.match(TokenKind.NEWLINE))
        return node

    def break_stmt(self) -> Node:
        return self._loop_control(Rule.BREAK_STMT, 'break')

    def continue_stmt(self) -> Node:
        return self._loop_control(Rule.CONTINUE_STMT, 'continue')

    def _loop_control(self, rule, keyword) -> Node:
        node = Node(rule)
        line = self.cur().line
        at = self.i
        node.add(self.match(TokenKind.KEYWORD, keyword))
        if not self._inside_loop(at):
            self.error(f"'{keyword}' outside loop", ErrorKind.OUTSIDE_LOOP, line)
        node.add(self.match(TokenKind.NEWLINE))
        return node

    def _line_head(self, j) -> int:
        """Index of the first token of the logical line containing tokens[j]."""
        while j > 0 and self.tokens[j - 1].kind not in (TokenKind.NEWLINE, TokenKind.INDENT, TokenKind.DEDENT):
            j -= 1
        return j

    def _inside_loop(self, at) -> bool:
        """Scan backward through enclosing block headers from tokens[at]."""
        head = self._line_head(at)
        for k in range(head, at):
            # inline body: 'for x in y: break'
            t = self.tokens[k]
            if t.kind is TokenKind.KEYWORD and t.lexeme in FUNCTION_KEYWORDS:
                return False
            if t.kind is TokenKind.KEYWORD and t.lexeme in LOOP_KEYWORDS:
                return True
        closed = 0
        j = head - 1
        while j >= 0:
            t = self.tokens[j]
            if t.kind is TokenKind.DEDENT:
                closed += 1
            elif t.kind is TokenKind.INDENT:
                if closed:
                    closed -= 1
                else:
                    header_end = j - 1
                    while header_end >= 0 and self.tokens[header_end].kind is TokenKind.NEWLINE:
                        header_end -= 1
                    if header_end < 0:
                        return False
                    header = self.tokens[self._line_head(header_end)]
                    if header.kind is TokenKind.KEYWORD and header.lexeme in LOOP_KEYWORDS:
                        return True
                    if header.kind is TokenKind.KEYWORD and header.lexeme in FUNCTION_KEYWORDS:
                        return False
                    j = self._line_head(header_end)
            j -= 1
        return False

    def del_stmt(self) -> Node:
        node = Node(Rule.DEL_STMT)
        node.add(self.match(TokenKind.KEYWORD, 'del'))
        node.add(self.expression())
        while self.check(TokenKind.DELIMITER, ','):
            node.add(self.take())
            node.add(self.expression())
        node.add(self.match(TokenKind.NEWLINE))
        return node

    def pass_stmt(self) -> Node:
        node = Node(Rule.PASS_STMT)
        node.add(self.match(TokenKind.KEYWORD, 'pass'))
        node.add(self.match(TokenKind.NEWLINE))
        return node

    def raise_stmt(self) -> Node:
        node = Node(Rule.RAISE_STMT)
        node.add(self.match(TokenKind.KEYWORD, 'raise'))
        if not self.check(TokenKind.NEWLINE):
            node.add(self.expression())
            if self.check(TokenKind.KEYWORD, 'from'):
                node.add(self.take())
                node.add(self.expression())
        node.add(self.match(TokenKind.NEWLINE))
        return node

    # ----- compound statements -----
    def func_def(self) -> Node:
        node = Node(Rule.FUNC_DEF)
        node.add(self.match(TokenKind.KEYWORD, 'def'))
        node.add(self.match(TokenKind.IDENTIFIER))
        node.add(self.match(TokenKind.DELIMITER, '('))
        if not self.check(TokenKind.DELIMITER, ')'):
            node.add(self.param_list())
        node.add(self.match(TokenKind.DELIMITER, ')'))
        if self.check(TokenKind.OPERATOR, '->'):
            node.add(self.take())
            node.add(self.type_())
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node)
        return node

    def param_list(self) -> Node:
        node = Node(Rule.PARAM_LIST)
        node.add(self.param())
        while self.check(TokenKind.DELIMITER, ','):
            node.add(self.take())
            if self.check(TokenKind.DELIMITER, ')'):
                break
            node.add(self.param())
        return node

    def param(self) -> Node:
        node = Node(Rule.PARAM)
        if self.check_any(TokenKind.OPERATOR, ('*', '**', '/')):
            node.add(self.take())
            # bare '*' or '/' marker
            if not self.check(TokenKind.IDENTIFIER):
                return node
        node.add(self.match(TokenKind.IDENTIFIER))
        if self.check(TokenKind.OPERATOR, ':'):
            node.add(self.take())
            node.add(self.type_())
        if self.check(TokenKind.OPERATOR, '='):
            node.add(self.take())
            node.add(self.expression())
        return node

    def type_(self) -> Node:
        node = Node(Rule.TYPE)
        node.add(self.expression())
        return node

    def class_def(self) -> Node:
        node = Node(Rule.CLASS_DEF)
        node.add(self.match(TokenKind.KEYWORD, 'class'))
        node.add(self.match(TokenKind.IDENTIFIER))
        if self.check(TokenKind.DELIMITER, '('):
            node.add(self.take())
            node.add(self.class_bases())
            node.add(self.match(TokenKind.DELIMITER, ')'))
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node)
        return node

    def class_bases(self) -> Node:
        node = Node(Rule.CLASS_BASES)
        if self.check(TokenKind.DELIMITER, ')'):
            return node
        node.add(self._argument())
        while self.check(TokenKind.DELIMITER, ','):
            node.add(self.take())
            if self.check(TokenKind.DELIMITER, ')'):
                break
            node.add(self._argument())
        return node

    def try_stmt(self) -> Node:
        node = Node(Rule.TRY_STMT)
        line = self.cur().line
        node.add(self.match(TokenKind.KEYWORD, 'try'))
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node)
        handlers = 0
        while self.check(TokenKind.KEYWORD, 'except'):
            node.add(self.except_clause())
            handlers += 1
        if handlers and self.check(TokenKind.KEYWORD, 'else'):
            node.add(self.else_part())
        if self.check(TokenKind.KEYWORD, 'finally'):
            node.add(self.finally_clause())
            handlers += 1
        if not handlers:
            self.report("'try' without 'except' or 'finally' is not supported", ErrorKind.UNSUPPORTED, line)
        return node

    def except_clause(self) -> Node:
        node = Node(Rule.EXCEPT_CLAUSE)
        node.add(self.match(TokenKind.KEYWORD, 'except'))
        if not self.check(TokenKind.OPERATOR, ':'):
            node.add(self.expression())
            if self.check(TokenKind.KEYWORD, 'as'):
                node.add(self.take())
                node.add(self.match(TokenKind.IDENTIFIER))
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node)
        return node

    def finally_clause(self) -> Node:
        node = Node(Rule.FINALLY_CLAUSE)
        node.add(self.match(TokenKind.KEYWORD, 'finally'))
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node)
        return node

    def if_stmt(self) -> Node:
        node = Node(Rule.IF_STMT)
        node.add(self.match(TokenKind.KEYWORD, 'if'))
        node.add(self.expression())
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node)
        while self.check(TokenKind.KEYWORD, 'elif'):
            node.add(self.elif_stmt())
        if self.check(TokenKind.KEYWORD, 'else'):
            node.add(self.else_part())
        return node

    def elif_stmt(self) -> Node:
        node = Node(Rule.ELIF_STMT)
        node.add(self.match(TokenKind.KEYWORD, 'elif'))
        node.add(self.expression())
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node)
        return node

    def else_part(self, loop=False) -> Node:
        node = Node(Rule.ELSE_PART)
        node.add(self.match(TokenKind.KEYWORD, 'else'))
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node, loop)
        return node

    def while_stmt(self) -> Node:
        node = Node(Rule.WHILE_STMT)
        node.add(self.match(TokenKind.KEYWORD, 'while'))
        node.add(self.expression())
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node, loop=True)
        if self.check(TokenKind.KEYWORD, 'else'):
            node.add(self.else_part())
        return node

    def for_stmt(self) -> Node:
        node = Node(Rule.FOR_STMT)
        node.add(self.match(TokenKind.KEYWORD, 'for'))
        node.add(self.assign_target())
        node.add(self.match(TokenKind.KEYWORD, 'in'))
        node.add(self.expression())
        node.add(self.match(TokenKind.OPERATOR, ':'))
        self._suite(node, loop=True)
        if self.check(TokenKind.KEYWORD, 'else'):
            node.add(self.else_part())
        return node

    # ----- expressions -----
    def expression(self) -> Node:
        node = Node(Rule.EXPRESSION)
        node.add(self.bool_term())
        while self.check(TokenKind.KEYWORD, 'or'):
            node.add(self.take())
            node.add(self.bool_term())
        if self.check(TokenKind.KEYWORD, 'if'):
            node.add(self.inline_if_else())
        return node

    def inline_if_else(self) -> Node:
        node = Node(Rule.INLINE_IF_ELSE)
        node.add(self.match(TokenKind.KEYWORD, 'if'))
        node.add(self.expression())
        node.add(self.match(TokenKind.KEYWORD, 'else'))
        node.add(self.expression())
        return node

    def bool_term(self) -> Node:
        node = Node(Rule.BOOL_TERM)
        node.add(self.bool_factor())
        while self.check(TokenKind.KEYWORD, 'and'):
            node.add(self.take())
            node.add(self.bool_factor())
        return node

    def bool_factor(self) -> Node:
        node = Node(Rule.BOOL_FACTOR)
        if self.check(TokenKind.KEYWORD, 'not'):
            node.add(self.take())
            node.add(self.bool_factor())
        else:
            node.add(self.rel_expr())
        return node

    def _at_rel_op(self) -> bool:
        if self.check_any(TokenKind.OPERATOR, COMPARISON_OPS):
            return True
        if self.check_any(TokenKind.KEYWORD, ('in', 'is')):
            return True
        return self.check(TokenKind.KEYWORD, 'not') and self.check(TokenKind.KEYWORD, 'in', 1)

    def rel_expr(self) -> Node:
        node = Node(Rule.REL_EXPR)
        node.add(self.arith_expr())
        while self._at_rel_op():
            node.add(self.rel_op())
            node.add(self.arith_expr())
        return node

    def rel_op(self) -> Node:
        node = Node(Rule.REL_OP)
        if self.check(TokenKind.KEYWORD, 'not'):
            node.add(self.take())
            node.add(self.match(TokenKind.KEYWORD, 'in'))
        elif self.check(TokenKind.KEYWORD, 'is'):
            node.add(self.take())
            if self.check(TokenKind.KEYWORD, 'not'):
                node.add(self.take())
        else:
            node.add(self.take())
        return node

    def arith_expr(self) -> Node:
        node = Node(Rule.ARITH_EXPR)
        node.add(self.term())
        while self.check_any(TokenKind.OPERATOR, ARITH_OPS):
            node.add(self.take())
            node.add(self.term())
        return node

    def term(self) -> Node:
        node = Node(Rule.TERM)
        node.add(self.factor())
        while self.check_any(TokenKind.OPERATOR, TERM_OPS):
            node.add(self.take())
            node.add(self.factor())
        return node

    def factor(self) -> Node:
        node = Node(Rule.FACTOR)
        t = self.cur()
        if self.check_any(TokenKind.OPERATOR, UNARY_OPS):
            node.add(self.take())
            node.add(self.factor())
        elif self.check(TokenKind.DELIMITER, '('):
            node.add(self.take())
            if not self.check(TokenKind.DELIMITER, ')'):
                node.add(self.expression())
                while self.check(TokenKind.DELIMITER, ','):
                    node.add(self.take())
                    if self.check(TokenKind.DELIMITER, ')'):
                        break
                    node.add(self.expression())
            node.add(self.match(TokenKind.DELIMITER, ')'))
            self._trailers(node)
        elif t.kind is TokenKind.IDENTIFIER:
            if self.check(TokenKind.DELIMITER, '(', 1):
                node.add(self.func_call())
            else:
                node.add(self.take())
            self._trailers(node)
        elif t.kind in (TokenKind.NUMBER, TokenKind.ELLIPSIS):
            node.add(self.take())
        elif self.check_any(TokenKind.KEYWORD, LITERAL_KEYWORDS):
            node.add(self.take())
        elif t.kind is TokenKind.STRING_QUOTE:
            node.add(self.string())
            self._trailers(node)
        elif self.check(TokenKind.DELIMITER, '['):
            node.add(self.list_literal())
            self._trailers(node)
        elif self.check(TokenKind.DELIMITER, '{'):
            node.add(self.dict_literal())
        else:
            self.error(f"unexpected {describe(t)} in expression", ErrorKind.UNEXPECTED_TOKEN)
        return node

    def _trailers(self, parent: Node):
        while self.check_any(TokenKind.DELIMITER, ('.', '(', '[')):
            parent.add(self.trailer())

    def trailer(self) -> Node:
        node = Node(Rule.TRAILER)
        if self.check(TokenKind.DELIMITER, '.'):
            node.add(self.take())
            node.add(self.match(TokenKind.IDENTIFIER))
        elif self.check(TokenKind.DELIMITER, '('):
            node.add(self.take())
            if not self.check(TokenKind.DELIMITER, ')'):
                node.add(self.argument_list())
            node.add(self.match(TokenKind.DELIMITER, ')'))
        else:
            node.add(self.match(TokenKind.DELIMITER, '['))
            # index or slice
            if not self.check(TokenKind.OPERATOR, ':'):
                node.add(self.expression())
            while self.check(TokenKind.OPERATOR, ':'):
                node.add(self.take())
                if not self.check(TokenKind.OPERATOR, ':') and not self.check(TokenKind.DELIMITER, ']'):
                    node.add(self.expression())
            node.add(self.match(TokenKind.DELIMITER, ']'))
        return node

    def string(self) -> Node:
        node = Node(Rule.STRING)
        node.add(self.match(TokenKind.STRING_QUOTE))
        if self.check(TokenKind.STRING_LITERAL):
            node.add(self.take())
        node.add(self.match(TokenKind.STRING_QUOTE))
        return node

    def list_literal(self) -> Node:
        node = Node(Rule.LIST_LITERAL)
        node.add(self.match(TokenKind.DELIMITER, '['))
        if not self.check(TokenKind.DELIMITER, ']'):
            node.add(self.expression())
            while self.check(TokenKind.DELIMITER, ','):
                node.add(self.take())
                if self.check(TokenKind.DELIMITER, ']'):
                    break
                node.add(self.expression())
        node.add(self.match(TokenKind.DELIMITER, ']'))
        return node

    def dict_literal(self) -> Node:
        node = Node(Rule.DICT_LITERAL)
        node.add(self.match(TokenKind.DELIMITER, '{'))
        if not self.check(TokenKind.DELIMITER, '}'):
            node.add(self.dict_pair())
            while self.check(TokenKind.DELIMITER, ','):
                node.add(self.take())
                if self.check(TokenKind.DELIMITER, '}'):
                    break
                node.add(self.dict_pair())
        node.add(self.match(TokenKind.DELIMITER, '}'))
        return node

    def dict_pair(self) -> Node:
        node = Node(Rule.DICT_PAIR)
        t = self.cur()
        if t.kind is TokenKind.STRING_QUOTE:
            node.add(self.string())
        elif t.kind is TokenKind.IDENTIFIER:
            if self.check(TokenKind.DELIMITER, '(', 1):
                # only zero-argument calls are accepted as keys
                if not self.check(TokenKind.DELIMITER, ')', 2):
                    self.report(f"invalid dictionary key: call with arguments to '{t.lexeme}'",
                                ErrorKind.BAD_DICT_KEY)
                node.add(self.func_call())
            else:
                node.add(self.take())
        elif t.kind is TokenKind.NUMBER or self.check_any(TokenKind.KEYWORD, LITERAL_KEYWORDS):
            node.add(self.take())
        else:
            self.error(f"invalid dictionary key {describe(t)}", ErrorKind.BAD_DICT_KEY)
            return node
        node.add(self.match(TokenKind.OPERATOR, ':'))
        node.add(self.expression())
        return node


def parse(tokens):
    """Parse a token list; returns (root node, syntax errors). Never raises on bad input."""
    parser = Parser(tokens)
    root = parser.parse()
    return root, parser.errors


# ---------- output files ----------
def write_parse_tree(root, filename="parse_tree.txt"):
    try:
        with open(filename, 'w', encoding='utf-8') as f:
            for ln in tree_to_lines(root):
                f.write(ln + '\n')
    except IOError as e:
        print(f"Error writing parse tree file {filename}: {e}")


def write_syntax_errors(errors, filename="syntax_errors.txt"):
    try:
        with open(filename, 'w', encoding='utf-8') as f:
            if errors:
                for e in errors:
                    f.write(f"{e}\n")
            else:
                f.write('No syntax errors.\n')
    except IOError as e:
        print(f"Error writing syntax errors file {filename}: {e}")


def write_dot(root, filename="parse_tree.dot"):
    try:
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(tree_to_dot(root))
    except IOError as e:
        print(f"Error writing DOT file {filename}: {e}")
