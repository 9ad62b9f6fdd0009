"""Lexeme classification shared by the tokenizer, the symbol table and the parser.

Every predicate is pure: it looks at one candidate lexeme and answers yes or no.
"""

KEYWORDS = frozenset({
    'False', 'None', 'True', 'and', 'as', 'assert', 'async', 'await',
    'break', 'class', 'continue', 'def', 'del', 'elif', 'else', 'except',
    'finally', 'for', 'from', 'global', 'if', 'import', 'in', 'is',
    'lambda', 'nonlocal', 'not', 'or', 'pass', 'raise', 'return',
    'try', 'while', 'with', 'yield',
})

# Word operators lex as keywords; they are listed so is_operator() answers for them too.
WORD_OPERATORS = frozenset({'and', 'or', 'not', 'is', 'in'})

OPERATORS = frozenset({
    '+', '-', '*', '/', '%', '**', '//', '=',
    '+=', '-=', '*=', '/=', '%=', '**=', '//=',
    '==', '!=', '<', '>', '<=', '>=',
    '&', '|', '^', '~', '<<', '>>',
    '&=', '|=', '^=', '<<=', '>>=',
    '->', ':=',
}) | WORD_OPERATORS

DELIMITERS = frozenset({'(', ')', '[', ']', '{', '}', ',', ':', '.', ';', '@', '...'})

# Characters that may begin a symbolic operator ('!' only ever as part of '!=')
OPERATOR_START_CHARS = frozenset(''.join(op for op in OPERATORS if op not in WORD_OPERATORS)) | {'!'}

BASE_DIGITS = {
    'x': frozenset('0123456789abcdefABCDEF'),
    'o': frozenset('01234567'),
    'b': frozenset('01'),
}

DECIMAL_DIGITS = frozenset('0123456789')


def is_keyword(s):
    return s in KEYWORDS


def is_operator(s):
    return s in OPERATORS


def is_delimiter(s):
    return s in DELIMITERS


def is_identifier(s):
    if not s:
        return False
    if not (s[0].isalpha() or s[0] == '_'):
        return False
    return all(ch.isalnum() or ch == '_' for ch in s[1:])


def is_number(s):
    """Return True if s is a complete numeric literal.

    Accepts decimal integers, floats with an optional exponent, 0x/0o/0b
    integers and any of those with a trailing j/J (complex). A '.' must be
    followed by a digit, so '5.' and '.' are rejected while '.5' is accepted.
    """
    if not s:
        return False

    # complex: strip the one suffix and validate what is left
    if s[-1] in 'jJ':
        s = s[:-1]
        if not s:
            return False

    if len(s) >= 2 and s[0] == '0' and s[1].lower() in BASE_DIGITS:
        digits = s[2:]
        allowed = BASE_DIGITS[s[1].lower()]
        return bool(digits) and all(ch in allowed for ch in digits)

    return _is_decimal(s)


def _is_decimal(s):
    seen_dot = False
    seen_exp = False
    int_digits = frac_digits = exp_digits = 0
    i = 0
    while i < len(s):
        ch = s[i]
        if ch in DECIMAL_DIGITS:
            if seen_exp:
                exp_digits += 1
            elif seen_dot:
                frac_digits += 1
            else:
                int_digits += 1
        elif ch == '.':
            if seen_dot or seen_exp:
                return False
            seen_dot = True
        elif ch in 'eE':
            if seen_exp or (int_digits + frac_digits) == 0:
                return False
            if seen_dot and frac_digits == 0:
                return False
            seen_exp = True
            # a single sign may follow the exponent marker
            if i + 1 < len(s) and s[i + 1] in '+-':
                i += 1
        else:
            return False
        i += 1

    if int_digits + frac_digits == 0:
        return False
    if seen_dot and frac_digits == 0:
        return False
    if seen_exp and exp_digits == 0:
        return False
    return True


def longest_number_prefix(s):
    """Length of the longest prefix of s that is_number() accepts (0 if none)."""
    for end in range(len(s), 0, -1):
        if is_number(s[:end]):
            return end
    return 0
