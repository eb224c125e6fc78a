"""
Macro constant parsing module

Only object-like macros whose body is a single literal (optionally negated
or parenthesized) become constants. Anything needing evaluation is skipped.
"""

import logging
import re
from typing import TYPE_CHECKING, Optional, Union

from . import ir
from .cursor import Cursor, doc_comment

if TYPE_CHECKING:
    from .parser import ParseSession

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r'(0[xX][0-9a-fA-F]+|0[bB][01]+|0[0-7]*|[1-9][0-9]*)(?:[uU](?:ll|LL|l|L)?|(?:ll|LL|l|L)[uU]?)?')
_FLOAT_RE = re.compile(r'((?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?|\d+[eE][+-]?\d+)[fFlL]?')
_CHAR_RE = re.compile(r"'(\\.|[^\\'])'")
_STRING_RE = re.compile(r'"((?:\\.|[^\\"])*)"')

_ESCAPES = {
    'n': '\n', 't': '\t', 'r': '\r', '0': '\0', 'a': '\a', 'b': '\b',
    'f': '\f', 'v': '\v', '\\': '\\', "'": "'", '"': '"', '?': '?',
}


def _unescape(text: str) -> str:
    return re.sub(r'\\(.)', lambda m: _ESCAPES.get(m.group(1), m.group(1)), text)


def _parse_int(text: str) -> int:
    lowered = text.lower()
    if lowered.startswith('0x'):
        return int(text[2:], 16)
    if lowered.startswith('0b'):
        return int(text[2:], 2)
    if len(text) > 1 and text.startswith('0'):
        return int(text[1:], 8)
    return int(text, 10)


def parse_macro_value(tokens: list[str]) -> Optional[tuple[str, Union[int, float, str]]]:
    """Get (raw_type, value) for a macro body, or None if not a simple literal"""
    body = list(tokens)
    while len(body) >= 2 and body[0] == '(' and body[-1] == ')':
        body = body[1:-1]
    if not body:
        return None

    if all(_STRING_RE.fullmatch(t) for t in body):
        return 'string', ''.join(_unescape(_STRING_RE.fullmatch(t).group(1)) for t in body)

    sign = 1
    if body[0] in ('-', '+') and len(body) == 2:
        sign = -1 if body[0] == '-' else 1
        body = body[1:]
    if len(body) != 1:
        return None
    token = body[0]

    m = _INT_RE.fullmatch(token)
    if m:
        return 'int', sign * _parse_int(m.group(1))
    m = _FLOAT_RE.fullmatch(token)
    if m:
        return 'double', sign * float(m.group(1))
    m = _CHAR_RE.fullmatch(token)
    if m:
        return 'int', sign * ord(_unescape(m.group(1)))
    return None


class MacroParser:
    """Parses simple constant macros"""

    def __init__(self, session: 'ParseSession'):
        self.session = session

    def parse(self, cursor: Cursor) -> list[ir.Constant]:
        session = self.session
        config = session.config
        usr = cursor.get_usr()
        name = cursor.spelling
        with session.stack.frame(name) as ctx:
            seen = session.index.lookup(usr)
            if isinstance(seen, ir.Constant):
                ctx.declarations.append(seen)
                return list(ctx.declarations)
            if cursor.is_macro_function_like() or not config.macros.should_include(usr, name):
                return []

            tokens = cursor.get_tokens()
            if tokens and tokens[0] == name:
                tokens = tokens[1:]
            parsed = parse_macro_value(tokens)
            if parsed is None:
                logger.debug('Skipped macro %s: not a simple constant: %s', name, ' '.join(tokens))
                return []

            raw_type, value = parsed
            const = ir.Constant(
                usr=usr,
                original_name=name,
                name=config.macros.rename(name),
                doc=doc_comment(cursor) if config.comments else '',
                raw_type=raw_type,
                value=value,
            )
            session.index.insert(usr, const)
            ctx.declarations.append(const)
            logger.debug('++++ Adding Macro Constant: %s = %r', name, value)
            return list(ctx.declarations)
