"""
Code generation utilities

Provides helpers for generating C declarations and Lua code.
"""

import re
from typing import Union


class CodeGen:
    """Code generation helper with indentation support"""

    def __init__(self):
        self._lines: list[str] = []
        self._indent: int = 0
        self._indent_str: str = '    '  # 4 spaces

    def line(self, text: str = ''):
        """Add a line with current indentation"""
        if text:
            self._lines.append(self._indent_str * self._indent + text)
        else:
            self._lines.append('')

    def lines(self, *texts: str):
        """Add multiple lines"""
        for text in texts:
            self.line(text)

    def comment(self, text: str, marker: str = '--'):
        """Add a (possibly multi-line) comment"""
        for part in text.splitlines():
            self.line(f'{marker} {part}'.rstrip())

    def indent(self):
        self._indent += 1

    def dedent(self):
        if self._indent > 0:
            self._indent -= 1

    def block(self, header: str, footer: str = 'end'):
        """Context manager for code blocks"""
        return _BlockContext(self, header, footer)

    def output(self) -> str:
        """Get generated code as string"""
        return '\n'.join(self._lines) + '\n'


class _BlockContext:
    """Context manager for indented code blocks"""

    def __init__(self, gen: CodeGen, header: str, footer: str):
        self._gen = gen
        self._header = header
        self._footer = footer

    def __enter__(self):
        self._gen.line(self._header)
        self._gen.indent()
        return self

    def __exit__(self, *args):
        self._gen.dedent()
        self._gen.line(self._footer)


# Lua reserved keywords
LUA_KEYWORDS = {
    'and', 'break', 'do', 'else', 'elseif', 'end', 'false', 'for',
    'function', 'goto', 'if', 'in', 'local', 'nil', 'not', 'or',
    'repeat', 'return', 'then', 'true', 'until', 'while'
}

_IDENTIFIER = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')


def is_lua_identifier(name: str) -> bool:
    return bool(_IDENTIFIER.fullmatch(name)) and name not in LUA_KEYWORDS


def lua_local_name(name: str) -> str:
    """Make a name usable as a Lua local/parameter

    Examples:
        end -> end_
        count -> count
    """
    return f'{name}_' if name in LUA_KEYWORDS else name


def lua_field(table: str, key: str) -> str:
    """Index expression for a table field

    Examples:
        M, add -> M.add
        M, end -> M["end"]
    """
    if is_lua_identifier(key):
        return f'{table}.{key}'
    return f'{table}[{lua_string(key)}]'


def lua_table_key(key: str) -> str:
    """Key as written inside a table constructor"""
    if is_lua_identifier(key):
        return key
    return f'[{lua_string(key)}]'


def lua_string(text: str) -> str:
    """Quote text as a Lua string literal"""
    out = []
    for ch in text:
        if ch == '\\':
            out.append('\\\\')
        elif ch == '"':
            out.append('\\"')
        elif ch == '\n':
            out.append('\\n')
        elif ch == '\r':
            out.append('\\r')
        elif ch == '\t':
            out.append('\\t')
        elif ord(ch) < 32 or ord(ch) == 127:
            out.append(f'\\{ord(ch):03d}')
        else:
            out.append(ch)
    return '"' + ''.join(out) + '"'


# Beyond this a Lua number (double) no longer holds every integer exactly
_MAX_SAFE_INT = 2 ** 53


def lua_number(value: Union[int, float]) -> str:
    """Render a number as a LuaJIT literal

    Examples:
        42 -> 42
        0.5 -> 0.5
        2**63 -> 9223372036854775808ULL
    """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        if -_MAX_SAFE_INT <= value <= _MAX_SAFE_INT:
            return str(value)
        return f'{value}ULL' if value > 0 else f'{value}LL'
    text = repr(float(value))
    if text in ('inf', '-inf', 'nan'):
        return {'inf': 'math.huge', '-inf': '-math.huge', 'nan': '(0/0)'}[text]
    return text


def lua_value(raw_type: str, value: Union[int, float, str]) -> str:
    """Render a constant of the given raw type"""
    if raw_type == 'string':
        return lua_string(str(value))
    return lua_number(value)
