"""
Variadic specialization module

A variadic native function cannot be called through a typed binding without
knowing the extra argument types at each call site. The configuration lists
the call-site signatures it needs; each one becomes its own fixed-arity
binding named `<function><postfix>`.
"""

import re
from dataclasses import dataclass

from . import ir
from .errors import ConfigError


@dataclass(frozen=True)
class VarArgFunction:
    """One fixed-arity call signature for a variadic function"""
    postfix: str
    types: tuple[ir.Type, ...] = ()


# Degenerate specialization: the function keeps its fixed parameters only
NO_VAR_ARGS = VarArgFunction('', ())


def specialize(name: str, is_variadic: bool,
               table: dict[str, list[VarArgFunction]]) -> tuple[list[VarArgFunction], bool]:
    """Get the specializations to generate for a function

    Returns (specializations, ignored). `ignored` is True when the table
    has signatures for a function that is not variadic; the entry is then
    disregarded and the degenerate specialization is returned.
    """
    entries = table.get(name)
    if not entries:
        return [NO_VAR_ARGS], False
    if not is_variadic:
        return [NO_VAR_ARGS], True
    return list(entries), False


_PRIMITIVE_NAMES: dict[str, ir.PrimitiveType] = {
    'void': ir.VOID,
    'bool': ir.BOOL,
    '_Bool': ir.BOOL,
    'char': ir.CHAR,
    'signed char': ir.SIGNED_CHAR,
    'unsigned char': ir.UNSIGNED_CHAR,
    'short': ir.SHORT,
    'short int': ir.SHORT,
    'unsigned short': ir.USHORT,
    'unsigned short int': ir.USHORT,
    'int': ir.INT,
    'signed': ir.INT,
    'signed int': ir.INT,
    'unsigned': ir.UINT,
    'unsigned int': ir.UINT,
    'long': ir.LONG,
    'long int': ir.LONG,
    'unsigned long': ir.ULONG,
    'unsigned long int': ir.ULONG,
    'long long': ir.LONGLONG,
    'long long int': ir.LONGLONG,
    'unsigned long long': ir.ULONGLONG,
    'unsigned long long int': ir.ULONGLONG,
    'float': ir.FLOAT,
    'double': ir.DOUBLE,
}
_PRIMITIVE_NAMES.update(ir.SUPPORTED_TYPEDEFS)


def parse_type_string(text: str) -> ir.Type:
    """Parse a C type spelled in configuration, e.g. 'const char *'

    Only primitive types and pointers to them are accepted.
    """
    spelling = text.strip()
    depth = 0
    while spelling.endswith('*'):
        depth += 1
        spelling = spelling[:-1].rstrip()
    words = spelling.split()
    is_const = 'const' in words
    words = [w for w in words if w != 'const']
    base_name = ' '.join(words)
    base = _PRIMITIVE_NAMES.get(base_name)
    if base is None or not re.fullmatch(r'[\w ]+', base_name):
        raise ConfigError(f'unsupported variadic argument type {text!r}')
    if base is ir.VOID and depth == 0:
        raise ConfigError('void is not a valid variadic argument type')

    result: ir.Type = base
    for level in range(depth):
        result = ir.PointerType(result, const_pointee=(is_const and level == 0))
    return result
