"""
LuaCATS type definition generation module

Generates a `---@meta` file describing the module produced by luajit.py,
for IDE autocompletion.
"""

from typing import TYPE_CHECKING

from . import ir
from .codegen import lua_field, lua_local_name, lua_number, lua_table_key
from .luajit import module_layout

if TYPE_CHECKING:
    from .config import Config
    from .parser import ParseResult

_INTEGER = 'integer'
_WIDE_INTEGER = 'integer|ffi.cdata*'  # 64-bit values come back boxed

_PRIMITIVE_TYPES = {
    'bool': 'boolean',
    'float': 'number',
    'double': 'number',
    'longlong': _WIDE_INTEGER,
    'ulonglong': _WIDE_INTEGER,
    'long': _WIDE_INTEGER,
    'ulong': _WIDE_INTEGER,
    'int64': _WIDE_INTEGER,
    'uint64': _WIDE_INTEGER,
    'intptr': _WIDE_INTEGER,
    'uintptr': _WIDE_INTEGER,
    'size': _WIDE_INTEGER,
    'ssize': _WIDE_INTEGER,
    'ptrdiff': _WIDE_INTEGER,
    'id': 'ffi.cdata*',
    'SEL': 'ffi.cdata*',
    'Class': 'ffi.cdata*',
}

_CONSTANT_TYPES = {
    'int': 'integer',
    'double': 'number',
    'string': 'string',
}


def _function_stub(key: str, params: list[str]) -> str:
    target = lua_field('M', key)
    if target.startswith('M.'):
        return f'function {target}({", ".join(params)}) end'
    return f'{target} = function({", ".join(params)}) end'


class LuaCATSGenerator:
    """Generates LuaCATS type definition files"""

    def __init__(self, result: 'ParseResult', config: 'Config'):
        self.result = result
        self.module_name = config.module
        self.comments = config.comments

    def generate(self) -> str:
        """Generate complete LuaCATS type definition file"""
        lines = []
        lines.append('---@meta')
        lines.append(f'-- LuaCATS type definitions for {self.module_name}')
        lines.append('-- Auto-generated, do not edit')
        lines.append('')

        bindings = self.result.bindings
        class_names = set()
        for decl in bindings:
            if isinstance(decl, (ir.Struct, ir.Union)):
                lines.extend(self._gen_struct(decl))
                lines.append('')
                class_names.add(decl.name)
        for decl in bindings:
            if isinstance(decl, ir.Typedef) and decl.name not in class_names:
                lines.append(f'---@alias {self.module_name}.{decl.name} {self.lua_type(decl.underlying)}')
                lines.append('')

        lines.append(f'---@class {self.module_name}')
        lines.append('---@field addresses table<string, ffi.cdata*>')
        lines.append('---@field types table<string, ffi.ctype*>')
        lines.append('local M = {}')
        lines.append('')

        layout = module_layout(bindings)
        for key, enum in layout['enums']:
            lines.extend(self._gen_enum(key, enum))
            lines.append('')
        for key, const in layout['constants']:
            lines.extend(self._doc(const.doc))
            lines.append(f'---@type {_CONSTANT_TYPES[const.raw_type]}')
            lines.append(f'{lua_field("M", key)} = nil')
            lines.append('')
        for key, decl in layout['types']:
            lines.append('---@type ffi.ctype*')
            lines.append(f'{lua_field("M", key)} = nil')
            lines.append('')
        for key, func in layout['functions']:
            lines.extend(self._gen_func(key, func))
            lines.append('')
        for key, var in layout['globals']:
            lines.extend(self._gen_global(key, var))
            lines.append('')
        for key, cls in layout['classes']:
            lines.extend(self._gen_class(key, cls))
            lines.append('')

        lines.append('return M')
        return '\n'.join(lines) + '\n'

    def lua_type(self, t: ir.Type) -> str:
        """LuaCATS spelling of a type as seen from Lua"""
        if isinstance(t, ir.TypedefType):
            underlying = t.decl.underlying
            return self.lua_type(underlying) if underlying is not None else 'any'
        if isinstance(t, ir.PrimitiveType):
            return _PRIMITIVE_TYPES.get(t.name, _INTEGER)
        if isinstance(t, ir.PointerType):
            if t.child is ir.CHAR:
                return 'string|ffi.cdata*'
            if isinstance(t.child, ir.FunctionType):
                return 'function|ffi.cdata*'
            return 'ffi.cdata*'
        if isinstance(t, ir.CompoundType):
            if isinstance(t.decl, ir.EnumClass):
                return _INTEGER
            if isinstance(t.decl, (ir.Struct, ir.Union)):
                return f'{self.module_name}.{t.decl.name}'
            return 'ffi.cdata*'
        if isinstance(t, ir.FunctionType):
            return 'function'
        if isinstance(t, ir.ArrayType):
            return 'ffi.cdata*'
        return 'any'

    def _doc(self, doc: str) -> list[str]:
        if not self.comments or not doc:
            return []
        return [f'--- {line}'.rstrip() for line in doc.splitlines()]

    def _gen_struct(self, struct: ir.Compound) -> list[str]:
        """Generate struct type definition"""
        lines = self._doc(struct.doc)
        lines.append(f'---@class {self.module_name}.{struct.name}: ffi.cdata*')
        for m in struct.members:
            lines.append(f'---@field {m.name} {self.lua_type(m.type)}')
        return lines

    def _gen_enum(self, key: str, enum: ir.EnumClass) -> list[str]:
        """Generate enum type definition"""
        lines = self._doc(enum.doc)
        lines.append(f'---@enum {self.module_name}.{enum.name}')
        lines.append(f'{lua_field("M", key)} = {{')
        for c in enum.constants:
            lines.append(f'    {lua_table_key(c.name)} = {lua_number(c.value)},')
        lines.append('}')
        return lines

    def _gen_func(self, key: str, func: ir.Func) -> list[str]:
        """Generate function type definition"""
        lines = self._doc(func.doc)
        names = []
        for param in func.all_parameters:
            name = lua_local_name(param.name)
            names.append(name)
            lines.append(f'---@param {name} {self.lua_type(param.type)}')
        if func.return_type is not ir.VOID:
            lines.append(f'---@return {self.lua_type(func.return_type)}')
        lines.append(_function_stub(key, names))
        return lines

    def _gen_global(self, key: str, var: ir.Global) -> list[str]:
        lua_t = self.lua_type(var.type)
        lines = self._doc(var.doc)
        lines.append(f'---@return {lua_t}')
        lines.append(_function_stub(f'get_{key}', []))
        if not var.is_const:
            lines.append(f'---@param value {lua_t}')
            lines.append(_function_stub(f'set_{key}', ['value']))
        return lines

    def _gen_class(self, key: str, cls: ir.ObjCInterface) -> list[str]:
        lines = self._doc(cls.doc)
        lines.append('---@type { name: string, superclass: string?, '
                     'instance_methods: table<string, string>, class_methods: table<string, string> }')
        lines.append(f'{lua_field("M", key)} = nil')
        return lines
