"""
LuaJIT FFI module generation module

Renders parsed bindings as a Lua module: one ffi.cdef block declaring every
type, function and global, followed by a table exposing them under their
generated names.
"""

import logging
from typing import TYPE_CHECKING

from . import ir
from .codegen import CodeGen, lua_field, lua_local_name, lua_number, lua_string, lua_table_key, lua_value

if TYPE_CHECKING:
    from .config import Config
    from .parser import ParseResult

logger = logging.getLogger(__name__)

_CONVENTIONS = {
    'stdcall': '__stdcall',
    'fastcall': '__fastcall',
}

_OBJC_PRELUDE = (
    'typedef struct objc_object *id;',
    'typedef struct objc_selector *SEL;',
    'typedef struct objc_class *Class;',
)

SECTIONS = ('functions', 'enums', 'constants', 'types', 'globals', 'classes')


def module_layout(bindings: list[ir.Binding]) -> dict[str, list[tuple[str, ir.Binding]]]:
    """Lua name of every exposed binding, grouped by section

    A name is claimed by the first binding that asks for it; sections are
    claimed in SECTIONS order, so an enum's value table wins over the
    typedef that names the same enum.
    """
    layout: dict[str, list[tuple[str, ir.Binding]]] = {s: [] for s in SECTIONS}
    used: set[str] = set()

    def claim(section: str, decl: ir.Binding, *keys: str):
        if any(k in used for k in keys):
            logger.debug('Lua name %s already taken, not exposing %r', keys[0], decl)
            return
        used.update(keys)
        layout[section].append((keys[0], decl))

    for decl in bindings:
        if isinstance(decl, ir.Func):
            claim('functions', decl, decl.name)
    for decl in bindings:
        if isinstance(decl, ir.EnumClass) and not decl.is_incomplete:
            claim('enums', decl, decl.name)
    for decl in bindings:
        if isinstance(decl, ir.Constant):
            claim('constants', decl, decl.name)
    for decl in bindings:
        if isinstance(decl, (ir.Struct, ir.Union, ir.Typedef)):
            claim('types', decl, decl.name)
    for decl in bindings:
        if isinstance(decl, ir.Global):
            claim('globals', decl, decl.name, f'get_{decl.name}', f'set_{decl.name}')
    for decl in bindings:
        if isinstance(decl, ir.ObjCInterface):
            claim('classes', decl, decl.name)
    return layout


def _by_value(t: ir.Type) -> list[ir.Binding]:
    """Declarations that must be complete before `t` is used by value"""
    if isinstance(t, ir.CompoundType):
        return [t.decl]
    if isinstance(t, ir.TypedefType):
        underlying = t.decl.underlying
        return [t.decl] + (_by_value(underlying) if underlying is not None else [])
    if isinstance(t, ir.ArrayType):
        return _by_value(t.child)
    return []


def _by_name(t: ir.Type) -> list[ir.Binding]:
    """Typedefs and enums `t` mentions, which C has no forward declaration for"""
    return [d for d in ir.referenced_declarations(t) if isinstance(d, (ir.Typedef, ir.EnumClass))]


def _dependencies(decl: ir.Binding) -> list[ir.Binding]:
    if isinstance(decl, (ir.Struct, ir.Union)):
        deps = []
        for m in decl.members:
            deps.extend(_by_name(m.type))
            deps.extend(_by_value(m.type))
        return deps
    if isinstance(decl, ir.Typedef):
        return _by_name(decl.underlying)
    if isinstance(decl, ir.Func):
        deps = _by_name(decl.return_type)
        for p in decl.parameters:
            deps.extend(_by_name(p.type))
        return deps
    if isinstance(decl, ir.Global):
        return _by_name(decl.type) + _by_value(decl.type)
    return []


def dependency_order(bindings: list[ir.Binding]) -> list[ir.Binding]:
    """Order bindings so each follows what it needs, otherwise keeping input order"""
    emittable = {id(b) for b in bindings}
    done: set[int] = set()
    active: set[int] = set()
    ordered = []

    def visit(decl: ir.Binding):
        key = id(decl)
        if key in done or key in active or key not in emittable:
            return
        active.add(key)
        for dep in _dependencies(decl):
            visit(dep)
        active.discard(key)
        done.add(key)
        ordered.append(decl)

    for decl in bindings:
        visit(decl)
    return ordered


def _uses_objc(bindings: list[ir.Binding]) -> bool:
    objc_types = (ir.OBJC_ID, ir.OBJC_SEL, ir.OBJC_CLASS)
    for decl in bindings:
        if isinstance(decl, ir.ObjCInterface):
            return True
        types = []
        if isinstance(decl, ir.Func):
            types = [decl.return_type] + [p.type for p in decl.all_parameters]
        elif isinstance(decl, (ir.Struct, ir.Union)):
            types = [m.type for m in decl.members]
        elif isinstance(decl, ir.Typedef):
            types = [decl.underlying]
        elif isinstance(decl, ir.Global):
            types = [decl.type]
        if any(t.base_type in objc_types for t in types):
            return True
    return False


def address_alias(decl: ir.Global) -> str:
    return f'{decl.original_name}__ffi_address'


class LuaJITGenerator:
    """Generates a LuaJIT FFI module"""

    def __init__(self, result: 'ParseResult', config: 'Config'):
        self.result = result
        self.config = config
        self.bindings = result.bindings

    def generate(self) -> str:
        gen = CodeGen()
        gen.line('-- machine generated, do not edit')
        gen.line("local ffi = require('ffi')")
        gen.line()

        gen.line('ffi.cdef[=[')
        self._gen_cdef(gen)
        gen.line(']=]')
        gen.line()

        library = self.config.native.library
        if library:
            gen.line(f'local C = ffi.load({lua_string(library)})')
        else:
            gen.line('local C = ffi.C')
        gen.line()
        gen.line('local M = {}')
        gen.line('M.addresses = {}')
        gen.line('M.types = {}')

        layout = module_layout(self.bindings)
        self._gen_functions(layout['functions'], gen)
        self._gen_enums(layout['enums'], gen)
        self._gen_constants(layout['constants'], gen)
        self._gen_types(layout['types'], gen)
        self._gen_globals(layout['globals'], gen)
        self._gen_classes(layout['classes'], gen)
        self._gen_addresses(gen)
        self._gen_function_types(gen)

        gen.line()
        gen.line('return M')
        return gen.output()

    # ----------------------------------------------------------------------
    # ffi.cdef
    # ----------------------------------------------------------------------

    def _gen_cdef(self, gen: CodeGen):
        if _uses_objc(self.bindings):
            gen.lines(*_OBJC_PRELUDE)

        # Forward declarations: pointers to these may appear anywhere
        for decl in self.bindings:
            if isinstance(decl, (ir.Struct, ir.Union)):
                gen.line(f'{decl.c_spelling};')
            elif isinstance(decl, ir.EnumClass) and decl.is_incomplete:
                gen.line(f'{decl.c_spelling};')
            elif isinstance(decl, ir.ObjCInterface):
                gen.line(f'typedef struct objc_object {decl.original_name};')

        declared_funcs: set[str] = set()
        for decl in dependency_order(self.bindings):
            if isinstance(decl, (ir.Struct, ir.Union)):
                self._cdef_compound(decl, gen)
            elif isinstance(decl, ir.EnumClass):
                self._cdef_enum(decl, gen)
            elif isinstance(decl, ir.Typedef):
                gen.line(f'typedef {decl.underlying.c_type(decl.original_name)};')
            elif isinstance(decl, ir.Func):
                # specializations share the native prototype
                if decl.original_name not in declared_funcs:
                    declared_funcs.add(decl.original_name)
                    gen.line(f'{self._prototype(decl)};')
            elif isinstance(decl, ir.Global):
                self._cdef_global(decl, gen)

    def _cdef_compound(self, decl: ir.Compound, gen: CodeGen):
        if decl.is_incomplete:
            return
        with gen.block(f'{decl.c_spelling} {{', '};'):
            for m in decl.members:
                gen.line(f'{m.type.c_type(m.name)};')

    def _cdef_enum(self, decl: ir.EnumClass, gen: CodeGen):
        if decl.is_incomplete or not decl.constants:
            return
        with gen.block(f'{decl.c_spelling} {{', '};'):
            for c in decl.constants:
                gen.line(f'{c.original_name} = {c.value},')

    def _prototype(self, func: ir.Func) -> str:
        convention = _CONVENTIONS.get(func.native.convention)
        name = f'{convention} {func.original_name}' if convention else func.original_name
        params = [ir.Parameter(p.name, p.type) for p in func.parameters]
        return ir.FunctionType(func.return_type, params, func.is_variadic).c_type(name)

    def _cdef_global(self, decl: ir.Global, gen: CodeGen):
        name = f'const {decl.original_name}' if decl.is_const else decl.original_name
        gen.line(f'extern {decl.type.c_type(name)};')
        if decl.expose_symbol_address:
            alias = ir.ArrayType(decl.type, 1).c_type(address_alias(decl))
            gen.line(f'extern {alias} __asm__({lua_string(decl.original_name)});')

    # ----------------------------------------------------------------------
    # Lua table
    # ----------------------------------------------------------------------

    def _gen_functions(self, entries: list[tuple[str, ir.Binding]], gen: CodeGen):
        if not entries:
            return
        gen.line()
        gen.line('-- Functions')
        for key, func in entries:
            if func.doc:
                gen.comment(func.doc)
            symbol = lua_field('C', func.original_name)
            if not func.var_arg_parameters:
                gen.line(f'{lua_field("M", key)} = {symbol}')
                continue
            fixed = [lua_local_name(p.name) for p in func.parameters]
            extra = [lua_local_name(p.name) for p in func.var_arg_parameters]
            casts = [f'ffi.cast({lua_string(p.type.c_type())}, {n})'
                     for p, n in zip(func.var_arg_parameters, extra)]
            with gen.block(f'{lua_field("M", key)} = function({", ".join(fixed + extra)})'):
                gen.line(f'return {symbol}({", ".join(fixed + casts)})')

    def _gen_enums(self, entries: list[tuple[str, ir.Binding]], gen: CodeGen):
        if not entries:
            return
        gen.line()
        gen.line('-- Enums')
        for key, enum in entries:
            with gen.block(f'{lua_field("M", key)} = {{', '}'):
                for c in enum.constants:
                    gen.line(f'{lua_table_key(c.name)} = {lua_number(c.value)},')

    def _gen_constants(self, entries: list[tuple[str, ir.Binding]], gen: CodeGen):
        if not entries:
            return
        gen.line()
        gen.line('-- Constants')
        for key, const in entries:
            gen.line(f'{lua_field("M", key)} = {lua_value(const.raw_type, const.value)}')

    def _gen_types(self, entries: list[tuple[str, ir.Binding]], gen: CodeGen):
        if not entries:
            return
        gen.line()
        gen.line('-- Types')
        for key, decl in entries:
            spelling = decl.original_name if isinstance(decl, ir.Typedef) else decl.c_spelling
            gen.line(f'{lua_field("M", key)} = ffi.typeof({lua_string(spelling)})')

    def _gen_globals(self, entries: list[tuple[str, ir.Binding]], gen: CodeGen):
        if not entries:
            return
        gen.line()
        gen.line('-- Globals')
        for key, var in entries:
            symbol = lua_field('C', var.original_name)
            with gen.block(f'{lua_field("M", "get_" + key)} = function()'):
                gen.line(f'return {symbol}')
            if not var.is_const:
                with gen.block(f'{lua_field("M", "set_" + key)} = function(value)'):
                    gen.line(f'{symbol} = value')

    def _gen_classes(self, entries: list[tuple[str, ir.Binding]], gen: CodeGen):
        if not entries:
            return
        gen.line()
        gen.line('-- Objective-C classes')
        for key, cls in entries:
            with gen.block(f'{lua_field("M", key)} = {{', '}'):
                gen.line(f'name = {lua_string(cls.original_name)},')
                if cls.superclass is not None:
                    gen.line(f'superclass = {lua_string(cls.superclass.original_name)},')
                for table, is_class in (('instance_methods', False), ('class_methods', True)):
                    methods = [m for m in cls.methods if m.is_class_method == is_class]
                    with gen.block(f'{table} = {{', '},'):
                        for m in methods:
                            gen.line(f'{lua_table_key(m.name)} = {lua_string(m.original_name)},')

    def _gen_addresses(self, gen: CodeGen):
        exposed = [b for b in self.bindings
                   if isinstance(b, (ir.Func, ir.Global)) and b.expose_symbol_address]
        if not exposed:
            return
        gen.line()
        gen.line('-- Symbol addresses')
        seen = set()
        for decl in exposed:
            if decl.original_name in seen:
                continue
            seen.add(decl.original_name)
            if isinstance(decl, ir.Func):
                symbol = lua_field('C', decl.original_name)
            else:
                symbol = lua_field('C', address_alias(decl))
            gen.line(f"{lua_field('M.addresses', decl.original_name)} = ffi.cast('void *', {symbol})")

    def _gen_function_types(self, gen: CodeGen):
        exposed = [b for b in self.bindings if isinstance(b, ir.Func) and b.expose_function_typedefs]
        if not exposed:
            return
        gen.line()
        gen.line('-- Function pointer types')
        for func in exposed:
            params = list(func.parameters) + list(func.var_arg_parameters)
            pointer = ir.PointerType(ir.FunctionType(func.return_type, params))
            gen.line(f'{lua_field("M.types", func.name)} = ffi.typeof({lua_string(pointer.c_type())})')
