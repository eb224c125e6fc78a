import pytest

from ffi_gen import ir, HeaderParser, LuaCATSGenerator

from fakes import (
    BOOL, CHAR, DOUBLE, FLOAT, INT, LONG, VOID,
    array, const, elaborated, enum, enum_type, field, func, function_type, macro,
    objc_interface, pointer, record_type, struct, typedef, var,
)


@pytest.fixture
def generate(config):
    def run(*cursors):
        result = HeaderParser(config).parse(cursors)
        return LuaCATSGenerator(result, config).generate()
    return run


class TestLuaCATS:

    def test_header_and_module_class(self, generate):
        lines = generate(func('add')).splitlines()
        assert lines[0] == '---@meta'
        assert '---@class test' in lines
        assert 'local M = {}' in lines
        assert lines[-1] == 'return M'

    def test_struct_class(self, generate):
        point = struct('Point', field('x', INT), field('y', DOUBLE), field('name', pointer(const(CHAR))))
        lines = generate(point).splitlines()
        start = lines.index('---@class test.Point: ffi.cdata*')
        assert lines[start + 1:start + 4] == [
            '---@field x integer',
            '---@field y number',
            '---@field name string|ffi.cdata*',
        ]
        assert '---@type ffi.ctype*' in lines
        assert 'M.Point = nil' in lines

    def test_nested_struct_field(self, generate):
        inner = struct('Inner', field('v', INT))
        outer = struct('Outer', field('inner', elaborated(record_type(inner))), field('buf', array(CHAR, 4)))
        lines = generate(outer).splitlines()
        assert '---@field inner test.Inner' in lines
        assert '---@field buf ffi.cdata*' in lines

    def test_function(self, generate):
        lines = generate(func('add', INT, [('a', INT), ('b', FLOAT)])).splitlines()
        start = lines.index('---@param a integer')
        assert lines[start + 1:start + 4] == [
            '---@param b number',
            '---@return integer',
            'function M.add(a, b) end',
        ]

    def test_void_function_has_no_return(self, generate):
        lines = generate(func('reset', VOID)).splitlines()
        idx = lines.index('function M.reset() end')
        assert not lines[idx - 1].startswith('---@return')

    def test_keyword_parameter_and_name(self, generate):
        lines = generate(func('end', VOID, [('until', BOOL)])).splitlines()
        assert '---@param until_ boolean' in lines
        assert 'M["end"] = function(until_) end' in lines

    def test_wide_and_callback_types(self, generate):
        callback = pointer(function_type(VOID, [INT]))
        lines = generate(func('register', LONG, [('cb', callback), ('data', pointer(VOID))])).splitlines()
        assert '---@param cb function|ffi.cdata*' in lines
        assert '---@param data ffi.cdata*' in lines
        assert '---@return integer|ffi.cdata*' in lines

    def test_variadic_specialization_parameters(self, config, generate):
        config.add_var_args('printf', ('_d', ['double']))
        lines = generate(func('printf', INT, [('fmt', pointer(const(CHAR)))], variadic=True)).splitlines()
        start = lines.index('---@param fmt string|ffi.cdata*')
        assert lines[start + 1:start + 4] == [
            '---@param va0 number',
            '---@return integer',
            'function M.printf_d(fmt, va0) end',
        ]

    def test_enum(self, generate):
        lines = generate(enum('Color', ('RED', 0), ('GREEN', 5))).splitlines()
        start = lines.index('---@enum test.Color')
        assert lines[start + 1:start + 5] == ['M.Color = {', '    RED = 0,', '    GREEN = 5,', '}']

    def test_enum_parameter_is_integer(self, generate):
        color = enum('Color', ('RED', 0))
        lines = generate(color, func('paint', VOID, [('c', elaborated(enum_type(color)))])).splitlines()
        assert '---@param c integer' in lines

    def test_typedef_alias(self, generate):
        lines = generate(typedef('score_t', DOUBLE)).splitlines()
        assert '---@alias test.score_t number' in lines

    def test_typedef_of_struct_has_no_alias(self, generate):
        point = struct('Point', field('x', INT))
        lines = generate(point, typedef('Point', elaborated(record_type(point)))).splitlines()
        assert not any(line.startswith('---@alias') for line in lines)

    def test_constants(self, generate):
        lines = generate(macro('MAX', '10'), macro('NAME', '"x"')).splitlines()
        assert lines[lines.index('M.MAX = nil') - 1] == '---@type integer'
        assert lines[lines.index('M.NAME = nil') - 1] == '---@type string'

    def test_global_accessors(self, generate):
        lines = generate(var('counter', INT), var('limit', const(DOUBLE))).splitlines()
        assert 'function M.get_counter() end' in lines
        assert 'function M.set_counter(value) end' in lines
        assert lines[lines.index('function M.set_counter(value) end') - 1] == '---@param value integer'
        assert 'function M.get_limit() end' in lines
        assert 'function M.set_limit(value) end' not in lines

    def test_doc_comments(self, generate):
        lines = generate(func('add', comment='/** Adds. */')).splitlines()
        idx = lines.index('function M.add() end')
        assert '--- Adds.' in lines[:idx]

    def test_doc_comments_disabled(self, config, generate):
        config.comments = False
        assert '--- Adds.' not in generate(func('add', comment='/** Adds. */'))

    def test_objc_class(self, generate):
        lines = generate(objc_interface('NSView')).splitlines()
        assert 'M.NSView = nil' in lines

    def test_lua_type(self, config):
        gen = LuaCATSGenerator(HeaderParser(config).parse([]), config)
        assert gen.lua_type(ir.UINT64) == 'integer|ffi.cdata*'
        assert gen.lua_type(ir.UINT8) == 'integer'
        assert gen.lua_type(ir.PointerType(ir.CHAR, const_pointee=True)) == 'string|ffi.cdata*'
        assert gen.lua_type(ir.PointerType(ir.INT)) == 'ffi.cdata*'
        assert gen.lua_type(ir.OBJC_ID) == 'ffi.cdata*'
