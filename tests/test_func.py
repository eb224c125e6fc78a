"""
Tests for function parsing: identity, parameters, drops and variadic
specialization.
"""

from ffi_gen import ir, Category, DeclarationFilter, HeaderParser, ParseSession, Reason
from ffi_gen.cursor import StorageClass

from fakes import (
    CHAR, DOUBLE, INT, INT128, LONG_DOUBLE, VOID,
    const, elaborated, field, func, function_type, pointer, record_type, struct,
)


class TestDeduplication:

    def test_same_cursor_twice_yields_same_object(self, config):
        session = ParseSession(config)
        add = func('add', INT, [('a', INT), ('b', INT)])
        first = session.visit(add)
        second = session.visit(add)
        assert len(first) == 1
        assert first[0] is second[0]
        assert len(session.index) == 1

    def test_excluded_revisit_returns_published_function(self, config):
        session = ParseSession(config)
        f = func('f')
        first = session.visit(f)
        config.functions = DeclarationFilter(exclude=['f'])
        second = session.visit(f)
        assert len(second) == 1
        assert second[0] is first[0]

    def test_excluded_revisit_returns_published_specializations(self, config):
        config.add_var_args('log', ('_i', ['int']), ('_s', ['const char *']))
        session = ParseSession(config)
        log = func('log', VOID, [('fmt', pointer(const(CHAR)))], variadic=True)
        first = session.visit(log)
        config.functions = DeclarationFilter(exclude=['log'])
        second = session.visit(log)
        assert [f.name for f in second] == ['log_i', 'log_s']
        assert all(a is b for a, b in zip(first, second))
        assert session.index.lookup(log.get_usr() + '_s') is second[1]

    def test_struct_shared_by_two_functions(self, parse):
        point = struct('Point')
        point_ptr = pointer(elaborated(record_type(point)))
        result = parse(func('a', VOID, [('p', point_ptr)]), func('b', VOID, [('p', point_ptr)]), point)

        structs = result.of_type(ir.Struct)
        assert len(structs) == 1
        a, b = result.find('a'), result.find('b')
        assert a.parameters[0].type.child.decl is structs[0]
        assert b.parameters[0].type.child.decl is structs[0]


class TestParameters:

    def test_order_preserved(self, parse):
        result = parse(func('f', VOID, [('z', INT), ('a', DOUBLE), ('m', pointer(CHAR))]))
        f = result.find('f')
        assert [p.name for p in f.parameters] == ['z', 'a', 'm']
        assert f.parameters[0].type is ir.INT
        assert f.parameters[1].type is ir.DOUBLE
        assert f.parameters[2].type.c_type() == 'char *'

    def test_unnamed_parameters_are_synthesized(self, parse):
        result = parse(func('f', VOID, [('', INT), ('', DOUBLE)]))
        assert [p.name for p in result.find('f').parameters] == ['arg0', 'arg1']

    def test_unnamed_parameter_uses_position(self, parse):
        result = parse(func('f', VOID, [('x', INT), ('', INT)]))
        assert [p.name for p in result.find('f').parameters] == ['x', 'arg1']

    def test_parameter_rename(self, config, parse):
        config.functions = DeclarationFilter(member_rename={'f': {'in_(.*)': r'\1'}})
        result = parse(func('f', VOID, [('in_count', INT)]))
        p = result.find('f').parameters[0]
        assert p.name == 'count'
        assert p.original_name == 'in_count'

    def test_function_pointer_parameter(self, parse):
        callback = pointer(function_type(VOID, [INT]))
        result = parse(func('set_cb', VOID, [('cb', callback)]))
        assert result.find('set_cb').parameters[0].type.c_type() == 'void (*)(int)'

    def test_const_char_pointer(self, parse):
        result = parse(func('puts', INT, [('s', pointer(const(CHAR)))]))
        assert result.find('puts').parameters[0].type.c_type('s') == 'const char *s'


class TestDrops:

    def test_incomplete_struct_by_value_dropped(self, parse):
        opaque = struct('Opaque', definition=False)
        result = parse(func('take', VOID, [('o', elaborated(record_type(opaque)))]))

        assert result.find('take') is None
        diags = result.diagnostics.by_reason(Reason.INCOMPLETE_BY_VALUE)
        assert [d.name for d in diags] == ['take']
        assert diags[0].category is Category.UNSUPPORTED_CONSTRUCT

    def test_pointer_to_incomplete_struct_kept(self, parse):
        opaque = struct('Opaque', definition=False)
        result = parse(func('take', VOID, [('o', pointer(elaborated(record_type(opaque))))]))

        take = result.find('take')
        assert take is not None
        assert take.parameters[0].type.child.decl.is_incomplete
        assert not result.diagnostics

    def test_incomplete_struct_returned_by_value_dropped(self, parse):
        opaque = struct('Opaque', definition=False)
        result = parse(func('make', elaborated(record_type(opaque))))
        assert result.find('make') is None
        assert len(result.diagnostics.by_reason(Reason.INCOMPLETE_BY_VALUE)) == 1

    def test_opaque_struct_still_published(self, parse):
        opaque = struct('Opaque', definition=False)
        result = parse(func('take', VOID, [('o', elaborated(record_type(opaque)))]))
        assert isinstance(result.find('Opaque'), ir.Struct)

    def test_inline_function_dropped(self, parse):
        result = parse(func('helper', INT, inlined=True, storage=StorageClass.STATIC))
        assert result.find('helper') is None
        assert [d.reason for d in result.diagnostics] == [Reason.INLINE_FUNCTION]

    def test_extern_inline_function_kept(self, parse):
        result = parse(func('helper', INT, inlined=True, storage=StorageClass.EXTERN))
        assert result.find('helper') is not None

    def test_unimplemented_return_type(self, parse):
        result = parse(func('precise', LONG_DOUBLE))
        assert result.find('precise') is None
        assert [d.reason for d in result.diagnostics] == [Reason.UNIMPLEMENTED_TYPE]

    def test_dropped_function_reported_once(self, parse):
        precise = func('precise', LONG_DOUBLE)
        result = parse(precise, precise)
        assert result.find('precise') is None
        assert [d.name for d in result.diagnostics] == ['precise']

    def test_unimplemented_parameter_type(self, parse):
        result = parse(func('wide', VOID, [('x', INT128)]))
        assert result.find('wide') is None
        assert [d.reason for d in result.diagnostics] == [Reason.UNIMPLEMENTED_TYPE]

    def test_variadic_function_pointer_parameter(self, parse):
        callback = pointer(function_type(VOID, [INT], variadic=True))
        result = parse(func('set_logger', VOID, [('cb', callback)]))
        assert result.find('set_logger') is None

    def test_excluded_function_is_not_an_error(self, config, parse):
        config.functions = DeclarationFilter(exclude=['hidden'])
        result = parse(func('hidden'), func('shown'))
        assert result.find('hidden') is None
        assert result.find('shown') is not None
        assert not result.diagnostics

    def test_exclusion_by_usr(self, config, parse):
        config.functions = DeclarationFilter(exclude=['c:@F@hidden'])
        result = parse(func('hidden'))
        assert result.bindings == []


class TestVariadic:

    def test_specializations_replace_the_function(self, config, parse):
        config.add_var_args('log', ('_1', ['int']), ('_2', ['double', 'const char *']))
        log = func('log', VOID, [('fmt', pointer(const(CHAR)))], variadic=True)
        result = parse(log)

        assert [f.name for f in result.functions] == ['log_1', 'log_2']
        f1, f2 = result.functions
        assert f1.usr == log.get_usr() + '_1'
        assert f2.usr == log.get_usr() + '_2'
        assert [p.name for p in f1.all_parameters] == ['fmt', 'va0']
        assert f1.var_arg_parameters[0].type is ir.INT
        assert f2.var_arg_parameters[0].type is ir.DOUBLE
        assert f2.var_arg_parameters[1].type.c_type() == 'const char *'
        assert all(f.original_name == 'log' for f in result.functions)

    def test_no_plain_binding_for_specialized_function(self, config, parse):
        config.add_var_args('log', ('_1', ['int']), ('_2', ['double']))
        log = func('log', VOID, [('fmt', pointer(const(CHAR)))], variadic=True)
        result = parse(log)
        assert result.find('log') is None
        assert log.get_usr() not in result.index

    def test_variadic_without_signatures_keeps_fixed_parameters(self, parse):
        result = parse(func('log', VOID, [('fmt', pointer(const(CHAR)))], variadic=True))
        log = result.find('log')
        assert log.is_variadic
        assert log.var_arg_parameters == []
        assert not log.is_specialization

    def test_revisit_reuses_specializations(self, config):
        config.add_var_args('log', ('_1', ['int']))
        session = ParseSession(config)
        log = func('log', VOID, [('fmt', pointer(const(CHAR)))], variadic=True)
        first = session.visit(log)
        second = session.visit(log)
        assert first[0] is second[0]

    def test_non_variadic_misconfiguration(self, config, parse):
        config.add_var_args('plain', ('_1', ['int']))
        result = parse(func('plain', INT, [('x', INT)]))

        assert [f.name for f in result.functions] == ['plain']
        assert result.functions[0].var_arg_parameters == []
        mismatches = result.diagnostics.by_category(Category.CONFIGURATION_MISMATCH)
        assert len(mismatches) == 1
        assert mismatches[0].reason is Reason.VARIADIC_CONFIG_MISMATCH
        assert len(result.diagnostics) == 1


class TestFlags:

    def test_policy_flags(self, config, parse):
        config.functions = DeclarationFilter(symbol_address=['add'])
        config.leaf_functions = DeclarationFilter(include=['add'])
        config.expose_function_typedefs = DeclarationFilter(include=['add'])
        config.native = ir.NativeBinding(library='mylib', convention='stdcall')
        result = parse(func('add', INT, [('a', INT)]), func('sub', INT, [('a', INT)]))

        add, sub = result.find('add'), result.find('sub')
        assert add.expose_symbol_address and add.is_leaf and add.expose_function_typedefs
        assert not (sub.expose_symbol_address or sub.is_leaf or sub.expose_function_typedefs)
        assert add.native is config.native
        assert sub.native.convention == 'stdcall'

    def test_rename(self, config, parse):
        config.functions = DeclarationFilter(rename={'lib_(.*)': r'\1'})
        result = parse(func('lib_open'))
        f = result.functions[0]
        assert (f.original_name, f.name) == ('lib_open', 'open')

    def test_doc_comment(self, parse):
        result = parse(func('f', comment='/**\n * Adds things.\n */'))
        assert result.find('f').doc == 'Adds things.'

    def test_comments_disabled(self, config, parse):
        config.comments = False
        result = parse(func('f', comment='/// Adds things.'))
        assert result.find('f').doc == ''


class TestRunLifecycle:

    def _cursors(self):
        node = struct('Node')
        node.set_fields(field('next', pointer(elaborated(record_type(node)))))
        return [
            node,
            func('add', INT, [('a', INT), ('b', INT)]),
            func('bad', LONG_DOUBLE),
        ]

    def test_idempotent_across_runs(self, config):
        cursors = self._cursors()
        first = HeaderParser(config).parse(cursors)
        second = HeaderParser(config).parse(cursors)

        def summary(result):
            return [(type(b).__name__, b.usr, b.name) for b in result.bindings]

        assert summary(first) == summary(second)
        assert [str(d) for d in first.diagnostics] == [str(d) for d in second.diagnostics]
        assert first.bindings[0] is not second.bindings[0]

    def test_context_stack_empty_after_run(self, config):
        session = ParseSession(config)
        session.run(self._cursors())
        assert len(session.stack) == 0
