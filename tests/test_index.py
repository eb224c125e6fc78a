import pytest

from ffi_gen import ir, ContextStackError, IndexIntegrityError
from ffi_gen.context import ContextStack, ParseContext
from ffi_gen.index import BindingsIndex


def _func(name):
    return ir.Func(usr=f'c:@F@{name}', original_name=name, name=name)


class TestBindingsIndex:

    def test_insert_and_lookup(self):
        index = BindingsIndex()
        decl = _func('add')
        index.insert(decl.usr, decl)
        assert index.lookup('c:@F@add') is decl
        assert index.has('c:@F@add')
        assert 'c:@F@add' in index
        assert index.lookup('c:@F@sub') is None

    def test_duplicate_insert_raises(self):
        index = BindingsIndex()
        index.insert('c:@F@add', _func('add'))
        with pytest.raises(IndexIntegrityError) as excinfo:
            index.insert('c:@F@add', _func('add'))
        assert excinfo.value.usr == 'c:@F@add'

    def test_publication_order(self):
        index = BindingsIndex()
        for name in ('b', 'a', 'c'):
            index.insert(f'c:@F@{name}', _func(name))
        assert [d.name for d in index.declarations()] == ['b', 'a', 'c']
        assert list(index) == ['c:@F@b', 'c:@F@a', 'c:@F@c']
        assert len(index) == 3


class TestContextStack:

    def test_nested_frames(self):
        stack = ContextStack()
        with stack.frame('outer') as outer:
            with stack.frame('inner') as inner:
                assert stack.top is inner
                inner.declarations.append(_func('x'))
            assert stack.top is outer
            assert outer.declarations == []
        assert len(stack) == 0

    def test_frame_popped_on_error(self):
        stack = ContextStack()
        with pytest.raises(ValueError):
            with stack.frame('f'):
                raise ValueError('boom')
        assert len(stack) == 0

    def test_out_of_order_pop(self):
        stack = ContextStack()
        first = stack.push(ParseContext('first'))
        stack.push(ParseContext('second'))
        with pytest.raises(ContextStackError, match='first'):
            stack.pop(first)

    def test_top_of_empty_stack(self):
        with pytest.raises(ContextStackError):
            ContextStack().top
