"""
Type resolution module

Converts native types into IR type nodes. Types with no safe binding are
returned as UnimplementedType rather than raised, so each declaration
parser can decide whether the enclosing declaration survives.
"""

import logging
from typing import TYPE_CHECKING

from . import ir
from .cursor import CursorKind, NativeType, TypeKind

if TYPE_CHECKING:
    from .parser import ParseSession

logger = logging.getLogger(__name__)


PRIMITIVES: dict[TypeKind, ir.PrimitiveType] = {
    TypeKind.VOID: ir.VOID,
    TypeKind.BOOL: ir.BOOL,
    TypeKind.CHAR_S: ir.CHAR,
    TypeKind.CHAR_U: ir.CHAR,
    TypeKind.SCHAR: ir.SIGNED_CHAR,
    TypeKind.UCHAR: ir.UNSIGNED_CHAR,
    TypeKind.WCHAR: ir.WCHAR,
    TypeKind.CHAR16: ir.UINT16,
    TypeKind.CHAR32: ir.UINT32,
    TypeKind.SHORT: ir.SHORT,
    TypeKind.USHORT: ir.USHORT,
    TypeKind.INT: ir.INT,
    TypeKind.UINT: ir.UINT,
    TypeKind.LONG: ir.LONG,
    TypeKind.ULONG: ir.ULONG,
    TypeKind.LONGLONG: ir.LONGLONG,
    TypeKind.ULONGLONG: ir.ULONGLONG,
    TypeKind.FLOAT: ir.FLOAT,
    TypeKind.DOUBLE: ir.DOUBLE,
    TypeKind.OBJC_ID: ir.OBJC_ID,
    TypeKind.OBJC_SEL: ir.OBJC_SEL,
    TypeKind.OBJC_CLASS: ir.OBJC_CLASS,
}

# Native kinds that have no binding representation
UNSUPPORTED_KINDS: dict[TypeKind, str] = {
    TypeKind.INT128: '128-bit integer',
    TypeKind.UINT128: '128-bit integer',
    TypeKind.LONG_DOUBLE: 'long double',
    TypeKind.HALF: 'half-precision float',
    TypeKind.VECTOR: 'vector type',
    TypeKind.COMPLEX: 'complex type',
    TypeKind.ATOMIC: 'atomic type',
    TypeKind.VARIABLE_ARRAY: 'variable length array',
    TypeKind.BLOCK_POINTER: 'block pointer',
}


class TypeResolver:
    """Resolves native types against the session's declaration index"""

    def __init__(self, session: 'ParseSession'):
        self.session = session

    def resolve(self, native: NativeType) -> ir.Type:
        """Convert a native type into an IR type node"""
        kind = native.kind

        if kind in PRIMITIVES:
            return PRIMITIVES[kind]

        if kind in UNSUPPORTED_KINDS:
            return self._unimplemented(native, UNSUPPORTED_KINDS[kind])

        if kind == TypeKind.POINTER:
            pointee = native.get_pointee()
            return ir.PointerType(self.resolve(pointee), const_pointee=pointee.is_const_qualified())

        if kind == TypeKind.OBJC_OBJECT_POINTER:
            return self._objc_object_pointer(native)

        if kind == TypeKind.CONSTANT_ARRAY:
            return ir.ArrayType(self.resolve(native.element_type), native.element_count)

        if kind == TypeKind.INCOMPLETE_ARRAY:
            return ir.ArrayType(self.resolve(native.element_type), None)

        if kind == TypeKind.ELABORATED:
            return self.resolve(native.get_named_type())

        if kind == TypeKind.TYPEDEF:
            return self._typedef(native)

        if kind in (TypeKind.RECORD, TypeKind.ENUM, TypeKind.OBJC_INTERFACE):
            return self._compound(native)

        if kind in (TypeKind.FUNCTION_PROTO, TypeKind.FUNCTION_NO_PROTO):
            return self._function(native)

        if kind == TypeKind.UNEXPOSED:
            canonical = native.get_canonical()
            if canonical.kind != TypeKind.UNEXPOSED:
                return self.resolve(canonical)
            return self._unimplemented(native, 'unexposed type')

        return self._unimplemented(native, f'unsupported type kind {kind.name}')

    def _typedef(self, native: NativeType) -> ir.Type:
        decl_cursor = native.get_declaration()
        if decl_cursor is None:
            return self.resolve(native.get_canonical())
        name = decl_cursor.spelling
        if name in ir.SUPPORTED_TYPEDEFS:
            return ir.SUPPORTED_TYPEDEFS[name]
        return ir.TypedefType(self.session.typedefs.resolve(decl_cursor))

    def _compound(self, native: NativeType) -> ir.Type:
        decl_cursor = native.get_declaration()
        if decl_cursor is None:
            return self._unimplemented(native, 'compound type without declaration')
        kind = decl_cursor.kind
        if kind in (CursorKind.STRUCT, CursorKind.UNION):
            decl = self.session.structs.resolve(decl_cursor)
        elif kind == CursorKind.ENUM:
            decl = self.session.enums.resolve(decl_cursor)
        elif kind == CursorKind.OBJC_INTERFACE:
            decl = self.session.objc.resolve(decl_cursor)
        else:
            return self._unimplemented(native, f'unsupported compound {kind.name}')
        return ir.CompoundType(decl)

    def _objc_object_pointer(self, native: NativeType) -> ir.Type:
        pointee = native.get_pointee()
        if pointee.kind == TypeKind.OBJC_INTERFACE:
            return ir.PointerType(self._compound(pointee))
        # `id<Protocol>` and friends
        return ir.OBJC_ID

    def _function(self, native: NativeType) -> ir.Type:
        if native.kind == TypeKind.FUNCTION_NO_PROTO:
            return ir.FunctionType(self.resolve(native.get_result()))
        if native.is_function_variadic():
            return self._unimplemented(native, 'variadic function type')
        parameters = []
        for i, arg in enumerate(native.argument_types()):
            parameters.append(ir.Parameter(name=f'arg{i}', type=self.resolve(arg)))
        fn = ir.FunctionType(self.resolve(native.get_result()), parameters)
        if any(p.type.is_unimplemented or p.type.is_incomplete_compound for p in parameters) \
                or fn.return_type.is_unimplemented:
            return self._unimplemented(native, 'function type with unsupported signature')
        return fn

    def _unimplemented(self, native: NativeType, reason: str) -> ir.UnimplementedType:
        logger.debug('Unimplemented type %r: %s', native.spelling, reason)
        return ir.UnimplementedType(f'{reason}: {native.spelling}')
