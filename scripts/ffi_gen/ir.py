"""
IR (Intermediate Representation) module

Semantic model produced by the parser and consumed by the emitters:
type nodes, and one declaration class per native declaration kind.

Declarations refer to each other through CompoundType / TypedefType nodes
that hold the very object published in the declaration index, so emitters
can use identity (`is`) to detect "same type".
"""

from dataclasses import dataclass, field
import typing
from typing import Optional


# ==============================================================================
# Type nodes
# ==============================================================================

class Type:
    """Base class for all type nodes"""

    @property
    def base_type(self) -> 'Type':
        """Type with pointer, array and typedef layers removed"""
        return self

    @property
    def is_incomplete_compound(self) -> bool:
        """True for a by-value compound with no known member layout"""
        return False

    @property
    def is_unimplemented(self) -> bool:
        return isinstance(self.base_type, UnimplementedType)

    def c_type(self, name: str = '') -> str:
        """Render as a C declarator, optionally naming it"""
        raise NotImplementedError


@dataclass(eq=False)
class PrimitiveType(Type):
    name: str     # stable identifier (e.g. 'uint32')
    c_name: str   # C spelling (e.g. 'uint32_t')

    def c_type(self, name: str = '') -> str:
        return f'{self.c_name} {name}'.rstrip()

    def __repr__(self) -> str:
        return f'PrimitiveType({self.name})'


@dataclass(eq=False)
class PointerType(Type):
    child: Type
    const_pointee: bool = False

    @property
    def base_type(self) -> Type:
        return self.child.base_type

    def c_type(self, name: str = '') -> str:
        if isinstance(self.child, (ArrayType, FunctionType)):
            return self.child.c_type(f'(*{name})')
        text = self.child.c_type(f'*{name}')
        return f'const {text}' if self.const_pointee else text


@dataclass(eq=False)
class ArrayType(Type):
    child: Type
    length: Optional[int] = None  # None for `T[]`

    @property
    def base_type(self) -> Type:
        return self.child.base_type

    def c_type(self, name: str = '') -> str:
        size = '' if self.length is None else str(self.length)
        return self.child.c_type(f'{name}[{size}]')


@dataclass(eq=False)
class CompoundType(Type):
    """By-value reference to a struct, union, enum or ObjC interface"""
    decl: 'Compound'

    @property
    def is_incomplete_compound(self) -> bool:
        return self.decl.is_incomplete

    def c_type(self, name: str = '') -> str:
        return f'{self.decl.c_spelling} {name}'.rstrip()

    def __repr__(self) -> str:
        return f'CompoundType({self.decl.original_name or self.decl.usr})'


@dataclass(eq=False)
class TypedefType(Type):
    decl: 'Typedef'

    @property
    def base_type(self) -> Type:
        underlying = self.decl.underlying
        if underlying is None:
            # typedef still being built further up the stack
            return self
        return underlying.base_type

    @property
    def is_incomplete_compound(self) -> bool:
        underlying = self.decl.underlying
        return underlying is not None and underlying.is_incomplete_compound

    def c_type(self, name: str = '') -> str:
        return f'{self.decl.original_name} {name}'.rstrip()

    def __repr__(self) -> str:
        return f'TypedefType({self.decl.original_name})'


@dataclass(eq=False)
class FunctionType(Type):
    return_type: Type
    parameters: list['Parameter'] = field(default_factory=list)
    is_variadic: bool = False

    def c_type(self, name: str = '') -> str:
        params = ', '.join(p.type.c_type() for p in self.parameters)
        if self.is_variadic:
            params = f'{params}, ...' if params else '...'
        return self.return_type.c_type(f'{name}({params or "void"})')


@dataclass(eq=False)
class UnimplementedType(Type):
    reason: str

    def c_type(self, name: str = '') -> str:
        return f'/* unimplemented: {self.reason} */ void {name}'.rstrip()


def _prim(name: str, c_name: str) -> PrimitiveType:
    return PrimitiveType(name=name, c_name=c_name)


VOID = _prim('void', 'void')
BOOL = _prim('bool', 'bool')
CHAR = _prim('char', 'char')
INT8 = _prim('int8', 'int8_t')
UINT8 = _prim('uint8', 'uint8_t')
SHORT = _prim('short', 'short')
USHORT = _prim('ushort', 'unsigned short')
INT = _prim('int', 'int')
UINT = _prim('uint', 'unsigned int')
LONG = _prim('long', 'long')
ULONG = _prim('ulong', 'unsigned long')
LONGLONG = _prim('longlong', 'long long')
ULONGLONG = _prim('ulonglong', 'unsigned long long')
SIGNED_CHAR = _prim('schar', 'signed char')
UNSIGNED_CHAR = _prim('uchar', 'unsigned char')
WCHAR = _prim('wchar', 'wchar_t')
FLOAT = _prim('float', 'float')
DOUBLE = _prim('double', 'double')
INT16 = _prim('int16', 'int16_t')
UINT16 = _prim('uint16', 'uint16_t')
INT32 = _prim('int32', 'int32_t')
UINT32 = _prim('uint32', 'uint32_t')
INT64 = _prim('int64', 'int64_t')
UINT64 = _prim('uint64', 'uint64_t')
INTPTR = _prim('intptr', 'intptr_t')
UINTPTR = _prim('uintptr', 'uintptr_t')
SIZE = _prim('size', 'size_t')
SSIZE = _prim('ssize', 'ssize_t')
PTRDIFF = _prim('ptrdiff', 'ptrdiff_t')
OBJC_ID = _prim('id', 'id')
OBJC_SEL = _prim('SEL', 'SEL')
OBJC_CLASS = _prim('Class', 'Class')

# Well-known typedef names mapped straight to primitives
SUPPORTED_TYPEDEFS: dict[str, PrimitiveType] = {
    'int8_t': INT8,
    'uint8_t': UINT8,
    'int16_t': INT16,
    'uint16_t': UINT16,
    'int32_t': INT32,
    'uint32_t': UINT32,
    'int64_t': INT64,
    'uint64_t': UINT64,
    'intptr_t': INTPTR,
    'uintptr_t': UINTPTR,
    'size_t': SIZE,
    'ssize_t': SSIZE,
    'ptrdiff_t': PTRDIFF,
    'wchar_t': WCHAR,
    'bool': BOOL,
    'instancetype': OBJC_ID,
}


# ==============================================================================
# Declarations
# ==============================================================================

@dataclass(eq=False)
class Binding:
    """Common fields for every declaration"""
    usr: str
    original_name: str
    name: str
    doc: str = ''


@dataclass(eq=False)
class Parameter:
    name: str
    type: Type
    original_name: str = ''


@dataclass(eq=False)
class NativeBinding:
    """How generated code reaches the native symbols"""
    library: Optional[str] = None     # None: symbols come from the process
    convention: Optional[str] = None  # e.g. 'stdcall'


@dataclass(eq=False)
class Func(Binding):
    return_type: Type = VOID
    parameters: list[Parameter] = field(default_factory=list)
    var_arg_parameters: list[Parameter] = field(default_factory=list)
    var_arg_postfix: str = ''
    is_variadic: bool = False
    expose_symbol_address: bool = False
    expose_function_typedefs: bool = False
    is_leaf: bool = False
    native: NativeBinding = field(default_factory=NativeBinding)

    @property
    def all_parameters(self) -> list[Parameter]:
        return self.parameters + self.var_arg_parameters

    @property
    def is_specialization(self) -> bool:
        return bool(self.var_arg_postfix)

    def __repr__(self) -> str:
        return f'Func({self.name})'


@dataclass(eq=False)
class Member:
    name: str
    type: Type
    original_name: str = ''
    doc: str = ''


@dataclass(eq=False)
class Compound(Binding):
    """Declarations that can be referenced by a CompoundType"""
    is_incomplete: bool = False

    keyword = ''

    @property
    def c_spelling(self) -> str:
        return f'{self.keyword} {self.original_name}'.strip()


@dataclass(eq=False)
class Struct(Compound):
    members: list[Member] = field(default_factory=list)

    keyword = 'struct'

    def __repr__(self) -> str:
        return f'Struct({self.name})'


@dataclass(eq=False)
class Union(Compound):
    members: list[Member] = field(default_factory=list)

    keyword = 'union'

    def __repr__(self) -> str:
        return f'Union({self.name})'


@dataclass(eq=False)
class EnumConstant:
    original_name: str
    name: str
    value: int
    doc: str = ''


@dataclass(eq=False)
class EnumClass(Compound):
    constants: list[EnumConstant] = field(default_factory=list)

    keyword = 'enum'

    def __repr__(self) -> str:
        return f'EnumClass({self.name})'


@dataclass(eq=False)
class ObjCMethod:
    original_name: str  # selector, e.g. 'initWithFrame:'
    name: str
    return_type: Type
    parameters: list[Parameter] = field(default_factory=list)
    is_class_method: bool = False
    doc: str = ''


@dataclass(eq=False)
class ObjCInterface(Compound):
    superclass: Optional['ObjCInterface'] = None
    methods: list[ObjCMethod] = field(default_factory=list)

    @property
    def c_spelling(self) -> str:
        return self.original_name

    def __repr__(self) -> str:
        return f'ObjCInterface({self.name})'


@dataclass(eq=False)
class Typedef(Binding):
    underlying: Optional[Type] = None  # None only while being built

    def __repr__(self) -> str:
        return f'Typedef({self.name})'


@dataclass(eq=False)
class Global(Binding):
    type: Type = VOID
    is_const: bool = False
    expose_symbol_address: bool = False

    def __repr__(self) -> str:
        return f'Global({self.name})'


@dataclass(eq=False)
class Constant(Binding):
    raw_type: str = 'int'  # 'int' | 'double' | 'string'
    value: typing.Union[int, float, str] = 0

    def __repr__(self) -> str:
        return f'Constant({self.name}={self.value!r})'


def referenced_declarations(t: Type) -> list[Binding]:
    """Every declaration reachable from a type, through pointers too"""
    if isinstance(t, (CompoundType, TypedefType)):
        return [t.decl]
    if isinstance(t, (PointerType, ArrayType)):
        return referenced_declarations(t.child)
    if isinstance(t, FunctionType):
        result = referenced_declarations(t.return_type)
        for p in t.parameters:
            result.extend(referenced_declarations(p.type))
        return result
    return []
