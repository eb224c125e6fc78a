"""
Front-end interface

The parser never talks to libclang directly. It consumes cursors and native
types through the abstract classes below; clang_frontend.py adapts
clang.cindex to them, and the test suite provides in-memory fakes.

Method names follow clang.cindex so the adapter stays thin.
"""

import re
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Optional


class CursorKind(Enum):
    FUNCTION = auto()
    STRUCT = auto()
    UNION = auto()
    ENUM = auto()
    ENUM_CONSTANT = auto()
    TYPEDEF = auto()
    VAR = auto()
    FIELD = auto()
    PARAM = auto()
    MACRO_DEFINITION = auto()
    OBJC_INTERFACE = auto()
    OBJC_SUPERCLASS_REF = auto()
    OBJC_INSTANCE_METHOD = auto()
    OBJC_CLASS_METHOD = auto()
    OTHER = auto()


class TypeKind(Enum):
    VOID = auto()
    BOOL = auto()
    CHAR_S = auto()
    CHAR_U = auto()
    SCHAR = auto()
    UCHAR = auto()
    WCHAR = auto()
    CHAR16 = auto()
    CHAR32 = auto()
    SHORT = auto()
    USHORT = auto()
    INT = auto()
    UINT = auto()
    LONG = auto()
    ULONG = auto()
    LONGLONG = auto()
    ULONGLONG = auto()
    INT128 = auto()
    UINT128 = auto()
    HALF = auto()
    FLOAT = auto()
    DOUBLE = auto()
    LONG_DOUBLE = auto()
    POINTER = auto()
    BLOCK_POINTER = auto()
    CONSTANT_ARRAY = auto()
    INCOMPLETE_ARRAY = auto()
    VARIABLE_ARRAY = auto()
    RECORD = auto()
    ENUM = auto()
    TYPEDEF = auto()
    ELABORATED = auto()
    FUNCTION_PROTO = auto()
    FUNCTION_NO_PROTO = auto()
    VECTOR = auto()
    COMPLEX = auto()
    ATOMIC = auto()
    OBJC_ID = auto()
    OBJC_SEL = auto()
    OBJC_CLASS = auto()
    OBJC_INTERFACE = auto()
    OBJC_OBJECT_POINTER = auto()
    UNEXPOSED = auto()
    OTHER = auto()


class StorageClass(Enum):
    NONE = auto()
    EXTERN = auto()
    STATIC = auto()
    OTHER = auto()


class NativeType(ABC):
    """A type handle as seen by the native compiler"""

    @property
    @abstractmethod
    def kind(self) -> TypeKind:
        pass

    @property
    @abstractmethod
    def spelling(self) -> str:
        pass

    @abstractmethod
    def get_pointee(self) -> 'NativeType':
        """Pointee of a POINTER / OBJC_OBJECT_POINTER / BLOCK_POINTER"""
        pass

    @property
    @abstractmethod
    def element_type(self) -> 'NativeType':
        pass

    @property
    @abstractmethod
    def element_count(self) -> int:
        pass

    @abstractmethod
    def get_declaration(self) -> Optional['Cursor']:
        """Declaration cursor of a RECORD / ENUM / TYPEDEF / OBJC_INTERFACE"""
        pass

    @abstractmethod
    def get_canonical(self) -> 'NativeType':
        pass

    @abstractmethod
    def get_named_type(self) -> 'NativeType':
        """Type named by an ELABORATED type (`struct Foo` -> Foo)"""
        pass

    @abstractmethod
    def get_result(self) -> 'NativeType':
        pass

    @abstractmethod
    def argument_types(self) -> list['NativeType']:
        pass

    @abstractmethod
    def is_function_variadic(self) -> bool:
        pass

    @abstractmethod
    def is_const_qualified(self) -> bool:
        pass


class Cursor(ABC):
    """One declaration in the native AST"""

    @property
    @abstractmethod
    def kind(self) -> CursorKind:
        pass

    @property
    @abstractmethod
    def spelling(self) -> str:
        """Declared name; empty for anonymous declarations"""
        pass

    @abstractmethod
    def get_usr(self) -> str:
        pass

    @property
    @abstractmethod
    def type(self) -> NativeType:
        pass

    @property
    @abstractmethod
    def result_type(self) -> NativeType:
        pass

    @property
    @abstractmethod
    def underlying_typedef_type(self) -> NativeType:
        pass

    @property
    @abstractmethod
    def storage_class(self) -> StorageClass:
        pass

    @property
    @abstractmethod
    def raw_comment(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def location(self) -> str:
        """`file:line` for log messages; empty if unknown"""
        pass

    @property
    @abstractmethod
    def enum_value(self) -> int:
        pass

    @property
    @abstractmethod
    def referenced(self) -> Optional['Cursor']:
        """Target of a reference cursor (e.g. OBJC_SUPERCLASS_REF)"""
        pass

    @abstractmethod
    def get_arguments(self) -> list['Cursor']:
        pass

    @abstractmethod
    def get_children(self) -> list['Cursor']:
        pass

    @abstractmethod
    def get_definition(self) -> Optional['Cursor']:
        pass

    @abstractmethod
    def get_tokens(self) -> list[str]:
        """Token spellings; for macros the first token is the macro name"""
        pass

    @abstractmethod
    def is_definition(self) -> bool:
        pass

    @abstractmethod
    def is_function_inlined(self) -> bool:
        pass

    @abstractmethod
    def is_macro_function_like(self) -> bool:
        pass

    @abstractmethod
    def is_bitfield(self) -> bool:
        pass

    @abstractmethod
    def is_anonymous(self) -> bool:
        pass

    def describe(self) -> str:
        """Short text for log messages"""
        text = f'{self.kind.name} {self.spelling or "<anonymous>"}'
        if self.location:
            text += f' at {self.location}'
        return text


_COMMENT_MARKERS = re.compile(r'^\s*(?:/\*\*?!?|\*/|\*(?!/)|///?!?<?)\s?')


def doc_comment(cursor: Cursor) -> str:
    """Get the documentation comment attached to a cursor, markers removed"""
    raw = cursor.raw_comment
    if not raw:
        return ''
    lines = []
    for line in raw.splitlines():
        line = line.rstrip()
        if line.endswith('*/'):
            line = line[:-2].rstrip()
        lines.append(_COMMENT_MARKERS.sub('', line, count=1).rstrip())
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return '\n'.join(lines)
