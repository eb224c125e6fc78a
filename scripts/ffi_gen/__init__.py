"""
ffi_gen - LuaJIT FFI binding generator for C headers

Parses C (and Objective-C) headers through libclang into a binding model,
applying per-library policy (filters, renames, variadic call signatures),
then emits a LuaJIT `ffi.cdef` module and LuaCATS annotations.
"""

from .config import Config, DeclarationFilter, HeaderConfig
from .diagnostics import Category, Diagnostic, Diagnostics, Reason
from .errors import BindgenError, ConfigError, ContextStackError, FrontendError, IndexIntegrityError
from .generator import Generator
from .luacats import LuaCATSGenerator
from .luajit import LuaJITGenerator
from .parser import HeaderParser, ParseResult, ParseSession
from .varargs import VarArgFunction

__all__ = [
    'Config', 'DeclarationFilter', 'HeaderConfig',
    'Category', 'Diagnostic', 'Diagnostics', 'Reason',
    'BindgenError', 'ConfigError', 'ContextStackError', 'FrontendError', 'IndexIntegrityError',
    'Generator',
    'LuaCATSGenerator',
    'LuaJITGenerator',
    'HeaderParser', 'ParseResult', 'ParseSession',
    'VarArgFunction',
]
