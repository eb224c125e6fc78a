"""
libclang front end

Adapts clang.cindex cursors and types to the interface in cursor.py and
selects the top-level declarations that belong to the configured headers.
"""

import fnmatch
import glob
import logging
import os
import sys
from typing import Optional

import clang.cindex as cindex

from . import cursor as fe
from .config import Config
from .errors import FrontendError

logger = logging.getLogger(__name__)


_CURSOR_KINDS = {
    cindex.CursorKind.FUNCTION_DECL: fe.CursorKind.FUNCTION,
    cindex.CursorKind.STRUCT_DECL: fe.CursorKind.STRUCT,
    cindex.CursorKind.UNION_DECL: fe.CursorKind.UNION,
    cindex.CursorKind.ENUM_DECL: fe.CursorKind.ENUM,
    cindex.CursorKind.ENUM_CONSTANT_DECL: fe.CursorKind.ENUM_CONSTANT,
    cindex.CursorKind.TYPEDEF_DECL: fe.CursorKind.TYPEDEF,
    cindex.CursorKind.VAR_DECL: fe.CursorKind.VAR,
    cindex.CursorKind.FIELD_DECL: fe.CursorKind.FIELD,
    cindex.CursorKind.PARM_DECL: fe.CursorKind.PARAM,
    cindex.CursorKind.MACRO_DEFINITION: fe.CursorKind.MACRO_DEFINITION,
    cindex.CursorKind.OBJC_INTERFACE_DECL: fe.CursorKind.OBJC_INTERFACE,
    cindex.CursorKind.OBJC_SUPER_CLASS_REF: fe.CursorKind.OBJC_SUPERCLASS_REF,
    cindex.CursorKind.OBJC_INSTANCE_METHOD_DECL: fe.CursorKind.OBJC_INSTANCE_METHOD,
    cindex.CursorKind.OBJC_CLASS_METHOD_DECL: fe.CursorKind.OBJC_CLASS_METHOD,
}

# Keyed by name: older clang.cindex releases lack some kinds
_TYPE_KIND_NAMES = {
    'VOID': fe.TypeKind.VOID,
    'BOOL': fe.TypeKind.BOOL,
    'CHAR_S': fe.TypeKind.CHAR_S,
    'CHAR_U': fe.TypeKind.CHAR_U,
    'SCHAR': fe.TypeKind.SCHAR,
    'UCHAR': fe.TypeKind.UCHAR,
    'WCHAR': fe.TypeKind.WCHAR,
    'CHAR16': fe.TypeKind.CHAR16,
    'CHAR32': fe.TypeKind.CHAR32,
    'SHORT': fe.TypeKind.SHORT,
    'USHORT': fe.TypeKind.USHORT,
    'INT': fe.TypeKind.INT,
    'UINT': fe.TypeKind.UINT,
    'LONG': fe.TypeKind.LONG,
    'ULONG': fe.TypeKind.ULONG,
    'LONGLONG': fe.TypeKind.LONGLONG,
    'ULONGLONG': fe.TypeKind.ULONGLONG,
    'INT128': fe.TypeKind.INT128,
    'UINT128': fe.TypeKind.UINT128,
    'HALF': fe.TypeKind.HALF,
    'FLOAT16': fe.TypeKind.HALF,
    'FLOAT': fe.TypeKind.FLOAT,
    'DOUBLE': fe.TypeKind.DOUBLE,
    'LONGDOUBLE': fe.TypeKind.LONG_DOUBLE,
    'FLOAT128': fe.TypeKind.LONG_DOUBLE,
    'POINTER': fe.TypeKind.POINTER,
    'BLOCKPOINTER': fe.TypeKind.BLOCK_POINTER,
    'CONSTANTARRAY': fe.TypeKind.CONSTANT_ARRAY,
    'INCOMPLETEARRAY': fe.TypeKind.INCOMPLETE_ARRAY,
    'VARIABLEARRAY': fe.TypeKind.VARIABLE_ARRAY,
    'RECORD': fe.TypeKind.RECORD,
    'ENUM': fe.TypeKind.ENUM,
    'TYPEDEF': fe.TypeKind.TYPEDEF,
    'ELABORATED': fe.TypeKind.ELABORATED,
    'FUNCTIONPROTO': fe.TypeKind.FUNCTION_PROTO,
    'FUNCTIONNOPROTO': fe.TypeKind.FUNCTION_NO_PROTO,
    'VECTOR': fe.TypeKind.VECTOR,
    'EXTVECTOR': fe.TypeKind.VECTOR,
    'COMPLEX': fe.TypeKind.COMPLEX,
    'ATOMIC': fe.TypeKind.ATOMIC,
    'OBJCID': fe.TypeKind.OBJC_ID,
    'OBJCSEL': fe.TypeKind.OBJC_SEL,
    'OBJCCLASS': fe.TypeKind.OBJC_CLASS,
    'OBJCINTERFACE': fe.TypeKind.OBJC_INTERFACE,
    'OBJCOBJECTPOINTER': fe.TypeKind.OBJC_OBJECT_POINTER,
    'UNEXPOSED': fe.TypeKind.UNEXPOSED,
}
_TYPE_KINDS = {
    getattr(cindex.TypeKind, name): kind
    for name, kind in _TYPE_KIND_NAMES.items()
    if hasattr(cindex.TypeKind, name)
}

_STORAGE_CLASSES = {
    cindex.StorageClass.NONE: fe.StorageClass.NONE,
    cindex.StorageClass.EXTERN: fe.StorageClass.EXTERN,
    cindex.StorageClass.STATIC: fe.StorageClass.STATIC,
}

_INLINE_TOKENS = {'inline', '__inline', '__inline__', '__forceinline'}


def _libclang_search_paths() -> list[str]:
    paths = []
    env_path = os.environ.get('LIBCLANG_PATH')
    if env_path:
        paths.append(env_path)
    if sys.platform == 'darwin':
        paths.append('/opt/homebrew/opt/llvm/lib/libclang.dylib')
        paths.append('/usr/local/opt/llvm/lib/libclang.dylib')
        paths.append('/Library/Developer/CommandLineTools/usr/lib/libclang.dylib')
    elif sys.platform == 'win32':
        paths.append(r'C:\Program Files\LLVM\bin\libclang.dll')
    else:
        paths.extend(sorted(glob.glob('/usr/lib/llvm-*/lib/libclang.so*'), reverse=True))
        paths.extend(['/usr/lib64/libclang.so', '/usr/lib/libclang.so', '/usr/local/lib/libclang.so'])
    return paths


def configure_libclang():
    """Make sure libclang can be loaded; raise FrontendError otherwise"""
    try:
        cindex.Config().get_cindex_library()
        return
    except cindex.LibclangError as e:
        first_error = e

    if not cindex.Config.loaded:
        for path in _libclang_search_paths():
            if os.path.isfile(path):
                logger.debug('Trying libclang at %s', path)
                cindex.Config.set_library_file(path)
                try:
                    cindex.Config().get_cindex_library()
                    return
                except cindex.LibclangError as e:
                    first_error = e
                break
    raise FrontendError(f'libclang could not be loaded: {first_error}')


def _inlined_query():
    """clang_Cursor_isFunctionInlined when the loaded libclang exports it"""
    func = getattr(cindex.conf.lib, 'clang_Cursor_isFunctionInlined', None)
    if func is not None:
        func.restype = bool
        func.argtypes = [cindex.Cursor]
    return func


class ClangType(fe.NativeType):
    """NativeType over clang.cindex.Type"""

    def __init__(self, t: cindex.Type):
        # `_Nonnull` and friends wrap the type that matters
        attributed = getattr(cindex.TypeKind, 'ATTRIBUTED', None)
        while attributed is not None and t.kind == attributed:
            t = t.get_modified_type()
        self._t = t

    @property
    def kind(self) -> fe.TypeKind:
        return _TYPE_KINDS.get(self._t.kind, fe.TypeKind.OTHER)

    @property
    def spelling(self) -> str:
        return self._t.spelling

    def get_pointee(self) -> 'ClangType':
        return ClangType(self._t.get_pointee())

    @property
    def element_type(self) -> 'ClangType':
        return ClangType(self._t.element_type)

    @property
    def element_count(self) -> int:
        return self._t.element_count

    def get_declaration(self) -> Optional['ClangCursor']:
        decl = self._t.get_declaration()
        if decl is None or decl.kind == cindex.CursorKind.NO_DECL_FOUND:
            return None
        return ClangCursor(decl)

    def get_canonical(self) -> 'ClangType':
        return ClangType(self._t.get_canonical())

    def get_named_type(self) -> 'ClangType':
        return ClangType(self._t.get_named_type())

    def get_result(self) -> 'ClangType':
        return ClangType(self._t.get_result())

    def argument_types(self) -> list['ClangType']:
        return [ClangType(a) for a in self._t.argument_types()]

    def is_function_variadic(self) -> bool:
        if self._t.kind != cindex.TypeKind.FUNCTIONPROTO:
            return False
        return self._t.is_function_variadic()

    def is_const_qualified(self) -> bool:
        return self._t.is_const_qualified()


class ClangCursor(fe.Cursor):
    """Cursor over clang.cindex.Cursor"""

    _is_inlined = None

    def __init__(self, c: cindex.Cursor):
        self._c = c

    @property
    def kind(self) -> fe.CursorKind:
        return _CURSOR_KINDS.get(self._c.kind, fe.CursorKind.OTHER)

    @property
    def spelling(self) -> str:
        if self.is_anonymous():
            return ''
        return self._c.spelling

    def get_usr(self) -> str:
        return self._c.get_usr()

    @property
    def type(self) -> ClangType:
        return ClangType(self._c.type)

    @property
    def result_type(self) -> ClangType:
        return ClangType(self._c.result_type)

    @property
    def underlying_typedef_type(self) -> ClangType:
        return ClangType(self._c.underlying_typedef_type)

    @property
    def storage_class(self) -> fe.StorageClass:
        return _STORAGE_CLASSES.get(self._c.storage_class, fe.StorageClass.OTHER)

    @property
    def raw_comment(self) -> Optional[str]:
        return self._c.raw_comment

    @property
    def location(self) -> str:
        loc = self._c.location
        if loc.file is None:
            return ''
        return f'{loc.file.name}:{loc.line}'

    @property
    def enum_value(self) -> int:
        return self._c.enum_value

    @property
    def referenced(self) -> Optional['ClangCursor']:
        ref = self._c.referenced
        return ClangCursor(ref) if ref is not None else None

    def get_arguments(self) -> list['ClangCursor']:
        return [ClangCursor(a) for a in self._c.get_arguments()]

    def get_children(self) -> list['ClangCursor']:
        return [ClangCursor(c) for c in self._c.get_children()]

    def get_definition(self) -> Optional['ClangCursor']:
        definition = self._c.get_definition()
        return ClangCursor(definition) if definition is not None else None

    def get_tokens(self) -> list[str]:
        return [t.spelling for t in self._c.get_tokens()]

    def is_definition(self) -> bool:
        return self._c.is_definition()

    def is_function_inlined(self) -> bool:
        if ClangCursor._is_inlined is None:
            ClangCursor._is_inlined = _inlined_query() or False
        if ClangCursor._is_inlined:
            return ClangCursor._is_inlined(self._c)
        # Older libclang: look for the keyword ahead of the name
        for token in self._c.get_tokens():
            if token.spelling == self._c.spelling:
                break
            if token.spelling in _INLINE_TOKENS:
                return True
        return False

    def is_macro_function_like(self) -> bool:
        if hasattr(self._c, 'is_macro_function_like'):
            return self._c.is_macro_function_like()
        # `#define F(x)` has no space between the name and the parenthesis
        tokens = list(self._c.get_tokens())
        return (len(tokens) > 1 and tokens[1].spelling == '('
                and tokens[1].extent.start.offset == tokens[0].extent.end.offset)

    def is_bitfield(self) -> bool:
        return self._c.is_bitfield()

    def is_anonymous(self) -> bool:
        c = self._c
        if c.kind == cindex.CursorKind.FIELD_DECL:
            return not c.spelling or '(anonymous at' in c.spelling or '(unnamed' in c.spelling
        if c.kind == cindex.CursorKind.ENUM_DECL:
            return c.is_anonymous() or any(m in c.get_usr() for m in ('@EA@', '@Ea@'))
        if c.kind in (cindex.CursorKind.STRUCT_DECL, cindex.CursorKind.UNION_DECL):
            return c.is_anonymous() or any(m in c.get_usr() for m in ('@SA@', '@Sa@', '@UA@', '@Ua@'))
        return False


class ClangFrontend:
    """Parses headers with libclang and yields their top-level cursors"""

    def __init__(self, config: Config):
        self.config = config
        configure_libclang()
        self.index = cindex.Index.create()
        # Cursors keep their translation unit alive, this keeps the list
        self._units: list[cindex.TranslationUnit] = []

    def parse(self, headers: Optional[list[str]] = None) -> list[ClangCursor]:
        headers = headers if headers is not None else self.config.headers.entry_points
        if not headers:
            raise FrontendError('no headers to parse')
        cursors = []
        for header in headers:
            tu = self._parse_header(header)
            wanted = self._location_filter(header)
            for c in tu.cursor.get_children():
                loc = c.location
                if loc.file is None:
                    # builtin macro
                    continue
                if wanted(loc.file.name):
                    cursors.append(ClangCursor(c))
        logger.debug('Front end produced %d top-level cursors', len(cursors))
        return cursors

    def _parse_header(self, header: str) -> cindex.TranslationUnit:
        if not os.path.isfile(header):
            raise FrontendError(f'header not found: {header}')
        options = (cindex.TranslationUnit.PARSE_DETAILED_PROCESSING_RECORD
                   | cindex.TranslationUnit.PARSE_SKIP_FUNCTION_BODIES)
        try:
            tu = self.index.parse(header, args=self.config.compiler_opts, options=options)
        except cindex.TranslationUnitLoadError as e:
            raise FrontendError(f'failed to parse {header}: {e}') from e

        fatal = False
        for diag in tu.diagnostics:
            if diag.severity >= cindex.Diagnostic.Error:
                logger.error('clang: %s', diag)
            fatal |= diag.severity >= cindex.Diagnostic.Fatal
        if fatal:
            raise FrontendError(f'fatal errors while parsing {header}')
        self._units.append(tu)
        return tu

    def _location_filter(self, header: str):
        directives = self.config.headers.include_directives
        if not directives:
            target = os.path.abspath(header)
            return lambda path: os.path.abspath(path) == target

        def wanted(path: str) -> bool:
            return any(fnmatch.fnmatch(path, d) or fnmatch.fnmatch(os.path.basename(path), d)
                       for d in directives)
        return wanted
