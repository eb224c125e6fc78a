"""
Header parsing module

HeaderParser runs one parse over a sequence of top-level cursors. All state
of a run (declaration index, context stack, diagnostics) lives in a
ParseSession created for that run and handed to every sub-parser, so two
runs never share anything.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from . import ir
from .config import Config
from .context import ContextStack
from .cursor import Cursor, CursorKind
from .diagnostics import Diagnostics
from .enum import EnumParser
from .errors import ContextStackError
from .func import FuncParser
from .index import BindingsIndex
from .macro import MacroParser
from .objc import ObjCParser
from .struct import StructParser
from .typedef import TypedefParser, anonymous_tag
from .types import TypeResolver
from .var import GlobalParser

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Output of one parse run, consumed by the emitters"""
    bindings: list[ir.Binding]
    diagnostics: Diagnostics
    index: BindingsIndex

    def of_type(self, cls: type) -> list:
        return [b for b in self.bindings if isinstance(b, cls)]

    @property
    def functions(self) -> list[ir.Func]:
        return self.of_type(ir.Func)

    def find(self, name: str) -> Optional[ir.Binding]:
        """Find a binding by its generated name"""
        for b in self.bindings:
            if b.name == name:
                return b
        return None


class ParseSession:
    """State for a single parse run"""

    def __init__(self, config: Config):
        self.config = config
        self.index = BindingsIndex()
        self.stack = ContextStack()
        self.diagnostics = Diagnostics()
        # anonymous record/enum USR -> name of the typedef that names it
        self.typedef_named: dict[str, str] = {}
        # USRs of declarations dropped with a diagnostic
        self.dropped: set[str] = set()

        self.types = TypeResolver(self)
        self.funcs = FuncParser(self)
        self.structs = StructParser(self)
        self.enums = EnumParser(self)
        self.typedefs = TypedefParser(self)
        self.globals = GlobalParser(self)
        self.macros = MacroParser(self)
        self.objc = ObjCParser(self)

        self._handlers: dict[CursorKind, Callable[[Cursor], list]] = {
            CursorKind.FUNCTION: self.funcs.parse,
            CursorKind.STRUCT: self.structs.parse,
            CursorKind.UNION: self.structs.parse,
            CursorKind.ENUM: self.enums.parse,
            CursorKind.TYPEDEF: self.typedefs.parse,
            CursorKind.VAR: self.globals.parse,
            CursorKind.MACRO_DEFINITION: self.macros.parse,
            CursorKind.OBJC_INTERFACE: self.objc.parse,
        }

    def visit(self, cursor: Cursor) -> list[ir.Binding]:
        """Parse one top-level declaration"""
        handler = self._handlers.get(cursor.kind)
        if handler is None:
            logger.debug('Ignored cursor: %s', cursor.describe())
            return []
        return handler(cursor)

    def run(self, cursors: Iterable[Cursor]) -> ParseResult:
        cursors = list(cursors)
        self.typedef_named = _typedef_named(cursors)
        for cursor in cursors:
            self.visit(cursor)
        if len(self.stack):
            raise ContextStackError(f'{len(self.stack)} parse context(s) left open after the run')
        self._name_anonymous()
        bindings = [b for b in self.index.declarations() if _is_emittable(b)]
        logger.debug('Parsed %d declarations, %d diagnostics', len(bindings), len(self.diagnostics))
        return ParseResult(bindings=bindings, diagnostics=self.diagnostics, index=self.index)

    def _name_anonymous(self):
        """Give compounds no typedef named a stable generated name"""
        counters: dict[str, int] = defaultdict(int)
        for decl in self.index.declarations():
            if isinstance(decl, ir.Compound) and not decl.original_name:
                kind = type(decl).__name__.replace('Class', '')
                counters[kind] += 1
                decl.original_name = decl.name = f'Unnamed{kind}{counters[kind]}'


def _is_emittable(decl: ir.Binding) -> bool:
    if isinstance(decl, ir.Typedef):
        return decl.underlying is not None and not decl.underlying.is_unimplemented
    return True


def _typedef_named(cursors: list[Cursor]) -> dict[str, str]:
    result = {}
    for cursor in cursors:
        if cursor.kind != CursorKind.TYPEDEF:
            continue
        tag = anonymous_tag(cursor)
        if tag is not None:
            result.setdefault(tag.get_usr(), cursor.spelling)
    return result


class HeaderParser:
    """Parses top-level cursors into bindings according to a Config"""

    def __init__(self, config: Config):
        self.config = config

    def parse(self, cursors: Iterable[Cursor]) -> ParseResult:
        return ParseSession(self.config).run(cursors)
