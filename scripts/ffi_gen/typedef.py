"""
Typedef declaration parsing module
"""

import logging
from typing import TYPE_CHECKING, Optional

from . import ir
from .cursor import Cursor, TypeKind, doc_comment
from .diagnostics import Reason

if TYPE_CHECKING:
    from .parser import ParseSession

logger = logging.getLogger(__name__)


def anonymous_tag(cursor: Cursor) -> Optional[Cursor]:
    """The anonymous struct/union/enum a typedef cursor names, if any"""
    t = cursor.underlying_typedef_type
    while t.kind == TypeKind.ELABORATED:
        t = t.get_named_type()
    if t.kind not in (TypeKind.RECORD, TypeKind.ENUM):
        return None
    decl = t.get_declaration()
    if decl is None or not decl.is_anonymous():
        return None
    return decl


class TypedefParser:
    """Parses typedef declarations"""

    def __init__(self, session: 'ParseSession'):
        self.session = session

    def parse(self, cursor: Cursor) -> list[ir.Typedef]:
        """Top-level visit of a typedef cursor"""
        session = self.session
        usr = cursor.get_usr()
        name = cursor.spelling
        with session.stack.frame(name) as ctx:
            seen = session.index.lookup(usr)
            if isinstance(seen, ir.Typedef):
                ctx.declarations.append(seen)
            elif name in ir.SUPPORTED_TYPEDEFS:
                logger.debug('Typedef %s maps to a primitive type', name)
            elif session.config.typedefs.should_include(usr, name):
                decl = self._build(cursor)
                if decl.underlying.is_unimplemented:
                    logger.debug('---- Removed Typedef, reason: unsupported type: %s', cursor.describe())
                    session.diagnostics.add(name, usr, Reason.UNIMPLEMENTED_TYPE,
                                            'typedef of an unsupported type')
                else:
                    ctx.declarations.append(decl)
            return list(ctx.declarations)

    def resolve(self, cursor: Cursor) -> ir.Typedef:
        """Get the declaration for a referenced typedef, parsing it if needed"""
        seen = self.session.index.lookup(cursor.get_usr())
        if seen is not None:
            return seen
        with self.session.stack.frame(cursor.spelling):
            return self._build(cursor)

    def _build(self, cursor: Cursor) -> ir.Typedef:
        session = self.session
        config = session.config
        usr = cursor.get_usr()
        name = cursor.spelling

        decl = ir.Typedef(
            usr=usr,
            original_name=name,
            name=config.typedefs.rename(name),
            doc=doc_comment(cursor) if config.comments else '',
        )
        session.index.insert(usr, decl)
        logger.debug('++++ Adding Typedef: %s', cursor.describe())

        # typedef struct { ... } Name;  -> struct Name, named before it is built
        tag = anonymous_tag(cursor)
        if tag is not None:
            session.typedef_named.setdefault(tag.get_usr(), name)

        decl.underlying = session.types.resolve(cursor.underlying_typedef_type)
        return decl
