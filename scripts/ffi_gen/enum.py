"""
Enum declaration parsing module

Named enums become EnumClass bindings. Enumerators of unnamed top-level
enums (`enum { FOO = 1 };`) are published one Constant each.
"""

import logging
from typing import TYPE_CHECKING

from . import ir
from .cursor import Cursor, CursorKind, doc_comment

if TYPE_CHECKING:
    from .parser import ParseSession

logger = logging.getLogger(__name__)


class EnumParser:
    """Parses enum declarations"""

    def __init__(self, session: 'ParseSession'):
        self.session = session

    def parse(self, cursor: Cursor) -> list[ir.Binding]:
        """Top-level visit of an enum cursor"""
        session = self.session
        usr = cursor.get_usr()
        with session.stack.frame(cursor.spelling) as ctx:
            if cursor.is_anonymous():
                if usr in session.typedef_named:
                    # `typedef enum {...} Name;` is bound as enum Name
                    return []
                ctx.declarations.extend(self._unnamed_constants(cursor))
                return list(ctx.declarations)

            seen = session.index.lookup(usr)
            if isinstance(seen, ir.EnumClass):
                ctx.declarations.append(seen)
            elif session.config.enums.should_include(usr, cursor.spelling):
                ctx.declarations.append(self._build(cursor))
            return list(ctx.declarations)

    def resolve(self, cursor: Cursor) -> ir.EnumClass:
        """Get the declaration for a referenced enum, parsing it if needed"""
        seen = self.session.index.lookup(cursor.get_usr())
        if seen is not None:
            return seen
        with self.session.stack.frame(cursor.spelling):
            return self._build(cursor)

    def _build(self, cursor: Cursor) -> ir.EnumClass:
        session = self.session
        enum_filter = session.config.enums
        usr = cursor.get_usr()
        definition = cursor.get_definition() or cursor
        if cursor.is_anonymous():
            name = session.typedef_named.get(usr, '')
        else:
            name = cursor.spelling

        decl = ir.EnumClass(
            usr=usr,
            original_name=name,
            name=enum_filter.rename(name) if name else '',
            doc=doc_comment(definition) if session.config.comments else '',
            is_incomplete=not definition.is_definition(),
        )
        session.index.insert(usr, decl)
        logger.debug('++++ Adding Enum: %s', cursor.describe())

        for child in definition.get_children():
            if child.kind != CursorKind.ENUM_CONSTANT:
                continue
            decl.constants.append(ir.EnumConstant(
                original_name=child.spelling,
                name=enum_filter.rename_member(name, child.spelling),
                value=child.enum_value,
                doc=doc_comment(child) if session.config.comments else '',
            ))
        return decl

    def _unnamed_constants(self, cursor: Cursor) -> list[ir.Constant]:
        session = self.session
        unnamed = session.config.unnamed_enums
        result = []
        for child in cursor.get_children():
            if child.kind != CursorKind.ENUM_CONSTANT:
                continue
            usr = child.get_usr()
            seen = session.index.lookup(usr)
            if isinstance(seen, ir.Constant):
                result.append(seen)
                continue
            if not unnamed.should_include(usr, child.spelling):
                continue
            const = ir.Constant(
                usr=usr,
                original_name=child.spelling,
                name=unnamed.rename(child.spelling),
                doc=doc_comment(child) if session.config.comments else '',
                raw_type='int',
                value=child.enum_value,
            )
            session.index.insert(usr, const)
            result.append(const)
            logger.debug('++++ Adding Constant from unnamed enum: %s', child.describe())
        return result
