"""
Struct / union declaration parsing module

A compound is published into the index before its members are resolved.
Members that point back at the compound (linked lists, trees) then find
the half-built declaration in the index instead of starting over. While
building, it counts as complete whenever it has a definition; if it turns
out opaque, compounds already holding it by value are made opaque too.
"""

import logging
from typing import TYPE_CHECKING, Optional

from . import ir
from .cursor import Cursor, CursorKind, doc_comment
from .diagnostics import Reason

if TYPE_CHECKING:
    from .config import DeclarationFilter
    from .parser import ParseSession

logger = logging.getLogger(__name__)


class StructParser:
    """Parses struct and union declarations"""

    def __init__(self, session: 'ParseSession'):
        self.session = session

    def _filter(self, cursor: Cursor) -> 'DeclarationFilter':
        if cursor.kind == CursorKind.UNION:
            return self.session.config.unions
        return self.session.config.structs

    def parse(self, cursor: Cursor) -> list[ir.Compound]:
        """Top-level visit of a struct/union cursor"""
        session = self.session
        usr = cursor.get_usr()
        with session.stack.frame(cursor.spelling) as ctx:
            seen = session.index.lookup(usr)
            if isinstance(seen, ir.Compound):
                ctx.declarations.append(seen)
            elif cursor.is_anonymous():
                # Reached through the typedef or field that names it
                pass
            elif self._filter(cursor).should_include(usr, cursor.spelling):
                ctx.declarations.append(self._build(cursor))
            return list(ctx.declarations)

    def resolve(self, cursor: Cursor) -> ir.Compound:
        """Get the declaration for a referenced struct/union, parsing it if needed"""
        seen = self.session.index.lookup(cursor.get_usr())
        if seen is not None:
            return seen
        with self.session.stack.frame(cursor.spelling):
            return self._build(cursor)

    def _build(self, cursor: Cursor) -> ir.Compound:
        session = self.session
        usr = cursor.get_usr()
        definition: Optional[Cursor] = cursor.get_definition()
        if definition is None and cursor.is_definition():
            definition = cursor
        if cursor.is_anonymous():
            name = session.typedef_named.get(usr, '')
        else:
            name = cursor.spelling
        cls = ir.Union if cursor.kind == CursorKind.UNION else ir.Struct

        decl = cls(
            usr=usr,
            original_name=name,
            name=self._filter(cursor).rename(name) if name else '',
            doc=doc_comment(definition or cursor) if session.config.comments else '',
            is_incomplete=definition is None,
        )
        session.index.insert(usr, decl)

        if definition is None:
            logger.debug('++++ Adding opaque %s: %s', cls.__name__, cursor.describe())
            return decl

        logger.debug('++++ Adding %s: %s', cls.__name__, cursor.describe())
        members, problem = self._get_members(definition, name)
        if problem:
            logger.debug('---- Removed %s members, reason: %s: %s', cls.__name__, problem, cursor.describe())
            self._make_opaque(decl, problem)
            return decl

        decl.members = members
        return decl

    def _make_opaque(self, decl: ir.Compound, problem: str):
        session = self.session
        decl.members = []
        decl.is_incomplete = True
        session.diagnostics.add(decl.original_name or decl.usr, decl.usr, Reason.UNSUPPORTED_MEMBER,
                                f'{problem}; generated as opaque')
        for holder in session.index.declarations():
            if not isinstance(holder, (ir.Struct, ir.Union)) or holder.is_incomplete:
                continue
            held = next((m for m in holder.members if _holds_by_value(m.type, decl)), None)
            if held is not None:
                logger.debug('---- Removed %s members, reason: member %r became opaque',
                             type(holder).__name__, held.name)
                self._make_opaque(holder, f'member {held.name!r} is an incomplete struct by value')

    def _get_members(self, cursor: Cursor, struct_name: str) -> tuple[list[ir.Member], str]:
        session = self.session
        member_filter = self._filter(cursor)
        fields = [c for c in cursor.get_children() if c.kind == CursorKind.FIELD]
        members = []
        for i, field_cursor in enumerate(fields):
            if field_cursor.is_bitfield():
                return [], f'bit-field member {field_cursor.spelling!r}'

            mt = session.types.resolve(field_cursor.type)
            if mt.is_unimplemented:
                return [], f'member {field_cursor.spelling!r} has unsupported type'
            if mt.is_incomplete_compound:
                return [], f'member {field_cursor.spelling!r} is an incomplete struct by value'
            if isinstance(mt, ir.ArrayType) and mt.length is None:
                return [], f'flexible array member {field_cursor.spelling!r}'

            original = field_cursor.spelling
            if original and not field_cursor.is_anonymous():
                name = member_filter.rename_member(struct_name, original)
            else:
                original = ''
                name = f'anonymous{i}'
            members.append(ir.Member(
                name=name,
                type=mt,
                original_name=original,
                doc=doc_comment(field_cursor) if session.config.comments else '',
            ))
        return members, ''


def _holds_by_value(t: ir.Type, decl: ir.Compound) -> bool:
    while isinstance(t, (ir.ArrayType, ir.TypedefType)):
        t = t.child if isinstance(t, ir.ArrayType) else t.decl.underlying
    return isinstance(t, ir.CompoundType) and t.decl is decl
