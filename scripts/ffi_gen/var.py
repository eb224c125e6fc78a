"""
Global variable parsing module
"""

import logging
from typing import TYPE_CHECKING

from . import ir
from .cursor import Cursor, StorageClass, doc_comment
from .diagnostics import Reason

if TYPE_CHECKING:
    from .parser import ParseSession

logger = logging.getLogger(__name__)


class GlobalParser:
    """Parses global variable declarations"""

    def __init__(self, session: 'ParseSession'):
        self.session = session

    def parse(self, cursor: Cursor) -> list[ir.Global]:
        session = self.session
        config = session.config
        usr = cursor.get_usr()
        name = cursor.spelling
        with session.stack.frame(name) as ctx:
            seen = session.index.lookup(usr)
            if isinstance(seen, ir.Global):
                ctx.declarations.append(seen)
                return list(ctx.declarations)
            if cursor.storage_class == StorageClass.STATIC:
                # internal linkage, no symbol to bind
                return []
            if not config.globals.should_include(usr, name) or usr in session.dropped:
                return []

            logger.debug('++++ Adding Global: %s', cursor.describe())
            gt = session.types.resolve(cursor.type)
            if gt.is_unimplemented:
                logger.debug('---- Removed Global, reason: unsupported type: %s', cursor.describe())
                session.diagnostics.add(name, usr, Reason.UNIMPLEMENTED_TYPE,
                                        'global variable has unsupported type')
                session.dropped.add(usr)
                return []
            if gt.is_incomplete_compound:
                logger.debug('---- Removed Global, reason: incomplete struct: %s', cursor.describe())
                session.diagnostics.add(name, usr, Reason.INCOMPLETE_BY_VALUE,
                                        'global variable of incomplete struct type')
                session.dropped.add(usr)
                return []

            decl = ir.Global(
                usr=usr,
                original_name=name,
                name=config.globals.rename(name),
                doc=doc_comment(cursor) if config.comments else '',
                type=gt,
                is_const=cursor.type.is_const_qualified(),
                expose_symbol_address=config.globals.should_include_symbol_address(name),
            )
            session.index.insert(usr, decl)
            ctx.declarations.append(decl)
            return list(ctx.declarations)
