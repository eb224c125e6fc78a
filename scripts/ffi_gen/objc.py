"""
Objective-C interface parsing module

Interfaces are compounds like structs: published before their methods are
resolved, since methods routinely mention their own class.
"""

import logging
from typing import TYPE_CHECKING, Optional

from . import ir
from .cursor import Cursor, CursorKind, doc_comment
from .diagnostics import Reason

if TYPE_CHECKING:
    from .parser import ParseSession

logger = logging.getLogger(__name__)

_METHOD_KINDS = (CursorKind.OBJC_INSTANCE_METHOD, CursorKind.OBJC_CLASS_METHOD)


class ObjCParser:
    """Parses @interface declarations"""

    def __init__(self, session: 'ParseSession'):
        self.session = session

    def parse(self, cursor: Cursor) -> list[ir.ObjCInterface]:
        session = self.session
        usr = cursor.get_usr()
        with session.stack.frame(cursor.spelling) as ctx:
            seen = session.index.lookup(usr)
            if isinstance(seen, ir.ObjCInterface):
                ctx.declarations.append(seen)
            elif session.config.objc_interfaces.should_include(usr, cursor.spelling):
                ctx.declarations.append(self._build(cursor))
            return list(ctx.declarations)

    def resolve(self, cursor: Cursor) -> ir.ObjCInterface:
        seen = self.session.index.lookup(cursor.get_usr())
        if seen is not None:
            return seen
        with self.session.stack.frame(cursor.spelling):
            return self._build(cursor)

    def _build(self, cursor: Cursor) -> ir.ObjCInterface:
        session = self.session
        config = session.config
        usr = cursor.get_usr()
        name = cursor.spelling
        definition = cursor.get_definition()

        decl = ir.ObjCInterface(
            usr=usr,
            original_name=name,
            name=config.objc_interfaces.rename(name),
            doc=doc_comment(definition or cursor) if config.comments else '',
            is_incomplete=definition is None,
        )
        session.index.insert(usr, decl)
        if definition is None:
            logger.debug('++++ Adding opaque ObjC interface: %s', cursor.describe())
            return decl

        logger.debug('++++ Adding ObjC interface: %s', cursor.describe())
        for child in definition.get_children():
            if child.kind == CursorKind.OBJC_SUPERCLASS_REF and child.referenced is not None:
                decl.superclass = self.resolve(child.referenced)
            elif child.kind in _METHOD_KINDS:
                method = self._method(child, name)
                if method is not None:
                    decl.methods.append(method)
        return decl

    def _method(self, cursor: Cursor, interface_name: str) -> Optional[ir.ObjCMethod]:
        session = self.session
        selector = cursor.spelling
        with session.stack.frame(f'{interface_name}.{selector}') as ctx:
            return_type = session.types.resolve(cursor.result_type)
            parameters = []
            for i, arg in enumerate(cursor.get_arguments()):
                pt = session.types.resolve(arg.type)
                if pt.is_incomplete_compound:
                    ctx.incomplete_compound_parameter = True
                elif pt.is_unimplemented:
                    ctx.unimplemented_parameter_type = True
                pn = arg.spelling
                name = session.config.objc_interfaces.rename_member(interface_name, pn) if pn else ''
                parameters.append(ir.Parameter(name=name or f'arg{i}', type=pt, original_name=pn))

            method_usr = cursor.get_usr()
            if return_type.is_incomplete_compound or ctx.incomplete_compound_parameter:
                session.diagnostics.add(f'{interface_name}.{selector}', method_usr, Reason.INCOMPLETE_BY_VALUE,
                                        'incomplete struct pass/return by value not supported')
                return None
            if return_type.is_unimplemented or ctx.unimplemented_parameter_type:
                session.diagnostics.add(f'{interface_name}.{selector}', method_usr, Reason.UNIMPLEMENTED_TYPE,
                                        'method has unsupported return type or parameter type')
                return None

            method_name = selector.replace(':', '_').rstrip('_')
            return ir.ObjCMethod(
                original_name=selector,
                name=session.config.objc_interfaces.rename_member(interface_name, method_name),
                return_type=return_type,
                parameters=parameters,
                is_class_method=cursor.kind == CursorKind.OBJC_CLASS_METHOD,
                doc=doc_comment(cursor) if session.config.comments else '',
            )
