"""
Function declaration parsing module

Turns one function cursor into zero or more Func bindings: none when the
function is excluded or unsupported, one normally, one per configured
call-site signature when the function is variadic.
"""

import logging
from typing import TYPE_CHECKING

from . import ir
from .cursor import Cursor, StorageClass, doc_comment
from .diagnostics import Reason
from .varargs import specialize

if TYPE_CHECKING:
    from .context import ParseContext
    from .parser import ParseSession

logger = logging.getLogger(__name__)


class FuncParser:
    """Parses function declarations"""

    def __init__(self, session: 'ParseSession'):
        self.session = session

    def parse(self, cursor: Cursor) -> list[ir.Func]:
        session = self.session
        config = session.config
        func_usr = cursor.get_usr()
        func_name = cursor.spelling
        is_variadic = cursor.type.is_function_variadic()
        var_arg_functions, ignored = specialize(func_name, is_variadic, config.var_arg_functions)

        with session.stack.frame(func_name) as ctx:
            if not config.functions.should_include(func_usr, func_name):
                # Declared again through some unrelated path; reuse what was built
                for va_func in var_arg_functions:
                    seen = session.index.lookup(func_usr + va_func.postfix)
                    if isinstance(seen, ir.Func):
                        ctx.declarations.append(seen)
                return list(ctx.declarations)

            seen = [session.index.lookup(func_usr + va.postfix) for va in var_arg_functions]
            if all(isinstance(s, ir.Func) for s in seen):
                return seen
            if func_usr in session.dropped:
                return []

            logger.debug('++++ Adding Function: %s', cursor.describe())

            return_type = session.types.resolve(cursor.result_type)
            parameters = self._get_parameters(cursor, func_name, ctx)

            if cursor.is_function_inlined() and cursor.storage_class != StorageClass.EXTERN:
                logger.debug('---- Removed Function, reason: inline function: %s', cursor.describe())
                session.diagnostics.add(func_name, func_usr, Reason.INLINE_FUNCTION,
                                        'inline functions are not supported')
                session.dropped.add(func_usr)
                return []

            if return_type.is_incomplete_compound or ctx.incomplete_compound_parameter:
                logger.debug('---- Removed Function, reason: incomplete struct pass/return by value: %s',
                             cursor.describe())
                session.diagnostics.add(func_name, func_usr, Reason.INCOMPLETE_BY_VALUE,
                                        'incomplete struct pass/return by value not supported')
                session.dropped.add(func_usr)
                return []

            if return_type.is_unimplemented or ctx.unimplemented_parameter_type:
                logger.debug('---- Removed Function, reason: unsupported return or parameter type: %s',
                             cursor.describe())
                session.diagnostics.add(func_name, func_usr, Reason.UNIMPLEMENTED_TYPE,
                                        'function has unsupported return type or parameter type')
                session.dropped.add(func_usr)
                return []

            if ignored:
                session.diagnostics.add(func_name, func_usr, Reason.VARIADIC_CONFIG_MISMATCH,
                                        'variadic-argument config given for a function that is not variadic')

            doc = doc_comment(cursor) if config.comments else ''
            base_name = config.functions.rename(func_name)
            for va_func in var_arg_functions:
                func = ir.Func(
                    usr=func_usr + va_func.postfix,
                    original_name=func_name,
                    name=base_name + va_func.postfix,
                    doc=doc,
                    return_type=return_type,
                    parameters=list(parameters),
                    var_arg_parameters=[
                        ir.Parameter(name=f'va{i}', type=t) for i, t in enumerate(va_func.types)
                    ],
                    var_arg_postfix=va_func.postfix,
                    is_variadic=is_variadic,
                    expose_symbol_address=config.functions.should_include_symbol_address(func_name),
                    expose_function_typedefs=config.expose_function_typedefs.should_include_name(func_name),
                    is_leaf=config.leaf_functions.should_include_name(func_name),
                    native=config.native,
                )
                if not session.index.has(func.usr):
                    session.index.insert(func.usr, func)
                    ctx.declarations.append(func)
                else:
                    ctx.declarations.append(session.index.lookup(func.usr))
            return list(ctx.declarations)

    def _get_parameters(self, cursor: Cursor, func_name: str,
                        ctx: 'ParseContext') -> list[ir.Parameter]:
        session = self.session
        parameters = []
        for i, param_cursor in enumerate(cursor.get_arguments()):
            logger.debug('===== parameter: %s', param_cursor.describe())

            pt = session.types.resolve(param_cursor.type)
            if pt.is_incomplete_compound:
                ctx.incomplete_compound_parameter = True
            elif pt.is_unimplemented:
                logger.debug('Unimplemented type: %r', pt.base_type)
                ctx.unimplemented_parameter_type = True

            pn = param_cursor.spelling
            name = session.config.functions.rename_member(func_name, pn) if pn else ''
            parameters.append(ir.Parameter(
                name=name or f'arg{i}',
                type=pt,
                original_name=pn,
            ))
        return parameters
