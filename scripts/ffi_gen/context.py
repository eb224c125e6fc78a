"""
Parse context module

A ParseContext holds what is known about the declaration currently being
parsed. Resolving a parameter type can start parsing another declaration,
so contexts live on a stack owned by the parse session; a nested parse
pushes its own frame and never touches the enclosing one.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from .errors import ContextStackError
from .ir import Binding


@dataclass(eq=False)
class ParseContext:
    """Scratch state for one declaration visit"""
    name: str
    declarations: list[Binding] = field(default_factory=list)
    incomplete_compound_parameter: bool = False
    unimplemented_parameter_type: bool = False


class ContextStack:
    """Stack of ParseContexts; the last pushed is the current one"""

    def __init__(self):
        self._frames: list[ParseContext] = []

    @property
    def top(self) -> ParseContext:
        if not self._frames:
            raise ContextStackError('no declaration is being parsed')
        return self._frames[-1]

    def push(self, ctx: ParseContext) -> ParseContext:
        self._frames.append(ctx)
        return ctx

    def pop(self, ctx: ParseContext) -> ParseContext:
        """Pop `ctx`, which must be the current frame"""
        if not self._frames or self._frames[-1] is not ctx:
            raise ContextStackError(f'parse context for {ctx.name!r} popped out of order')
        return self._frames.pop()

    @contextmanager
    def frame(self, name: str) -> Iterator[ParseContext]:
        ctx = self.push(ParseContext(name))
        try:
            yield ctx
        finally:
            self.pop(ctx)

    def __len__(self) -> int:
        return len(self._frames)
