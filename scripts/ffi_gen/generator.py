"""
Main generator module

Orchestrates front end, parser and emitters to generate complete LuaJIT
bindings for one library.
"""

import logging
import os
from collections import Counter
from typing import Iterable, Optional, Protocol

from .config import Config
from .cursor import Cursor
from .luacats import LuaCATSGenerator
from .luajit import LuaJITGenerator
from .parser import HeaderParser, ParseResult

logger = logging.getLogger(__name__)


class Frontend(Protocol):
    def parse(self) -> Iterable[Cursor]:
        ...


class Generator:
    """Main binding generator"""

    def __init__(self, config: Config, frontend: Optional[Frontend] = None):
        self.config = config
        self._frontend = frontend

    @property
    def frontend(self) -> Frontend:
        if self._frontend is None:
            from .clang_frontend import ClangFrontend
            self._frontend = ClangFrontend(self.config)
        return self._frontend

    @property
    def lua_path(self) -> str:
        return os.path.join(self.config.output, f'{self.config.module}.lua')

    @property
    def types_path(self) -> str:
        return os.path.join(self.config.output, f'{self.config.module}.d.lua')

    def parse(self) -> ParseResult:
        """Run the front end and the parser"""
        cursors = self.frontend.parse()
        return HeaderParser(self.config).parse(cursors)

    def generate(self) -> ParseResult:
        """Generate bindings and write them to the output directory"""
        print('=== Generating FFI bindings:')
        for header in self.config.headers.entry_points:
            print(f'  {header} => {self.config.module}')

        result = self.parse()

        os.makedirs(self.config.output, exist_ok=True)
        with open(self.lua_path, 'w', newline='\n') as f:
            f.write(LuaJITGenerator(result, self.config).generate())
        with open(self.types_path, 'w', newline='\n') as f:
            f.write(LuaCATSGenerator(result, self.config).generate())
        logger.debug('Wrote %s and %s', self.lua_path, self.types_path)

        self._print_summary(result)
        return result

    def _print_summary(self, result: ParseResult):
        counts = Counter(type(b).__name__ for b in result.bindings)
        summary = ', '.join(f'{n} {kind}' for kind, n in sorted(counts.items()))
        print(f'  {len(result.bindings)} declarations ({summary or "none"})')
        if result.diagnostics:
            reasons = Counter(d.reason.value for d in result.diagnostics)
            detail = ', '.join(f'{n} {reason}' for reason, n in sorted(reasons.items()))
            print(f'  >> warning: {len(result.diagnostics)} diagnostics ({detail})')
