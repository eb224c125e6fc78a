"""
Diagnostics module

Records why a declaration was dropped or why a piece of configuration was
ignored. Diagnostics are collected as data; whether they fail a run is up to
the caller (see gen_ffi.py --strict).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

logger = logging.getLogger(__name__)


class Category(Enum):
    UNSUPPORTED_CONSTRUCT = 'unsupported-construct'
    CONFIGURATION_MISMATCH = 'configuration-mismatch'


class Reason(Enum):
    INLINE_FUNCTION = 'inline-function'
    INCOMPLETE_BY_VALUE = 'incomplete-by-value'
    UNIMPLEMENTED_TYPE = 'unimplemented-type'
    UNSUPPORTED_MEMBER = 'unsupported-member'
    VARIADIC_CONFIG_MISMATCH = 'variadic-config-mismatch'

    @property
    def category(self) -> Category:
        if self is Reason.VARIADIC_CONFIG_MISMATCH:
            return Category.CONFIGURATION_MISMATCH
        return Category.UNSUPPORTED_CONSTRUCT


@dataclass(frozen=True)
class Diagnostic:
    """One dropped declaration or ignored config entry"""
    name: str
    usr: str
    reason: Reason
    message: str = ''

    @property
    def category(self) -> Category:
        return self.reason.category

    def __str__(self) -> str:
        text = f'{self.name}: {self.reason.value}'
        if self.message:
            text += f' ({self.message})'
        return text


class Diagnostics:
    """Ordered collection of diagnostics for one parse run"""

    def __init__(self):
        self._items: list[Diagnostic] = []

    def add(self, name: str, usr: str, reason: Reason, message: str = '') -> Diagnostic:
        diag = Diagnostic(name=name, usr=usr, reason=reason, message=message)
        self._items.append(diag)
        logger.warning('Skipped %s', diag)
        return diag

    def by_reason(self, reason: Reason) -> list[Diagnostic]:
        return [d for d in self._items if d.reason is reason]

    def by_category(self, category: Category) -> list[Diagnostic]:
        return [d for d in self._items if d.category is category]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
