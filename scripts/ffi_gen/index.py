"""
Declaration index

Maps a USR to the one declaration object built for it during a parse run.
Every reference to a native declaration goes through here, so a declaration
reached from many headers or many type references is built exactly once.
Iteration order is publication order.
"""

from typing import Iterator, Optional

from .errors import IndexIntegrityError
from .ir import Binding


class BindingsIndex:
    """Per-run USR -> declaration map"""

    def __init__(self):
        self._seen: dict[str, Binding] = {}

    def has(self, usr: str) -> bool:
        return usr in self._seen

    def lookup(self, usr: str) -> Optional[Binding]:
        return self._seen.get(usr)

    def insert(self, usr: str, decl: Binding):
        """Publish a declaration; callers must check has() first"""
        if usr in self._seen:
            raise IndexIntegrityError(usr)
        self._seen[usr] = decl

    def declarations(self) -> list[Binding]:
        """Published declarations, first-published first"""
        return list(self._seen.values())

    def __contains__(self, usr: str) -> bool:
        return usr in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(self._seen)

    def __len__(self) -> int:
        return len(self._seen)
