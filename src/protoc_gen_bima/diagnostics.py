from __future__ import annotations

import logging
from typing import Iterator, List

from protoc_gen_bima.models import Diagnostic, Severity

log = logging.getLogger(__name__)


class Diagnostics:
    """Errors and warnings collected during one generation run.

    Every entry is also logged, so a plugin run shows them on stderr while
    callers can still inspect them afterwards.
    """

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    def error(self, location: str, message: str) -> None:
        self._add(Diagnostic(Severity.ERROR, location, message))

    def warning(self, location: str, message: str) -> None:
        self._add(Diagnostic(Severity.WARNING, location, message))

    def _add(self, diagnostic: Diagnostic) -> None:
        self._items.append(diagnostic)
        if diagnostic.severity == Severity.ERROR:
            log.error("%s", diagnostic)
        else:
            log.warning("%s", diagnostic)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self._items if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._items if d.severity == Severity.WARNING]

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
