"""
Search Path

Single process-wide stack of attached packages used for unqualified,
top-level lookups. attach = push (or move to top), detach = remove,
lookup walks the stack from the most recently attached package down.

The stack is the only mutable shared state in the engine; one re-entrant
lock serialises every operation on it.
"""

import logging
import threading
from typing import Callable, Iterable, List, Mapping, Optional

from ..analysis.namespace.tables import Namespace
from ..shared.definitions import Definition
from ..shared.errors import DetachBlocked, LifecycleError, NotFound

logger = logging.getLogger(__name__)


class SearchPathManager:
    """
    Ordered stack of attached packages (top = most recently attached).

    - loaded: live mapping of loaded namespaces, owned by the caller and
      only mutated under ``lock``
    - depends_on: package -> packages it requires to be attached
      (Depends / AttachRequired edges)
    """
    _stack: List[str]

    def __init__(
        self,
        loaded: Mapping[str, Namespace],
        depends_on: Optional[Callable[[str], Iterable[str]]] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self._loaded = loaded
        self._depends_on = depends_on or (lambda name: ())
        self.lock = lock if lock is not None else threading.RLock()
        self._stack = []  # bottom ... top

    def attach(self, name: str) -> List[str]:
        """
        Attach ``name`` at the top of the search path.

        Its attach-required dependencies that are not attached yet are
        attached first, so they sit just below it. Re-attaching moves the
        package to the top without duplicating it.

        Returns the packages newly added to the path (dependencies first).
        """
        with self.lock:
            added: List[str] = []
            self._attach(name, added)
            logger.info(f"Attached {name}; search path: {self.entries()}")
            return added

    def _attach(self, name: str, added: List[str]) -> None:
        if name not in self._loaded:
            raise LifecycleError(name, "not loaded", "attach")
        for dep in self._depends_on(name):
            if dep not in self._stack:
                self._attach(dep, added)
        if name in self._stack:
            self._stack.remove(name)
        else:
            added.append(name)
        self._stack.append(name)

    def detach(self, name: str) -> None:
        """Remove ``name``; refused while an attached package depends on it."""
        with self.lock:
            if name not in self._stack:
                raise LifecycleError(name, "not attached", "detach")
            blockers = [other for other in self._stack
                        if other != name and name in self._depends_on(other)]
            if blockers:
                raise DetachBlocked(name, blockers)
            self._stack.remove(name)
            logger.info(f"Detached {name}; search path: {self.entries()}")

    def lookup(self, symbol: str) -> Definition:
        """First export of ``symbol`` from the top of the stack down."""
        with self.lock:
            for name in reversed(self._stack):
                definition = self._loaded[name].lookup_export(symbol)
                if definition is not None:
                    return definition
        raise NotFound(symbol)

    def find(self, symbol: str) -> List[str]:
        """Every attached package exporting ``symbol``, top first (masking order)."""
        with self.lock:
            return [name for name in reversed(self._stack)
                    if self._loaded[name].lookup_export(symbol) is not None]

    def conflicts(self) -> List[str]:
        """Names exported by more than one attached package."""
        with self.lock:
            seen = {}
            for name in self._stack:
                for symbol in self._loaded[name].exports:
                    seen[symbol] = seen.get(symbol, 0) + 1
            return sorted(symbol for symbol, count in seen.items() if count > 1)

    def entries(self) -> List[str]:
        """Attached packages, most recently attached first."""
        with self.lock:
            return list(reversed(self._stack))

    def is_attached(self, name: str) -> bool:
        with self.lock:
            return name in self._stack

    def clear(self) -> List[str]:
        """Detach everything (engine shutdown); returns what was attached."""
        with self.lock:
            detached = self.entries()
            self._stack.clear()
            if detached:
                logger.info(f"Cleared search path: {detached}")
            return detached

    def __len__(self) -> int:
        with self.lock:
            return len(self._stack)
