"""
Resolver

Answers "which definition does this name refer to?" for the three kinds of
reference a program can make:

- Internal(P)             code inside package P: imports, own definitions, core
- Qualified(P)            P::name, exports only
- Qualified(P, internal)  P:::name, exports and private definitions
- TopLevel()              unqualified top-level name, via the search path

Internal lookups read immutable namespaces only, so they never block on the
search path lock and are unaffected by attach/detach.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Tuple, Union

from ..analysis.namespace.tables import Namespace
from .search_path import SearchPathManager
from ..shared.definitions import Definition
from ..shared.errors import (
    LifecycleError, MalformedReference, NotExported, NotFound, PackageNotFound, ResolutionError,
    UndefinedSymbol,
)
from ..utils.base import Result
from ..utils.config import INTERNAL_SEPARATOR, QUALIFIED_SEPARATOR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Internal:
    package: str

    def __str__(self) -> str:
        return f"namespace:{self.package}"


@dataclass(frozen=True)
class Qualified:
    package: str
    internal: bool = False

    def __str__(self) -> str:
        sep = INTERNAL_SEPARATOR if self.internal else QUALIFIED_SEPARATOR
        return f"{self.package}{sep}"


@dataclass(frozen=True)
class TopLevel:
    def __str__(self) -> str:
        return "top level"


ResolutionContext = Union[Internal, Qualified, TopLevel]


def parse_reference(text: str) -> Tuple[str, ResolutionContext]:
    """
    Split a textual reference into (symbol, context).

    Raises MalformedReference for an empty reference or an empty part.

    >>> parse_reference("util::nrow")
    ('nrow', Qualified(package='util', internal=False))
    """
    for sep, internal in ((INTERNAL_SEPARATOR, True), (QUALIFIED_SEPARATOR, False)):
        if sep in text:
            package, _, symbol = text.partition(sep)
            if not package or not symbol or QUALIFIED_SEPARATOR[0] in symbol:
                raise MalformedReference(text)
            return symbol, Qualified(package, internal=internal)
    if not text:
        raise MalformedReference(text)
    return text, TopLevel()


class Resolver:
    """
    Resolves symbol references against loaded namespaces and the search path.

    Args:
        namespaces: live mapping of loaded namespaces (package -> Namespace)
        search_path: the engine's search path
        is_registered: tells an unknown package apart from a registered but
            not yet loaded one, for error reporting
    """

    def __init__(
        self,
        namespaces: Mapping[str, Namespace],
        search_path: SearchPathManager,
        is_registered: Optional[Callable[[str], bool]] = None,
    ):
        self.namespaces = namespaces
        self.search_path = search_path
        self._is_registered = is_registered or (lambda name: False)

    def resolve(self, symbol: str, context: Optional[ResolutionContext] = None) -> Definition:
        if context is None:
            context = TopLevel()

        if isinstance(context, Internal):
            namespace = self._namespace(context.package, "resolve in")
            definition = namespace.lookup_internal(symbol)
            if definition is None:
                raise UndefinedSymbol(symbol, str(context))
        elif isinstance(context, Qualified):
            namespace = self._namespace(context.package, "resolve in")
            definition = self._resolve_qualified(namespace, symbol, context)
        elif isinstance(context, TopLevel):
            try:
                definition = self.search_path.lookup(symbol)
            except NotFound:
                raise UndefinedSymbol(symbol, str(context)) from None
        else:
            raise TypeError(f"unknown resolution context: {context!r}")

        logger.debug(f"{symbol} [{context}] -> {definition}")
        return definition

    def try_resolve(self, symbol: str, context: Optional[ResolutionContext] = None) -> Result:
        """Like ``resolve`` but returns Result.ok(Definition) / Result.err(ResolutionError)."""
        try:
            return Result.ok(self.resolve(symbol, context))
        except ResolutionError as e:
            return Result.err(e)

    def resolve_reference(self, text: str, package: Optional[str] = None) -> Definition:
        """
        Resolve ``name``, ``pkg::name`` or ``pkg:::name``; a bare name is
        looked up inside ``package`` when given, otherwise at top level.
        """
        symbol, context = parse_reference(text)
        if package is not None and isinstance(context, TopLevel):
            context = Internal(package)
        return self.resolve(symbol, context)

    def _resolve_qualified(self, namespace: Namespace, symbol: str, context: Qualified) -> Definition:
        if context.internal:
            definition = namespace.lookup_own(symbol)
            if definition is None:
                raise UndefinedSymbol(symbol, f"namespace:{namespace.package}")
            return definition
        definition = namespace.lookup_export(symbol)
        if definition is None:
            raise NotExported(namespace.package, symbol, private=symbol in namespace.private)
        return definition

    def _namespace(self, package: str, operation: str) -> Namespace:
        namespace = self.namespaces.get(package)
        if namespace is not None:
            return namespace
        if self._is_registered(package):
            raise LifecycleError(package, "not loaded", operation)
        raise PackageNotFound(package)
