"""
Namespace Environment

Evaluation environment for code that lives inside a package. A function
defined by package P carries no closure of its own; every name it uses is
resolved through Internal(P) at call time, which is what makes namespace
capture observable: attaching a package that masks ``dim`` changes what the
top level sees, never what P's functions call.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .resolver import Internal, Qualified, Resolver
from ..shared.definitions import Definition
from ..shared.errors import NotCallable


@dataclass(frozen=True)
class NamespaceFunction:
    """
    Function value whose body receives the NamespaceEnvironment of the
    package that defines it: ``body(env, *args, **kwargs)``.
    """
    body: Callable[..., Any]
    name: Optional[str] = None

    def __str__(self) -> str:
        return f"<function {self.name or getattr(self.body, '__name__', '?')}>"


class NamespaceEnvironment:
    """Names as seen from inside ``package``."""

    def __init__(self, resolver: Resolver, package: str):
        self.resolver = resolver
        self.package = package

    def lookup(self, name: str) -> Definition:
        return self.resolver.resolve(name, Internal(self.package))

    def __getitem__(self, name: str) -> Any:
        return self.lookup(name).value

    def call(self, name: str, *args, **kwargs) -> Any:
        return invoke(self.resolver, self.lookup(name), *args, **kwargs)

    def qualified(self, package: str, name: str, internal: bool = False) -> Any:
        """Value of ``package::name`` (``package:::name`` with ``internal``)."""
        return self.resolver.resolve(name, Qualified(package, internal=internal)).value

    def __repr__(self) -> str:
        return f"NamespaceEnvironment({self.package!r})"


def invoke(resolver: Resolver, definition: Definition, *args, **kwargs) -> Any:
    """
    Call the value behind ``definition``.

    NamespaceFunction bodies run in their defining package's environment;
    plain Python callables (typically core built-ins) are called directly.
    """
    value = definition.value
    if isinstance(value, NamespaceFunction):
        return value.body(NamespaceEnvironment(resolver, definition.package), *args, **kwargs)
    if callable(value):
        return value(*args, **kwargs)
    raise NotCallable(definition.qualified_name)
