"""
Definitions

A ``Definition`` is what every table in the engine maps names to: an
immutable reference to one named object owned by one package. Identity is
(package, name, kind); the carried value does not take part in equality.

Core built-ins live in a pseudo package (``core`` by default) that every
namespace falls back to and that needs no manifest.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Union
import logging

from ..utils.config import CORE_PACKAGE, DEFAULT_CORE_BUILTINS, QUALIFIED_SEPARATOR

logger = logging.getLogger(__name__)


class DefKind(Enum):
    EXPORTED = "exported"
    PRIVATE = "private"
    BUILTIN = "builtin"


@dataclass(frozen=True)
class Definition:
    package: str
    name: str
    kind: DefKind = DefKind.EXPORTED
    value: Any = field(default=None, compare=False, hash=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.package}{QUALIFIED_SEPARATOR}{self.name}"

    @property
    def is_exported(self) -> bool:
        return self.kind is DefKind.EXPORTED

    def __str__(self) -> str:
        return self.qualified_name


def core_definitions(
    builtins: Union[Mapping[str, Any], Iterable[str], None] = None,
    package: str = CORE_PACKAGE,
) -> Dict[str, Definition]:
    """
    Build the core built-in table.

    ``builtins`` is either a name -> value mapping or a plain iterable of
    names (values left as None). ``None`` selects DEFAULT_CORE_BUILTINS.
    """
    if builtins is None:
        builtins = DEFAULT_CORE_BUILTINS
    items = builtins.items() if isinstance(builtins, Mapping) else ((name, None) for name in builtins)
    table = {name: Definition(package, name, DefKind.BUILTIN, value) for name, value in items}
    logger.debug(f"Core namespace '{package}': {len(table)} built-ins")
    return table
