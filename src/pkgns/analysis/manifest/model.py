"""
Manifest Types

Manifest types shared by the graph builder, the namespace registry and the
runtime. These types are pure data structures with no business logic beyond
lookups.

R Pattern: the DESCRIPTION dependency fields plus the NAMESPACE file
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from ...shared.source_location import SourceLocation
from ...shared.version import Version, VersionRange


class RelationKind(Enum):
    """
    Strength of a dependency edge.

    Each kind corresponds to one DESCRIPTION field; see ``field_name``.
    """
    REQUIRED = "required"               # Imports
    REQUIRED_DEV = "required_dev"       # Suggests
    OPTIONAL = "optional"               # Enhances
    LINK_TIME = "link_time"             # LinkingTo
    ATTACH_REQUIRED = "attach_required" # Depends

    @property
    def field_name(self) -> str:
        return _FIELD_BY_KIND[self]

    @classmethod
    def from_field(cls, name: str) -> "RelationKind":
        return _KIND_BY_FIELD[name]

    @classmethod
    def parse(cls, text: str) -> "RelationKind":
        """Accept either an enum value (``required``) or a field name (``Imports``)."""
        if text in _KIND_BY_FIELD:
            return _KIND_BY_FIELD[text]
        return cls(text.lower().replace("-", "_"))

    @property
    def orders_loading(self) -> bool:
        """True if the edge forces the target to load first."""
        return self in HARD_KINDS

    @property
    def allows_import(self) -> bool:
        """True if the target's exports may be imported through this edge."""
        return self in IMPORTABLE_KINDS


_FIELD_BY_KIND = {
    RelationKind.REQUIRED: "Imports",
    RelationKind.REQUIRED_DEV: "Suggests",
    RelationKind.OPTIONAL: "Enhances",
    RelationKind.LINK_TIME: "LinkingTo",
    RelationKind.ATTACH_REQUIRED: "Depends",
}
_KIND_BY_FIELD = {name: kind for kind, name in _FIELD_BY_KIND.items()}

HARD_KINDS: FrozenSet[RelationKind] = frozenset({
    RelationKind.REQUIRED, RelationKind.ATTACH_REQUIRED, RelationKind.LINK_TIME,
})
IMPORTABLE_KINDS: FrozenSet[RelationKind] = frozenset({
    RelationKind.REQUIRED, RelationKind.ATTACH_REQUIRED,
})


class LifecycleState(Enum):
    """Package lifecycle: ATTACHED implies LOADED implies MANIFESTED."""
    UNREGISTERED = "unregistered"
    MANIFESTED = "manifested"
    LOADED = "loaded"
    ATTACHED = "attached"

    @property
    def is_loaded(self) -> bool:
        return self in (LifecycleState.LOADED, LifecycleState.ATTACHED)


@dataclass(frozen=True)
class DependencySpec:
    """One declared dependency edge (the ``from`` side is the owning manifest)."""
    name: str
    kind: RelationKind = RelationKind.REQUIRED
    constraint: VersionRange = field(default_factory=VersionRange)

    def __str__(self) -> str:
        if self.constraint.is_any:
            return self.name
        return f"{self.name} ({self.constraint})"


@dataclass(frozen=True)
class ImportDirective:
    """
    An ``importFrom(pkg, sym)`` (optionally renamed) or, with no
    ``source_symbol``, an ``import(pkg)`` whole-package directive.
    """
    source_package: str
    source_symbol: Optional[str] = None
    local_name: Optional[str] = None

    @property
    def is_whole_package(self) -> bool:
        return self.source_symbol is None

    @property
    def binding_name(self) -> Optional[str]:
        return self.local_name or self.source_symbol

    def __str__(self) -> str:
        if self.is_whole_package:
            return f"import({self.source_package})"
        if self.local_name and self.local_name != self.source_symbol:
            return f"importFrom({self.source_package}, {self.local_name} = {self.source_symbol})"
        return f"importFrom({self.source_package}, {self.source_symbol})"


@dataclass(frozen=True)
class PackageManifest:
    """
    Everything the engine knows about one package before it is loaded.

    - exports: export directives in declaration order; repeats are kept so
      the namespace build can reject them
    - definitions: optional name -> value map of objects the package defines;
      names here that are not exported are private
    """
    name: str
    version: Version
    dependencies: Tuple[DependencySpec, ...] = ()
    exports: Tuple[str, ...] = ()
    imports: Tuple[ImportDirective, ...] = ()
    definitions: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
    location: Optional[SourceLocation] = field(default=None, compare=False, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        object.__setattr__(self, "exports", tuple(self.exports))
        object.__setattr__(self, "imports", tuple(self.imports))
        object.__setattr__(self, "definitions", MappingProxyType(dict(self.definitions)))

    @classmethod
    def create(
        cls,
        name: str,
        version: Union[str, Version] = "0.0.0",
        dependencies: Iterable[DependencySpec] = (),
        exports: Iterable[str] = (),
        imports: Iterable[ImportDirective] = (),
        definitions: Optional[Mapping[str, Any]] = None,
        location: Optional[SourceLocation] = None,
    ) -> "PackageManifest":
        if not isinstance(version, Version):
            version = Version.parse(version)
        return cls(
            name=name,
            version=version,
            dependencies=tuple(dependencies),
            exports=tuple(exports),
            imports=tuple(imports),
            definitions=definitions or {},
            location=location,
        )

    def dependencies_of_kind(self, kinds: Iterable[RelationKind]) -> List[DependencySpec]:
        wanted = frozenset(kinds)
        return [dep for dep in self.dependencies if dep.kind in wanted]

    def edges_to(self, package: str) -> List[DependencySpec]:
        return [dep for dep in self.dependencies if dep.name == package]

    def declared_kinds(self, package: str) -> FrozenSet[RelationKind]:
        return frozenset(dep.kind for dep in self.edges_to(package))

    def private_names(self) -> List[str]:
        exported = set(self.exports)
        return [name for name in self.definitions if name not in exported]

    def __str__(self) -> str:
        return f"{self.name} {self.version}"
