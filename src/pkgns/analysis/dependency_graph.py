"""
Dependency Graph Builder

Pure function from a ManifestStore to a LoadPlan:

1. collect edges, rejecting unknown targets and self edges
2. detect cycles among load-ordering edges (Imports, Depends, LinkingTo)
3. reconcile version constraints per target (one installed version each)
4. topologically order packages, ties broken by package name

Suggests/Enhances edges are validated (target must exist, versions must
agree) but never influence the load order.

R Pattern: tools::package_dependencies + the install order computed by
install.packages
"""

import heapq
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union

from .manifest.model import HARD_KINDS, PackageManifest, RelationKind
from .manifest.store import ManifestStore
from ..shared.errors import (
    CyclicDependency, MissingDependency, PackageNotFound, SelfDependency, VersionConflict,
)
from ..shared.version import Version, VersionRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyEdge:
    """``source`` depends on ``target`` with the given strength and constraint."""
    source: str
    target: str
    kind: RelationKind
    constraint: VersionRange = field(default_factory=VersionRange)

    def __str__(self) -> str:
        return f"{self.source} -[{self.kind.field_name}]-> {self.target} ({self.constraint})"


@dataclass(frozen=True)
class LoadPlan:
    """
    Validated load order: every package appears strictly after all of its
    Required/AttachRequired/LinkTime dependencies.
    """
    order: Tuple[str, ...]
    edges: Tuple[DependencyEdge, ...] = ()
    versions: Mapping[str, Version] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "order", tuple(self.order))
        object.__setattr__(self, "edges", tuple(self.edges))
        object.__setattr__(self, "versions", MappingProxyType(dict(self.versions)))

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, name: object) -> bool:
        return name in self.order

    def position(self, name: str) -> int:
        if name not in self.order:
            raise PackageNotFound(name)
        return self.order.index(name)

    def prefix(self, name: str) -> Tuple[str, ...]:
        """Packages ordered before ``name``."""
        return self.order[:self.position(name)]

    def dependencies_of(self, name: str, kinds: Iterable[RelationKind] = HARD_KINDS) -> List[str]:
        wanted = frozenset(kinds)
        return sorted({e.target for e in self.edges if e.source == name and e.kind in wanted})

    def dependents_of(self, name: str, kinds: Iterable[RelationKind] = HARD_KINDS) -> List[str]:
        wanted = frozenset(kinds)
        return sorted({e.source for e in self.edges if e.target == name and e.kind in wanted})

    def subplan(self, roots: Iterable[str]) -> "LoadPlan":
        """Restrict the plan to ``roots`` and their transitive hard dependencies."""
        needed: Set[str] = set()
        pending = list(roots)
        while pending:
            name = pending.pop()
            if name in needed:
                continue
            needed.add(name)
            pending.extend(self.dependencies_of(name))
        return LoadPlan(
            order=[name for name in self.order if name in needed],
            edges=[e for e in self.edges if e.source in needed],
            versions={name: v for name, v in self.versions.items() if name in needed},
        )

    def __str__(self) -> str:
        return " -> ".join(self.order)


class _Mark(Enum):
    WHITE = 0   # not visited
    GRAY = 1    # on the current DFS path
    BLACK = 2   # finished


class DependencyGraphBuilder:
    """
    Builds and validates the dependency graph.

    Stateless: ``build`` can be called repeatedly and never mutates its
    input. Every failure raises a GraphError subclass; no partial plan is
    ever returned.
    """

    def build(self, manifests: Union[ManifestStore, Iterable[PackageManifest]]) -> LoadPlan:
        store = manifests if isinstance(manifests, ManifestStore) else ManifestStore(manifests)

        edges = self.collect_edges(store)
        graph = self.load_order_graph(store, edges)
        self.detect_cycles(graph)
        self.reconcile_versions(store, edges)
        order = self.topological_order(graph)

        logger.info(f"Load plan: {len(order)} packages, {len(edges)} edges")
        logger.debug(f"Load order: {' -> '.join(order)}")
        return LoadPlan(
            order=order,
            edges=edges,
            versions={m.name: m.version for m in store},
        )

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def collect_edges(self, store: ManifestStore) -> List[DependencyEdge]:
        """All declared edges, validated; sorted by (source, target, kind)."""
        edges: List[DependencyEdge] = []
        for manifest in store:
            for dep in manifest.dependencies:
                if dep.name == manifest.name:
                    raise SelfDependency(manifest.name)
                if dep.name not in store:
                    raise MissingDependency(manifest.name, dep.name, dep.kind.field_name)
                edges.append(DependencyEdge(manifest.name, dep.name, dep.kind, dep.constraint))
        edges.sort(key=lambda e: (e.source, e.target, e.kind.value))
        return edges

    def load_order_graph(self, store: ManifestStore, edges: Iterable[DependencyEdge]) -> Dict[str, Set[str]]:
        """package -> set of packages it must load after (hard edges only)."""
        graph: Dict[str, Set[str]] = {name: set() for name in store.names()}
        for edge in edges:
            if edge.kind.orders_loading:
                graph[edge.source].add(edge.target)
        return graph

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def detect_cycles(self, graph: Mapping[str, Set[str]]) -> None:
        """
        Three-color depth-first search. A back edge to a GRAY node closes a
        cycle; the full path from that node is reported.

        Iterative so deep dependency chains cannot hit the recursion limit.
        """
        marks = {name: _Mark.WHITE for name in graph}
        for root in sorted(graph):
            if marks[root] is not _Mark.WHITE:
                continue
            marks[root] = _Mark.GRAY
            path = [root]
            stack = [iter(sorted(graph[root]))]
            while stack:
                child = next(stack[-1], None)
                if child is None:
                    marks[path.pop()] = _Mark.BLACK
                    stack.pop()
                    continue
                if marks[child] is _Mark.GRAY:
                    cycle = path[path.index(child):] + [child]
                    logger.debug(f"Back edge {path[-1]} -> {child}")
                    raise CyclicDependency(cycle)
                if marks[child] is _Mark.WHITE:
                    marks[child] = _Mark.GRAY
                    path.append(child)
                    stack.append(iter(sorted(graph[child])))

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def reconcile_versions(self, store: ManifestStore, edges: Iterable[DependencyEdge]) -> None:
        """
        Intersect every constraint on each target and check the result
        against the single registered version of that target.
        """
        by_target: Dict[str, List[DependencyEdge]] = {}
        for edge in edges:
            by_target.setdefault(edge.target, []).append(edge)

        for target in sorted(by_target):
            constrained = [e for e in by_target[target] if not e.constraint.is_any]
            if not constrained:
                continue
            combined = VersionRange.any()
            for edge in constrained:
                combined = combined.intersect(edge.constraint)

            if combined.is_empty():
                raise VersionConflict(target, self._conflicting_pair(constrained))

            installed = store[target].version
            if not combined.satisfied_by(installed):
                unsatisfied = _unique_requirements(
                    e for e in constrained if not e.constraint.satisfied_by(installed))
                raise VersionConflict(target, unsatisfied, installed=str(installed))
            logger.debug(f"{target} {installed} satisfies {combined}")

    def _conflicting_pair(self, edges: List[DependencyEdge]) -> List[Tuple[str, str]]:
        """The requirers holding the tightest lower and tightest upper bound."""
        lower = max(
            (e for e in edges if e.constraint.lower is not None),
            key=lambda e: (e.constraint.lower, not e.constraint.lower_inclusive),
        )
        upper = min(
            (e for e in edges if e.constraint.upper is not None),
            key=lambda e: (e.constraint.upper, e.constraint.upper_inclusive),
        )
        return _unique_requirements([lower, upper])

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def topological_order(self, graph: Mapping[str, Set[str]]) -> List[str]:
        """Kahn's algorithm; among ready packages the smallest name goes first."""
        remaining = {name: len(deps) for name, deps in graph.items()}
        dependents: Dict[str, List[str]] = {name: [] for name in graph}
        for name, deps in graph.items():
            for dep in deps:
                dependents[dep].append(name)

        ready = [name for name, count in remaining.items() if count == 0]
        heapq.heapify(ready)
        order: List[str] = []
        while ready:
            name = heapq.heappop(ready)
            order.append(name)
            for dependent in dependents[name]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, dependent)

        if len(order) != len(graph):
            # detect_cycles runs first; reaching here means the graph changed under us
            raise RuntimeError("topological sort left packages unordered")
        return order


def _unique_requirements(edges: Iterable[DependencyEdge]) -> List[Tuple[str, str]]:
    return sorted({(e.source, str(e.constraint)) for e in edges})


# ----------------------------------------------------------------------
# Reverse dependency analysis
# ----------------------------------------------------------------------

def reverse_dependencies(
    store: ManifestStore,
    package: str,
    recursive: bool = True,
    kinds: Iterable[RelationKind] = HARD_KINDS,
) -> List[str]:
    """
    Packages depending on ``package`` through edges of ``kinds``; with
    ``recursive`` the transitive closure (everything a change could reach).
    """
    if package not in store:
        raise PackageNotFound(package)
    wanted = frozenset(kinds)
    direct: Dict[str, Set[str]] = {}
    for manifest in store:
        for dep in manifest.dependencies:
            if dep.kind in wanted:
                direct.setdefault(dep.name, set()).add(manifest.name)

    found: Set[str] = set()
    pending = sorted(direct.get(package, ()))
    while pending:
        name = pending.pop()
        if name in found or name == package:
            continue
        found.add(name)
        if recursive:
            pending.extend(direct.get(name, ()))
    return sorted(found)


def version_change_impact(
    store: ManifestStore,
    package: str,
    new_version: Union[Version, str],
) -> List[Tuple[str, str]]:
    """
    Requirers whose declared constraint on ``package`` would no longer be
    satisfied if it moved to ``new_version``, as (requirer, constraint).
    """
    if package not in store:
        raise PackageNotFound(package)
    if not isinstance(new_version, Version):
        new_version = Version.parse(new_version)
    broken = set()
    for manifest in store:
        for dep in manifest.edges_to(package):
            if not dep.constraint.satisfied_by(new_version):
                broken.add((manifest.name, str(dep.constraint)))
    return sorted(broken)


def build_load_plan(manifests: Union[ManifestStore, Iterable[PackageManifest]]) -> LoadPlan:
    return DependencyGraphBuilder().build(manifests)
