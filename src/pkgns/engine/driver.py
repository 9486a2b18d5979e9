"""
Engine Driver

Orchestrates the package lifecycle:

    register -> Manifested -> load -> Loaded -> attach -> Attached
                                        ^                   |
                                        +----- detach ------+

Lifecycle state is derived, never stored: a package is Attached when it is
on the search path, Loaded when its namespace is built, Manifested when its
manifest is registered. Attached => Loaded => Manifested holds by
construction.

R Pattern: loadNamespace() / library() / detach()
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..analysis.dependency_graph import DependencyGraphBuilder, LoadPlan, reverse_dependencies
from ..analysis.manifest import LifecycleState, ManifestStore, PackageManifest, RelationKind
from ..analysis.namespace import Namespace, NamespaceRegistry
from ..runtime.environment import invoke
from ..runtime.resolver import ResolutionContext, Resolver
from ..runtime.search_path import SearchPathManager
from ..shared.definitions import Definition, core_definitions
from ..shared.errors import DuplicatePackage, ErrorReporter, LifecycleError, PackageNotFound, PkgnsError
from ..shared.version import Version
from ..utils.base import Result
from ..utils.config import CORE_PACKAGE

logger = logging.getLogger(__name__)


class BuildResult:
    """Outcome of ``PackageEngine.load_all``"""
    def __init__(
        self,
        plan: Optional[LoadPlan] = None,
        loaded: Optional[List[str]] = None,
        reporter: Optional[ErrorReporter] = None,
        error: Optional[PkgnsError] = None,
        success: bool = False,
    ):
        self.plan = plan
        self.loaded = loaded or []
        self.reporter = reporter or ErrorReporter()
        self.error = error
        self.success = success

    def has_errors(self) -> bool:
        return self.reporter.has_errors() or not self.success

    def __repr__(self) -> str:
        status = "ok" if self.success else f"failed: {self.error}"
        return f"BuildResult({status}, loaded={self.loaded})"


class PackageEngine:
    """
    One engine instance = one process-wide package session.

    Args:
        manifests: manifests registered up front
        core: core built-ins (name -> value mapping or iterable of names);
              defaults to DEFAULT_CORE_BUILTINS
        workers: thread pool size for namespace builds (None/1 = sequential)
    """

    def __init__(
        self,
        manifests: Iterable[PackageManifest] = (),
        core: Union[Mapping[str, Any], Iterable[str], None] = None,
        workers: Optional[int] = None,
    ):
        self.store = ManifestStore()
        self.builder = DependencyGraphBuilder()
        self.registry = NamespaceRegistry(core_definitions(core))
        self.workers = workers

        self._lock = threading.RLock()
        self._namespaces: Dict[str, Namespace] = {CORE_PACKAGE: self._core_namespace()}
        self._search_path = SearchPathManager(self._namespaces, self._attach_requirements, lock=self._lock)
        self.resolver = Resolver(self._namespaces, self._search_path, is_registered=self._is_registered)

        for manifest in manifests:
            self.register(manifest)

    def _core_namespace(self) -> Namespace:
        return Namespace(
            package=CORE_PACKAGE,
            version=Version(0),
            exports=self.registry.core,
            imports={},
            core=self.registry.core,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register(self, manifest: PackageManifest) -> LifecycleState:
        with self._lock:
            if manifest.name == CORE_PACKAGE:
                raise DuplicatePackage(manifest.name, manifest.location)
            self.store.register(manifest)
            logger.debug(f"Registered {manifest.name} {manifest.version}")
            return LifecycleState.MANIFESTED

    def state_of(self, name: str) -> LifecycleState:
        with self._lock:
            if self._search_path.is_attached(name):
                return LifecycleState.ATTACHED
            if name in self._namespaces:
                return LifecycleState.LOADED
            if name in self.store:
                return LifecycleState.MANIFESTED
            return LifecycleState.UNREGISTERED

    def plan(self) -> LoadPlan:
        """Validated load plan over every registered package."""
        return self.builder.build(self.store)

    def load(self, name: str) -> List[str]:
        """
        Load ``name`` and every hard dependency not loaded yet.

        All-or-nothing: on any error nothing new becomes Loaded. Returns the
        newly loaded packages in load order.
        """
        with self._lock:
            if name in self._namespaces:
                return []
            if name not in self.store:
                raise PackageNotFound(name)
            plan = self.plan().subplan([name])
            return self._commit(plan, self.workers)

    def load_all(self, workers: Optional[int] = None) -> BuildResult:
        """Plan and load every registered package, reporting instead of raising."""
        reporter = ErrorReporter()
        plan = None
        with self._lock:
            try:
                plan = self.plan()
                loaded = self._commit(plan, workers if workers is not None else self.workers)
            except PkgnsError as e:
                logger.info(f"load_all failed: {e.message}")
                reporter.report_exception(e)
                return BuildResult(plan=plan, reporter=reporter, error=e, success=False)
        return BuildResult(plan=plan, loaded=loaded, reporter=reporter, success=True)

    def _commit(self, plan: LoadPlan, workers: Optional[int]) -> List[str]:
        built = self.registry.build_all(plan, self.store, workers=workers, built=dict(self._namespaces))
        loaded = [name for name in plan.order if name not in self._namespaces]
        for name in loaded:
            self._namespaces[name] = built[name]
        if loaded:
            logger.info(f"Loaded {', '.join(loaded)}")
        return loaded

    def attach(self, name: str) -> List[str]:
        """Attach a Loaded package; returns the packages newly put on the search path."""
        with self._lock:
            self._require_known(name)
            state = self.state_of(name)
            if not state.is_loaded:
                raise LifecycleError(name, state.value, "attach")
            return self._search_path.attach(name)

    def library(self, name: str) -> List[str]:
        """Load (if needed) and attach ``name``."""
        with self._lock:
            self.load(name)
            return self.attach(name)

    def detach(self, name: str) -> None:
        with self._lock:
            self._require_known(name)
            if not self._search_path.is_attached(name):
                raise LifecycleError(name, self.state_of(name).value, "detach")
            self._search_path.detach(name)

    def shutdown(self) -> List[str]:
        """Detach everything; attached packages return to Loaded."""
        with self._lock:
            return self._search_path.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def resolve(self, symbol: str, context: Optional[ResolutionContext] = None) -> Definition:
        return self.resolver.resolve(symbol, context)

    def try_resolve(self, symbol: str, context: Optional[ResolutionContext] = None) -> Result:
        return self.resolver.try_resolve(symbol, context)

    def call(self, reference: str, *args, package: Optional[str] = None, **kwargs) -> Any:
        """
        Resolve ``reference`` (``name``, ``pkg::name`` or ``pkg:::name``) and
        call it. A bare name resolves inside ``package`` when given,
        otherwise at top level.
        """
        definition = self.resolver.resolve_reference(reference, package)
        return invoke(self.resolver, definition, *args, **kwargs)

    def namespace(self, name: str) -> Namespace:
        with self._lock:
            self._require_known(name)
            namespace = self._namespaces.get(name)
            if namespace is None:
                raise LifecycleError(name, self.state_of(name).value, "inspect the namespace of")
            return namespace

    def search_path(self) -> List[str]:
        """Attached packages, most recently attached first."""
        return self._search_path.entries()

    def find(self, symbol: str) -> List[str]:
        return self._search_path.find(symbol)

    def conflicts(self) -> List[str]:
        return self._search_path.conflicts()

    def loaded(self) -> List[str]:
        with self._lock:
            return sorted(name for name in self._namespaces if name != CORE_PACKAGE)

    def reverse_dependencies(self, name: str, recursive: bool = True) -> List[str]:
        return reverse_dependencies(self.store, name, recursive=recursive)

    # ------------------------------------------------------------------

    def _is_registered(self, name: str) -> bool:
        return name in self.store or name == CORE_PACKAGE

    def _require_known(self, name: str) -> None:
        if not self._is_registered(name):
            raise PackageNotFound(name)

    def _attach_requirements(self, name: str) -> List[str]:
        manifest = self.store.get(name)
        if manifest is None:
            return []
        return sorted({dep.name for dep in manifest.dependencies_of_kind({RelationKind.ATTACH_REQUIRED})})
