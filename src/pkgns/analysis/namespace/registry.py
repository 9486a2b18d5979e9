"""
Namespace Registry

Builds each package's export and import tables, in load-plan order,
against the already-built export tables of its dependencies.

- export(f) twice                -> DuplicateExport (never deduplicated)
- importFrom(Q, g), Q undeclared -> UndeclaredDependencyImport
- importFrom(Q, g), g not in Q   -> UnresolvedImport
- import(Q)                      -> snapshot of Q's exports at build time

R Pattern: loadNamespace() processing the NAMESPACE file
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Iterable, List, Mapping, Optional

from .tables import ImportBinding, Namespace
from ..manifest.model import IMPORTABLE_KINDS, ImportDirective, PackageManifest
from ..manifest.store import ManifestStore
from ..dependency_graph import LoadPlan
from ...shared.definitions import Definition, DefKind, core_definitions
from ...shared.errors import DuplicateExport, UndeclaredDependencyImport, UnresolvedImport

logger = logging.getLogger(__name__)


class NamespaceRegistry:
    """
    Namespace builder.

    Stateless apart from the shared core table: every build reads only its
    arguments and returns a new immutable Namespace, so built namespaces can
    be handed to concurrent readers without locking.
    """

    def __init__(self, core: Optional[Mapping[str, Definition]] = None):
        self.core: Mapping[str, Definition] = dict(core) if core is not None else core_definitions()

    def build_namespace(self, manifest: PackageManifest, built: Mapping[str, Namespace]) -> Namespace:
        """
        Build one namespace.

        Args:
            manifest: the package's manifest
            built: namespaces of packages earlier in the load plan (must
                   include every package ``manifest`` imports from)
        """
        exports = self._build_exports(manifest)
        private = {
            name: Definition(manifest.name, name, DefKind.PRIVATE, value)
            for name, value in manifest.definitions.items()
            if name not in exports
        }
        imports = self._build_imports(manifest, built)

        for local_name in imports:
            if local_name in exports or local_name in private:
                logger.warning(
                    f"{manifest.name}: import '{imports[local_name]}' masks the package's own '{local_name}'")

        namespace = Namespace(
            package=manifest.name,
            version=manifest.version,
            exports=exports,
            imports=imports,
            private=private,
            core=self.core,
        )
        logger.debug(f"Built {namespace}")
        return namespace

    def build_all(
        self,
        plan: LoadPlan,
        store: ManifestStore,
        workers: Optional[int] = None,
        built: Optional[Mapping[str, Namespace]] = None,
    ) -> Dict[str, Namespace]:
        """
        Build every namespace in ``plan`` not already in ``built``.

        With ``workers > 1`` independent packages build on a thread pool; a
        package's build first waits for the futures of its dependencies.
        The first failure (in plan order) is raised and nothing is returned.
        """
        namespaces: Dict[str, Namespace] = dict(built or {})
        pending = [name for name in plan.order if name not in namespaces]
        if not workers or workers <= 1:
            for name in pending:
                namespaces[name] = self.build_namespace(store[name], namespaces)
        else:
            namespaces.update(self._build_parallel(plan, store, pending, dict(namespaces), workers))
        logger.info(f"Built {len(pending)} namespaces")
        return namespaces

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def _build_exports(self, manifest: PackageManifest) -> Dict[str, Definition]:
        exports: Dict[str, Definition] = {}
        for name in manifest.exports:
            if name in exports:
                raise DuplicateExport(manifest.name, name)
            exports[name] = Definition(manifest.name, name, DefKind.EXPORTED, manifest.definitions.get(name))
        return exports

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _build_imports(self, manifest: PackageManifest, built: Mapping[str, Namespace]) -> Dict[str, ImportBinding]:
        imports: Dict[str, ImportBinding] = {}
        for directive in manifest.imports:
            source = self._source_namespace(manifest, directive, built)
            for binding in self._bindings_for(manifest, directive, source):
                self._bind(manifest.name, imports, binding)
        return imports

    def _source_namespace(self, manifest: PackageManifest, directive: ImportDirective,
                          built: Mapping[str, Namespace]) -> Namespace:
        if not (manifest.declared_kinds(directive.source_package) & IMPORTABLE_KINDS):
            raise UndeclaredDependencyImport(manifest.name, directive.source_package, directive.source_symbol)
        source = built.get(directive.source_package)
        if source is None:
            raise RuntimeError(
                f"namespace of '{directive.source_package}' must be built before '{manifest.name}'")
        return source

    def _bindings_for(self, manifest: PackageManifest, directive: ImportDirective,
                      source: Namespace) -> List[ImportBinding]:
        if directive.is_whole_package:
            return [
                ImportBinding(name, source.package, name, definition, whole_package=True)
                for name, definition in sorted(source.exports.items())
            ]
        definition = source.lookup_export(directive.source_symbol)
        if definition is None:
            raise UnresolvedImport(manifest.name, source.package, directive.source_symbol,
                                   available=source.exported_names())
        return [ImportBinding(directive.binding_name, source.package, directive.source_symbol, definition)]

    def _bind(self, package: str, imports: Dict[str, ImportBinding], binding: ImportBinding) -> None:
        existing = imports.get(binding.local_name)
        if existing is None:
            imports[binding.local_name] = binding
        elif existing.whole_package and not binding.whole_package:
            logger.debug(f"{package}: {binding} overrides whole-package import {existing}")
            imports[binding.local_name] = binding
        elif binding.whole_package and not existing.whole_package:
            logger.debug(f"{package}: keeping {existing} over whole-package import {binding}")
        elif existing.definition != binding.definition:
            logger.warning(f"{package}: replacing previous import {existing} by {binding}")
            imports[binding.local_name] = binding

    # ------------------------------------------------------------------
    # Parallel build
    # ------------------------------------------------------------------

    def _build_parallel(
        self,
        plan: LoadPlan,
        store: ManifestStore,
        pending: Iterable[str],
        base: Dict[str, Namespace],
        workers: int,
    ) -> Dict[str, Namespace]:
        futures: Dict[str, Future] = {}
        results: Dict[str, Namespace] = {}
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pkgns-build") as pool:
            # submission follows plan order, so every future a task waits on
            # was dequeued before it
            for name in pending:
                waits = {dep: futures[dep] for dep in plan.dependencies_of(name) if dep in futures}
                futures[name] = pool.submit(self._build_when_ready, store[name], base, waits)
            try:
                for name in pending:
                    results[name] = futures[name].result()
            except BaseException:
                for future in futures.values():
                    future.cancel()
                raise
        return results

    def _build_when_ready(self, manifest: PackageManifest, base: Mapping[str, Namespace],
                          waits: Mapping[str, Future]) -> Namespace:
        visible = dict(base)
        for dep, future in waits.items():
            visible[dep] = future.result()
        return self.build_namespace(manifest, visible)
