"""CLI entry point: `pkgns <command> manifests.json ...` or `python -m pkgns ...`."""

import logging
import sys
from pathlib import Path
from typing import List, Optional


def _build_arg_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="pkgns", description="Resolve package dependencies and namespaces from a JSON manifest file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colour in diagnostics")
    commands = parser.add_subparsers(dest="command", required=True)

    plan = commands.add_parser("plan", help="Print the load order")
    plan.add_argument("manifests", type=Path, help="Path to the JSON manifest file")

    check = commands.add_parser("check", help="Validate the graph and build every namespace")
    check.add_argument("manifests", type=Path, help="Path to the JSON manifest file")
    check.add_argument("--workers", type=int, default=None, help="Build namespaces on N threads")

    resolve = commands.add_parser("resolve", help="Resolve a symbol reference")
    resolve.add_argument("manifests", type=Path, help="Path to the JSON manifest file")
    resolve.add_argument("symbol", help="name, pkg::name or pkg:::name")
    resolve.add_argument("--attach", nargs="+", default=[], metavar="PKG",
                         help="Attach packages (in order) before resolving")
    resolve.add_argument("--from", dest="from_package", metavar="PKG",
                         help="Resolve a bare name from inside PKG's namespace")

    revdeps = commands.add_parser("revdeps", help="List packages depending on PKG")
    revdeps.add_argument("manifests", type=Path, help="Path to the JSON manifest file")
    revdeps.add_argument("package", metavar="PKG")
    revdeps.add_argument("--direct", action="store_true", help="Only direct reverse dependencies")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    from .analysis.manifest import load_manifests
    from .engine.driver import PackageEngine
    from .shared.errors import ErrorReporter, PkgnsError
    from .utils.config import EXIT_OK, EXIT_RUNTIME_ERROR, EXIT_VALIDATION_ERROR

    args = _build_arg_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    color = False if args.no_color else None

    def report(error: PkgnsError) -> int:
        reporter = ErrorReporter()
        reporter.report_exception(error)
        reporter.print_errors(color=color)
        return EXIT_RUNTIME_ERROR if error.category == "runtime" else EXIT_VALIDATION_ERROR

    path = args.manifests.resolve()
    if not path.is_file():
        sys.stderr.write(f"pkgns: error: manifest file not found: {path}\n")
        return EXIT_VALIDATION_ERROR

    try:
        engine = PackageEngine(load_manifests(path))
    except PkgnsError as e:
        return report(e)

    if args.command == "plan":
        try:
            plan = engine.plan()
        except PkgnsError as e:
            return report(e)
        for name in plan:
            print(f"{name} {plan.versions[name]}")
        return EXIT_OK

    if args.command == "revdeps":
        try:
            dependents = engine.reverse_dependencies(args.package, recursive=not args.direct)
        except PkgnsError as e:
            return report(e)
        for name in dependents:
            print(name)
        return EXIT_OK

    result = engine.load_all(workers=getattr(args, "workers", None))
    if not result.success:
        result.reporter.print_errors(color=color)
        return EXIT_VALIDATION_ERROR

    if args.command == "check":
        print(f"ok: {len(result.loaded)} packages loaded")
        return EXIT_OK

    # resolve
    try:
        for name in args.attach:
            engine.attach(name)
        definition = engine.resolver.resolve_reference(args.symbol, package=args.from_package)
    except PkgnsError as e:
        return report(e)
    print(f"{definition} ({definition.kind.value})")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
