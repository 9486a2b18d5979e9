"""
Manifest Loader

Turns the JSON manifest document accepted by the CLI into PackageManifest
objects. Structured fields are read directly; DESCRIPTION-style fields
(Depends, Imports, ...) and the NAMESPACE text go through the Lark parser.

Document shape::

    {"packages": [
        {"name": "util", "version": "1.0.0",
         "dependencies": [{"name": "base", "kind": "required", "constraint": ">= 1.0"}],
         "Imports": "stats (>= 3.0), methods",
         "exports": ["nrow"],
         "imports": [{"localName": "dim", "sourcePackage": "base", "sourceSymbol": "dim"}],
         "namespace": "export(ncol)\\nimportFrom(base, dim)",
         "definitions": {"helper": 1}}
    ]}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .model import DependencySpec, ImportDirective, PackageManifest, RelationKind
from ...shared.errors import ConstraintError, ManifestError
from ...shared.source_location import SourceLocation
from ...shared.version import Version
from ...utils.config import DEPENDENCY_FIELDS, NAMESPACE_FIELD
from ...utils.io_utils import read_source_file

logger = logging.getLogger(__name__)

_KNOWN_KEYS = frozenset({
    "name", "version", "dependencies", "exports", "imports", "definitions", NAMESPACE_FIELD,
    *DEPENDENCY_FIELDS,
})


class ManifestLoader:
    """
    Loads manifests from JSON text, files or already-decoded documents.

    Every malformed entry raises ManifestError (or ConstraintError) with a
    location naming the file and the offending field.
    """

    def __init__(self, parser: Optional[Any] = None):
        if parser is None:
            from ...frontend.parser import get_parser
            parser = get_parser()
        self.parser = parser

    def load_file(self, path: Union[Path, str]) -> List[PackageManifest]:
        path = Path(path)
        text = read_source_file(path)
        return self.load_text(text, str(path))

    def load_text(self, text: str, source: str = "<manifests>") -> List[PackageManifest]:
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise ManifestError(
                f"invalid JSON: {e.msg}",
                location=SourceLocation(file=source, line=e.lineno, column=e.colno),
                source_text=text,
            ) from e
        return self.load_document(document, source)

    def load_document(self, document: Any, source: str = "<manifests>") -> List[PackageManifest]:
        if isinstance(document, dict):
            entries = document.get("packages")
        else:
            entries = document
        if not isinstance(entries, list):
            raise ManifestError(
                "manifest document must be a list of packages or {\"packages\": [...]}",
                location=SourceLocation(file=source),
            )
        manifests = [self.manifest_from_dict(entry, source, index) for index, entry in enumerate(entries)]
        logger.info(f"Loaded {len(manifests)} manifests from {source}")
        return manifests

    def manifest_from_dict(self, entry: Any, source: str = "<manifests>", index: int = 0) -> PackageManifest:
        where = f"packages[{index}]"
        if not isinstance(entry, dict):
            raise ManifestError("package entry must be an object", location=SourceLocation(file=source, field=where))

        name = entry.get("name")
        if not isinstance(name, str) or not name:
            raise ManifestError("package entry has no 'name'", location=SourceLocation(file=source, field=where))
        where = f"{where} ({name})"

        unknown = sorted(set(entry) - _KNOWN_KEYS)
        if unknown:
            logger.warning(f"{source}: {name}: ignoring unknown keys {unknown}")

        try:
            version = Version.parse(str(entry.get("version", "0.0.0")))
        except ConstraintError as e:
            e.location = SourceLocation(file=source, field=f"{where}.version")
            raise

        dependencies = self._structured_dependencies(entry.get("dependencies", []), source, where)
        for field_name in DEPENDENCY_FIELDS:
            text = entry.get(field_name)
            if text is None:
                continue
            if not isinstance(text, str):
                raise ManifestError(f"'{field_name}' must be a string",
                                    location=SourceLocation(file=source, field=f"{where}.{field_name}"))
            dependencies.extend(self.parser.parse_dependency_field(
                text, RelationKind.from_field(field_name), source=f"<{name}:{field_name}>"))

        exports = self._string_list(entry.get("exports", []), source, f"{where}.exports")
        imports = self._structured_imports(entry.get("imports", []), source, where)

        namespace_text = entry.get(NAMESPACE_FIELD)
        if namespace_text is not None:
            directives = self.parser.parse_namespace(namespace_text, source=f"<{name}:NAMESPACE>")
            exports.extend(directives.exports)
            imports.extend(directives.imports)

        definitions = entry.get("definitions", {})
        if not isinstance(definitions, dict):
            raise ManifestError("'definitions' must be an object",
                                location=SourceLocation(file=source, field=f"{where}.definitions"))

        return PackageManifest.create(
            name=name,
            version=version,
            dependencies=dependencies,
            exports=exports,
            imports=imports,
            definitions=definitions,
            location=SourceLocation(file=source, field=where),
        )

    def _structured_dependencies(self, raw: Any, source: str, where: str) -> List[DependencySpec]:
        if not isinstance(raw, list):
            raise ManifestError("'dependencies' must be a list", location=SourceLocation(file=source, field=f"{where}.dependencies"))
        out: List[DependencySpec] = []
        for i, item in enumerate(raw):
            field = f"{where}.dependencies[{i}]"
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise ManifestError("dependency must be an object with a 'name'",
                                    location=SourceLocation(file=source, field=field))
            try:
                kind = RelationKind.parse(str(item.get("kind", RelationKind.REQUIRED.value)))
            except (KeyError, ValueError):
                raise ManifestError(f"unknown dependency kind '{item.get('kind')}'",
                                    location=SourceLocation(file=source, field=field),
                                    help="use one of: " + ", ".join(k.value for k in RelationKind)) from None
            constraint = self.parser.parse_constraint(item.get("constraint"), source=f"<{field}>")
            out.append(DependencySpec(item["name"], kind, constraint))
        return out

    def _structured_imports(self, raw: Any, source: str, where: str) -> List[ImportDirective]:
        if not isinstance(raw, list):
            raise ManifestError("'imports' must be a list", location=SourceLocation(file=source, field=f"{where}.imports"))
        out: List[ImportDirective] = []
        for i, item in enumerate(raw):
            location = SourceLocation(file=source, field=f"{where}.imports[{i}]")
            if not isinstance(item, dict) or not isinstance(item.get("sourcePackage"), str):
                raise ManifestError("import must be an object with a 'sourcePackage'", location=location)
            symbol = item.get("sourceSymbol")
            local_name = item.get("localName")
            for key, value in (("sourceSymbol", symbol), ("localName", local_name)):
                if value is not None and (not isinstance(value, str) or not value):
                    raise ManifestError(f"import '{key}' must be a non-empty string", location=location)
            if local_name is not None and symbol is None:
                raise ManifestError(
                    f"import of '{item['sourcePackage']}' has a 'localName' but no 'sourceSymbol'",
                    location=location,
                    help="a whole-package import binds every export under its own name; "
                         "name the symbol to rename it",
                )
            out.append(ImportDirective(
                source_package=item["sourcePackage"],
                source_symbol=symbol,
                local_name=local_name,
            ))
        return out

    def _string_list(self, raw: Any, source: str, field: str) -> List[str]:
        if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
            raise ManifestError("expected a list of names", location=SourceLocation(file=source, field=field))
        return list(raw)


def load_manifests(path: Union[Path, str]) -> List[PackageManifest]:
    """Convenience wrapper: read a JSON manifest file."""
    return ManifestLoader().load_file(path)


def manifests_from_document(document: Union[Dict[str, Any], List[Any]], source: str = "<manifests>") -> List[PackageManifest]:
    return ManifestLoader().load_document(document, source)
