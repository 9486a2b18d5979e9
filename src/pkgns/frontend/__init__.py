"""
Manifest fragment front end (Lark).
"""

from .parser import ManifestParser, get_parser, parse_constraint, parse_dependency_field, parse_namespace
from .transformers import NamespaceDirectives

__all__ = [
    'ManifestParser',
    'get_parser',
    'parse_constraint',
    'parse_dependency_field',
    'parse_namespace',
    'NamespaceDirectives',
]
