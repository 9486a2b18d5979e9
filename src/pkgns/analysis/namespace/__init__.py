"""Namespaces: immutable export/import tables and their builder."""

from .tables import ImportBinding, Namespace
from .registry import NamespaceRegistry

__all__ = [
    'ImportBinding',
    'Namespace',
    'NamespaceRegistry',
]
