"""
Runtime: search path, symbol resolution and namespace environments.
"""

from .search_path import SearchPathManager
from .resolver import Internal, Qualified, TopLevel, ResolutionContext, Resolver, parse_reference
from .environment import NamespaceEnvironment, NamespaceFunction, invoke

__all__ = [
    'SearchPathManager',
    'Internal',
    'Qualified',
    'TopLevel',
    'ResolutionContext',
    'Resolver',
    'parse_reference',
    'NamespaceEnvironment',
    'NamespaceFunction',
    'invoke',
]
