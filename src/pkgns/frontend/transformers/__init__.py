"""
Manifest fragment transformers
"""

from .base import ManifestTransformer, NamespaceDirectives

__all__ = ['ManifestTransformer', 'NamespaceDirectives']
