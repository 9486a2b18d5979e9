"""Engine driver: package lifecycle orchestration."""

from .driver import BuildResult, PackageEngine

__all__ = ['BuildResult', 'PackageEngine']
