"""
Pytest configuration and shared fixtures for all pkgns tests.

The parser compiles its grammar once per process, so it is shared at
session scope; engines carry a search path and are created per test.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from pkgns.engine.driver import PackageEngine
from pkgns.frontend.parser import get_parser


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def parser():
    """Session-scoped stateless manifest parser."""
    return get_parser()


# =============================================================================
# Function-scoped fixtures (default - one per test)
# =============================================================================

@pytest.fixture
def engine():
    """Fresh engine with no registered packages."""
    return PackageEngine()


@pytest.fixture
def capture_engine():
    """Engine with the base/util/other packages loaded, nothing attached."""
    from tests.test_utils import capture_manifests
    eng = PackageEngine(capture_manifests())
    result = eng.load_all()
    assert result.success, result.reporter.format_all_errors(color=False)
    yield eng
    eng.shutdown()


@pytest.fixture
def manifest_file(tmp_path):
    """Factory: write a JSON manifest document and return its path."""
    import json

    def _write(document, name: str = "manifests.json") -> Path:
        path = tmp_path / name
        text = document if isinstance(document, str) else json.dumps(document)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
