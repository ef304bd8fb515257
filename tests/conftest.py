"""
Pytest configuration and shared fixtures for all rust-reduce tests.

The parser is shared at session scope: building the Lark LALR tables is
the expensive part and the parser itself is stateless.
"""

import sys
import pytest
from typing import Callable, Dict
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from rust_reduce.frontend.parser import Parser


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_parser():
    """Session-scoped parser instance shared across ALL tests."""
    return Parser()


@pytest.fixture
def parser(session_parser):
    return session_parser


# =============================================================================
# Helper fixtures
# =============================================================================

@pytest.fixture
def write_tree(tmp_path) -> Callable[[Dict[str, str]], Path]:
    """
    Factory fixture that writes a `{relative path: content}` mapping under
    tmp_path and returns the root directory.
    """
    def _write_tree(files: Dict[str, str]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write_tree


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "cargo: marks tests that need a Rust toolchain"
    )
