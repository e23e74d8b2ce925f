"""
Pytest configuration and shared fixtures.
"""
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.schemas.sources_schemas import ReferenceSource


@pytest.fixture
def make_source():
    """Build a ReferenceSource with sensible defaults."""
    def _make(source_id: str, content: str, title: str = None, url: str = None) -> ReferenceSource:
        return ReferenceSource(
            id=source_id,
            title=title or f"Title of {source_id}",
            url=url or f"https://example.org/{source_id}",
            content=content,
        )
    return _make


@pytest.fixture
def original_prose():
    """Prose that shares no eight-word run with the bundled corpus."""
    return (
        "Our hiking club spent the weekend mapping abandoned mill trails near the river. "
        "Volunteers logged every footbridge, counted fallen oaks, and photographed faded trail markers. "
        "Next spring we plan to repaint those markers with brighter colors."
    )
