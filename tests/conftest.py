"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Generator

import pytest

from termbeacon.config import Config
from termbeacon.database import MappingStore, close_database, initialize_database
from termbeacon.dom.document import LiveDocument
from termbeacon.mappings import Mapping


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    """Path for a throwaway SQLite database."""
    return tmp_path / "termbeacon.db"


@pytest.fixture
def config(temp_db: Path) -> Config:
    """Create a test configuration."""
    config = Config()
    config.database.path = str(temp_db)
    return config


@pytest.fixture
def store(config: Config) -> Generator[MappingStore, None, None]:
    """Initialize the database and return a mapping store."""
    initialize_database(config)
    yield MappingStore(config.colors)
    close_database()


@pytest.fixture
def foo_bar() -> list[Mapping]:
    """A single foo -> bar mapping."""
    return [
        Mapping(
            search_terms=("foo",),
            mapped_terms=("bar",),
            search_color="#111",
            mapped_color="#222",
        )
    ]


@pytest.fixture
def pet_mappings() -> list[Mapping]:
    """Two groups with overlapping term lengths."""
    return [
        Mapping(search_terms=("cat", "kitten"), mapped_terms=("dog",), search_color="#f00", mapped_color="#0f0"),
        Mapping(search_terms=("bird",), mapped_terms=("parrot", "cat food"), search_color="#00f", mapped_color="#ff0"),
    ]


@pytest.fixture
def sample_html() -> str:
    """Sample page with content and non-content regions."""
    return (
        "<html><head><title>Pets</title><style>.cat { color: red; }</style></head>"
        "<body>"
        "<h1>Cat care</h1>"
        "<p>A kitten is a young cat. Buy cat food, not dog food.</p>"
        "<!-- cat comment -->"
        "<script>var cat = 1;</script>"
        "<div data-multi-find-ignore><p>cat inside ignored block</p></div>"
        "<ul><li>The parrot and the bird</li><li>   </li></ul>"
        "</body></html>"
    )


@pytest.fixture
def document(sample_html: str) -> LiveDocument:
    """Parsed sample page."""
    return LiveDocument.parse(sample_html)
