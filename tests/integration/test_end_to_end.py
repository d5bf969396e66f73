"""End-to-end tests driving the command-line interface."""

import json
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from termbeacon.cli.main import main
from termbeacon.dom.markers import MARKER_CLASS
from termbeacon.mappings import Mapping, export_mappings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("TERMBEACON_CONFIG", raising=False)
    monkeypatch.delenv("TERMBEACON_DB_PATH", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


def run(temp_db: Path, *argv: str) -> int:
    return main(["--db", str(temp_db), *argv])


def test_highlight_file_with_export(
    tmp_path: Path, temp_db: Path, sample_html: str, pet_mappings: list[Mapping]
) -> None:
    """A page is highlighted with the mappings of an export file."""
    page = tmp_path / "page.html"
    page.write_text(sample_html, encoding="utf-8")
    mappings_file = export_mappings(pet_mappings, tmp_path / "mappings.json")
    output = tmp_path / "out.html"

    assert run(temp_db, "highlight", str(page), "-o", str(output), "--mappings", str(mappings_file)) == 0

    soup = BeautifulSoup(output.read_text(encoding="utf-8"), "html.parser")
    markers = soup.find_all(class_=MARKER_CLASS)
    assert [m.get_text() for m in markers] == [
        "Cat", "kitten", "cat", "cat food", "dog", "parrot", "bird",
    ]
    assert markers[3]["data-group"] == "1"
    assert "mapped-term" in markers[3]["class"]
    assert soup.script.get_text() == "var cat = 1;"
    assert soup.find("div", attrs={"data-multi-find-ignore": True}).find(class_=MARKER_CLASS) is None
    assert soup.body.get_text() == BeautifulSoup(sample_html, "html.parser").body.get_text()


def test_highlight_without_mappings_leaves_document(tmp_path: Path, temp_db: Path, sample_html: str) -> None:
    page = tmp_path / "page.html"
    page.write_text(sample_html, encoding="utf-8")
    output = tmp_path / "out.html"

    assert run(temp_db, "highlight", str(page), "-o", str(output)) == 0
    assert MARKER_CLASS not in output.read_text(encoding="utf-8")


def test_mapping_crud_round_trip(tmp_path: Path, temp_db: Path) -> None:
    """add, update, delete, export, clear and import through the CLI."""
    export_path = tmp_path / "export.json"

    assert run(temp_db, "add", "cat; kitten", "dog", "--search-color", "#f00") == 0
    assert run(temp_db, "add", "bird", "parrot") == 0
    assert run(temp_db, "add", "cat;kitten", "dog") == 1
    assert run(temp_db, "update", "1", "bird", "parrot; macaw") == 0
    assert run(temp_db, "list") == 0
    assert run(temp_db, "export", str(export_path)) == 0

    exported = json.loads(export_path.read_text(encoding="utf-8"))
    assert exported["exportDate"].endswith("Z")
    assert exported["mappings"] == [
        {"searchTerms": ["cat", "kitten"], "mappedTerms": ["dog"], "searchColor": "#f00", "mappedColor": "#4dd0e1"},
        {"searchTerms": ["bird"], "mappedTerms": ["parrot", "macaw"], "searchColor": "#fff34d", "mappedColor": "#4dd0e1"},
    ]

    assert run(temp_db, "delete", "0") == 0
    assert run(temp_db, "delete", "5") == 1
    assert run(temp_db, "clear") == 0
    assert run(temp_db, "export", str(tmp_path / "empty.json")) == 1

    assert run(temp_db, "import", str(export_path)) == 0
    assert run(temp_db, "export", str(tmp_path / "again.json")) == 0
    again = json.loads((tmp_path / "again.json").read_text(encoding="utf-8"))
    assert again["mappings"] == exported["mappings"]


def test_invalid_input_reports_error(tmp_path: Path, temp_db: Path) -> None:
    """Bad colors, empty term lists and broken import files exit with 1."""
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    assert run(temp_db, "add", "cat", "dog", "--mapped-color", "not a color!") == 1
    assert run(temp_db, "add", " ; ", "dog") == 1
    assert run(temp_db, "import", str(broken)) == 1
    assert run(temp_db, "highlight", str(tmp_path / "missing.html")) == 1
