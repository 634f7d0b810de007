"""
Tests for result tree rendering and export.
"""
import json

import pytest

from webtree.crawler.fetcher import FetchError
from webtree.storage.result_tree import (
    NIL_ENTRY_MESSAGE,
    CrawlEntry,
    ResultWriter,
    UNKNOWN_CONTENT_TYPE,
    render,
)


@pytest.fixture
def tree():
    root = CrawlEntry.with_slots(0, "https://h/", "text/html", num_children=3)
    child = CrawlEntry.with_slots(1, "https://h/a", "text/html", num_children=1)
    child.children[0] = CrawlEntry.with_slots(2, "https://h/a/b", "image/png")
    root.children[0] = child
    root.children[1] = CrawlEntry.with_slots(1, "https://h/broken", error=FetchError("Get https://h/broken: refused"))
    # root.children[2] left unfilled
    return root


def test_render_indents_by_depth(tree):
    assert render(tree).splitlines() == [
        "https://h/",
        "\thttps://h/a",
        "\t\thttps://h/a/b",
        "\tGet https://h/broken: refused",
    ]


def test_render_missing_entry():
    assert render(None) == NIL_ENTRY_MESSAGE


def test_print_tree(tree, capsys):
    tree.print_tree()
    assert capsys.readouterr().out.startswith("https://h/\n\thttps://h/a\n")


def test_error_entries_have_no_children():
    entry = CrawlEntry.with_slots(0, "https://h/", error=FetchError("x"), num_children=4)
    assert entry.children == []
    assert entry.content_type == UNKNOWN_CONTENT_TYPE
    assert not entry.ok


def test_iteration_skips_unfilled_slots(tree):
    assert [e.url for e in tree.iter_entries()] == [
        "https://h/", "https://h/a", "https://h/a/b", "https://h/broken"
    ]
    assert tree.count() == 4


def test_to_dict(tree):
    data = tree.to_dict()
    assert data['url'] == "https://h/"
    assert data['children'][1]['error'] == "Get https://h/broken: refused"
    assert data['children'][2] is None
    assert data['children'][0]['children'][0]['content_type'] == "image/png"


def test_writer_saves_json(tree, tmp_path):
    path = ResultWriter(str(tmp_path / "out" / "tree.json")).write(tree, {'pages': 4})

    data = json.loads(path.read_text(encoding='utf-8'))
    assert data['stats'] == {'pages': 4}
    assert data['root']['children'][0]['url'] == "https://h/a"


def test_writer_handles_missing_root(tmp_path):
    path = ResultWriter(str(tmp_path / "tree.json")).write(None)
    assert json.loads(path.read_text())['root'] is None
