"""Tests for BookmarkSession editing, history and import/export."""
import json
from unittest.mock import MagicMock

import pytest

from pdfmarks.core.editing.session import BookmarkSession
from pdfmarks.core.exceptions import BookmarkNotFoundError, MalformedInputError, ValidationError
from pdfmarks.core.models.bookmark import BookmarkNode, CounterIdFactory, collect_ids
from pdfmarks.core.ports.pdf import OutlineItem, PdfName, PdfRef


@pytest.fixture
def session():
    """Session with Chapter 1 (two sections) and Chapter 2"""
    session = BookmarkSession(id_factory=CounterIdFactory())
    chapter = session.add_bookmark("Chapter 1", 1)
    session.add_bookmark("Section 1.1", 2, parent_id=chapter.id)
    session.add_bookmark("Section 1.2", 3, parent_id=chapter.id)
    session.add_bookmark("Chapter 2", 5)
    return session


def _titles(tree):
    return [node.title for node in tree]


class TestSessionEdits:
    def test_add_bookmark(self, session):
        assert _titles(session.tree) == ["Chapter 1", "Chapter 2"]
        assert _titles(session.tree[0].children) == ["Section 1.1", "Section 1.2"]
        assert collect_ids(session.tree) == [1, 2, 3, 4]

    def test_add_bookmark_cleans_title(self, session):
        node = session.add_bookmark("Bad\x00Title", 1)
        assert node.title == "BadTitle"

    def test_add_bookmark_unknown_parent(self, session):
        with pytest.raises(BookmarkNotFoundError):
            session.add_bookmark("Orphan", 1, parent_id=99)

    @pytest.mark.parametrize("page", [0, -1, "3", True])
    def test_add_bookmark_invalid_page(self, session, page):
        with pytest.raises(ValidationError):
            session.add_bookmark("Bad page", page)

    def test_tree_is_a_copy(self, session):
        session.tree[0].title = "mutated"
        assert session.tree[0].title == "Chapter 1"

    def test_edit_bookmark(self, session):
        node = session.edit_bookmark(2, title="Intro", page=4, color="blue", style="italic",
                                     dest_x=10.0, dest_y=20.0, zoom="125")
        assert (node.title, node.page, node.color, node.style) == ("Intro", 4, "blue", "italic")
        assert (node.dest_x, node.dest_y, node.zoom) == (10.0, 20.0, "125")
        assert session.find(2).title == "Intro"

    def test_edit_bookmark_clears_color_and_style(self, session):
        session.edit_bookmark(1, color="red", style="bold")
        node = session.edit_bookmark(1, color="", style=None)
        assert node.color is None
        assert node.style is None

    def test_edit_bookmark_rejects_bad_values(self, session):
        with pytest.raises(ValidationError):
            session.edit_bookmark(1, color="magenta")
        with pytest.raises(ValidationError):
            session.edit_bookmark(1, style="underline")
        with pytest.raises(ValidationError):
            session.edit_bookmark(1, children=[])

    def test_edit_bookmark_unknown(self, session):
        with pytest.raises(BookmarkNotFoundError):
            session.edit_bookmark(99, title="Nope")

    def test_failed_edit_leaves_history_alone(self, session):
        before = len(session.history)
        with pytest.raises(ValidationError):
            session.edit_bookmark(1, page=0)
        assert len(session.history) == before
        assert session.find(1).page == 1

    def test_delete_bookmark_removes_subtree(self, session):
        assert session.delete_bookmark(1) is True
        assert _titles(session.tree) == ["Chapter 2"]
        assert session.count() == 1

    def test_delete_missing_does_not_commit(self, session):
        before = len(session.history)
        assert session.delete_bookmark(99) is False
        assert len(session.history) == before

    def test_delete_all(self, session):
        session.delete_all()
        assert session.tree == []
        assert session.undo()
        assert session.count() == 4

    def test_move_bookmark(self, session):
        session.move_bookmark(1, 0, parent_id=1)
        assert _titles(session.tree[0].children) == ["Section 1.2", "Section 1.1"]

    def test_move_bookmark_bad_index(self, session):
        with pytest.raises(ValidationError):
            session.move_bookmark(7, 0)

    def test_move_to_same_index_is_noop(self, session):
        before = len(session.history)
        session.move_bookmark(0, 0)
        assert len(session.history) == before


class TestSessionBatchEdits:
    def test_set_color_is_one_undo_step(self, session):
        assert session.set_color([1, 3, 4], "green") == 3
        assert [session.find(i).color for i in (1, 2, 3, 4)] == ["green", None, "green", "green"]

        session.undo()
        assert all(session.find(i).color is None for i in (1, 3, 4))

    def test_set_style(self, session):
        assert session.set_style([2, 3], "bold-italic") == 2
        assert session.find(3).style == "bold-italic"

    def test_batch_with_no_matches_does_not_commit(self, session):
        before = len(session.history)
        assert session.set_color([98, 99], "red") == 0
        assert len(session.history) == before

    def test_delete_bookmarks(self, session):
        assert session.delete_bookmarks([2, 4]) == 2
        assert collect_ids(session.tree) == [1, 3]
        session.undo()
        assert collect_ids(session.tree) == [1, 2, 3, 4]


class TestSessionHistory:
    def test_undo_redo(self, session):
        session.edit_bookmark(1, title="Renamed")
        assert session.undo() is True
        assert session.find(1).title == "Chapter 1"
        assert session.redo() is True
        assert session.find(1).title == "Renamed"

    def test_nothing_to_redo(self, session):
        assert session.redo() is False

    def test_undo_back_to_empty(self):
        session = BookmarkSession(id_factory=CounterIdFactory())
        session.add_bookmark("Only", 1)
        assert session.undo() is True
        assert session.tree == []
        assert session.undo() is False

    def test_edit_after_undo_drops_redo(self, session):
        session.edit_bookmark(1, title="A")
        session.undo()
        session.edit_bookmark(1, title="B")
        assert session.redo() is False
        assert session.find(1).title == "B"


class TestSessionQueries:
    def test_search_returns_matching_roots(self, session):
        assert _titles(session.search("1.2")) == ["Chapter 1"]
        assert _titles(session.search("")) == ["Chapter 1", "Chapter 2"]

    def test_find_returns_copy(self, session):
        session.find(1).title = "mutated"
        assert session.find(1).title == "Chapter 1"

    def test_find_missing(self, session):
        assert session.find(99) is None


class TestSessionImportExport:
    def test_csv_round_trip(self, session):
        text = session.export_csv()
        other = BookmarkSession(id_factory=CounterIdFactory(start=50))
        assert other.import_csv(text) == 4
        assert _titles(other.tree) == ["Chapter 1", "Chapter 2"]
        assert collect_ids(other.tree) == [50, 51, 52, 53]

    def test_import_resets_history(self, session):
        session.import_csv("New,1,0")
        assert not session.history.can_undo()
        assert _titles(session.tree) == ["New"]

    def test_empty_csv_keeps_tree(self, session):
        assert session.import_csv("title,page,level\n") == 0
        assert session.count() == 4
        assert session.history.can_undo()

    def test_json_round_trip_keeps_ids(self, session):
        session.set_color([1], "#abcdef")
        other = BookmarkSession(id_factory=CounterIdFactory())
        other.import_json(session.export_json())
        assert other.tree == session.tree

    def test_json_import_advances_counter(self):
        session = BookmarkSession(id_factory=CounterIdFactory())
        session.import_json(json.dumps([{"id": 41, "title": "Imported", "page": 1}]))
        assert session.add_bookmark("Fresh", 1).id == 42

    def test_json_import_float_id_does_not_collide(self):
        session = BookmarkSession(id_factory=CounterIdFactory())
        session.import_json(json.dumps([{"id": 1.0, "title": "Imported", "page": 1}]))
        fresh = session.add_bookmark("Fresh", 1)
        assert fresh.id == 2
        assert collect_ids(session.tree) == [1, 2]

    def test_json_import_rejects_repeated_ids(self, session):
        text = json.dumps([{"id": 9, "title": "A", "page": 1}, {"id": 9, "title": "B", "page": 2}])
        with pytest.raises(MalformedInputError):
            session.import_json(text)
        assert session.count() == 4

    def test_bad_json_leaves_tree(self, session):
        with pytest.raises(MalformedInputError):
            session.import_json("{broken")
        assert session.count() == 4

    def test_extract_outline(self, session):
        walker = MagicMock()
        walker.get_outline.return_value = [
            OutlineItem("Existing", [PdfRef(3), PdfName("XYZ"), None, None, None]),
        ]
        walker.page_index_of.return_value = 2

        assert session.extract_outline(walker) == 1
        assert session.tree[0].page == 3
        assert not session.history.can_undo()

    def test_extract_empty_outline_keeps_tree(self, session):
        walker = MagicMock()
        walker.get_outline.return_value = []
        assert session.extract_outline(walker) == 0
        assert session.count() == 4

    def test_write_outline_uses_store(self, session):
        store = MagicMock()
        store.page_count.return_value = 10
        store.allocate.side_effect = [PdfRef(n) for n in range(1, 10)]
        store.page_ref.side_effect = lambda index: PdfRef(100 + index)

        ref = session.write_outline(store)
        assert ref == PdfRef(1)
        store.set_catalog_outlines.assert_called_once_with(PdfRef(1))

    def test_initial_tree_is_copied(self):
        tree = [BookmarkNode(id=7, title="Given", page=1)]
        session = BookmarkSession(tree, id_factory=CounterIdFactory())
        tree[0].title = "mutated"
        assert session.tree[0].title == "Given"
        assert session.add_bookmark("Next", 1).id == 8
