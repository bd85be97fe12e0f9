"""Tests for PyMuPDF adapter - raw outline objects through fitz."""
import pytest
from unittest.mock import MagicMock, patch
from pdfmarks.adapters.pdf.pymupdf import FitzObjectStore, FitzOutlineWalker, PyMuPDFOutlineAdapter
from pdfmarks.core.exceptions import DestinationResolutionError, ObjectStoreError, PDFError
from pdfmarks.core.models.bookmark import BookmarkNode, CounterIdFactory
from pdfmarks.core.ports.pdf import OutlineWalkerPort, PdfName, PdfObjectStorePort, PdfRef

CATALOG = 1


def make_doc(keys=None, pages=3, names=None):
    """Mock fitz document; ``keys`` maps (xref, key) to xref_get_key results."""
    keys = keys or {}
    doc = MagicMock()
    doc.__enter__ = MagicMock(return_value=doc)
    doc.__exit__ = MagicMock(return_value=False)
    doc.page_count = pages
    doc.pdf_catalog.return_value = CATALOG
    doc.page_xref.side_effect = lambda index: 10 + index
    doc.xref_get_key.side_effect = lambda xref, key: keys.get((xref, key), ("null", "null"))
    doc.resolve_names.return_value = names or {}
    new_xrefs = iter(range(20, 200))
    doc.get_new_xref.side_effect = lambda: next(new_xrefs)
    return doc


@pytest.fixture
def outline_keys():
    """Chapter 1 (bold, red, explicit view) > Section (GoTo action); Chapter 2 (named dest)"""
    return {
        (CATALOG, "Outlines"): ("xref", "2 0 R"),
        (2, "First"): ("xref", "3 0 R"),
        (3, "Title"): ("string", "Chapter 1"),
        (3, "F"): ("int", "1"),
        (3, "C"): ("array", "[1 0 0]"),
        (3, "Dest"): ("array", "[10 0 R/XYZ 100 700 1.5]"),
        (3, "First"): ("xref", "4 0 R"),
        (3, "Next"): ("xref", "5 0 R"),
        (4, "Title"): ("string", "Section"),
        (4, "F"): ("int", "2"),
        (4, "A/S"): ("name", "/GoTo"),
        (4, "A/D"): ("array", "[11 0 R/Fit]"),
        (5, "Title"): ("string", "Chapter 2"),
        (5, "Dest"): ("name", "/chap2"),
    }


class TestAdapterInterfaces:
    def test_store_implements_port(self):
        assert isinstance(FitzObjectStore(make_doc()), PdfObjectStorePort)

    def test_walker_implements_port(self):
        assert isinstance(FitzOutlineWalker(make_doc()), OutlineWalkerPort)


class TestFitzObjectStore:
    def test_allocate_defers_serialization(self):
        """Nothing touches the document until the catalog is switched."""
        doc = make_doc()
        store = FitzObjectStore(doc)

        ref = store.allocate({"Type": PdfName("Outlines")})

        assert ref == PdfRef(20)
        doc.update_object.assert_not_called()
        doc.xref_set_key.assert_not_called()

    def test_set_catalog_outlines_writes_final_contents(self):
        doc = make_doc()
        store = FitzObjectStore(doc)
        outlines = {"Type": PdfName("Outlines")}
        ref = store.allocate(outlines)
        outlines["Count"] = 0  # keys added after allocation must be persisted

        store.set_catalog_outlines(ref)

        doc.update_object.assert_called_once_with(20, "<</Type /Outlines/Count 0>>")
        doc.xref_set_key.assert_called_once_with(CATALOG, "Outlines", "20 0 R")

    def test_page_ref_and_count(self):
        store = FitzObjectStore(make_doc(pages=4))
        assert store.page_ref(2) == PdfRef(12)
        assert store.page_count() == 4

    def test_allocation_failure(self):
        doc = make_doc()
        doc.get_new_xref.side_effect = RuntimeError("xref table full")
        with pytest.raises(ObjectStoreError):
            FitzObjectStore(doc).allocate({})

    def test_install_failure(self):
        doc = make_doc()
        doc.update_object.side_effect = RuntimeError("bad object")
        store = FitzObjectStore(doc)
        ref = store.allocate({})
        with pytest.raises(ObjectStoreError):
            store.set_catalog_outlines(ref)
        doc.xref_set_key.assert_not_called()


class TestFitzOutlineWalker:
    def test_no_outline(self):
        assert FitzOutlineWalker(make_doc()).get_outline() == []

    def test_reads_items(self, outline_keys):
        items = FitzOutlineWalker(make_doc(outline_keys)).get_outline()

        assert [item.title for item in items] == ["Chapter 1", "Chapter 2"]
        chapter = items[0]
        assert chapter.bold and not chapter.italic
        assert chapter.color == (1.0, 0.0, 0.0)
        assert chapter.dest == [PdfRef(10), PdfName("XYZ"), 100, 700, 1.5]
        assert items[1].dest == "chap2"

    def test_goto_action_destination(self, outline_keys):
        section = FitzOutlineWalker(make_doc(outline_keys)).get_outline()[0].children[0]
        assert section.title == "Section"
        assert section.italic and not section.bold
        assert section.dest == [PdfRef(11), PdfName("Fit")]

    @pytest.mark.parametrize("flags, bold, italic", [("0", False, False), ("1", True, False), ("2", False, True), ("3", True, True)])
    def test_style_flags_use_editor_bits(self, flags, bold, italic):
        """F is decoded with the bits the writer uses: 1 bold, 2 italic."""
        keys = {
            (CATALOG, "Outlines"): ("xref", "2 0 R"),
            (2, "First"): ("xref", "3 0 R"),
            (3, "Title"): ("string", "Styled"),
            (3, "F"): ("int", flags),
        }
        item = FitzOutlineWalker(make_doc(keys)).get_outline()[0]
        assert (item.bold, item.italic) == (bold, italic)

    def test_indirect_destination_is_not_loaded_while_walking(self):
        keys = {
            (CATALOG, "Outlines"): ("xref", "2 0 R"),
            (2, "First"): ("xref", "3 0 R"),
            (3, "Title"): ("string", "Broken"),
            (3, "Dest"): ("xref", "63 0 R"),
        }
        doc = make_doc(keys)
        doc.xref_object.side_effect = RuntimeError("bad xref")

        items = FitzOutlineWalker(doc).get_outline()

        assert items[0].dest == PdfRef(63)
        doc.xref_object.assert_not_called()

    def test_resolve_indirect_array_destination(self):
        doc = make_doc()
        doc.xref_object.return_value = "[11 0 R/XYZ 0 400 null]"
        walker = FitzOutlineWalker(doc)
        assert walker.resolve_indirect_destination(PdfRef(30)) == [PdfRef(11), PdfName("XYZ"), 0, 400, None]

    def test_resolve_indirect_destination_dictionary(self):
        doc = make_doc({(30, "D"): ("array", "[12 0 R/Fit]")})
        doc.xref_object.return_value = "<</D [12 0 R/Fit]>>"
        walker = FitzOutlineWalker(doc)
        assert walker.resolve_indirect_destination(PdfRef(30)) == [PdfRef(12), PdfName("Fit")]

    def test_resolve_indirect_destination_failures(self):
        doc = make_doc()
        doc.xref_object.side_effect = RuntimeError("bad xref")
        with pytest.raises(DestinationResolutionError):
            FitzOutlineWalker(doc).resolve_indirect_destination(PdfRef(63))

        doc = make_doc()
        doc.xref_object.return_value = "42"
        with pytest.raises(DestinationResolutionError):
            FitzOutlineWalker(doc).resolve_indirect_destination(PdfRef(30))

    def test_cyclic_next_chain_stops(self):
        keys = {
            (CATALOG, "Outlines"): ("xref", "2 0 R"),
            (2, "First"): ("xref", "3 0 R"),
            (3, "Title"): ("string", "Loop"),
            (3, "Next"): ("xref", "3 0 R"),
        }
        items = FitzOutlineWalker(make_doc(keys)).get_outline()
        assert [item.title for item in items] == ["Loop"]

    def test_resolve_named_destination(self):
        walker = FitzOutlineWalker(make_doc(names={"chap2": {"page": 2, "to": (0, 500), "zoom": 0}}))
        assert walker.resolve_named_destination("chap2") == [PdfRef(12), PdfName("XYZ"), 0, 500, 0]
        assert walker.resolve_named_destination("missing") is None

    def test_page_index_of(self):
        walker = FitzOutlineWalker(make_doc(pages=3))
        assert walker.page_index_of(PdfRef(11)) == 1
        assert walker.page_index_of(2) == 2

    def test_page_index_of_unknown(self):
        walker = FitzOutlineWalker(make_doc(pages=3))
        with pytest.raises(DestinationResolutionError):
            walker.page_index_of(PdfRef(99))
        with pytest.raises(DestinationResolutionError):
            walker.page_index_of(PdfName("XYZ"))


class TestPyMuPDFOutlineAdapter:
    def test_get_page_count(self):
        with patch("fitz.open", return_value=make_doc(pages=7)):
            assert PyMuPDFOutlineAdapter().get_page_count("test.pdf") == 7

    def test_get_page_count_failure(self):
        with patch("fitz.open", side_effect=RuntimeError("cannot open")):
            with pytest.raises(PDFError):
                PyMuPDFOutlineAdapter().get_page_count("missing.pdf")

    def test_extract_bookmarks(self, outline_keys):
        doc = make_doc(outline_keys, names={"chap2": {"page": 2, "to": (0, 500), "zoom": 0}})
        with patch("fitz.open", return_value=doc):
            tree = PyMuPDFOutlineAdapter().extract_bookmarks("test.pdf", CounterIdFactory())

        chapter, second = tree
        assert (chapter.id, chapter.title, chapter.page) == (1, "Chapter 1", 1)
        assert (chapter.color, chapter.style, chapter.zoom) == ("red", "bold", "150")
        assert (chapter.children[0].page, chapter.children[0].style) == (2, "italic")
        assert (second.page, second.dest_y) == (3, 500)

    def test_extract_keeps_siblings_of_dangling_destination(self):
        keys = {
            (CATALOG, "Outlines"): ("xref", "2 0 R"),
            (2, "First"): ("xref", "3 0 R"),
            (3, "Title"): ("string", "Good"),
            (3, "Dest"): ("array", "[12 0 R/Fit]"),
            (3, "Next"): ("xref", "4 0 R"),
            (4, "Title"): ("string", "Broken"),
            (4, "Dest"): ("xref", "63 0 R"),
            (4, "Next"): ("xref", "5 0 R"),
            (5, "Title"): ("string", "After"),
            (5, "Dest"): ("array", "[11 0 R/Fit]"),
        }
        doc = make_doc(keys)
        doc.xref_object.side_effect = RuntimeError("bad xref")

        with patch("fitz.open", return_value=doc):
            tree = PyMuPDFOutlineAdapter().extract_bookmarks("test.pdf", CounterIdFactory())

        assert [(node.title, node.page) for node in tree] == [("Good", 3), ("Broken", 1), ("After", 2)]
        assert not tree[1].has_destination

    def test_write_bookmarks_saves_copy(self):
        doc = make_doc(pages=5)
        tree = [BookmarkNode(id=1, title="Intro", page=2)]

        with patch("fitz.open", return_value=doc):
            PyMuPDFOutlineAdapter().write_bookmarks("in.pdf", tree, "out.pdf")

        doc.xref_set_key.assert_called_once_with(CATALOG, "Outlines", "20 0 R")
        assert doc.update_object.call_count == 2
        doc.save.assert_called_once_with("out.pdf", garbage=1)

    def test_write_empty_tree_keeps_outline(self):
        doc = make_doc(pages=5)
        with patch("fitz.open", return_value=doc):
            PyMuPDFOutlineAdapter().write_bookmarks("in.pdf", [], "out.pdf")
        doc.xref_set_key.assert_not_called()
        doc.save.assert_called_once()

    def test_write_store_failure_propagates(self):
        doc = make_doc(pages=5)
        doc.update_object.side_effect = RuntimeError("bad object")
        tree = [BookmarkNode(id=1, title="Intro", page=1)]

        with patch("fitz.open", return_value=doc):
            with pytest.raises(ObjectStoreError):
                PyMuPDFOutlineAdapter().write_bookmarks("in.pdf", tree, "out.pdf")
        doc.save.assert_not_called()
