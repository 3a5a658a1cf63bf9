"""
Tests for document import.
"""

import io
import pytest
import sys
from pathlib import Path

from PIL import Image

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class FakeClient:
    """Stands in for GeminiClient.analyze_images."""

    def __init__(self, reply="Câu 1. $x=1$"):
        self.reply = reply
        self.payloads = []

    def analyze_images(self, images):
        self.payloads.extend(images)
        return self.reply


def make_docx_bytes(*paragraphs):
    from docx import Document

    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def import_config():
    from mathdoc.config import ImportConfig
    return ImportConfig()


@pytest.fixture
def fake_pages(monkeypatch):
    """Replace PDF rasterisation with two blank pages."""
    from mathdoc.utils import io as mathdoc_io

    pages = [Image.new("RGB", (40, 60), "white"), Image.new("RGB", (40, 60), "white")]
    calls = []

    def render(data, max_pages=5, dpi=108):
        calls.append((max_pages, dpi))
        return pages

    monkeypatch.setattr(mathdoc_io, "render_pdf_pages", render)
    return calls


class TestDetection:
    """Test file type detection and naming."""

    @pytest.mark.parametrize("name,expected", [
        ("a.docx", "docx"),
        ("a.DOC", "doc"),
        ("scan.pdf", "pdf"),
        ("photo.JPG", "image"),
        ("photo.webp", "image"),
        ("notes.tex", "text"),
        ("notes.md", "text"),
        ("archive.zip", "unknown"),
        ("README", "unknown"),
    ])
    def test_detect_input_type(self, name, expected):
        from mathdoc.utils.io import detect_input_type
        assert detect_input_type(name) == expected

    def test_strip_extension(self):
        from mathdoc.utils.io import strip_extension

        assert strip_extension("lesson.docx") == "lesson"
        assert strip_extension("lesson.v2.docx") == "lesson.v2"
        assert strip_extension("/tmp/dir/exam.pdf") == "exam"
        assert strip_extension("noext") == "noext"


class TestTextImport:
    """Test plain text import."""

    def test_text_file(self, import_config):
        from mathdoc.utils.io import load_document

        doc = load_document("lesson.tex", "Tính $x^2$".encode("utf-8"), config=import_config)

        assert doc.text == "Tính $x^2$"
        assert doc.rich_text is False
        assert doc.base_name == "lesson"
        assert doc.source_type == "text"

    def test_bom_is_dropped(self, import_config):
        from mathdoc.utils.io import load_document

        doc = load_document("a.txt", b"\xef\xbb\xbfHello", config=import_config)
        assert doc.text == "Hello"

    def test_unsupported(self, import_config):
        from mathdoc.utils.io import load_document, UnsupportedFormatError

        with pytest.raises(UnsupportedFormatError):
            load_document("archive.zip", b"PK", config=import_config)

    def test_load_path_missing(self, tmp_path):
        from mathdoc.utils.io import load_path

        with pytest.raises(FileNotFoundError):
            load_path(tmp_path / "missing.tex")

    def test_load_path(self, tmp_path, import_config):
        from mathdoc.utils.io import load_path

        path = tmp_path / "bai_tap.md"
        path.write_text("$$a+b$$", encoding="utf-8")

        doc = load_path(path, config=import_config)
        assert doc.text == "$$a+b$$"
        assert doc.base_name == "bai_tap"


class TestWordImport:
    """Test .docx / .doc import through mammoth."""

    def test_docx_is_rich_text(self, import_config):
        from mathdoc.utils.io import load_document

        data = make_docx_bytes("Câu 1. Tính $x^2$", "Second paragraph")
        doc = load_document("exam.docx", data, config=import_config)

        assert doc.rich_text is True
        assert doc.source_type == "docx"
        assert doc.base_name == "exam"
        assert "<p>Câu 1. Tính $x^2$</p>" in doc.text
        assert "Second paragraph" in doc.text

    def test_doc_that_is_really_docx(self, import_config):
        from mathdoc.utils.io import load_document

        doc = load_document("old.doc", make_docx_bytes("Hello"), config=import_config)

        assert doc.rich_text is True
        assert "Hello" in doc.text

    def test_doc_plain_text(self, import_config):
        from mathdoc.utils.io import load_document

        doc = load_document("old.doc", b"Plain $x$ text", config=import_config)

        assert doc.rich_text is False
        assert doc.text == "Plain $x$ text"

    def test_binary_doc_rejected(self, import_config):
        from mathdoc.utils.io import load_document, UnsupportedFormatError

        ole_header = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 32

        with pytest.raises(UnsupportedFormatError, match="97-2003"):
            load_document("old.doc", ole_header, config=import_config)

    def test_is_binary_text(self):
        from mathdoc.utils.io import is_binary_text

        assert is_binary_text("\ufffdabc")
        assert is_binary_text("abc\0def")
        assert not is_binary_text("Câu 1")


class TestVisionImport:
    """Test image and PDF import."""

    def test_image_uses_client(self, import_config):
        from mathdoc.utils.io import load_document

        client = FakeClient()
        doc = load_document("photo.png", b"\x89PNG", client=client, config=import_config)

        assert doc.text == "Câu 1. $x=1$"
        assert doc.source_type == "image"
        assert doc.rich_text is False
        assert client.payloads[0].mime_type == "image/png"
        assert client.payloads[0].data == b"\x89PNG"

    def test_image_without_client(self, import_config):
        from mathdoc.utils.io import load_document, UnsupportedFormatError

        with pytest.raises(UnsupportedFormatError):
            load_document("photo.jpg", b"jpeg", config=import_config)

    def test_pdf_smart_ocr(self, fake_pages, import_config):
        from mathdoc.utils.io import load_document

        client = FakeClient("$$E=mc^2$$")
        doc = load_document("exam.pdf", b"%PDF-1.4", client=client, config=import_config)

        assert doc.text == "$$E=mc^2$$"
        assert doc.source_type == "pdf"
        assert fake_pages == [(5, 108)]
        assert len(client.payloads) == 2
        for payload in client.payloads:
            assert payload.mime_type == "image/jpeg"
            assert payload.data[:2] == b"\xff\xd8"

    def test_pdf_smart_ocr_needs_client(self, fake_pages, import_config):
        from mathdoc.utils.io import load_document, UnsupportedFormatError

        with pytest.raises(UnsupportedFormatError):
            load_document("exam.pdf", b"%PDF-1.4", config=import_config)

    def test_pdf_local_ocr(self, fake_pages, monkeypatch, import_config):
        from mathdoc.utils import io as mathdoc_io

        seen = {}

        def fake_ocr(pages, lang="vie+eng"):
            seen["pages"] = len(pages)
            seen["lang"] = lang
            return "## Page 1\n\nHello\n\n"

        monkeypatch.setattr(mathdoc_io, "ocr_pages_locally", fake_ocr)

        client = FakeClient()
        doc = mathdoc_io.load_document(
            "exam.pdf", b"%PDF-1.4", smart_ocr=False, client=client, config=import_config
        )

        assert doc.text == "## Page 1\n\nHello\n\n"
        assert seen == {"pages": 2, "lang": "vie+eng"}
        assert client.payloads == []

    def test_encode_jpeg(self):
        from mathdoc.utils.io import encode_jpeg

        data = encode_jpeg(Image.new("RGBA", (8, 8), (255, 0, 0, 128)))
        assert data[:2] == b"\xff\xd8"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
