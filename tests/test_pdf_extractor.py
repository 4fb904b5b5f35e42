"""
PDF Text Extractor Tests

Tests for pulling page text out of PDF statements.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_ingest.exceptions import UnreadableFile
from statement_ingest.pdf_extractor import PDFTextExtractor


def mock_page(text: str | None) -> MagicMock:
    page = MagicMock()
    page.extract_text.return_value = text
    return page


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    path = tmp_path / "statement.pdf"
    path.write_bytes(b"%PDF-1.4\n% fake statement body\n")
    return path


class TestPDFTextExtractor:
    """Tests for PDFTextExtractor."""

    @patch("statement_ingest.pdf_extractor.pdfplumber.open")
    def test_pages_joined_in_order(self, mock_open, pdf_file):
        """Test that page texts are joined and textless pages become blank."""
        pdf = MagicMock()
        pdf.pages = [mock_page("page one text"), mock_page(None)]
        mock_open.return_value.__enter__.return_value = pdf

        text = PDFTextExtractor().extract_text(pdf_file)

        assert text == "page one text\n"
        mock_open.assert_called_once_with(pdf_file)

    @patch("statement_ingest.pdf_extractor.pdfplumber.open")
    def test_accepts_string_path(self, mock_open, pdf_file):
        """Test that a string path is accepted."""
        mock_open.return_value.__enter__.return_value.pages = [mock_page("07/28/2024 WALMART $1.00")]

        assert PDFTextExtractor().extract_text(str(pdf_file)) == "07/28/2024 WALMART $1.00"

    @patch("statement_ingest.pdf_extractor.pdfplumber.open")
    def test_open_failure_is_unreadable(self, mock_open, pdf_file):
        """Test that a pdfplumber error becomes UnreadableFile."""
        mock_open.side_effect = Exception("broken xref")

        with pytest.raises(UnreadableFile, match="Failed to read PDF: broken xref"):
            PDFTextExtractor().extract_text(pdf_file)

    @patch("statement_ingest.pdf_extractor.pdfplumber.open")
    def test_page_failure_is_unreadable(self, mock_open, pdf_file):
        """Test that an error on a later page fails the whole file."""
        broken = MagicMock()
        broken.extract_text.side_effect = ValueError("bad content stream")
        mock_open.return_value.__enter__.return_value.pages = [mock_page("page one text"), broken]

        with pytest.raises(UnreadableFile, match="bad content stream"):
            PDFTextExtractor().extract_text(pdf_file)

    @patch("statement_ingest.pdf_extractor.pdfplumber.open")
    def test_rejects_non_pdf(self, mock_open, tmp_path):
        """Test the PDF header check."""
        path = tmp_path / "fake.pdf"
        path.write_bytes(b"Date,Description,Amount\n")

        with pytest.raises(UnreadableFile, match="Not a PDF file"):
            PDFTextExtractor().extract_text(path)

        mock_open.assert_not_called()
