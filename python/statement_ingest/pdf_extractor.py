"""
PDF Text Extractor Module

Pulls plain text out of PDF statements so that the line-based extractor can
match transaction lines. No layout analysis or OCR is attempted.
"""

import hashlib
import logging
from pathlib import Path

import pdfplumber

from .exceptions import UnreadableFile

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


class PDFTextExtractor:
    """Extracts page text from PDF files with pdfplumber."""

    def extract_text(self, file_path: Path | str) -> str:
        """Extract the text of every page, in page order.

        Args:
            file_path: Path to the PDF file

        Returns:
            Page texts joined by newlines

        Raises:
            UnreadableFile: If the file cannot be opened as a PDF
        """
        file_path = Path(file_path)

        with open(file_path, "rb") as f:
            header = f.read(len(PDF_MAGIC))
        if header != PDF_MAGIC:
            raise UnreadableFile(f"Not a PDF file: {file_path.name}")

        file_hash = hashlib.sha256(file_path.read_bytes()).hexdigest()[:16]
        logger.info(f"Extracting text from PDF: {file_path.name} (hash: {file_hash})")

        pages: list[str] = []
        try:
            with pdfplumber.open(file_path) as pdf:
                for page in pdf.pages:
                    pages.append(page.extract_text() or "")
        except Exception as e:
            logger.warning(f"Failed to read PDF {file_path.name}: {e}")
            raise UnreadableFile(f"Failed to read PDF: {e}") from e

        logger.debug(f"Extracted {len(pages)} page(s) from {file_path.name}")
        return "\n".join(pages)
