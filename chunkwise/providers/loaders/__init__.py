"""Document loaders, one per file format.

    PDFLoader   - PyMuPDF, one page per PDF page
    DocxLoader  - python-docx paragraphs as a single page
    TextLoader  - UTF-8 text with replacement of undecodable bytes
"""

from chunkwise.providers.loaders.docx_loader import DocxLoader
from chunkwise.providers.loaders.pdf_loader import PDFLoader
from chunkwise.providers.loaders.text_loader import TextLoader

__all__ = ["DocxLoader", "PDFLoader", "TextLoader"]
