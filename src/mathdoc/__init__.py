"""
MathDoc
=======

Converts LaTeX-flavoured text, Word files, PDFs and images into
Word-compatible documents.

Main components:
- Math segmentation ($...$, $$...$$, \\(...\\), \\[...\\])
- Styled HTML serialization with MathML equations
- DOCX packaging (HTML altChunk via python-docx)
- Vision OCR and chat assistant (Gemini REST API)
- Streamlit browser UI and command-line converter
"""

__version__ = "1.0.0"
__author__ = "MathDoc Team"
