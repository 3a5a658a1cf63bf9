#!/usr/bin/env python
"""
Streamlit Web UI for MathDoc.

Run with:
    streamlit run src/mathdoc/app.py

Features:
- Paste LaTeX text or upload Word, PDF or image files
- Smart OCR of PDFs and images with Gemini
- Live preview of the Word export
- Download in nine export styles
- MathDoc AI chat assistant
"""

import logging

import streamlit as st
import streamlit.components.v1 as components

from mathdoc.config import get_config, create_vision_client
from mathdoc.utils.export import DocumentExporter, HtmlDocxPackager, PackagingError, export_filename
from mathdoc.utils.io import load_document, UnsupportedFormatError
from mathdoc.utils.segmenter import segment, count_equations
from mathdoc.utils.styles import OutputStyle, STYLE_TABLE
from mathdoc.utils.vision import VisionError

logger = logging.getLogger(__name__)


DEFAULT_TEXT = (
    "Here is an example of an inline equation: $E=mc^2$.\n\n"
    "And here is a display equation:\n"
    "$$ \\int_{0}^{\\infty} x^2 e^{-x} dx = 2 $$\n\n"
    "Paste your LaTeX content here or upload a Word, PDF, or Image file to begin conversion."
)

HELP_TEXT = """
**1. Input** - type or paste text with LaTeX math (`$...$`, `$$...$$`, `\\(...\\)`, `\\[...\\]`),
or upload a file:
- `.docx` is imported with its formatting (rich text mode)
- `.pdf` and images are transcribed by Gemini (Smart OCR) or locally with Tesseract
- legacy binary `.doc` files must be re-saved as `.docx`

**2. Preview** - the right pane shows the document as it will be exported.
"Câu 1:" / "Bài 2." headings and "a)" sub-items are highlighted.

**3. Export** - pick a style and download the `.docx`.
"""

# Page config must be first Streamlit command
st.set_page_config(
    page_title="MathDoc AI",
    page_icon="📄",
    layout="wide",
    initial_sidebar_state="expanded"
)


def init_session_state():
    """Initialize session state variables."""
    if "raw_text" not in st.session_state:
        st.session_state.raw_text = DEFAULT_TEXT
    if "is_rich_text" not in st.session_state:
        st.session_state.is_rich_text = False
    if "file_name" not in st.session_state:
        st.session_state.file_name = get_config().export.default_file_name
    if "chat" not in st.session_state:
        st.session_state.chat = None
    if "messages" not in st.session_state:
        st.session_state.messages = []
    if "upload_key" not in st.session_state:
        st.session_state.upload_key = 0


@st.cache_resource
def get_exporter() -> DocumentExporter:
    config = get_config()
    return DocumentExporter(
        packager=HtmlDocxPackager(config.export.docx_template),
        footer_text=config.export.footer_text,
    )


def get_client():
    try:
        return create_vision_client()
    except VisionError as e:
        st.sidebar.warning(str(e))
        return None


def reset_document():
    st.session_state.raw_text = ""
    st.session_state.is_rich_text = False
    st.session_state.file_name = get_config().export.default_file_name
    st.session_state.upload_key += 1


def render_sidebar() -> dict:
    """Render sidebar settings."""
    st.sidebar.header("⚙️ Settings")

    smart_ocr = st.sidebar.toggle(
        "Smart OCR (Gemini)",
        value=get_config().importing.smart_ocr,
        help="Transcribe PDFs with the vision model. Off: local Tesseract text only."
    )

    style_value = st.sidebar.selectbox(
        "Export style",
        options=[s.value for s in OutputStyle],
        format_func=lambda v: STYLE_TABLE[OutputStyle(v)].label,
    )

    st.sidebar.button("🔄 Reset", on_click=reset_document, help="Clear the editor and start over")

    with st.sidebar.expander("❓ Help", expanded=False):
        st.markdown(HELP_TEXT)

    return {"smart_ocr": smart_ocr, "style": OutputStyle(style_value)}


def handle_upload(uploaded_file, settings: dict):
    """Import an uploaded file into the editor."""
    client = None
    name = uploaded_file.name.lower()
    if name.endswith((".jpg", ".jpeg", ".png", ".webp")) or (name.endswith(".pdf") and settings["smart_ocr"]):
        client = get_client()

    try:
        with st.spinner("Reading file..."):
            document = load_document(
                uploaded_file.name,
                uploaded_file.getvalue(),
                smart_ocr=settings["smart_ocr"] and client is not None,
                client=client,
            )
    except UnsupportedFormatError as e:
        st.error(str(e))
        return
    except Exception as e:
        logger.error(f"Error reading file: {e}")
        st.error(f"Error reading file: {e}")
        return

    st.session_state.raw_text = document.text
    st.session_state.is_rich_text = document.rich_text
    st.session_state.file_name = document.base_name
    st.session_state.upload_key += 1
    st.rerun()


def render_export(settings: dict):
    """Export button for the selected style."""
    style = settings["style"]
    try:
        data = get_exporter().to_docx_bytes(
            st.session_state.raw_text,
            rich_text=st.session_state.is_rich_text,
            style=style,
        )
    except PackagingError as e:
        st.error(f"Error generating DOCX: {e}")
        return

    st.download_button(
        f"📥 Download {STYLE_TABLE[style].label}",
        data=data,
        file_name=export_filename(st.session_state.file_name, style),
        mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        use_container_width=True,
    )


def render_chat():
    """MathDoc AI chat panel."""
    st.subheader("💬 MathDoc AI")

    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["text"])

    prompt = st.chat_input("Ask about LaTeX, formatting or math...")
    if not prompt:
        return

    if st.session_state.chat is None:
        client = get_client()
        if client is None:
            st.error("Chat is unavailable: no Gemini API key configured.")
            return
        st.session_state.chat = client.create_chat()

    st.session_state.messages.append({"role": "user", "text": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)

    with st.chat_message("assistant"):
        try:
            reply = st.write_stream(st.session_state.chat.send(prompt))
        except VisionError as e:
            reply = "Sorry, I encountered an error connecting to the AI service."
            st.error(reply)
            logger.error(f"Chat error: {e}")
    st.session_state.messages.append({"role": "assistant", "text": reply})


def main():
    """Main application."""
    init_session_state()
    settings = render_sidebar()

    st.markdown("## 📄 MathDoc AI")
    st.caption("LaTeX, Word, PDF and image to Word converter")

    uploaded_file = st.file_uploader(
        "Upload a document",
        type=["docx", "doc", "pdf", "jpg", "jpeg", "png", "webp", "txt", "tex", "md"],
        key=f"upload_{st.session_state.upload_key}",
    )
    if uploaded_file is not None:
        handle_upload(uploaded_file, settings)

    left, right = st.columns(2)

    with left:
        mode = "Rich text (HTML)" if st.session_state.is_rich_text else "Plain text + LaTeX"
        st.caption(f"Source - {mode}")
        st.text_area("Editor", key="raw_text", height=520, label_visibility="collapsed")

    segments = segment(st.session_state.raw_text)
    document = get_exporter().serializer.serialize(
        segments, st.session_state.is_rich_text, settings["style"]
    )

    with right:
        counts = count_equations(segments)
        st.caption(
            f"Preview - {counts['inline']} inline / {counts['display']} display equations"
        )
        components.html(document.markup, height=520, scrolling=True)
        if document.math_errors:
            st.warning(f"{len(document.math_errors)} equation(s) could not be rendered")

    render_export(settings)

    st.markdown("---")
    render_chat()


if __name__ == "__main__":
    main()
