"""
Gemini vision OCR and chat client.

Provides:
- Page image transcription to text + LaTeX
- Post-processing of transcriptions (headings, sub-items, blank lines)
- Streaming chat session for the MathDoc AI assistant

Uses the google-genai SDK.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

import httpx
from google import genai
from google.genai import errors, types

logger = logging.getLogger(__name__)


# HTTP status errors from the API, and transport failures underneath it
API_ERRORS = (errors.APIError, httpx.HTTPError)

OCR_PROMPT = """
You are an advanced Math OCR engine. Your task is to transcribe the content of these images into a single continuous text document.

RULES:
1. **Mathematics**: Detect ALL mathematical formulas, symbols, and expressions. Convert them STRICTLY into standard LaTeX format.
   - Use $...$ for inline math.
   - Use $$...$$ for display math (equations on their own line).
2. **Language**: Preserve the original language (Vietnamese/English). Fix minor OCR typos if the context is obvious.
3. **Formatting & Structure (IMPORTANT)**:
   - **Headings**: Start every new "Câu" (Question) or "Bài" (Problem) on a NEW LINE with a blank line before it to separate sections clearly.
   - **Sub-items**: Start every sub-part (e.g., "a)", "b)", "c)", or "1.", "2.") on a NEW LINE. Do NOT write them inline.
4. **Output**: Return ONLY the transcribed content. Do not add "Here is the transcription" or any conversational filler.
5. **Accuracy**: Pay special attention to fractions, integrals, sum, limits, and matrices.
"""

CHAT_SYSTEM_INSTRUCTION = (
    "You are MathDoc AI, an expert assistant for a LaTeX to Word conversion tool. "
    "Your goal is to help users format their LaTeX math expressions, debug syntax errors, "
    "or generate LaTeX code for complex equations. "
    "You can also answer general questions about mathematics and document formatting. "
    "Keep your answers concise and helpful. When providing LaTeX code, wrap it in code blocks."
)


class VisionError(Exception):
    """Raised when the vision/chat service cannot be used."""


@dataclass
class ImagePayload:
    """One image sent to the vision model."""
    data: bytes
    mime_type: str = "image/jpeg"

    def to_part(self) -> types.Part:
        return types.Part.from_bytes(data=self.data, mime_type=self.mime_type)


# ============================================================================
# Transcription Post-processing
# ============================================================================

_HEADING_RE = re.compile(r"([^\n])\n*(Câu|Bài|Và)\s+([0-9IVX]+[.:]?)", re.IGNORECASE)
_LETTER_ITEM_RE = re.compile(r"([,;.]|\s)(\s*)([a-z]\))(\s)")
# Not after a heading keyword, so "Câu 1. ..." stays on one line
_NUMBER_ITEM_RE = re.compile(r"(?<!Câu)(?<!Bài)(?<!Và)([,;.]|\s)(\s*)([1-9]\.)(\s)")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def normalize_transcription(text: str) -> str:
    """
    Clean up OCR output for Vietnamese exam formatting.

    - Removes Markdown bold markers
    - Puts a blank line before "Câu N" / "Bài N" headings
    - Moves "a)" and "1." items onto their own lines
    - Collapses runs of blank lines
    """
    if not text:
        return ""

    text = text.replace("**", "")
    text = _HEADING_RE.sub(lambda m: f"{m.group(1)}\n\n{m.group(2)} {m.group(3)}", text)
    text = _LETTER_ITEM_RE.sub(lambda m: f"\n{m.group(3)}{m.group(4)}", text)
    text = _NUMBER_ITEM_RE.sub(lambda m: f"\n{m.group(3)}{m.group(4)}", text)
    text = _BLANK_LINES_RE.sub("\n\n", text)

    return text.strip()


# ============================================================================
# Client
# ============================================================================

class GeminiClient:
    """Thin wrapper around the google-genai client."""

    def __init__(
        self,
        api_key: Optional[str],
        ocr_model: str = "gemini-3-flash-preview",
        chat_model: str = "gemini-3-pro-preview",
        temperature: float = 0.7,
        timeout: int = 120,
        client: Optional[genai.Client] = None
    ):
        if not api_key:
            raise VisionError(
                "Gemini API key not configured. Set GEMINI_API_KEY (or API_KEY)."
            )
        self.api_key = api_key
        self.ocr_model = ocr_model
        self.chat_model = chat_model
        self.temperature = temperature
        self.timeout = timeout
        self.client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=timeout * 1000),  # milliseconds
        )

    def analyze_images(self, images: List[ImagePayload]) -> str:
        """
        Transcribe page images into text with LaTeX math.

        Args:
            images: Page images in reading order

        Returns:
            Normalized transcription

        Raises:
            VisionError: On API failure
        """
        if not images:
            return ""

        contents = [img.to_part() for img in images] + [OCR_PROMPT]

        logger.info(f"Sending {len(images)} image(s) to {self.ocr_model}")
        try:
            response = self.client.models.generate_content(
                model=self.ocr_model,
                contents=contents,
            )
        except API_ERRORS as e:
            logger.error(f"Gemini API error ({self.ocr_model}): {e}")
            raise VisionError(f"Gemini API error: {e}") from e

        return normalize_transcription(response.text or "")

    def create_chat(self) -> 'ChatSession':
        return ChatSession(self)


class ChatSession:
    """Multi-turn chat with the MathDoc AI assistant."""

    def __init__(self, client: GeminiClient, system_instruction: str = CHAT_SYSTEM_INSTRUCTION):
        self.client = client
        self.system_instruction = system_instruction
        self._chat = self._create_chat()

    def _create_chat(self, history: Optional[list] = None):
        return self.client.client.chats.create(
            model=self.client.chat_model,
            config=types.GenerateContentConfig(
                system_instruction=self.system_instruction,
                temperature=self.client.temperature,
            ),
            history=history or [],
        )

    @property
    def history(self) -> list:
        return self._chat.get_history()

    def send(self, message: str) -> Iterator[str]:
        """
        Send a message and stream the reply.

        Yields:
            Text chunks as they arrive

        Raises:
            VisionError: On API failure, before or during the stream. The
                session is rolled back to its last complete exchange.
        """
        history = list(self._chat.get_history())

        try:
            for chunk in self._chat.send_message_stream(message):
                if chunk.text:
                    yield chunk.text
        except API_ERRORS as e:
            logger.error(f"Gemini chat error ({self.client.chat_model}): {e}")
            self._chat = self._create_chat(history)
            raise VisionError(f"Gemini API error: {e}") from e

    def reset(self):
        self._chat = self._create_chat()
