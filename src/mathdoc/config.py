"""
Configuration and constants for MathDoc.

This module provides:
- Logging configuration
- Export, vision API and import settings
- Environment variable overrides
"""

import os
from dataclasses import dataclass, field
from typing import Optional
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("mathdoc")


# ============================================================================
# Configuration
# ============================================================================

@dataclass
class ExportConfig:
    """Export configuration."""
    default_style: str = "standard"
    # Centered credit line under the document body (None = no footer)
    footer_text: Optional[str] = None
    # Optional .docx template for the packager
    docx_template: Optional[str] = None
    default_file_name: str = "document"


@dataclass
class VisionConfig:
    """Gemini API configuration."""
    api_key: Optional[str] = None
    ocr_model: str = "gemini-3-flash-preview"
    chat_model: str = "gemini-3-pro-preview"
    temperature: float = 0.7
    timeout: int = 120  # seconds


@dataclass
class ImportConfig:
    """File import configuration."""
    smart_ocr: bool = True
    # PDF pages sent to the vision model in one request
    max_pdf_pages: int = 5
    # 1.5x of the 72 DPI PDF user space
    pdf_dpi: int = 108
    jpeg_quality: int = 80
    tesseract_lang: str = "vie+eng"


@dataclass
class AppConfig:
    """Main application configuration."""
    export: ExportConfig = field(default_factory=ExportConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    importing: ImportConfig = field(default_factory=ImportConfig)

    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> AppConfig:
    """Get the default configuration with environment overrides."""
    config = AppConfig()

    if os.environ.get("MATHDOC_DEBUG", "").lower() == "true":
        config.debug_mode = True

    # Gemini credentials from environment
    config.vision.api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")

    if os.environ.get("MATHDOC_DEFAULT_STYLE"):
        config.export.default_style = os.environ["MATHDOC_DEFAULT_STYLE"]

    if os.environ.get("MATHDOC_FOOTER"):
        config.export.footer_text = os.environ["MATHDOC_FOOTER"]

    return config


def create_vision_client(config: Optional[AppConfig] = None):
    """
    Build a GeminiClient from configuration.

    Returns:
        GeminiClient, or None if no API key is configured
    """
    from .utils.vision import GeminiClient

    config = config or get_config()
    if not config.vision.api_key:
        logger.warning("No Gemini API key configured; vision OCR and chat are disabled")
        return None

    return GeminiClient(
        api_key=config.vision.api_key,
        ocr_model=config.vision.ocr_model,
        chat_model=config.vision.chat_model,
        temperature=config.vision.temperature,
        timeout=config.vision.timeout,
    )
