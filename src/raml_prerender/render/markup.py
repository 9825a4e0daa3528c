"""Markdown to HTML renderer wrapper around Python-Markdown."""

import logging

import markdown

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ("extra",)


class MarkupRenderer:
    """Best-effort Markdown renderer: never raises, falls back to the input text."""

    def __init__(self, extensions: tuple[str, ...] | None = None):
        self.extensions = list(extensions or DEFAULT_EXTENSIONS)
        self._md = markdown.Markdown(extensions=self.extensions)

    def render(self, text: str) -> str:
        """Render one Markdown string to HTML."""
        if not isinstance(text, str):
            return text
        try:
            return self._md.reset().convert(text)
        except Exception as e:
            logger.debug("Markdown rendering failed, keeping raw text: %s", e)
            return text
