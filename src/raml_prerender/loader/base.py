"""Data models for a loaded RAML document.

The loader hands the pipeline a plain JSON-shaped tree plus the
diagnostics it found while reading the source.
"""

from pydantic import BaseModel


class Diagnostic(BaseModel):
    """A single semantic problem reported by the loader."""

    is_warning: bool
    path: str
    line: int  # 1-based
    message: str
    document_version: str  # RAML08 / RAML10

    def describe(self) -> str:
        kind = "Warning" if self.is_warning else "Error"
        return f"{kind} {self.document_version} ({self.path}:{self.line}) {self.message}"


class LoadedApi(BaseModel):
    """A parsed RAML document ready for pre-rendering."""

    path: str
    raml_version: str
    data: dict
    diagnostics: list[Diagnostic] = []

    def first_error(self) -> Diagnostic | None:
        return next((d for d in self.diagnostics if not d.is_warning), None)
