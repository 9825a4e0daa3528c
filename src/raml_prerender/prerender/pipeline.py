"""Pre-render pipeline: load, validate, normalize and write RAML documents.

Each document goes through pruning, type resolution, resource flattening
and content formatting on its own copy of the loaded tree. Batches are
processed one document at a time and stop at the first failure.
"""

import copy
import logging
from pathlib import Path

from pydantic import BaseModel

from raml_prerender.config import PrerenderOptions
from raml_prerender.errors import FormattingFailure, PrerenderError, ValidationFailure
from raml_prerender.loader.base import LoadedApi
from raml_prerender.loader.raml import load_api
from raml_prerender.prerender.formatter import ContentFormatter
from raml_prerender.prerender.prune import prune_internal_fields
from raml_prerender.prerender.resolver import TypeResolver
from raml_prerender.prerender.unnest import unnest
from raml_prerender.prerender.writer import write_document

logger = logging.getLogger(__name__)


class DocumentFailure(BaseModel):
    source: str
    message: str


class BatchResult(BaseModel):
    """Sources written so far, and the failure that stopped the batch if any."""

    processed: list[str] = []
    failure: DocumentFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class Prerenderer:
    """Runs the pre-render pipeline over one document or a batch of them."""

    def __init__(self, options: PrerenderOptions | None = None, loader=load_api,
                 formatter: ContentFormatter | None = None, writer=write_document):
        self.options = options or PrerenderOptions()
        self.loader = loader
        self.formatter = formatter or ContentFormatter()
        self.writer = writer

    def check(self, loaded: LoadedApi) -> None:
        """Stop on the first error when validating, otherwise just report diagnostics."""
        first_error = loaded.first_error()
        if first_error and self.options.validate_raml:
            raise ValidationFailure(first_error.describe())
        for diagnostic in loaded.diagnostics:
            logger.warning(diagnostic.describe())

    def prerender(self, data: dict, source: str = "<document>") -> dict:
        """Return a normalized copy of a loaded document tree.

        Raises FormattingFailure, tagged with ``source``, if any stage fails.
        """
        data = copy.deepcopy(data)
        try:
            prune_internal_fields(data)
            logger.debug("%s: pruned", source)
            TypeResolver(data.get("types")).resolve_document(data)
            logger.debug("%s: types resolved", source)
            data["resources"] = unnest(data.get("resources"))
            logger.debug("%s: flattened %d resources", source, len(data["resources"]))
            self.formatter.format_document(data)
            logger.debug("%s: formatted", source)
        except Exception as e:
            raise FormattingFailure(f"Error formatting {source} {e}") from e
        return data

    def process_file(self, src: Path, dest: Path) -> dict:
        """Load, validate, pre-render and write a single RAML file."""
        logger.debug("Processing %s", src)
        loaded = self.loader(src)
        self.check(loaded)
        data = self.prerender(loaded.data, str(src))
        self.writer(data, Path(dest), self.options.pretty_print)
        logger.debug("File %s created", dest)
        return data

    def process_batch(self, jobs: list[tuple[Path, Path]]) -> BatchResult:
        """Process (source, destination) pairs in order, stopping at the first failure."""
        result = BatchResult()
        for src, dest in jobs:
            try:
                self.process_file(src, dest)
            except (PrerenderError, OSError) as e:
                logger.error("%s", e)
                result.failure = DocumentFailure(source=str(src), message=str(e))
                return result
            result.processed.append(str(src))
        return result
