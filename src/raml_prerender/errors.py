"""Typed errors raised while loading and pre-rendering RAML documents.

Every failure that stops a document is a PrerenderError subclass, so the
batch runner can report it against the source file and stop.
"""


class PrerenderError(RuntimeError):
    """Base class for failures that abort processing of one document."""


class LoadFailure(PrerenderError):
    """Source file unreadable, not RAML, or not valid YAML."""


class ValidationFailure(PrerenderError):
    """The loader reported a non-warning diagnostic and validation is on."""


class FormattingFailure(PrerenderError):
    """Something raised while pruning, resolving, flattening, or formatting."""


class CyclicTypeReferenceError(ValueError):
    """A type inherits from, or is expanded inside, itself."""

    def __init__(self, chain: list[str]):
        self.chain = chain
        super().__init__(f"cyclic type reference: {' -> '.join(chain)}")
