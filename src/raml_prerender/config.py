"""Pre-render options and batch targets.

A config file lists named targets, each mapping a set of RAML sources to
JSON destinations:

    options:
      validate: true
    targets:
      docs:
        cwd: raml
        src: ["**/*.raml"]
        dest: build/
        ext: .json
        options:
          prettyPrint: 2
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class PrerenderOptions(BaseModel):
    """Per-document processing options."""

    model_config = ConfigDict(populate_by_name=True)

    pretty_print: int | None = Field(default=None, alias="prettyPrint", ge=0)  # JSON indent of the output
    validate_raml: bool = Field(default=True, alias="validate")  # abort on loader errors


class Target(BaseModel):
    """A group of sources expanded relative to ``cwd`` and written under ``dest``."""

    cwd: Path = Path(".")
    src: list[str]
    dest: Path
    ext: str = ".json"
    options: dict = {}

    def expand(self, root: Path) -> list[tuple[Path, Path]]:
        """Return (source, destination) pairs in pattern order, sorted within each pattern."""
        base = root / self.cwd
        jobs = []
        for pattern in self.src:
            matches = [p for p in sorted(base.glob(pattern)) if p.is_file()]
            if not matches:
                logger.warning("Source pattern %r matched no files in %s", pattern, base)
            for source in matches:
                relative = source.relative_to(base).with_suffix(self.ext)
                jobs.append((source, root / self.dest / relative))
        return jobs


class PrerenderConfig(BaseModel):
    options: dict = {}
    targets: dict[str, Target] = {}

    def target_options(self, name: str) -> PrerenderOptions:
        """Global options overridden by the target's own."""
        return PrerenderOptions.model_validate({**self.options, **self.targets[name].options})


def load_config(path: Path) -> PrerenderConfig:
    """Load a YAML config file."""
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return PrerenderConfig.model_validate(data)
