"""Detect the RAML version from the document header line."""

import re

from raml_prerender.errors import LoadFailure

_HEADER = re.compile(r"^#%RAML\s+(\d+\.\d+)\s*(\S.*)?$")

VERSIONS = {"0.8": "RAML08", "1.0": "RAML10"}


def detect_raml_version(text: str) -> str:
    """Return 'RAML08' or 'RAML10' for a RAML document.

    Raises LoadFailure when the first line is not a known RAML header.
    """
    first_line = text.lstrip("\ufeff").split("\n", 1)[0].strip()
    match = _HEADER.match(first_line)
    if not match:
        raise LoadFailure("Missing '#%RAML' header on the first line")
    version = match.group(1)
    if version not in VERSIONS:
        raise LoadFailure(f"Unsupported RAML version {version}")
    return VERSIONS[version]
