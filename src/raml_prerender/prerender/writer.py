"""Serialize a pre-rendered document to a JSON file."""

import json
from pathlib import Path


def dump_document(data: dict, pretty_print: int | None = None) -> str:
    """JSON text of ``data``; compact unless ``pretty_print`` gives an indent."""
    if pretty_print is None:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)
    return json.dumps(data, ensure_ascii=False, indent=pretty_print, default=str)


def write_document(data: dict, dest: Path, pretty_print: int | None = None) -> Path:
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(dump_document(data, pretty_print), encoding="utf-8", newline="\n")
    return dest
