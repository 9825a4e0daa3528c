"""Parse schema strings written either as JSON or as YAML."""

import json

import yaml

# A double quoted "$schema" key only shows up in JSON text.
JSON_SCHEMA_MARKER = '"$schema"'


def parse_json_schema(schema: str):
    """Parse a JSON Schema written in JSON or in YAML syntax."""
    if JSON_SCHEMA_MARKER in schema:
        return json.loads(schema)
    return yaml.safe_load(schema)


def dump_json_schema(schema) -> str:
    """Serialize a parsed schema back to compact JSON text."""
    return json.dumps(schema, ensure_ascii=False, default=str)
