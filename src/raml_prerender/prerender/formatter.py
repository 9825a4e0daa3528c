"""Content formatter: turns descriptions, examples and schemas into display form.

Runs over the flattened, type-resolved document: Markdown descriptions
become HTML, examples and schemas are pretty-printed according to the
media type of the body they belong to, and a description embedded in a
JSON schema is moved up onto the type so it is shown once.
"""

import logging

import yaml

from raml_prerender.render.beautify import beautify
from raml_prerender.render.markup import MarkupRenderer
from raml_prerender.render.schema import dump_json_schema, parse_json_schema

logger = logging.getLogger(__name__)


class ContentFormatter:
    """Formats every display field of a normalized document in place."""

    def __init__(self, renderer: MarkupRenderer | None = None, beautifier=beautify, schema_parser=parse_json_schema):
        self.renderer = renderer or MarkupRenderer()
        self.beautifier = beautifier
        self.schema_parser = schema_parser

    def format_document(self, data: dict) -> dict:
        for section in data.get("documentation") or []:
            if section.get("content"):
                section["content"] = self.renderer.render(section["content"])

        self.format_parameters(data.get("baseUriParameters"), uri=True)

        for resource in data.get("resources") or []:
            self._render_description(resource)
            self.format_parameters(resource.get("uriParameters"), uri=True)
            for method in resource.get("methods") or []:
                self._format_method(method)
        return data

    def _format_method(self, method: dict) -> None:
        self._render_description(method)
        self.format_parameters(method.get("queryParameters"))
        self.format_parameters(method.get("headers"))
        self.format_bodies(method.get("body"))
        for response in (method.get("responses") or {}).values():
            if not response:
                continue
            self._render_description(response)
            self.format_parameters(response.get("headers"))
            self.format_bodies(response.get("body"))

    def format_parameters(self, parameters: dict | None, uri: bool = False) -> None:
        """Format named parameters; URI parameters are flagged so one template serves both kinds."""
        for parameter in (parameters or {}).values():
            if not isinstance(parameter, dict):
                continue
            if uri:
                parameter["uri"] = True
            self.format_type(parameter)

    def format_bodies(self, bodies: dict | None) -> None:
        for media_type, body in (bodies or {}).items():
            if isinstance(body, dict):
                self.format_type(body, media_type)

    def format_type(self, node: dict, media_type: str | None = None) -> dict:
        """Format one expanded type occurrence.

        Examples and schemas are only pretty-printed when ``media_type`` is
        known, i.e. for request and response bodies.
        """
        for prop in (node.get("properties") or {}).values():
            if isinstance(prop, dict):
                self.format_type(prop)
        if isinstance(node.get("items"), dict):
            self.format_type(node["items"], media_type)

        self._render_description(node)

        for example in node.get("examples") or []:
            if not isinstance(example, dict):
                continue
            self._render_description(example)
            if media_type and "value" in example:
                example["value"] = self.beautifier(media_type, example["value"])

        if media_type and node.get("example"):
            node["example"] = self.beautifier(media_type, node["example"])

        if media_type and node.get("schema"):
            node["schema"] = self._format_schema(node, media_type)
        return node

    def _format_schema(self, node: dict, media_type: str):
        schema = node["schema"]
        if "json" in media_type and isinstance(schema, str):
            schema = self._hoist_schema_description(node, schema)
        return self.beautifier(media_type, schema)

    def _hoist_schema_description(self, node: dict, schema: str) -> str:
        try:
            parsed = self.schema_parser(schema)
        except (ValueError, yaml.YAMLError) as e:
            logger.debug("Leaving unparsable schema of %s as is: %s", node.get("name"), e)
            return schema
        if not isinstance(parsed, dict):
            return schema
        if parsed.get("description") and not node.get("description"):
            node["description"] = self.renderer.render(parsed.pop("description"))
        return dump_json_schema(parsed)

    def _render_description(self, node: dict) -> None:
        if node.get("description"):
            node["description"] = self.renderer.render(node["description"])
