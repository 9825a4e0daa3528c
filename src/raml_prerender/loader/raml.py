"""RAML 0.8 / 1.0 document loader.

Reads a RAML file with PyYAML and converts it into the JSON tree the
pre-render pipeline works on: global types as a list of single-key
mappings, resources nested under ``resources``, methods as a list,
bodies keyed by media type. Semantic problems are reported as
diagnostics rather than raised.
"""

import json
import logging
from pathlib import Path

import yaml

from raml_prerender.errors import LoadFailure
from raml_prerender.loader.base import Diagnostic, LoadedApi
from raml_prerender.loader.detect import detect_raml_version

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/json"

HTTP_METHODS = ("get", "patch", "put", "post", "delete", "options", "head", "trace", "connect")

BUILTIN_TYPES = {
    "any", "object", "array", "union", "string", "number", "integer", "boolean",
    "date-only", "time-only", "datetime-only", "datetime", "date", "file", "nil",
}

TOP_LEVEL_KEYS = {
    "title", "description", "version", "baseUri", "baseUriParameters", "protocols",
    "mediaType", "documentation", "schemas", "types", "traits", "resourceTypes",
    "annotationTypes", "securitySchemes", "securedBy", "uses", "usage", "extends",
}

# Top-level sections whose ``type`` keys do not name data types.
_UNCHECKED_SECTIONS = {"traits", "resourceTypes", "annotationTypes", "securitySchemes", "uses"}

_EXAMPLE_FACETS = {"value", "strict", "displayName", "description", "annotations"}

_YAML_SUFFIXES = (".raml", ".yaml", ".yml")


class RamlLoader(yaml.SafeLoader):
    """SafeLoader that resolves the RAML ``!include`` tag relative to the including file."""

    def __init__(self, stream, base_dir: Path, include_stack: tuple[Path, ...] = ()):
        super().__init__(stream)
        self.base_dir = base_dir
        self.include_stack = include_stack


def _construct_include(loader: RamlLoader, node: yaml.Node):
    target = loader.base_dir / loader.construct_scalar(node)
    if target.resolve() in loader.include_stack:
        chain = " -> ".join(str(p) for p in (*loader.include_stack, target.resolve()))
        raise LoadFailure(f"Cyclic include: {chain}")
    try:
        text = target.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadFailure(f"Cannot include {target}: {e}") from e
    if target.suffix.lower() in _YAML_SUFFIXES:
        return _parse_yaml(text, target, loader.include_stack)[1]
    return text


RamlLoader.add_constructor("!include", _construct_include)


def _parse_yaml(text: str, path: Path, include_stack: tuple[Path, ...] = ()) -> tuple[yaml.Node | None, object]:
    """Compose and construct one YAML document, keeping the node tree for line numbers."""
    loader = RamlLoader(text, path.parent, (*include_stack, path.resolve()))
    try:
        node = loader.get_single_node()
        data = loader.construct_document(node) if node is not None else None
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f"{path}:{mark.line + 1}" if mark else str(path)
        problem = getattr(e, "problem", None) or str(e)
        raise LoadFailure(f"Syntax error ({where}) {problem}") from e
    finally:
        loader.dispose()
    return node, data


def load_api(path: Path | str) -> LoadedApi:
    """Load a RAML file into a LoadedApi.

    Raises LoadFailure when the file cannot be read, lacks a RAML header,
    or is not valid YAML.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadFailure(f"Cannot read {path}: {e}") from e

    try:
        version = detect_raml_version(text)
    except LoadFailure as e:
        raise LoadFailure(f"{path}: {e}") from e

    node, raw = _parse_yaml(text, path)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise LoadFailure(f"{path}: document root must be a mapping")

    builder = _TreeBuilder(raw, version)
    try:
        data = builder.build()
    except (AttributeError, TypeError, ValueError) as e:
        raise LoadFailure(f"{path}: malformed RAML structure: {e}") from e
    diagnostics = _check_document(node, str(path), version, builder.type_names)
    logger.debug("Loaded %s (%s) with %d diagnostics", path, version, len(diagnostics))

    return LoadedApi(path=str(path), raml_version=version, data=data, diagnostics=diagnostics)


class _TreeBuilder:
    """Converts the raw YAML mapping into the pipeline's document tree."""

    def __init__(self, raw: dict, version: str):
        self.raw = raw
        self.version = version
        media_type = raw.get("mediaType") or DEFAULT_MEDIA_TYPE
        self.media_type = media_type[0] if isinstance(media_type, list) else media_type
        self.schemas: dict[str, str] = {}
        self.type_names: set[str] = set()

    def build(self) -> dict:
        data = {}
        types = self._types()
        for key, value in self.raw.items():
            key = str(key)
            if key.startswith("/") or key in ("types", "schemas"):
                continue
            if key == "documentation":
                data[key] = [dict(section) for section in value or []]
            elif key == "baseUriParameters":
                data[key] = self._parameters(value)
            else:
                data[key] = value
        data["types"] = types
        data["resources"] = [
            self._resource(str(key), value)
            for key, value in self.raw.items()
            if str(key).startswith("/")
        ]
        return data

    def _types(self) -> list[dict]:
        entries = []
        for section in ("schemas", "types"):
            declared = self.raw.get(section) or {}
            if isinstance(declared, list):
                # RAML 0.8 allows a list of single-key mappings
                pairs = [(name, value) for entry in declared for name, value in entry.items()]
            else:
                pairs = list(declared.items())
            for name, value in pairs:
                name = str(name)
                if section == "schemas" and isinstance(value, str):
                    self.schemas[name] = value
                self.type_names.add(name)
                entries.append({name: _type_declaration(name, value, self.version)})
        return entries

    def _parameters(self, parameters: dict | None) -> dict:
        return {
            str(name): _type_declaration(str(name), value, self.version)
            for name, value in (parameters or {}).items()
        }

    def _resource(self, relative_uri: str, value: dict | None) -> dict:
        resource = {
            "relativeUri": relative_uri,
            "displayName": relative_uri,
            "relativeUriPathSegments": [s for s in relative_uri.split("/") if s],
        }
        methods = []
        children = []
        for key, item in (value or {}).items():
            key = str(key)
            if key in HTTP_METHODS:
                methods.append(self._method(key, item))
            elif key.startswith("/"):
                children.append(self._resource(key, item))
            elif key == "uriParameters":
                resource[key] = self._parameters(item)
            else:
                resource[key] = item
        if methods:
            resource["methods"] = methods
        if children:
            resource["resources"] = children
        return resource

    def _method(self, verb: str, value: dict | None) -> dict:
        method = {"method": verb}
        for key, item in (value or {}).items():
            if key in ("queryParameters", "headers"):
                method[key] = self._parameters(item)
            elif key == "body":
                method[key] = self._body(item)
            elif key == "responses":
                method[key] = {
                    str(code): self._response(str(code), response)
                    for code, response in (item or {}).items()
                }
            else:
                method[key] = item
        return method

    def _response(self, code: str, value: dict | None) -> dict:
        response = {"code": code}
        for key, item in (value or {}).items():
            if key == "headers":
                response[key] = self._parameters(item)
            elif key == "body":
                response[key] = self._body(item)
            else:
                response[key] = item
        return response

    def _body(self, value) -> dict:
        if isinstance(value, dict) and any("/" in str(key) for key in value):
            return {str(media): self._body_type(str(media), item) for media, item in value.items()}
        return {self.media_type: self._body_type(self.media_type, value)}

    def _body_type(self, media_type: str, value) -> dict:
        if value is None:
            value = {"type": "any"}
        elif isinstance(value, dict) and not {"type", "schema", "properties", "items"} & set(value):
            value = {**value, "type": "any"}
        if isinstance(value, dict) and "schema" in value:
            value = dict(value)
            schema = value["schema"]
            if self.version == "RAML10" and "type" not in value:
                value["type"] = value.pop("schema")
            elif isinstance(schema, str) and schema in self.schemas:
                value["schema"] = self.schemas[schema]
        return _type_declaration(media_type, value, self.version)


def _type_declaration(name: str | None, value, version: str) -> dict:
    """Normalize one type declaration: ``type`` as a list plus its ``typePropertyKind``."""
    if isinstance(value, dict):
        decl = dict(value)
    elif isinstance(value, list):
        decl = {"type": list(value)}
    elif value is None:
        decl = {}
    else:
        decl = {"type": value}
    # an inline declaration in ``type`` is folded in; the occurrence's own facets win
    while isinstance(decl.get("type"), dict):
        inline = decl.pop("type")
        decl = {**inline, **decl}
    if name is not None:
        decl["name"] = name

    if "type" not in decl and "schema" not in decl:
        if "properties" in decl:
            decl["type"] = "object"
        elif "items" in decl:
            decl["type"] = "array"
        else:
            decl["type"] = "string"
    if "type" in decl:
        if not isinstance(decl["type"], list):
            decl["type"] = [decl["type"]]
        decl["typePropertyKind"] = _type_kind(decl["type"])

    if isinstance(decl.get("properties"), dict):
        decl["properties"] = _properties(decl["properties"], version)
    if isinstance(decl.get("items"), dict):
        decl["items"] = _type_declaration(None, decl["items"], version)
    if "example" in decl:
        _normalize_example(decl)
    if "examples" in decl:
        decl["examples"] = _examples(decl["examples"])
    return decl


def _type_kind(declared: list) -> str:
    first = declared[0] if declared else None
    if isinstance(first, dict):
        return "INPLACE"
    text = str(first).lstrip()
    if text.startswith("{"):
        return "JSON"
    if text.startswith("<"):
        return "XML"
    return "TYPE_EXPRESSION"


def _properties(properties: dict, version: str) -> dict:
    result = {}
    for raw_name, value in properties.items():
        raw_name = str(raw_name)
        optional = raw_name.endswith("?")
        name = raw_name[:-1] if optional else raw_name
        prop = _type_declaration(name, value, version)
        if optional:
            prop["required"] = False
        elif version == "RAML10":
            prop.setdefault("required", True)
        result[name] = prop
    return result


def _split_example(value) -> tuple[object, str | None]:
    """Return (value, description) for a plain example or a RAML 1.0 example facet map."""
    if isinstance(value, dict) and "value" in value and set(value) <= _EXAMPLE_FACETS:
        return value["value"], value.get("description")
    return value, None


def _example_text(value) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def _normalize_example(decl: dict) -> None:
    value, _ = _split_example(decl["example"])
    if not isinstance(value, str):
        decl["structuredExample"] = value
    decl["example"] = _example_text(value)


def _examples(examples) -> list[dict]:
    if isinstance(examples, list):
        return examples
    result = []
    for name, raw in (examples or {}).items():
        value, description = _split_example(raw)
        example = {"name": str(name), "value": _example_text(value)}
        if not isinstance(value, str):
            example["structuredValue"] = value
        if description:
            example["description"] = description
        result.append(example)
    return result


def _check_document(node: yaml.Node | None, path: str, version: str, declared: set[str]) -> list[Diagnostic]:
    """Report missing title, unknown top-level keys, and unresolved type references."""
    diagnostics: list[Diagnostic] = []

    def report(is_warning: bool, at: yaml.Node | None, message: str) -> None:
        line = at.start_mark.line + 1 if at is not None else 1
        diagnostics.append(
            Diagnostic(is_warning=is_warning, path=path, line=line, message=message, document_version=version)
        )

    if not isinstance(node, yaml.MappingNode):
        report(False, None, "Missing required property 'title'")
        return diagnostics

    keys = {key.value: key for key, _ in node.value if isinstance(key, yaml.ScalarNode)}
    if "title" not in keys:
        report(False, None, "Missing required property 'title'")
    for name, key_node in keys.items():
        if name not in TOP_LEVEL_KEYS and not name.startswith(("/", "(")):
            report(True, key_node, f"Unknown top-level property '{name}'")

    for key, value in node.value:
        if isinstance(key, yaml.ScalarNode) and key.value in _UNCHECKED_SECTIONS:
            continue
        is_resource = isinstance(key, yaml.ScalarNode) and key.value.startswith("/")
        for ref_node, ref in _type_references(value, is_resource):
            if ref not in declared and ref not in BUILTIN_TYPES:
                report(False, ref_node, f"Reference not found: {ref}")
    return diagnostics


def _type_references(node: yaml.Node, is_resource: bool = False):
    """Yield (node, name) for every data type name referenced under ``node``."""
    if isinstance(node, yaml.SequenceNode):
        for item in node.value:
            yield from _type_references(item)
        return
    if not isinstance(node, yaml.MappingNode):
        return
    for key, value in node.value:
        name = key.value if isinstance(key, yaml.ScalarNode) else None
        if name in ("example", "examples"):
            continue
        # a resource's own ``type`` names a resource type
        if name == "type" and not is_resource and not isinstance(value, yaml.MappingNode):
            scalars = value.value if isinstance(value, yaml.SequenceNode) else [value]
            for scalar in scalars:
                if isinstance(scalar, yaml.ScalarNode) and scalar.tag != "!include":
                    for ref in _referenced_names(scalar.value):
                        yield scalar, ref
            continue
        yield from _type_references(value, isinstance(name, str) and name.startswith("/"))


def _referenced_names(expression: str) -> list[str]:
    text = expression.strip()
    if not text or text[0] in "{<" or "<<" in text:
        return []
    names = []
    for part in text.replace("|", ",").split(","):
        # grouping and array suffixes can interleave: "(Cat", "Dog)[]"
        part = part.strip(" ()[]?")
        # library references (lib.Type) are not followed
        if part and "." not in part:
            names.append(part)
    return names
