"""Named type expansion.

Every use of a global type is replaced by a deep copy of its declaration,
with the properties of its parent chain merged in. Only the first declared
parent takes part in inheritance; any further parents only show up in the
``type`` display label.
"""

import copy
import logging

from raml_prerender.errors import CyclicTypeReferenceError

logger = logging.getLogger(__name__)

INLINE_SCHEMA_KINDS = ("JSON", "XML")


def collect_global_types(types) -> dict:
    """Flatten the document's ``types`` list of ``{name: declaration}`` entries into one mapping.

    Only the first key of each entry is used, and the first declaration of a
    name wins.
    """
    if isinstance(types, dict):
        return dict(types)
    result = {}
    for entry in types or []:
        if not isinstance(entry, dict) or not entry:
            continue
        name = next(iter(entry))
        if name in result:
            logger.debug("Ignoring duplicate declaration of type %s", name)
            continue
        result[name] = entry[name]
    return result


def _first_type(declared) -> str | None:
    if isinstance(declared, list):
        return declared[0] if declared and isinstance(declared[0], str) else None
    if isinstance(declared, str):
        return declared
    return None


def _inline_schema(node: dict) -> None:
    """Move an inline JSON/XML ``type`` body into ``schema``."""
    if node.get("typePropertyKind") in INLINE_SCHEMA_KINDS and not node.get("schema"):
        declared = node.pop("type", None)
        node["schema"] = declared[0] if isinstance(declared, list) and declared else declared


def _display_label(names: list) -> str:
    return ", ".join(str(name) for name in names)


class TypeResolver:
    """Expands named type references in place using the document's global types."""

    def __init__(self, types):
        self.types = collect_global_types(types)

    def resolve_document(self, data: dict) -> dict:
        """Expand every type use site in the document and drop the global ``types``."""
        self._resolve_each(data.get("baseUriParameters"))
        for resource in data.get("resources") or []:
            self._resolve_resource(resource)
        data.pop("types", None)
        return data

    def _resolve_resource(self, resource: dict) -> None:
        self._resolve_each(resource.get("uriParameters"))
        for method in resource.get("methods") or []:
            self._resolve_each(method.get("queryParameters"))
            self._resolve_each(method.get("headers"))
            self._resolve_each(method.get("body"))
            for response in (method.get("responses") or {}).values():
                if response:
                    self._resolve_each(response.get("headers"))
                    self._resolve_each(response.get("body"))
        for child in resource.get("resources") or []:
            self._resolve_resource(child)

    def _resolve_each(self, declarations: dict | None) -> None:
        for declaration in (declarations or {}).values():
            if isinstance(declaration, dict):
                self.resolve_type(declaration)

    def clone(self, name) -> dict | None:
        """Deep copy of the global declaration called ``name``, or None for unknown names."""
        if not isinstance(name, str) or name not in self.types:
            return None
        base = copy.deepcopy(self.types[name])
        _inline_schema(base)
        return base

    def resolve_type(self, node: dict, _expanding: tuple[str, ...] = ()) -> dict:
        """Expand one type occurrence in place.

        ``_expanding`` holds the type names being expanded on the current
        path; meeting one of them again raises CyclicTypeReferenceError.
        """
        _inline_schema(node)

        if node.get("typePropertyKind") == "TYPE_EXPRESSION":
            name = _first_type(node.get("type"))
            base = self.clone(name)
            if base is not None:
                if name in _expanding:
                    raise CyclicTypeReferenceError([*_expanding, name])
                _expanding = (*_expanding, name)
                self.inherit_properties(node, base, (name,))
                for key, value in base.items():
                    node.setdefault(key, value)

        if isinstance(node.get("properties"), dict):
            for prop in node["properties"].values():
                if isinstance(prop, dict):
                    self.resolve_type(prop, _expanding)

        if isinstance(node.get("type"), list):
            node["type"] = _display_label(node["type"])

        if isinstance(node.get("items"), list):
            node["items"] = _display_label(node["items"])
        items = node.get("items")
        if isinstance(items, str):
            base = self.clone(items)
            if base is not None:
                if items in _expanding:
                    raise CyclicTypeReferenceError([*_expanding, items])
                self.inherit_properties(base, base, (items,))
                node["items"] = base
                self.resolve_type(base, (*_expanding, items))
        elif isinstance(items, dict):
            self.resolve_type(items, _expanding)
        return node

    def inherit_properties(self, child: dict, base: dict | None, _chain: tuple[str, ...] = ()) -> None:
        """Merge ``base`` properties into ``child`` (child wins), then walk up base's first parent.

        ``base`` must be a private copy; its property objects are moved into
        ``child`` as is.
        """
        if base is None:
            return
        base_properties = base.get("properties")
        if base_properties:
            if not child.get("properties"):
                child["properties"] = base_properties
            else:
                for key, value in base_properties.items():
                    child["properties"].setdefault(key, value)

        parent = _first_type(base.get("type"))
        if parent is not None and parent in _chain:
            raise CyclicTypeReferenceError([*_chain, parent])
        self.inherit_properties(child, self.clone(parent), (*_chain, parent))
