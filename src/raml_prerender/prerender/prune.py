"""Remove parser bookkeeping fields that are not meant for display."""

INTERNAL_FIELDS = frozenset({"structuredExample", "structuredValue"})


def prune_internal_fields(node, fields=INTERNAL_FIELDS):
    """Delete every key in ``fields`` from ``node`` at any depth, in place."""
    if isinstance(node, dict):
        for key in [k for k in node if k in fields]:
            del node[key]
        for value in node.values():
            prune_internal_fields(value, fields)
    elif isinstance(node, list):
        for item in node:
            prune_internal_fields(item, fields)
    return node
