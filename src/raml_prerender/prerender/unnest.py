"""Flatten the nested resource tree into a list of absolute-path resources."""

import copy

DESCRIPTION_SEPARATOR = "<hr>"


def unnest(resources: list[dict] | None, path: str = "", uri_parameters: dict | None = None,
           description: str | None = None, dst: list[dict] | None = None) -> list[dict]:
    """Convert nested resources to rooted resources.

    Each resource gets the full ``relativeUri`` of its branch, the URI
    parameters of its ancestors (its own win on name clashes), and its
    ancestors' descriptions appended after its own. Resources are put at the
    front of ``dst`` after their children, so the result is the reverse of a
    post-order walk: ``[A{A1}, B]`` becomes ``[B, A, A1]``.
    """
    if dst is None:
        dst = []
    for resource in resources or []:
        resource.pop("relativeUriPathSegments", None)
        if description:
            own = resource.get("description")
            resource["description"] = f"{own}{DESCRIPTION_SEPARATOR}{description}" if own else description
        if uri_parameters:
            merged = resource.get("uriParameters") or {}
            for name, parameter in uri_parameters.items():
                if name not in merged:
                    merged[name] = copy.deepcopy(parameter)
            resource["uriParameters"] = merged
        resource["relativeUri"] = path + resource.get("relativeUri", "")
        unnest(resource.get("resources"), resource["relativeUri"], resource.get("uriParameters"),
               resource.get("description"), dst)
        resource.pop("resources", None)
        dst.insert(0, resource)
    return dst
