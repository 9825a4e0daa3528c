"""Pretty-printing for JSON and XML example/schema payloads."""

import json
import logging
import re
from xml.parsers.expat import ExpatError

from defusedxml import DefusedXmlException, minidom

logger = logging.getLogger(__name__)

INDENT = "    "

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def beautify(media_type: str | None, data):
    """Reformat ``data`` for the given media type.

    JSON and XML media types are recognised by substring, anything else is
    returned as is. A payload that does not parse, or an XML payload that
    declares entities, is returned unchanged.
    """
    if not media_type or not isinstance(data, str):
        return data
    try:
        if "xml" in media_type:
            return _beautify_xml(data)
        if "json" in media_type:
            return _beautify_json(data)
    except (DefusedXmlException, ValueError, ExpatError) as e:
        logger.debug("Could not beautify %s payload: %s", media_type, e)
    return data


def _beautify_json(data: str) -> str:
    return json.dumps(json.loads(data), indent=len(INDENT), ensure_ascii=False)


def _beautify_xml(data: str) -> str:
    pretty = minidom.parseString(data.strip()).toprettyxml(indent=INDENT)
    if not _XML_DECLARATION.match(data):
        pretty = _XML_DECLARATION.sub("", pretty, count=1)
    lines = [line for line in pretty.splitlines() if line.strip()]
    return "\n".join(lines)
