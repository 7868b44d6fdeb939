from io import BytesIO

from lxml import etree

from .errors import ParseError
from .models import DidlEntry
from .util import _getLogger, xml_localname


def _parse_size(value):
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _protocol_format(protocol_info):
    """`http-get:*:video/mp4:*` -> `video/mp4`"""
    if not protocol_info:
        return None
    fields = protocol_info.split(":")
    if len(fields) < 3:
        return None
    return fields[2] or None


def _namespace_errors_only(exc):
    codes = [error.type for error in exc.error_log.filter_from_errors()] or [exc.code]
    return all(code == etree.ErrorTypes.NS_ERR_UNDEFINED_NAMESPACE for code in codes)


def _walk(didl_xml, recover=False):
    entries = []
    containers = []
    current = None
    seen_res = False
    for event, node in etree.iterparse(
        BytesIO(didl_xml), events=("start", "end"), resolve_entities=False,
        recover=recover,
    ):
        name = xml_localname(node.tag)
        if event == "start":
            if name in ("container", "item"):
                current = DidlEntry(node.get("id", ""), name == "container")
                seen_res = False
            continue

        if current is None:
            continue
        if name == "title" and not current.title:
            current.title = (node.text or "").strip()
        elif name == "res" and not current.is_container and not seen_res:
            seen_res = True
            current.resource_url = (node.text or "").strip() or None
            current.size = _parse_size(node.get("size"))
            current.duration = node.get("duration")
            current.format = _protocol_format(node.get("protocolInfo"))
        elif name in ("container", "item"):
            entries.append(current)
            if current.is_container and current.title:
                containers.append((current.title, current.id))
            current = None
    return entries, containers


def parse(didl_xml, logger=None):
    """
    Parse a DIDL-Lite document in a single forward pass.

    Returns `(entries, containers)`: every `<container>` and `<item>` as a
    `DidlEntry`, in document order, plus a `(title, container_id)` pair for
    each container with a non-empty title. Some servers use prefixes such as
    `dc:` without declaring them; such documents are read leniently. Raises
    `ParseError` on any other malformed XML.
    """
    log = logger or _getLogger("didl")
    if isinstance(didl_xml, str):
        didl_xml = didl_xml.encode("utf-8")

    try:
        entries, containers = _walk(didl_xml)
    except etree.XMLSyntaxError as exc:
        if not _namespace_errors_only(exc):
            raise ParseError("Invalid DIDL-Lite document: %s" % exc)
        log.debug("Undeclared namespace prefix in DIDL-Lite, reparsing: %s", exc)
        try:
            entries, containers = _walk(didl_xml, recover=True)
        except etree.XMLSyntaxError as exc:
            raise ParseError("Invalid DIDL-Lite document: %s" % exc)

    log.debug("Parsed %d DIDL-Lite entries (%d navigable containers)",
              len(entries), len(containers))
    return entries, containers
