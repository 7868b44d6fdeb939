"""
Device description documents (UPnP Device Architecture section 2.3).

Only the parts needed to browse a media server are read: the device's
friendly name and manufacturer, and the control URL of its ContentDirectory
service.
"""
import asyncio

import aiohttp
import requests
from lxml import etree
from requests.compat import urlparse

from .const import HTTP_TIMEOUT
from .errors import ParseError
from .util import _getLogger, base_url, xml_localname


class DeviceDescription(object):
    """
    The interesting bits of a device description document retrieved from
    `location`.
    """

    def __init__(self, location, device_type="", friendly_name="",
                 manufacturer="", services=None):
        self.location = location
        self.device_type = device_type
        self.friendly_name = friendly_name
        self.manufacturer = manufacturer
        self.services = services or []

    def __repr__(self):
        return "<DeviceDescription '%s'>" % self.friendly_name

    @property
    def content_directory_url(self):
        """
        Absolute control URL of the first ContentDirectory service, or None.
        """
        for service_type, control_url in self.services:
            if "ContentDirectory" in service_type and control_url:
                return resolve_control_url(control_url, self.location)
        return None


def resolve_control_url(control_url, location):
    """
    Make `control_url` absolute. Relative URLs are resolved against the
    scheme, host and port of the device, never the description's own path.
    """
    if urlparse(control_url).scheme:
        return control_url
    return "%s/%s" % (base_url(location), control_url.lstrip("/"))


def _child_text(node, name):
    for child in node:
        if xml_localname(child.tag) == name:
            return (child.text or "").strip()
    return ""


def parse_description(data, location):
    """
    Parse a device description document. Raises `ParseError` on malformed XML.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        root = etree.fromstring(data, etree.XMLParser(resolve_entities=False))
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise ParseError("Invalid device description from %s: %s" % (location, exc))

    desc = DeviceDescription(location)
    # Services can be listed at several depths (embedded devices), so walk
    # the whole tree instead of a fixed path.
    for node in root.iter():
        name = xml_localname(node.tag)
        if name == "service":
            desc.services.append(
                (_child_text(node, "serviceType"), _child_text(node, "controlURL")))
        elif name == "friendlyName" and not desc.friendly_name:
            desc.friendly_name = (node.text or "").strip()
        elif name == "manufacturer" and not desc.manufacturer:
            desc.manufacturer = (node.text or "").strip()
        elif name == "deviceType" and not desc.device_type:
            desc.device_type = (node.text or "").strip()
    return desc


def fetch_description(location, timeout=HTTP_TIMEOUT, http_auth=None,
                      http_headers=None, logger=None):
    """
    Synchronously retrieve and parse the description at `location`. Returns
    None when the server doesn't answer with a 2xx or the document is
    unusable.
    """
    log = logger or _getLogger("description")
    try:
        resp = requests.get(
            location, timeout=timeout, auth=http_auth, headers=http_headers)
    except requests.exceptions.RequestException as exc:
        log.debug("Unable to fetch device description %s: %s", location, exc)
        return None
    if not 200 <= resp.status_code < 300:
        log.debug("Device description %s returned HTTP %s", location, resp.status_code)
        return None
    try:
        return parse_description(resp.content, location)
    except ParseError as exc:
        log.debug("%s", exc)
        return None


async def async_fetch_description(session, location, timeout=HTTP_TIMEOUT,
                                  logger=None):
    """
    Asynchronously retrieve and parse the description at `location` using the
    aiohttp `session`.
    """
    log = logger or _getLogger("description")
    try:
        async with session.get(
            location, timeout=aiohttp.ClientTimeout(total=timeout)
        ) as resp:
            if not 200 <= resp.status < 300:
                log.debug(
                    "Device description %s returned HTTP %s", location, resp.status)
                return None
            data = await resp.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        log.debug("Unable to fetch device description %s: %r", location, exc)
        return None
    try:
        return parse_description(data, location)
    except ParseError as exc:
        log.debug("%s", exc)
        return None


def resolve_content_directory(location, **kwargs):
    """
    Return the absolute ContentDirectory control URL advertised by the device
    description at `location`, or None.
    """
    desc = fetch_description(location, **kwargs)
    if desc is None:
        return None
    return desc.content_directory_url


async def async_resolve_content_directory(session, location, **kwargs):
    desc = await async_fetch_description(session, location, **kwargs)
    if desc is None:
        return None
    return desc.content_directory_url
