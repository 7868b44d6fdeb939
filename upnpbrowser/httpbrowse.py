"""
Fallback listing for servers found without a ContentDirectory service
(typically port scan hits): poke at a few well-known HTTP endpoints and make
what we can of the answer.
"""

import lxml.html
import requests
from lxml import etree
from requests.compat import quote

from .const import HTTP_TIMEOUT
from .errors import UPNPError
from .models import DirectoryEntry
from .util import _getLogger

ROOT_ENDPOINTS = (
    "/library/sections",  # Plex
    "/web/index.html",  # Plex web
    "/Users",  # Jellyfin/Emby users
    "/Items",  # Jellyfin/Emby items
    "/",
)


def parse_json_directory(data):
    """Recognise decoded Plex and Jellyfin/Emby JSON answers."""
    if isinstance(data, dict):
        if "MediaContainer" in data:
            return [DirectoryEntry("Plex Media Server", True)]
        if "Items" in data:
            return [DirectoryEntry("Media Library", True)]
    return []


def parse_html_directory(text, url):
    """List the links of an HTML directory index served at `url`."""
    try:
        doc = lxml.html.fromstring(text)
    except (etree.ParserError, ValueError):
        return []
    entries = []
    for anchor in doc.iter("a"):
        href = anchor.get("href")
        if not href or "Parent Directory" in anchor.text_content():
            continue
        name = href.rstrip("/").rsplit("/", 1)[-1]
        if not name or name == "..":
            continue
        is_container = href.endswith("/")
        if href.startswith("http"):
            full_url = href
        else:
            full_url = "%s/%s" % (url.rstrip("/"), href.lstrip("/"))
        entries.append(DirectoryEntry(
            name, is_container, resource_url=None if is_container else full_url))
    return entries


def browse_http_directory(base_url, path, timeout=HTTP_TIMEOUT, logger=None):
    """
    Return the entries found under `path` on the server at `base_url`.
    Raises `UPNPError` if none of the endpoints gave anything usable.
    """
    log = logger or _getLogger("httpbrowse")
    if path:
        endpoints = ["/" + "/".join(quote(segment) for segment in path)]
    else:
        endpoints = ROOT_ENDPOINTS

    for endpoint in endpoints:
        url = base_url.rstrip("/") + endpoint
        try:
            resp = requests.get(url, timeout=timeout)
        except requests.exceptions.RequestException as exc:
            log.debug("GET %s failed: %s", url, exc)
            continue
        if resp.status_code != 200:
            log.debug("GET %s returned HTTP %d", url, resp.status_code)
            continue
        try:
            data = resp.json()
        except ValueError:
            entries = parse_html_directory(resp.text, url)
        else:
            entries = parse_json_directory(data)
        if entries:
            log.debug("Listed %d entries from %s", len(entries), url)
            return entries
    raise UPNPError("No browsable content found")
