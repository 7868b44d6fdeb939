"""
Heuristic discovery of media servers that don't answer SSDP.

A handful of likely host addresses on the local /24 are probed on the
well-known Plex, Jellyfin and Emby ports. Every (host, port) pair is its own
task; all of them run concurrently on one aiohttp session.
"""
import asyncio
from collections import OrderedDict

import aiohttp

from .const import (
    DLNA_DESCRIPTION_PATH,
    EMBY_PORT,
    JELLYFIN_PORT,
    MEDIA_PORTS,
    PLEX_DLNA_PORT,
    PLEX_PORT,
    PROBE_HOST_SUFFIXES,
    PROBE_PATHS,
    PROBE_TIMEOUT,
    SOURCE_PORTSCAN,
    SOURCE_PORTSCAN_DLNA,
)
from .description import async_fetch_description
from .models import Device
from .util import _getLogger, base_url

SERVER_NAMES = {
    PLEX_PORT: "Plex Server",
    PLEX_DLNA_PORT: "Plex DLNA Server",
    JELLYFIN_PORT: "Jellyfin Server",
    EMBY_PORT: "Emby Server",
}


def candidate_endpoints(prefix, hosts=PROBE_HOST_SUFFIXES, ports=MEDIA_PORTS):
    """Return every `(ip, port)` pair to probe for the /24 `prefix`."""
    return [("%s.%d" % (prefix, host), port) for host in hosts for port in ports]


def server_name(ip, port, name=None):
    if name is None:
        name = SERVER_NAMES.get(port, "Media Server")
    return "%s (%s:%d)" % (name, ip, port)


def is_hit(status):
    """
    A 2xx means something is there, and so does a 401: most media servers
    want authentication but still answer.
    """
    return 200 <= status < 300 or status == 401


async def probe_http(session, ip, port, paths=PROBE_PATHS, timeout=PROBE_TIMEOUT,
                     logger=None):
    log = logger or _getLogger("portscan")
    url = "http://%s:%d" % (ip, port)
    for path in paths:
        try:
            async with session.get(
                url + path,
                timeout=aiohttp.ClientTimeout(total=timeout),
                allow_redirects=False,
            ) as resp:
                status = resp.status
        except (aiohttp.ClientConnectorError, asyncio.TimeoutError) as exc:
            # Nothing listening; other paths won't fare better.
            log.debug("No answer from %s: %r", url, exc)
            return None
        except aiohttp.ClientError as exc:
            log.debug("Probe of %s%s failed: %r", url, path, exc)
            continue
        if is_hit(status):
            log.info("Port scan hit %s%s (HTTP %d)", url, path, status)
            return Device(
                server_name(ip, port), url, url, source_tag=SOURCE_PORTSCAN)
        log.debug("Probe of %s%s returned HTTP %d", url, path, status)
    return None


async def probe_dlna(session, ip, port, timeout=PROBE_TIMEOUT, logger=None):
    """
    Fetch the DLNA device description directly so the device comes back with
    its ContentDirectory control URL already resolved.
    """
    log = logger or _getLogger("portscan")
    location = "http://%s:%d%s" % (ip, port, DLNA_DESCRIPTION_PATH)
    desc = await async_fetch_description(session, location, timeout=timeout, logger=log)
    if desc is None:
        return None
    log.info("DLNA description at %s: %r", location, desc.friendly_name)
    return Device(
        server_name(ip, port, desc.friendly_name or None),
        location,
        base_url(location),
        content_directory_url=desc.content_directory_url,
        source_tag=SOURCE_PORTSCAN_DLNA,
    )


async def async_scan(prefix, hosts=PROBE_HOST_SUFFIXES, ports=MEDIA_PORTS,
                     paths=PROBE_PATHS, dlna_ports=(PLEX_DLNA_PORT,),
                     timeout=PROBE_TIMEOUT, session=None, on_device=None,
                     logger=None):
    """
    Probe every candidate endpoint of `prefix` concurrently and return the
    devices found, deduplicated by `(location, base_url)`. `on_device` is
    called for each hit as soon as its probe finishes.
    """
    log = logger or _getLogger("portscan")
    endpoints = candidate_endpoints(prefix, hosts, ports)
    log.info("Port scanning %d endpoints on %s.0/24", len(endpoints), prefix)

    async def probe(ip, port):
        if port in dlna_ports:
            device = await probe_dlna(session, ip, port, timeout=timeout, logger=log)
        else:
            device = await probe_http(
                session, ip, port, paths=paths, timeout=timeout, logger=log)
        if device is not None and on_device is not None:
            on_device(device)
        return device

    own_session = session is None
    if own_session:
        session = aiohttp.ClientSession()
    try:
        results = await asyncio.gather(
            *[probe(ip, port) for ip, port in endpoints], return_exceptions=True)
    finally:
        if own_session:
            await session.close()

    devices = OrderedDict()
    for (ip, port), result in zip(endpoints, results):
        if isinstance(result, Exception):
            log.error("Probe of %s:%d raised %r", ip, port, result)
            continue
        if result is None:
            continue
        devices.setdefault((result.location, result.base_url), result)
    log.info("Port scan complete: %d devices", len(devices))
    return list(devices.values())


def scan(prefix, **kwargs):
    """
    Blocking wrapper around `async_scan()`. Runs its own event loop, so call
    it from a thread that doesn't already have one running.
    """
    return asyncio.run(async_scan(prefix, **kwargs))
