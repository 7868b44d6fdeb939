import errno
import socket
import struct
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

from .const import (
    DISCOVER_TIMEOUT,
    HTTP_TIMEOUT,
    SEARCH_TARGETS,
    SOURCE_SSDP,
    SSDP_BUFFER_SIZE,
    SSDP_MX,
    SSDP_READ_TIMEOUT,
    SSDP_RESOLVE_WORKERS,
    SSDP_TARGET,
)
from .description import resolve_content_directory
from .errors import NetworkError, NoDevicesFound, PermissionDenied
from .models import Device
from .util import _getLogger, base_url

SSDP_OK = "HTTP/1.1 200 OK"


def ssdp_request(ssdp_st, ssdp_mx=SSDP_MX):
    """Return request bytes for given st and mx."""
    return "\r\n".join(
        [
            "M-SEARCH * HTTP/1.1",
            "HOST: {}:{}".format(*SSDP_TARGET),
            'MAN: "ssdp:discover"',
            "ST: {}".format(ssdp_st),
            "MX: {:d}".format(ssdp_mx),
            "",
            "",
        ]
    ).encode("utf-8")


def parse_response(response):
    """
    Return the headers of an SSDP search response as a dict with lower-cased
    keys, or None if it isn't a `200 OK`.
    """
    if not response.startswith(SSDP_OK):
        return None
    headers = {}
    for line in response.splitlines()[1:]:
        line = line.strip()
        if not line or ":" not in line:
            continue
        key, value = line.split(":", 1)
        headers[key.strip().lower()] = value.strip()
    return headers


def friendly_name(usn, device_type):
    """
    Derive a short name from the UUID in `usn`, falling back to the device
    type.
    """
    if usn and "uuid:" in usn:
        uuid = usn[usn.index("uuid:") + len("uuid:"):]
        if "::" in uuid:
            uuid = uuid[:uuid.index("::")]
        return "Device-%s" % uuid[:8]
    return device_type


def device_from_response(response, content_directory_url=None):
    """
    Build a `Device` from an SSDP response. Returns None for anything that
    isn't a `200 OK` carrying a LOCATION header.
    """
    headers = parse_response(response)
    if not headers or not headers.get("location"):
        return None
    location = headers["location"]
    device_type = headers.get("st") or "Unknown"
    server = headers.get("server")
    name = friendly_name(headers.get("usn"), device_type)
    if server:
        display_name = "%s [%s] (%s)" % (name, device_type, server)
    else:
        display_name = "%s [%s]" % (name, device_type)
    return Device(
        display_name,
        location,
        base_url(location),
        content_directory_url=content_directory_url,
        source_tag=SOURCE_SSDP,
    )


def _socket_error(exc, action):
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return PermissionDenied(
            "Local network permission denied while trying to %s: %s" % (action, exc))
    return NetworkError("Network error while trying to %s: %s" % (action, exc))


def _open_socket(read_timeout):
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    except OSError as exc:
        raise _socket_error(exc, "create a UDP socket")
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("", 0))
    except OSError as exc:
        sock.close()
        raise _socket_error(exc, "bind a UDP socket")
    try:
        mreq = struct.pack(
            "4s4s", socket.inet_aton(SSDP_TARGET[0]), socket.inet_aton("0.0.0.0"))
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
        sock.settimeout(read_timeout)
    except OSError as exc:
        sock.close()
        raise _socket_error(exc, "join multicast group %s" % SSDP_TARGET[0])
    return sock


def discover(timeout=DISCOVER_TIMEOUT, search_targets=SEARCH_TARGETS,
             read_timeout=SSDP_READ_TIMEOUT, resolve=True, on_device=None,
             logger=None):
    """
    Search for UPnP devices using SSDP and return a list of `Device`
    instances, one per LOCATION.

    This blocks for the whole `timeout` window, so run it on its own thread.
    When `resolve` is set, each device's description is fetched once, on a
    small worker pool while the window is still open, to find its
    ContentDirectory control URL. `on_device` is called with each device
    once it's complete.

    Raises `PermissionDenied` or `NetworkError` if the socket can't be set
    up, and `NoDevicesFound` if nothing answered.
    """
    log = logger or _getLogger("ssdp")
    sock = _open_socket(read_timeout)
    seen = OrderedDict()
    lookups = {}
    responses = 0
    with ThreadPoolExecutor(
        max_workers=SSDP_RESOLVE_WORKERS, thread_name_prefix="ssdp-resolve"
    ) as pool:
        try:
            for st in search_targets:
                try:
                    sock.sendto(ssdp_request(st), SSDP_TARGET)
                except OSError as exc:
                    raise _socket_error(exc, "send M-SEARCH")
                log.info("Sent M-SEARCH for %s to %s:%s", st, *SSDP_TARGET)

            stop_wait = datetime.now() + timedelta(seconds=timeout)
            while True:
                seconds_left = (stop_wait - datetime.now()).total_seconds()
                if seconds_left <= 0:
                    break
                try:
                    data, address = sock.recvfrom(SSDP_BUFFER_SIZE)
                except socket.timeout:
                    continue
                except OSError as exc:
                    if seen:
                        log.warning("Socket error after %d devices, stopping: %s",
                                    len(seen), exc)
                        break
                    raise _socket_error(exc, "receive SSDP responses")
                responses += 1
                try:
                    response = data.decode("utf-8")
                except UnicodeDecodeError:
                    log.debug("Ignoring invalid unicode response from %s", address)
                    continue

                device = device_from_response(response)
                if device is None:
                    log.debug("Ignoring SSDP response from %s: %r", address, response[:200])
                    continue
                if device.location in seen:
                    continue
                log.debug("SSDP response from %s: %s", address, device.location)
                seen[device.location] = device
                if resolve:
                    lookups[device.location] = pool.submit(
                        resolve_content_directory, device.location,
                        timeout=HTTP_TIMEOUT, logger=log)
        finally:
            sock.close()

        devices = []
        for location, device in seen.items():
            if location in lookups:
                device = device._replace(content_directory_url=lookups[location].result())
            devices.append(device)
            if on_device is not None:
                on_device(device)

    log.info("SSDP discovery complete: %d responses, %d devices",
             responses, len(devices))
    if not devices:
        raise NoDevicesFound("No UPnP devices found on network")
    return devices
