"""
Local network permission checks.

Some platforms (macOS in particular) gate multicast behind a privacy
permission. The discovery code only ever asks a `PermissionChecker` for a
`PermissionState`; which checker is used is decided here.
"""
import enum
import errno
import socket
import struct
import sys

from .const import SSDP_TARGET
from .util import _getLogger


class PermissionState(enum.Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNKNOWN = "unknown"


class PermissionChecker(object):
    def check(self):
        raise NotImplementedError


class StaticPermissionChecker(PermissionChecker):
    """Always answers with the same state."""

    def __init__(self, state=PermissionState.GRANTED):
        self.state = state

    def check(self):
        return self.state


class MulticastPermissionChecker(PermissionChecker):
    """
    Find out whether multicast is allowed by joining the SSDP group and
    sending a throwaway packet.
    """

    def __init__(self, logger=None):
        self._log = logger or _getLogger("permissions")

    def check(self):
        sock = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
            sock.settimeout(0.5)
            sock.bind(("", 0))
            mreq = struct.pack(
                "4s4s", socket.inet_aton(SSDP_TARGET[0]), socket.inet_aton("0.0.0.0"))
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
            sock.sendto(b"TEST", SSDP_TARGET)
        except OSError as exc:
            if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
                self._log.warning("Multicast test denied: %s", exc)
                return PermissionState.DENIED
            self._log.debug("Multicast test failed: %s", exc)
            return PermissionState.UNKNOWN
        finally:
            if sock is not None:
                sock.close()
        return PermissionState.GRANTED


def default_permission_checker():
    if sys.platform == "darwin":
        return MulticastPermissionChecker()
    return StaticPermissionChecker(PermissionState.GRANTED)
