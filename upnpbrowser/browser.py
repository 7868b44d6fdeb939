import threading

import requests

from .const import BROWSE_REQUESTED_COUNT, SOAP_TIMEOUT
from .errors import UPNPError
from .httpbrowse import browse_http_directory
from .pathindex import PathIndex
from .soap import ContentDirectory
from .util import _getLogger


class BrowseSession(object):
    """
    Path based navigation of one device's catalog.

    `browse(path)` resolves `path` to a container ID through the session's
    `PathIndex`, lists it, and teaches the index about the child containers
    it saw. Calls are serialized: a second call waits for the first one.

    Example:

    >>> session = BrowseSession(device)
    >>> entries, error = session.browse([])
    >>> entries, error = session.browse(["Video", "Movies"])
    """

    def __init__(self, device, index=None, requested_count=BROWSE_REQUESTED_COUNT,
                 timeout=SOAP_TIMEOUT, http_auth=None, http_headers=None,
                 logger=None):
        self.device = device
        self.index = index if index is not None else PathIndex()
        self._log = logger or _getLogger("BrowseSession")
        self._lock = threading.Lock()
        self._timeout = timeout
        self._content_directory = None
        if device.content_directory_url:
            self._content_directory = ContentDirectory(
                device.content_directory_url,
                requested_count=requested_count,
                timeout=timeout,
                http_auth=http_auth,
                http_headers=http_headers,
                logger=self._log,
            )

    def __repr__(self):
        return "<BrowseSession %r>" % (self.device,)

    def browse(self, path):
        """
        List the directory at `path` (a sequence of container titles).

        Returns `(entries, error)`: a list of `DirectoryEntry` and None, or an
        empty list and a message describing what went wrong.
        """
        path = list(path)
        with self._lock:
            if self._content_directory is not None:
                return self._browse_content_directory(path)
            return self._browse_http(path)

    def _browse_content_directory(self, path):
        container_id = self.index.resolve(path)
        self._log.debug("Browsing %r as container %r", path, container_id)
        try:
            entries, containers = self._content_directory.browse(container_id)
        except UPNPError as exc:
            self._log.warning("Browse of %r on %s failed: %s", path, self.device.name, exc)
            return [], "UPnP browsing failed: %s" % exc
        for title, child_id in containers:
            self.index.extend(path, title, child_id)
        return [entry.to_directory_entry() for entry in entries], None

    def _browse_http(self, path):
        try:
            entries = browse_http_directory(
                self.device.base_url, path, timeout=self._timeout, logger=self._log)
        except (UPNPError, requests.exceptions.RequestException) as exc:
            self._log.warning(
                "HTTP browse of %r on %s failed: %s", path, self.device.name, exc)
            return [], "HTTP browsing failed: %s" % exc
        return entries, None
