# Copyright (c) 2012-2016, Ferry Boender <ferry.boender@gmail.com>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
This module finds UPnP/DLNA media servers on the local network and lets you
browse their content catalogs. It implements SSDP (Simple Service Discovery
Protocol) discovery, a port scan fallback for servers that don't take part in
SSDP, and a minimal SOAP client for the ContentDirectory `Browse` action.

The usual flow for working with media servers is:

- Discover servers.

  `DiscoveryManager.start_discovery()` sends SSDP M-SEARCH requests and, at
  the same time, probes a few likely addresses of the local /24 on the well
  known Plex, Jellyfin and Emby ports. Progress is reported through an
  `EventStream`; the final `AllComplete` event carries the list of `Device`
  instances, one per location.

- Browse a server.

  A `BrowseSession` is created for a `Device`. `browse(path)` takes a list
  of container titles ([] is the root), asks the server's ContentDirectory
  service for the children of the matching container and returns a list of
  `DirectoryEntry` instances. The session remembers the container IDs it
  has seen so deeper paths can be resolved later.

The following example lists the top level of every server found:

------------------------------------------------------------------------------
import upnpbrowser

devices, errors = upnpbrowser.discover_devices()
for device in devices:
    print("%s (%s)" % (device.name, device.location))
    entries, error = upnpbrowser.BrowseSession(device).browse([])
    for entry in entries:
        print("   %s%s" % (entry.name, "/" if entry.is_container else ""))
------------------------------------------------------------------------------

Useful Links:

* http://upnp.org/specs/arch/UPnP-arch-DeviceArchitecture-v1.1.pdf
* http://upnp.org/specs/av/UPnP-av-ContentDirectory-v1-Service.pdf
"""
from upnpbrowser import (  # noqa: F401
    const, description, didl, discovery, errors, httpbrowse, models, network,
    pathindex, permissions, portscan, soap, ssdp, util)
from .browser import BrowseSession
from .discovery import DiscoveryManager, EventStream, discover_devices
from .errors import (
    UPNPError, PermissionDenied, NetworkError, NoDevicesFound, ParseError, Timeout,
    SoapFault, HttpStatusError)
from .models import (
    Device, DirectoryEntry, FileMetadata, DidlEntry, ProgressEvent, Started, DeviceFound,
    PhaseComplete, Error, AllComplete)
from .pathindex import PathIndex

__all__ = [
    "BrowseSession", "DiscoveryManager", "EventStream", "discover_devices", "PathIndex",
    "Device", "DirectoryEntry", "FileMetadata", "DidlEntry", "ProgressEvent", "Started",
    "DeviceFound", "PhaseComplete", "Error", "AllComplete", "UPNPError", "PermissionDenied",
    "NetworkError", "NoDevicesFound", "ParseError", "Timeout", "SoapFault", "HttpStatusError",
]
