#!/usr/bin/env python
#
# Walk the catalog of the first browsable media server found, two levels deep.
#

import sys

import upnpbrowser

devices, errors = upnpbrowser.discover_devices()
for message in errors:
    print("warning:", message)

servers = [device for device in devices if device.browsable]
if not servers:
    print("No browsable media servers discovered on your network.")
    sys.exit(1)

session = upnpbrowser.BrowseSession(servers[0])
print(session.device.name)

# Paths are lists of container titles. The session remembers the container
# IDs it has seen, so a folder has to be listed before its children can be.
entries, error = session.browse([])
if error:
    print(error)
    sys.exit(1)

for entry in entries:
    if not entry.is_container:
        print("   %s" % entry.name)
        continue
    print("   %s/" % entry.name)
    children, error = session.browse([entry.name])
    for child in children:
        if child.is_container:
            print("      %s/" % child.name)
        else:
            size = child.metadata.size if child.metadata else None
            print("      %s (%s bytes) %s" % (child.name, size, child.resource_url))
