#!/usr/bin/env python
#
# Demonstrate media server discovery, printing progress as it happens.
#

import logging

import upnpbrowser

logging.basicConfig(level=logging.INFO)

# Start a discovery run. SSDP and the port scan run side by side in the
# background; we just read the events as they come in.
manager = upnpbrowser.DiscoveryManager()
stream = manager.start_discovery()

for event in stream:
    if isinstance(event, upnpbrowser.DeviceFound):
        print("found:", event.device.name)
    elif isinstance(event, upnpbrowser.PhaseComplete):
        print("%s done (%d devices)" % (event.phase, event.device_count))
    elif isinstance(event, upnpbrowser.Error):
        print("error:", event.message)
    elif isinstance(event, upnpbrowser.AllComplete):
        print()
        for device in event.devices:
            print(device.name, '@', device.location)
            print("   ", device.content_directory_url or "(no ContentDirectory)")
