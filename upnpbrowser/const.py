HTTP_TIMEOUT = 5
SOAP_TIMEOUT = 10

SSDP_TARGET = ("239.255.255.250", 1900)
SSDP_MX = 3
DISCOVER_TIMEOUT = 5
SSDP_READ_TIMEOUT = 0.1
SSDP_BUFFER_SIZE = 4096
SSDP_RESOLVE_WORKERS = 4
ST_ROOTDEVICE = "upnp:rootdevice"
ST_MEDIASERVER = "urn:schemas-upnp-org:device:MediaServer:1"
SEARCH_TARGETS = (ST_ROOTDEVICE, ST_MEDIASERVER)

PLEX_PORT = 32400
PLEX_DLNA_PORT = 32469
JELLYFIN_PORT = 8096
EMBY_PORT = 8920
MEDIA_PORTS = (PLEX_PORT, PLEX_DLNA_PORT, JELLYFIN_PORT, EMBY_PORT)
PROBE_HOST_SUFFIXES = (1, 2, 10, 20, 21, 50, 100, 150, 200, 254)
PROBE_PATHS = ("/", "/status", "/identity")
PROBE_TIMEOUT = 0.5
DLNA_DESCRIPTION_PATH = "/DeviceDescription.xml"

CONTENT_DIRECTORY_SERVICE = "urn:schemas-upnp-org:service:ContentDirectory:1"
BROWSE_DIRECT_CHILDREN = "BrowseDirectChildren"
BROWSE_REQUESTED_COUNT = 100
ROOT_CONTAINER_ID = "0"

EVENT_QUEUE_SIZE = 100

SOURCE_SSDP = "SSDP"
SOURCE_PORTSCAN = "PortScan"
SOURCE_PORTSCAN_DLNA = "PortScan-DLNA"
