from collections import namedtuple


_DeviceBase = namedtuple(
    "_DeviceBase",
    ["name", "location", "base_url", "content_directory_url", "source_tag"],
)


class Device(_DeviceBase):
    """
    A media server found during discovery. `location` is either the URL of the
    device description document (SSDP, DLNA) or the probed endpoint (port
    scan), and is what devices are deduplicated by. Instances are immutable;
    use `_replace()` to derive a copy.
    """

    __slots__ = ()

    def __new__(cls, name, location, base_url, content_directory_url=None,
                source_tag=None):
        return super(Device, cls).__new__(
            cls, name, location, base_url, content_directory_url, source_tag)

    def __repr__(self):
        return "<Device '%s' at %s>" % (self.name, self.location)

    @property
    def browsable(self):
        return bool(self.content_directory_url)


FileMetadata = namedtuple("FileMetadata", ["size", "duration", "format"])


class DirectoryEntry(object):
    """
    One line of a directory listing handed to the UI. `metadata` is only set
    for non-containers.
    """

    def __init__(self, name, is_container, resource_url=None, metadata=None):
        self.name = name
        self.is_container = is_container
        self.resource_url = resource_url
        self.metadata = None if is_container else metadata

    def __repr__(self):
        kind = "container" if self.is_container else "item"
        return "<DirectoryEntry %s '%s'>" % (kind, self.name)

    def __eq__(self, other):
        if not isinstance(other, DirectoryEntry):
            return NotImplemented
        return (self.name, self.is_container, self.resource_url, self.metadata) == (
            other.name, other.is_container, other.resource_url, other.metadata)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None


class DidlEntry(object):
    """
    A `<container>` or `<item>` read from a DIDL-Lite document.
    """

    def __init__(self, id, is_container, title="", resource_url=None,
                 size=None, duration=None, format=None):
        self.id = id
        self.is_container = is_container
        self.title = title
        self.resource_url = resource_url
        self.size = size
        self.duration = duration
        self.format = format

    def __repr__(self):
        kind = "container" if self.is_container else "item"
        return "<DidlEntry %s id=%r title=%r>" % (kind, self.id, self.title)

    def to_directory_entry(self):
        if self.is_container:
            return DirectoryEntry(self.title, True)
        return DirectoryEntry(
            self.title,
            False,
            resource_url=self.resource_url,
            metadata=FileMetadata(self.size, self.duration, self.format),
        )


class ProgressEvent(object):
    """Base class of everything a discovery run reports."""

    def __repr__(self):
        return "<%s>" % self.__class__.__name__


class Started(ProgressEvent):
    pass


class DeviceFound(ProgressEvent):
    def __init__(self, device):
        self.device = device

    def __repr__(self):
        return "<DeviceFound %r>" % (self.device,)


class PhaseComplete(ProgressEvent):
    def __init__(self, phase, device_count=0):
        self.phase = phase
        self.device_count = device_count

    def __repr__(self):
        return "<PhaseComplete %s (%d devices)>" % (self.phase, self.device_count)


class Error(ProgressEvent):
    def __init__(self, message):
        self.message = message

    def __repr__(self):
        return "<Error %r>" % self.message


class AllComplete(ProgressEvent):
    def __init__(self, devices):
        self.devices = list(devices)

    def __repr__(self):
        return "<AllComplete (%d devices)>" % len(self.devices)
