"""
Discovery orchestration.

`DiscoveryManager.start_discovery()` runs the SSDP probe and the port scan
side by side on worker threads and reports progress through an
`EventStream`:

    Started, [Error], DeviceFound..., PhaseComplete x2, AllComplete

`DeviceFound` events are a preview and may contain duplicates; the device
list carried by the single `AllComplete` is the deduplicated result.
"""
import threading
import time
from collections import OrderedDict, deque
from concurrent.futures import ThreadPoolExecutor, as_completed

from . import portscan, ssdp
from .const import EVENT_QUEUE_SIZE
from .errors import NetworkError, NoDevicesFound, UPNPError
from .models import AllComplete, DeviceFound, Error, PhaseComplete, Started
from .network import local_network_prefix
from .permissions import PermissionState, default_permission_checker
from .util import _getLogger

PHASE_SSDP = "ssdp"
PHASE_PORTSCAN = "portscan"
PHASE_LABELS = {
    PHASE_SSDP: "SSDP discovery",
    PHASE_PORTSCAN: "Port scan",
}


class EventStream(object):
    """
    Bounded, non-blocking channel of `ProgressEvent`s for one discovery run.

    Producers never wait: when `maxsize` events are pending, new ones are
    dropped. The closing `AllComplete` is kept aside and handed out once
    everything queued before it has been read, so it can't be lost.
    """

    def __init__(self, maxsize=EVENT_QUEUE_SIZE, logger=None):
        self.maxsize = maxsize
        self.dropped = 0
        self.devices = None
        self._log = logger or _getLogger("EventStream")
        self._events = deque()
        self._final = None
        self._final_delivered = False
        self._cond = threading.Condition()

    def __iter__(self):
        """Yield events until (and including) `AllComplete`."""
        while True:
            event = self.get()
            if event is None:
                return
            yield event
            if isinstance(event, AllComplete):
                return

    @property
    def finished(self):
        return self._final is not None

    def put(self, event):
        with self._cond:
            if len(self._events) >= self.maxsize:
                self.dropped += 1
                self._log.debug("Event queue full, dropping %r", event)
                return False
            self._events.append(event)
            self._cond.notify_all()
            return True

    def finish(self, devices):
        with self._cond:
            if self._final is not None:
                return
            self.devices = list(devices)
            self._final = AllComplete(self.devices)
            self._cond.notify_all()

    def _ready(self):
        return bool(self._events) or self._final is not None

    def get(self, timeout=None):
        """
        Return the next event, waiting up to `timeout` seconds (forever if
        None). Returns None on timeout and once `AllComplete` has been read.
        """
        with self._cond:
            self._cond.wait_for(self._ready, timeout)
            if self._events:
                return self._events.popleft()
            if self._final is not None and not self._final_delivered:
                self._final_delivered = True
                return self._final
            return None

    def poll(self):
        """Non-blocking `get()`."""
        return self.get(timeout=0)


def merge_devices(devices):
    """
    Deduplicate `devices` by location, keeping the first record seen. A later
    duplicate only contributes a ContentDirectory URL the first one lacks.
    """
    merged = OrderedDict()
    for device in devices:
        existing = merged.get(device.location)
        if existing is None:
            merged[device.location] = device
        elif not existing.content_directory_url and device.content_directory_url:
            merged[device.location] = existing._replace(
                content_directory_url=device.content_directory_url)
    return list(merged.values())


class DiscoveryManager(object):
    """
    Runs discovery in the background. Only one run is active at a time:
    calling `start_discovery()` while one is in progress returns its stream.

    `multicast_probe` and `port_scan_probe` are callables taking an
    `on_device` callback and returning a list of `Device`; they default to
    `ssdp.discover()` and `portscan.scan()` on the local /24.
    """

    def __init__(self, multicast_probe=None, port_scan_probe=None,
                 permission_checker=None, network_prefix=None,
                 queue_size=EVENT_QUEUE_SIZE, logger=None):
        self._log = logger or _getLogger("DiscoveryManager")
        self._probes = OrderedDict([
            (PHASE_SSDP, multicast_probe or self._multicast_probe),
            (PHASE_PORTSCAN, port_scan_probe or self._port_scan_probe),
        ])
        self._permission_checker = permission_checker or default_permission_checker()
        self._network_prefix = network_prefix
        self._queue_size = queue_size
        self._lock = threading.Lock()
        self._stream = None
        self._thread = None

    @property
    def running(self):
        with self._lock:
            return self._stream is not None and not self._stream.finished

    def _multicast_probe(self, on_device):
        return ssdp.discover(on_device=on_device, logger=self._log)

    def _port_scan_probe(self, on_device):
        prefix = self._network_prefix or local_network_prefix(logger=self._log)
        if prefix is None:
            raise NetworkError("No private IPv4 network found to scan")
        return portscan.scan(prefix, on_device=on_device, logger=self._log)

    def start_discovery(self):
        """
        Start a discovery run in the background and return its `EventStream`.
        """
        with self._lock:
            if self._stream is not None and not self._stream.finished:
                self._log.debug("Discovery already running")
                return self._stream
            stream = EventStream(self._queue_size, logger=self._log)
            self._stream = stream
            self._thread = threading.Thread(
                target=self._run, args=(stream,), name="discovery")
            self._thread.daemon = True
            self._thread.start()
            return stream

    def join(self, timeout=None):
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _check_permission(self, stream):
        try:
            state = self._permission_checker.check()
        except Exception:
            self._log.exception("Permission check failed")
            state = PermissionState.UNKNOWN
        if state is PermissionState.DENIED:
            self._log.warning("Local network permission denied")
            stream.put(Error(
                "Local network permission denied. SSDP discovery will probably "
                "find nothing; continuing with port scan."))
        elif state is PermissionState.UNKNOWN:
            stream.put(Error("Could not determine local network permission state"))

    def _run_probe(self, phase, probe, on_device, stream):
        label = PHASE_LABELS.get(phase, phase)
        try:
            devices = probe(on_device)
        except NoDevicesFound as exc:
            self._log.info("%s: %s", label, exc)
            stream.put(Error("%s failed: %s" % (label, exc)))
            return []
        except UPNPError as exc:
            self._log.warning("%s failed: %s", label, exc)
            stream.put(Error("%s failed: %s" % (label, exc)))
            return []
        except Exception as exc:
            self._log.exception("%s crashed", label)
            stream.put(Error("%s failed: %s" % (label, exc)))
            return []
        return list(devices or [])

    def _run(self, stream):
        stream.put(Started())
        first_seen = {}
        seen_lock = threading.Lock()
        found = []

        def on_device(device):
            with seen_lock:
                first_seen.setdefault(device.location, len(first_seen))
            stream.put(DeviceFound(device))

        try:
            self._check_permission(stream)
            with ThreadPoolExecutor(
                max_workers=len(self._probes), thread_name_prefix="discovery-probe"
            ) as pool:
                futures = OrderedDict(
                    (pool.submit(self._run_probe, phase, probe, on_device, stream), phase)
                    for phase, probe in self._probes.items()
                )
                for future in as_completed(futures):
                    phase = futures[future]
                    devices = future.result()
                    self._log.info(
                        "%s complete: %d devices", PHASE_LABELS.get(phase, phase),
                        len(devices))
                    found.extend(devices)
                    stream.put(PhaseComplete(phase, len(devices)))
        finally:
            unseen = len(first_seen)
            found.sort(key=lambda device: first_seen.get(device.location, unseen))
            devices = merge_devices(found)
            self._log.info("Discovery complete: %d devices", len(devices))
            stream.finish(devices)


def discover_devices(timeout=15, manager=None):
    """
    Run a discovery and block until it completes or `timeout` seconds pass.
    Returns `(devices, error_messages)`.
    """
    manager = manager or DiscoveryManager()
    stream = manager.start_discovery()
    found = OrderedDict()
    errors = []
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        event = stream.get(timeout=remaining)
        if event is None:
            break
        if isinstance(event, DeviceFound):
            found.setdefault(event.device.location, event.device)
        elif isinstance(event, Error):
            errors.append(event.message)
        elif isinstance(event, AllComplete):
            return event.devices, errors
    if not found and not errors:
        errors.append("Discovery timed out")
    return list(found.values()), errors
