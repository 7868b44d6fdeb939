import errno
import socket
import time
import unittest

import mock

import upnpbrowser as upnp
from upnpbrowser import ssdp
from tests.const import (
    SSDP_NOTIFY,
    SSDP_RESPONSE,
    SSDP_RESPONSE_NO_LOCATION,
    SSDP_RESPONSE_OTHER_USN,
)
from tests.helpers import FakeSocket

LOCATION = "http://192.168.1.10:32469/DeviceDescription.xml"
OTHER_LOCATION = "http://192.168.1.30:8200/rootDesc.xml"
SSDP_RESPONSE_OTHER_LOCATION = SSDP_RESPONSE.replace(LOCATION, OTHER_LOCATION)


class TestSSDPMessages(unittest.TestCase):
    def test_request_format(self):
        """
        M-SEARCH requests should be byte for byte what devices expect.
        """
        self.assertEqual(
            ssdp.ssdp_request("upnp:rootdevice"),
            b'M-SEARCH * HTTP/1.1\r\n'
            b'HOST: 239.255.255.250:1900\r\n'
            b'MAN: "ssdp:discover"\r\n'
            b'ST: upnp:rootdevice\r\n'
            b'MX: 3\r\n\r\n'
        )

    def test_parse_response_headers_case_insensitive(self):
        headers = ssdp.parse_response(SSDP_RESPONSE_OTHER_USN)
        self.assertEqual(headers["location"], LOCATION)
        self.assertEqual(headers["st"], "upnp:rootdevice")

    def test_parse_response_ignores_non_200(self):
        self.assertIsNone(ssdp.parse_response(SSDP_NOTIFY))
        self.assertIsNone(ssdp.parse_response("HTTP/1.1 404 Not Found\r\n\r\n"))

    def test_device_from_response(self):
        device = ssdp.device_from_response(SSDP_RESPONSE)
        self.assertEqual(device.location, LOCATION)
        self.assertEqual(device.base_url, "http://192.168.1.10:32469")
        self.assertEqual(
            device.name,
            "Device-abcdef12 [urn:schemas-upnp-org:device:MediaServer:1] "
            "(Linux/5.10 UPnP/1.0 Plex/1.40)")
        self.assertEqual(device.source_tag, "SSDP")
        self.assertIsNone(device.content_directory_url)

    def test_device_from_response_without_location(self):
        self.assertIsNone(ssdp.device_from_response(SSDP_RESPONSE_NO_LOCATION))

    def test_friendly_name_falls_back_to_device_type(self):
        self.assertEqual(ssdp.friendly_name(None, "upnp:rootdevice"), "upnp:rootdevice")
        self.assertEqual(
            ssdp.friendly_name("RINCON_000E58::upnp:rootdevice", "Unknown"), "Unknown")
        self.assertEqual(ssdp.friendly_name("uuid:1234", "Unknown"), "Device-1234")

    def test_missing_st_and_server(self):
        device = ssdp.device_from_response(
            "HTTP/1.1 200 OK\r\nLOCATION: http://10.0.0.5/desc.xml\r\n\r\n")
        self.assertEqual(device.name, "Unknown [Unknown]")
        self.assertEqual(device.base_url, "http://10.0.0.5:80")


class TestSSDPDiscover(unittest.TestCase):
    def discover(self, sock, **kwargs):
        kwargs.setdefault("timeout", 0.2)
        kwargs.setdefault("resolve", False)
        with mock.patch("upnpbrowser.ssdp.socket.socket", return_value=sock):
            return ssdp.discover(**kwargs)

    def test_sends_both_searches(self):
        sock = FakeSocket([SSDP_RESPONSE])
        self.discover(sock)
        self.assertEqual([address for _, address in sock.sent],
                         [("239.255.255.250", 1900)] * 2)
        self.assertIn(b"ST: upnp:rootdevice\r\n", sock.sent[0][0])
        self.assertIn(b"ST: urn:schemas-upnp-org:device:MediaServer:1\r\n", sock.sent[1][0])
        self.assertTrue(sock.closed)

    def test_joins_multicast_group(self):
        sock = FakeSocket([SSDP_RESPONSE])
        self.discover(sock)
        options = [option for _, option, _ in sock.options]
        self.assertIn(socket.IP_ADD_MEMBERSHIP, options)
        self.assertEqual(sock.timeout, 0.1)

    def test_same_location_different_usn(self):
        """
        Two responses for the same LOCATION should produce a single device.
        """
        sock = FakeSocket([SSDP_RESPONSE, SSDP_RESPONSE_OTHER_USN, SSDP_RESPONSE])
        devices = self.discover(sock)
        self.assertEqual(len(devices), 1)
        self.assertEqual(devices[0].location, LOCATION)
        self.assertTrue(devices[0].name.startswith("Device-abcdef12"))

    def test_discards_unusable_responses(self):
        sock = FakeSocket([
            SSDP_NOTIFY, SSDP_RESPONSE_NO_LOCATION, b"\xff\xfe\xfa", SSDP_RESPONSE])
        devices = self.discover(sock)
        self.assertEqual([d.location for d in devices], [LOCATION])

    def test_on_device_called_once_per_location(self):
        sock = FakeSocket([SSDP_RESPONSE, SSDP_RESPONSE_OTHER_USN])
        found = []
        self.discover(sock, on_device=found.append)
        self.assertEqual(len(found), 1)

    @mock.patch("upnpbrowser.ssdp.resolve_content_directory",
                return_value="http://192.168.1.10:32469/ContentDirectory/control")
    def test_resolves_content_directory_once(self, mock_resolve):
        sock = FakeSocket([SSDP_RESPONSE, SSDP_RESPONSE_OTHER_USN])
        devices = self.discover(sock, resolve=True)
        self.assertEqual(mock_resolve.call_count, 1)
        self.assertEqual(mock_resolve.call_args[0][0], LOCATION)
        self.assertEqual(
            devices[0].content_directory_url,
            "http://192.168.1.10:32469/ContentDirectory/control")

    def test_no_devices_found(self):
        with self.assertRaises(upnp.NoDevicesFound):
            self.discover(FakeSocket())

    def test_permission_denied_on_socket(self):
        with mock.patch("upnpbrowser.ssdp.socket.socket",
                        side_effect=PermissionError(errno.EPERM, "Operation not permitted")):
            with self.assertRaises(upnp.PermissionDenied):
                ssdp.discover(timeout=0.1, resolve=False)

    def test_permission_denied_on_multicast_join(self):
        sock = FakeSocket()

        def setsockopt(level, option, value):
            if option == socket.IP_ADD_MEMBERSHIP:
                raise OSError(errno.EACCES, "Permission denied")

        sock.setsockopt = setsockopt
        with self.assertRaises(upnp.PermissionDenied):
            self.discover(sock)
        self.assertTrue(sock.closed)

    def test_other_socket_error_is_network_error(self):
        sock = FakeSocket()
        sock.bind = mock.Mock(side_effect=OSError(errno.EADDRINUSE, "Address in use"))
        with self.assertRaises(upnp.NetworkError) as ctx:
            self.discover(sock)
        self.assertNotIsInstance(ctx.exception, upnp.PermissionDenied)

    def test_receive_error_after_devices_keeps_them(self):
        sock = FakeSocket([SSDP_RESPONSE, OSError(errno.ENETDOWN, "Network is down")])
        devices = self.discover(sock)
        self.assertEqual(len(devices), 1)

    def test_receive_error_without_devices(self):
        sock = FakeSocket([OSError(errno.ENETDOWN, "Network is down")])
        with self.assertRaises(upnp.NetworkError):
            self.discover(sock)

    def test_slow_description_does_not_lose_devices(self):
        """
        Every device answering within the window is kept, even when fetching
        a description takes longer than the window itself.
        """
        def slow_resolve(location, **kwargs):
            time.sleep(0.3)
            return location.rsplit("/", 1)[0] + "/ctl"

        sock = FakeSocket([SSDP_RESPONSE, SSDP_RESPONSE_OTHER_LOCATION])
        found = []
        with mock.patch("upnpbrowser.ssdp.resolve_content_directory",
                        side_effect=slow_resolve) as mock_resolve:
            devices = self.discover(sock, resolve=True, on_device=found.append)
        self.assertEqual(sock.datagrams, [])
        self.assertEqual(mock_resolve.call_count, 2)
        self.assertEqual([d.location for d in devices], [LOCATION, OTHER_LOCATION])
        self.assertEqual(
            [d.content_directory_url for d in devices],
            ["http://192.168.1.10:32469/ctl", "http://192.168.1.30:8200/ctl"])
        self.assertEqual(found, devices)
