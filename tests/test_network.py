import errno
import unittest

import mock

from upnpbrowser import network, permissions
from upnpbrowser.permissions import PermissionState
from tests.helpers import FakeSocket


class TestNetwork(unittest.TestCase):
    def test_is_private_ipv4(self):
        for ip in ("10.1.2.3", "172.16.0.1", "172.31.255.254", "192.168.1.20"):
            self.assertTrue(network.is_private_ipv4(ip), ip)
        for ip in ("8.8.8.8", "172.32.0.1", "127.0.0.1", "fe80::1", "nonsense"):
            self.assertFalse(network.is_private_ipv4(ip), ip)

    def test_local_network_prefix(self):
        self.assertEqual(
            network.local_network_prefix(["8.8.8.8", "192.168.1.20", "10.0.0.5"]),
            "192.168.1")

    def test_no_private_address(self):
        self.assertIsNone(network.local_network_prefix(["8.8.8.8"]))
        self.assertIsNone(network.local_network_prefix([]))

    @mock.patch("ifaddr.get_adapters")
    def test_get_addresses_ipv4(self, mock_adapters):
        ips = [
            mock.Mock(ip="192.168.1.20", is_IPv4=True),
            mock.Mock(ip="127.0.0.1", is_IPv4=True),
            mock.Mock(ip=("fe80::1", 0, 2), is_IPv4=False),
        ]
        mock_adapters.return_value = [mock.Mock(ips=ips[:2]), mock.Mock(ips=ips[2:])]
        self.assertEqual(network.get_addresses_ipv4(), ["192.168.1.20"])
        self.assertEqual(network.local_network_prefix(), "192.168.1")


class TestPermissions(unittest.TestCase):
    def check(self, sock):
        with mock.patch("upnpbrowser.permissions.socket.socket", return_value=sock):
            return permissions.MulticastPermissionChecker().check()

    def test_granted(self):
        sock = FakeSocket()
        self.assertIs(self.check(sock), PermissionState.GRANTED)
        self.assertEqual(sock.sent, [(b"TEST", ("239.255.255.250", 1900))])
        self.assertTrue(sock.closed)

    def test_denied(self):
        sock = FakeSocket()
        sock.sendto = mock.Mock(side_effect=PermissionError(errno.EPERM, "not permitted"))
        self.assertIs(self.check(sock), PermissionState.DENIED)
        self.assertTrue(sock.closed)

    def test_unknown(self):
        sock = FakeSocket()
        sock.sendto = mock.Mock(side_effect=OSError(errno.ENETUNREACH, "unreachable"))
        self.assertIs(self.check(sock), PermissionState.UNKNOWN)

    def test_static(self):
        checker = permissions.StaticPermissionChecker(PermissionState.DENIED)
        self.assertIs(checker.check(), PermissionState.DENIED)

    def test_default_checker(self):
        with mock.patch("upnpbrowser.permissions.sys.platform", "darwin"):
            self.assertIsInstance(
                permissions.default_permission_checker(),
                permissions.MulticastPermissionChecker)
        with mock.patch("upnpbrowser.permissions.sys.platform", "linux"):
            self.assertIs(
                permissions.default_permission_checker().check(), PermissionState.GRANTED)
