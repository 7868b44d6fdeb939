import ipaddress

import ifaddr

from .util import _getLogger


def get_addresses_ipv4():
    # Get all adapters on current machine
    adapters = ifaddr.get_adapters()
    # Get the ip from the found adapters
    # Ignore localhost und IPv6 addresses
    return sorted(
        set(
            addr.ip
            for iface in adapters
            for addr in iface.ips
            if addr.is_IPv4 and addr.ip != "127.0.0.1"
        )
    )


def is_private_ipv4(ip):
    try:
        address = ipaddress.IPv4Address(ip)
    except ValueError:
        return False
    return any(address in ipaddress.IPv4Network(net)
               for net in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"))


def local_network_prefix(addresses=None, logger=None):
    """
    Return the first three octets (e.g. "192.168.1") of the first private
    IPv4 address on this machine, assuming a /24 network. Returns None if
    there isn't one.
    """
    log = logger or _getLogger("network")
    if addresses is None:
        addresses = get_addresses_ipv4()
    for ip in addresses:
        if is_private_ipv4(ip):
            prefix = ip.rsplit(".", 1)[0]
            log.debug("Using %s.0/24 from interface address %s", prefix, ip)
            return prefix
    log.debug("No private IPv4 address among %s", addresses)
    return None
