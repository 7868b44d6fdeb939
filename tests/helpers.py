import socket
from functools import wraps


class SimpleMock(dict):
    """Case insensitive dict to mock HTTP response."""
    def __init__(self, *args, **kwargs):
        super(SimpleMock, self).__init__(*args, **kwargs)
        for k in list(self.keys()):
            v = super(SimpleMock, self).pop(k)
            self.__setitem__(k, v)

    def __setitem__(self, key, value):
        super(SimpleMock, self).__setitem__(str(key).lower(), value)

    def __getitem__(self, key):
        if key.lower() not in self:
            return None
        return super(SimpleMock, self).__getitem__(key.lower())

    def __setattr__(self, key, value):
        self.__setitem__(key, value)

    def __getattr__(self, key):
        return self.__getitem__(key)


class SimpleMockRequest(SimpleMock):
    """Case insensitive dict interface for an aiohttp Request object."""
    def update(self, request):
        self.clear()
        attributes = [
            "method",
            "host",
            "path",
            "path_qs",
            "query",
        ]
        self.headers = SimpleMock(request.headers)
        self.url = str(request.url)  # match requests interface
        self.url_object = request.url
        for attr in attributes:
            try:
                self[attr] = getattr(request, attr)
            except AttributeError:
                self[attr] = None


class FakeSocket(object):
    """
    Stands in for a UDP socket: `recvfrom()` hands out the queued datagrams
    and then times out like a socket with a read timeout would.
    """
    def __init__(self, datagrams=None, timeout_exc=None):
        self.datagrams = list(datagrams or [])
        self.timeout_exc = timeout_exc or socket.timeout
        self.sent = []
        self.options = []
        self.bound = None
        self.closed = False

    def setsockopt(self, level, option, value):
        self.options.append((level, option, value))

    def settimeout(self, timeout):
        self.timeout = timeout

    def bind(self, address):
        self.bound = address

    def sendto(self, data, address):
        self.sent.append((data, address))

    def recvfrom(self, bufsize):
        if self.datagrams:
            data = self.datagrams.pop(0)
            if isinstance(data, Exception):
                raise data
            if not isinstance(data, bytes):
                data = data.encode("utf-8")
            return data, ("192.168.1.10", 1900)
        raise self.timeout_exc("timed out")

    def close(self):
        self.closed = True


def async_test(f):
    """
    Decorator to create asyncio context for asyncio methods or functions.
    """
    @wraps(f)
    def g(*args, **kwargs):
        args[0].loop.run_until_complete(f(*args, **kwargs))
    return g
