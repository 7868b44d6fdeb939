import logging

from requests.compat import urlparse


def _getLogger(name):
    """
    Retrieve the logger for component `name`. No handlers are installed here;
    applications configure logging themselves.
    """
    return logging.getLogger(name)


def base_url(location):
    """
    Return the `scheme://host:port` portion of `location`, making the default
    port explicit. Locations which can't be parsed are returned unchanged.
    """
    parsed = urlparse(location)
    if not parsed.scheme or not parsed.hostname:
        return location
    port = parsed.port
    if port is None:
        port = 443 if parsed.scheme == "https" else 80
    return "%s://%s:%d" % (parsed.scheme, parsed.hostname, port)


def xml_localname(tag):
    """
    Strip the `{namespace}` lxml puts on an element tag, or a bare `prefix:`
    left over when the prefix was never declared.
    """
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1].rsplit(":", 1)[-1]
