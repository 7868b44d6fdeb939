from collections import OrderedDict
from textwrap import dedent
from xml.sax.saxutils import escape

import requests
from lxml import etree

from . import didl
from .const import (
    BROWSE_DIRECT_CHILDREN,
    BROWSE_REQUESTED_COUNT,
    CONTENT_DIRECTORY_SERVICE,
    ROOT_CONTAINER_ID,
    SOAP_TIMEOUT,
)
from .errors import HttpStatusError, NetworkError, ParseError, SoapFault, Timeout
from .util import _getLogger, xml_localname

FAULT_MARKERS = (b"soap:Fault", b"SOAP-ENV:Fault", b"s:Fault")


def _node_text(nodes, name):
    for node in nodes:
        if xml_localname(node.tag) == name:
            return (node.text or "").strip()
    return None


def parse_fault(content):
    """
    Build a `SoapFault` from a fault body, picking up the UPnP error code and
    description when they're there.
    """
    try:
        root = etree.fromstring(content, etree.XMLParser(resolve_entities=False))
    except (etree.XMLSyntaxError, ValueError):
        return SoapFault()
    nodes = list(root.iter())
    code = _node_text(nodes, "errorCode")
    try:
        code = int(code) if code else None
    except ValueError:
        code = None
    return SoapFault(code, _node_text(nodes, "errorDescription") or None)


class SOAP(object):
    """SOAP (Simple Object Access Protocol) implementation
    This class defines a simple SOAP client.
    """
    def __init__(self, url, service_type, timeout=SOAP_TIMEOUT, logger=None):
        self.url = url
        self.service_type = service_type
        self.timeout = timeout
        self._host = self.url.split('//', 1)[1].split('/', 1)[0]  # Get hostname portion of url
        self._log = logger or _getLogger('SOAP')

    def envelope(self, action_name, arg_in=None):
        if arg_in is None:
            arg_in = {}
        arg_values = '\n'.join(
            ['<%s>%s</%s>' % (k, escape(str(v)), k) for k, v in arg_in.items()])
        return dedent("""
            <?xml version="1.0" encoding="utf-8"?>
            <s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
             <s:Body>
              <u:{action_name} xmlns:u="{service_type}">
               {arg_values}
              </u:{action_name}>
             </s:Body>
            </s:Envelope>
            """.format(
                action_name=action_name,
                service_type=self.service_type,
                arg_values=arg_values,
            )).strip()

    def call(self, action_name, arg_in=None, http_auth=None, http_headers=None):
        """
        POST `action_name` with the arguments in `arg_in` and return the out
        arguments as a dict.

        Raises `SoapFault` when the body carries a fault (whatever the HTTP
        status), `HttpStatusError` for any other non-2xx answer, `Timeout` /
        `NetworkError` for transport failures and `ParseError` if the
        response can't be read.
        """
        body = self.envelope(action_name, arg_in)
        headers = {
            'SOAPAction': '"%s#%s"' % (self.service_type, action_name),
            'Host': self._host,
            'Content-Type': 'text/xml; charset=utf-8',
        }
        if http_headers:
            headers.update(http_headers)

        self._log.debug(">> %s %s (%s)", self.url, action_name, arg_in)
        try:
            resp = requests.post(
                self.url,
                body.encode('utf-8'),
                headers=headers,
                auth=http_auth,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise Timeout("%s to %s timed out: %s" % (action_name, self.url, exc))
        except requests.exceptions.RequestException as exc:
            raise NetworkError("%s to %s failed: %s" % (action_name, self.url, exc))

        content = resp.content
        if any(marker in content for marker in FAULT_MARKERS):
            fault = parse_fault(content)
            self._log.debug("<< %s fault (HTTP %s): %s", action_name, resp.status_code, fault)
            raise fault
        if not 200 <= resp.status_code < 300:
            raise HttpStatusError(resp.status_code)

        try:
            contents = etree.fromstring(
                content.strip(), etree.XMLParser(resolve_entities=False))
        except (etree.XMLSyntaxError, ValueError) as exc:
            raise ParseError("Invalid SOAP response to %s: %s" % (action_name, exc))

        params_out = None
        for node in contents.iter():
            if xml_localname(node.tag).lower().endswith('response'):
                params_out = OrderedDict()
                for param_out_node in node:
                    name = xml_localname(param_out_node.tag)
                    if name:
                        params_out[name] = param_out_node.text or ''
                break
        if params_out is None:
            raise ParseError("No %sResponse element in SOAP response" % action_name)
        self._log.debug("<< %s: %s", action_name, list(params_out.keys()))
        return params_out


class ContentDirectory(object):
    """
    Client for the `Browse` action of a UPnP ContentDirectory service at
    `control_url`.
    """

    def __init__(self, control_url, requested_count=BROWSE_REQUESTED_COUNT,
                 timeout=SOAP_TIMEOUT, http_auth=None, http_headers=None,
                 logger=None):
        self.control_url = control_url
        self.requested_count = requested_count
        self.http_auth = http_auth
        self.http_headers = http_headers
        self._log = logger or _getLogger("ContentDirectory")
        self._soap = SOAP(
            control_url, CONTENT_DIRECTORY_SERVICE, timeout=timeout, logger=self._log)

    def __repr__(self):
        return "<ContentDirectory %s>" % self.control_url

    def browse(self, object_id=ROOT_CONTAINER_ID):
        """
        List the direct children of container `object_id`.

        Returns `(entries, containers)` as `didl.parse()` does.
        """
        # Argument order matters to some servers.
        args = OrderedDict([
            ("ObjectID", object_id),
            ("BrowseFlag", BROWSE_DIRECT_CHILDREN),
            ("Filter", "*"),
            ("StartingIndex", 0),
            ("RequestedCount", self.requested_count),
            ("SortCriteria", ""),
        ])
        out = self._soap.call(
            "Browse", args, http_auth=self.http_auth, http_headers=self.http_headers)
        if "Result" not in out:
            raise ParseError("Browse response has no Result element")

        # The parser has already unescaped the embedded DIDL-Lite document.
        result = out["Result"]
        if not result.strip():
            return [], []
        entries, containers = didl.parse(result, logger=self._log)
        self._log.debug(
            "Browse %r: %d entries (returned %s of %s)", object_id, len(entries),
            out.get("NumberReturned"), out.get("TotalMatches"))
        return entries, containers


def browse(control_url, container_id=ROOT_CONTAINER_ID, **kwargs):
    """Convenience wrapper around `ContentDirectory(control_url).browse()`."""
    return ContentDirectory(control_url, **kwargs).browse(container_id)
