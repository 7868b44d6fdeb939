class UPNPError(Exception):
    """
    Exception class for UPnP errors.
    """

    pass


class PermissionDenied(UPNPError):
    """
    The platform refused access to the local network (socket bind or
    multicast group join failed with a permission error).
    """

    pass


class NetworkError(UPNPError):
    """
    A socket or HTTP transport failure which isn't a permission problem.
    """

    pass


class NoDevicesFound(UPNPError):
    """
    Discovery completed without error but nothing answered.
    """

    pass


class ParseError(UPNPError):
    """
    A response or document couldn't be parsed.
    """

    pass


class Timeout(NetworkError):
    """
    A bounded operation ran out of time.
    """

    pass


class HttpStatusError(UPNPError):
    """
    The server answered with a non-2xx HTTP status.
    """

    def __init__(self, status_code, message=None):
        self.status_code = status_code
        if message is None:
            message = "UPnP SOAP request failed with status: %s" % status_code
        super(HttpStatusError, self).__init__(message)


class SoapFault(UPNPError):
    """
    The transport succeeded but the body carries a SOAP fault.
    """

    def __init__(self, error_code=None, error_description=None):
        self.error_code = error_code
        if error_description is None and error_code is not None:
            try:
                error_description = ERR_CODE_DESCRIPTIONS[error_code]
            except KeyError:
                pass
        self.error_description = error_description
        if error_code is None:
            message = "UPnP SOAP fault in response"
        else:
            message = "UPnP SOAP fault in response: %s %s" % (
                error_code, error_description or "")
        super(SoapFault, self).__init__(message.strip())


class ErrorCodeDescriptions(object):
    """
    Lookup of UPnP control error codes. Codes without a specific entry fall
    back to the description of the range they belong to.
    """

    _descriptions = {
        401: "Invalid Action",
        402: "Invalid Args",
        403: "Out of Sync",
        501: "Action Failed",
        600: "Argument Value Invalid",
        601: "Argument Value Out of Range",
        602: "Optional Action Not Implemented",
        603: "Out of Memory",
        604: "Human Intervention Required",
        605: "String Argument Too Long",
        701: "No such object",
        702: "Invalid CurrentTagValue",
        703: "Invalid NewTagValue",
        704: "Required tag",
        705: "Read only tag",
        706: "Parameter Mismatch",
        708: "Unsupported or invalid search criteria",
        709: "Unsupported or invalid sort criteria",
        710: "No such container",
        711: "Restricted object",
        712: "Bad metadata",
        713: "Restricted parent object",
        720: "Cannot process the request",
    }

    _ranges = (
        (606, 612, "These ErrorCodes are reserved for UPnP DeviceSecurity."),
        (613, 699, "Common action errors. Defined by UPnP Forum Technical Committee."),
        (700, 799, "Action-specific errors defined by UPnP Forum working committee."),
        (800, 899, "Action-specific errors for non-standard actions. Defined by UPnP vendor."),
    )

    def __getitem__(self, key):
        if not isinstance(key, int):
            raise KeyError("'key' must be an integer")
        try:
            return self._descriptions[key]
        except KeyError:
            pass
        for low, high, description in self._ranges:
            if low <= key <= high:
                return description
        raise KeyError(key)


ERR_CODE_DESCRIPTIONS = ErrorCodeDescriptions()
