import logging
import unittest

from upnpbrowser import util


class TestUtil(unittest.TestCase):
    def test_get_logger(self):
        logger = util._getLogger("ssdp")
        self.assertIs(logger, logging.getLogger("ssdp"))
        self.assertFalse(logger.disabled)

    def test_base_url(self):
        self.assertEqual(
            util.base_url("http://192.168.1.10:32469/DeviceDescription.xml"),
            "http://192.168.1.10:32469")
        self.assertEqual(util.base_url("https://nas.local/desc.xml"), "https://nas.local:443")
        self.assertEqual(util.base_url("not a url"), "not a url")

    def test_xml_localname(self):
        self.assertEqual(util.xml_localname("{http://purl.org/dc/elements/1.1/}title"), "title")
        self.assertEqual(util.xml_localname("dc:title"), "title")
        self.assertEqual(util.xml_localname("res"), "res")
        self.assertEqual(util.xml_localname(None), "")
