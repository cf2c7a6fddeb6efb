"""
Unit tests for Sans-I/O protocol layer.

These tests verify protocol logic without any HTTP mocking required.
All tests are pure - they test data transformations only.
"""

import base64

import pytest
from lxml import etree

from caldav_ics_sync.lib import error
from caldav_ics_sync.protocol import (
    CalDAVProtocol,
    DAVMethod,
    DAVRequest,
    DAVResponse,
    build_calendar_query_body,
    build_propfind_body,
    parse_calendar_data,
    parse_calendar_hrefs,
)

from fixture_helpers import (
    calendar_data_response,
    collection_response,
    make_calendar,
    make_vevent,
    multistatus,
)

D = "{DAV:}"
C = "{urn:ietf:params:xml:ns:caldav}"


class TestDAVTypes:
    def test_dav_request_immutable(self):
        """DAVRequest should be immutable (frozen dataclass)."""
        request = DAVRequest(method=DAVMethod.GET, url="https://example.com/")
        with pytest.raises(AttributeError):
            request.url = "https://other.com/"

    def test_with_url_keeps_everything_else(self):
        request = DAVRequest(
            method=DAVMethod.PROPFIND,
            url="https://example.com/cal",
            headers={"Depth": "1"},
            body=b"<x/>",
        )
        moved = request.with_url("https://example.com/cal/")
        assert moved.url == "https://example.com/cal/"
        assert moved.method is DAVMethod.PROPFIND
        assert moved.headers == {"Depth": "1"}
        assert moved.body == b"<x/>"
        assert request.url == "https://example.com/cal"

    def test_dav_response_ok(self):
        """ok property should return True for 2xx status codes."""
        assert DAVResponse(status=200, headers={}, body=b"").ok
        assert DAVResponse(status=201, headers={}, body=b"").ok
        assert DAVResponse(status=204, headers={}, body=b"").ok
        assert DAVResponse(status=207, headers={}, body=b"").ok
        assert not DAVResponse(status=301, headers={}, body=b"").ok
        assert not DAVResponse(status=404, headers={}, body=b"").ok
        assert not DAVResponse(status=500, headers={}, body=b"").ok

    def test_dav_response_text_uses_charset(self):
        response = DAVResponse(
            status=200,
            headers={"Content-Type": "text/calendar; charset=iso-8859-1"},
            body="SUMMARY:Caf\xe9".encode("iso-8859-1"),
        )
        assert response.text == "SUMMARY:Caf\xe9"

    def test_dav_response_text_unknown_charset_falls_back_to_utf8(self):
        response = DAVResponse(
            status=200,
            headers={"Content-Type": "text/calendar; charset=bogus"},
            body="Caf\xe9".encode("utf-8"),
        )
        assert response.text == "Caf\xe9"


class TestXMLBuilders:
    def test_propfind_body(self):
        """The discovery PROPFIND asks for exactly the three properties."""
        root = etree.fromstring(build_propfind_body())
        assert root.tag == D + "propfind"
        prop = root.find(D + "prop")
        assert [child.tag for child in prop] == [
            D + "resourcetype",
            D + "displayname",
            C + "supported-calendar-component-set",
        ]

    def test_propfind_body_declares_namespaces(self):
        body = build_propfind_body()
        assert body.startswith(b"<?xml")
        assert b'xmlns:D="DAV:"' in body
        assert b'xmlns:C="urn:ietf:params:xml:ns:caldav"' in body

    def test_calendar_query_body(self):
        root = etree.fromstring(build_calendar_query_body())
        assert root.tag == C + "calendar-query"
        prop = root.find(D + "prop")
        assert [child.tag for child in prop] == [D + "getetag", C + "calendar-data"]
        vcalendar = root.find(C + "filter").find(C + "comp-filter")
        assert vcalendar.get("name") == "VCALENDAR"
        vevent = vcalendar.find(C + "comp-filter")
        assert vevent.get("name") == "VEVENT"
        assert len(vevent) == 0

    def test_bodies_are_stable(self):
        assert build_propfind_body() == build_propfind_body()
        assert build_calendar_query_body() == build_calendar_query_body()


class TestXMLParsers:
    def test_calendar_hrefs_only_calendars(self):
        """K of N responses carry a calendar resourcetype, K hrefs come back."""
        body = multistatus(
            collection_response("/dav/calendars/user/", calendar=False),
            collection_response("/dav/calendars/user/work/"),
            collection_response("/dav/calendars/user/inbox/", calendar=False),
            collection_response("/dav/calendars/user/home/"),
        )
        assert parse_calendar_hrefs(body) == [
            "/dav/calendars/user/work/",
            "/dav/calendars/user/home/",
        ]

    def test_calendar_hrefs_document_order_with_duplicates(self):
        body = multistatus(
            collection_response("/b/"),
            collection_response("/a/"),
            collection_response("/b/"),
        )
        assert parse_calendar_hrefs(body) == ["/b/", "/a/", "/b/"]

    def test_calendar_hrefs_any_prefix(self):
        body = b"""<?xml version="1.0"?>
<multistatus xmlns="DAV:" xmlns:X="urn:ietf:params:xml:ns:caldav">
  <response>
    <href>/cal/</href>
    <propstat>
      <prop><resourcetype><collection/><X:calendar/></resourcetype></prop>
      <status>HTTP/1.1 200 OK</status>
    </propstat>
  </response>
</multistatus>"""
        assert parse_calendar_hrefs(body) == ["/cal/"]

    def test_calendar_element_in_wrong_namespace_is_ignored(self):
        body = b"""<?xml version="1.0"?>
<d:multistatus xmlns:d="DAV:">
  <d:response>
    <d:href>/cal/</d:href>
    <d:propstat><d:prop><d:resourcetype><d:calendar/></d:resourcetype></d:prop></d:propstat>
  </d:response>
</d:multistatus>"""
        assert parse_calendar_hrefs(body) == []

    def test_calendar_hrefs_empty_multistatus(self):
        assert parse_calendar_hrefs(multistatus()) == []

    def test_malformed_xml_raises_parse_error(self):
        with pytest.raises(error.ParseError):
            parse_calendar_hrefs(b"<d:multistatus xmlns:d='DAV:'><d:response>", url="https://x/")

    def test_empty_body_raises_parse_error(self):
        with pytest.raises(error.ParseError):
            parse_calendar_data(b"")

    def test_entities_are_not_expanded(self):
        body = b"""<?xml version="1.0"?>
<!DOCTYPE d [<!ENTITY xxe SYSTEM "file:///etc/passwd">]>
<d:multistatus xmlns:d="DAV:" xmlns:c="urn:ietf:params:xml:ns:caldav">
  <d:response><c:calendar-data>&xxe;</c:calendar-data></d:response>
</d:multistatus>"""
        for document in parse_calendar_data(body):
            assert "root:" not in document

    def test_calendar_data_in_response_order(self):
        first = make_calendar(make_vevent("one"))
        second = make_calendar(make_vevent("two"))
        body = multistatus(
            calendar_data_response("/cal/one.ics", first),
            calendar_data_response("/cal/two.ics", second),
        )
        documents = parse_calendar_data(body)
        assert len(documents) == 2
        assert "UID:one" in documents[0]
        assert "UID:two" in documents[1]

    def test_empty_calendar_data_is_skipped(self):
        body = multistatus(
            "<d:response><d:href>/cal/x.ics</d:href><d:propstat><d:prop>"
            "<cal:calendar-data/></d:prop></d:propstat></d:response>"
        )
        assert parse_calendar_data(body) == []


class TestCalDAVProtocol:
    def test_basic_auth_on_every_request(self):
        protocol = CalDAVProtocol(username="user", password="secret")
        expected = "Basic " + base64.b64encode(b"user:secret").decode()
        for request in (
            protocol.propfind_request("https://cal.example.com/"),
            protocol.calendar_query_request("https://cal.example.com/cal/"),
            protocol.put_request("https://cal.example.com/cal/x.ics", b"data"),
            protocol.get_request("https://cal.example.com/feed.ics"),
        ):
            assert request.headers["Authorization"] == expected

    def test_anonymous_requests_have_no_auth(self):
        request = CalDAVProtocol().get_request("https://example.com/feed.ics")
        assert "Authorization" not in request.headers
        assert request.method is DAVMethod.GET
        assert request.body is None

    def test_propfind_request(self):
        request = CalDAVProtocol("u", "p").propfind_request("https://cal.example.com/dav/")
        assert request.method is DAVMethod.PROPFIND
        assert request.url == "https://cal.example.com/dav/"
        assert request.headers["Depth"] == "1"
        assert request.headers["Content-Type"] == "application/xml; charset=utf-8"
        assert request.body == build_propfind_body()

    def test_calendar_query_request(self):
        request = CalDAVProtocol("u", "p").calendar_query_request("https://cal.example.com/c/")
        assert request.method is DAVMethod.REPORT
        assert request.headers["Depth"] == "1"
        assert request.body == build_calendar_query_body()

    def test_put_request(self):
        request = CalDAVProtocol("u", "p").put_request("https://cal.example.com/c/1.ics", b"ICS")
        assert request.method is DAVMethod.PUT
        assert request.headers["Content-Type"] == "text/calendar; charset=utf-8"
        assert request.body == b"ICS"

    def test_parse_helpers(self):
        protocol = CalDAVProtocol()
        response = DAVResponse(
            status=207, headers={}, body=multistatus(collection_response("/c/"))
        )
        assert protocol.parse_propfind(response) == ["/c/"]
        assert protocol.parse_calendar_query(response) == []
