"""
Pure functions for parsing CalDAV XML responses.

All functions in this module take XML bytes in and return plain data
out, with no side effects or I/O.
"""

import logging

from lxml import etree
from lxml.etree import _Element

from caldav_ics_sync.elements import cdav, dav
from caldav_ics_sync.lib import error

log = logging.getLogger(__name__)


def _parse_xml(body: bytes, url: str | None = None) -> _Element:
    """
    Parse a response body, turning syntax errors into ParseError.

    Entity resolution and network access are disabled, the bodies come
    from servers we only partially trust.
    """
    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
    )
    try:
        tree = etree.fromstring(body, parser)
    except (etree.XMLSyntaxError, ValueError) as err:
        raise error.ParseError(url, "invalid XML in response: %s" % err) from err
    if tree is None:
        raise error.ParseError(url, "empty XML document")
    return tree


def _is_calendar(response: _Element) -> bool:
    for propstat in response.iterchildren(dav.PropStat.tag):
        for prop in propstat.iterchildren(dav.Prop.tag):
            for resourcetype in prop.iterchildren(dav.ResourceType.tag):
                if resourcetype.find(cdav.Calendar.tag) is not None:
                    return True
    return False


def parse_calendar_hrefs(
    body: bytes,
    url: str | None = None,
) -> list[str]:
    """
    Parse a PROPFIND multistatus and return the hrefs of calendar collections.

    A response counts as a calendar when the resourcetype in one of its
    propstats contains a CalDAV calendar element.  Hrefs come back in
    document order, duplicates included.

    Args:
        body: Raw XML response bytes
        url: Requested URL, used for error messages

    Returns:
        List of href texts

    Raises:
        ParseError: If body is not valid XML
    """
    tree = _parse_xml(body, url)

    hrefs: list[str] = []
    for response in tree.iter(dav.Response.tag):
        href = None
        for child in response.iterchildren(dav.Href.tag):
            href = child.text
        if href is None:
            if _is_calendar(response):
                error.weirdness("calendar response without href", url)
            continue
        if _is_calendar(response):
            hrefs.append(href.strip())

    if tree.tag != dav.MultiStatus.tag:
        error.weirdness("expected a multistatus document, got %s" % tree.tag, url)
    return hrefs


def parse_calendar_data(
    body: bytes,
    url: str | None = None,
) -> list[str]:
    """
    Parse a calendar-query REPORT response.

    Returns the text of every calendar-data element, one raw ics
    document each, in the order the server sent them.  Empty
    calendar-data elements are skipped.

    Raises:
        ParseError: If body is not valid XML
    """
    tree = _parse_xml(body, url)

    documents: list[str] = []
    for elem in tree.iter(cdav.CalendarData.tag):
        if elem.text:
            documents.append(elem.text)
    log.debug("%i calendar objects in REPORT response from %s", len(documents), url)
    return documents
