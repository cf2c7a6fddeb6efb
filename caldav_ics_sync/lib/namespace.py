#!/usr/bin/env python
from typing import Dict
from typing import Optional

DAV_NS = "DAV:"
CALDAV_NS = "urn:ietf:params:xml:ns:caldav"

## Prefixes used when serializing request bodies.  Responses are matched
## on the expanded {namespace}tag form, so servers may pick any prefix.
nsmap: Dict[str, str] = {
    "D": DAV_NS,
    "C": CALDAV_NS,
}


def ns(prefix: str, tag: Optional[str] = None) -> str:
    """Clark notation for a prefixed name, i.e. ns("C", "calendar")"""
    name = "{%s}" % nsmap[prefix]
    if tag is not None:
        name = "%s%s" % (name, tag)
    return name
