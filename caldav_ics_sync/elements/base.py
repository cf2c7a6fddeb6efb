#!/usr/bin/env python
from collections.abc import Iterable
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from lxml import etree
from lxml.etree import _Element

from caldav_ics_sync.lib.namespace import nsmap


class BaseElement:
    """
    Builder for one XML element of a request body.  Children are
    attached with ``+``::

        dav.Propfind() + (dav.Prop() + [dav.ResourceType(), dav.DisplayName()])
    """

    tag: ClassVar[Optional[str]] = None

    def __init__(self, name: Optional[str] = None, value: Optional[str] = None) -> None:
        self.children: List["BaseElement"] = []
        self.attributes: Dict[str, str] = {}
        self.value = value
        if name is not None:
            self.attributes["name"] = name

    def __add__(
        self, other: Union["BaseElement", Iterable["BaseElement"]]
    ) -> "BaseElement":
        return self.append(other)

    def __str__(self) -> str:
        return self.tobytes().decode("utf-8")

    def tobytes(self) -> bytes:
        return etree.tostring(
            self.xmlelement(), encoding="utf-8", xml_declaration=True
        )

    def xmlelement(self) -> _Element:
        if self.tag is None:
            raise ValueError("Unexpected value None for self.tag")

        root = etree.Element(self.tag, nsmap=nsmap)
        if self.value is not None:
            root.text = self.value
        for k, v in self.attributes.items():
            root.set(k, v)
        for c in self.children:
            root.append(c.xmlelement())
        return root

    def append(self, element: Union["BaseElement", Iterable["BaseElement"]]) -> "BaseElement":
        if isinstance(element, Iterable):
            self.children.extend(element)
        else:
            self.children.append(element)
        return self


class NamedBaseElement(BaseElement):
    def __init__(self, name: str) -> None:
        super(NamedBaseElement, self).__init__(name=name)


class ValuedBaseElement(BaseElement):
    def __init__(self, value: Optional[str] = None) -> None:
        super(ValuedBaseElement, self).__init__(value=value)
