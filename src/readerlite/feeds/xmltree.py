"""XML parser adapter turning raw feed bytes into an attributed node tree."""

import io
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field

from readerlite.errors import InvalidXMLError

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


@dataclass(frozen=True)
class XmlNode:
    """An element with its stripped text, attributes and named children.

    Children are grouped by name and always held as a tuple, so callers
    never need to ask whether an element occurred once or many times.
    """

    name: str
    text: str = ""
    attributes: Mapping[str, str] = field(default_factory=dict)
    children: Mapping[str, tuple["XmlNode", ...]] = field(default_factory=dict)

    def all(self, name: str) -> tuple["XmlNode", ...]:
        """Return every child with the given name (possibly none)."""
        return self.children.get(name, ())

    def first(self, name: str) -> "XmlNode | None":
        """Return the first child with the given name, if any."""
        nodes = self.all(name)
        return nodes[0] if nodes else None

    @property
    def has_children(self) -> bool:
        return bool(self.children)


def parse_xml(content: bytes | str) -> XmlNode:
    """Parse a feed document into an ``XmlNode`` tree.

    Namespaced names keep the prefix the document declared for them
    (``content:encoded``), while the default namespace renders bare
    (``feed`` rather than ``{http://www.w3.org/2005/Atom}feed``).

    Raises:
        InvalidXMLError: If the content is not well-formed XML.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    prefixes: dict[str, str] = {XML_NAMESPACE: "xml"}
    root: ET.Element | None = None
    try:
        for event, item in ET.iterparse(io.BytesIO(content), events=("start-ns", "start")):
            if event == "start-ns":
                prefix, uri = item
                prefixes.setdefault(uri, prefix)
            elif root is None:
                root = item
    except ET.ParseError as e:
        raise InvalidXMLError() from e

    if root is None:
        raise InvalidXMLError()
    return _convert(root, prefixes)


def _qualified(tag: str, prefixes: Mapping[str, str]) -> str:
    if not tag.startswith("{"):
        return tag
    uri, _, local = tag[1:].partition("}")
    prefix = prefixes.get(uri, "")
    return f"{prefix}:{local}" if prefix else local


def _text(element: ET.Element) -> str:
    own = (element.text or "").strip()
    mixed = len(element) > 0 and (
        bool(own) or any((child.tail or "").strip() for child in element)
    )
    # Mixed content such as <title>A <b>B</b> C</title> is flattened to its text.
    if mixed:
        return "".join(element.itertext()).strip()
    return own


def _convert(element: ET.Element, prefixes: Mapping[str, str]) -> XmlNode:
    grouped: dict[str, list[XmlNode]] = {}
    for child in element:
        node = _convert(child, prefixes)
        grouped.setdefault(node.name, []).append(node)

    return XmlNode(
        name=_qualified(element.tag, prefixes),
        text=_text(element),
        attributes={_qualified(k, prefixes): v for k, v in element.attrib.items()},
        children={name: tuple(nodes) for name, nodes in grouped.items()},
    )
