"""Field accessors over XML nodes.

Syndication producers disagree about the shape of the same field: a
``<guid>`` may be bare text or carry ``isPermaLink``, an Atom ``<link>`` may
hold its URL as text or in ``href``. Each node is classified into one of
three shapes and every lookup goes through a resolver that handles all of
them.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from readerlite.feeds.xmltree import XmlNode


@dataclass(frozen=True)
class Scalar:
    """Plain element: text only, no attributes or child elements."""

    value: str


@dataclass(frozen=True)
class Text:
    """Element with attributes and text content."""

    value: str
    attributes: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Attributed:
    """Element with attributes and/or child elements but no text."""

    attributes: Mapping[str, str] = field(default_factory=dict)


FieldValue = Scalar | Text | Attributed


def classify(node: XmlNode) -> FieldValue:
    """Classify a node into its field shape."""
    if node.attributes:
        if node.text:
            return Text(node.text, node.attributes)
        return Attributed(node.attributes)
    if node.has_children and not node.text:
        return Attributed()
    return Scalar(node.text)


def text_of(value: FieldValue) -> str:
    """Text content of a field; attribute-only fields have none."""
    if isinstance(value, (Scalar, Text)):
        return value.value
    return ""


def href_of(value: FieldValue) -> str:
    """URL of a link field: the ``href`` attribute, else bare text."""
    if isinstance(value, Scalar):
        return value.value
    return value.attributes.get("href", "")


Resolver = Callable[[FieldValue], str]


def resolve(node: XmlNode | None, resolver: Resolver = text_of) -> str:
    """Resolve one node to a string, degrading to ``""`` on anything odd."""
    if node is None:
        return ""
    try:
        value = resolver(classify(node))
    except (AttributeError, TypeError, ValueError):
        return ""
    return value if isinstance(value, str) else ""


def first_non_empty(parent: XmlNode, *names: str, resolver: Resolver = text_of) -> str:
    """Return the first non-empty value among the named children of ``parent``.

    Only the first occurrence of each name is considered. Missing or
    malformed fields are skipped; when nothing matches the result is ``""``.
    """
    for name in names:
        value = resolve(parent.first(name), resolver)
        if value:
            return value
    return ""
