"""
Small lxml helpers shared by the XML-speaking adapters.

Lookups match on local names so that callers don't have to spell out
the namespaces each backend uses (SRU, Dublin Core, Atom, OpenSearch).
"""

from typing import Iterator, List, Optional

from lxml import etree

from libfinder.domain.errors import ParseError

XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


def parse_xml(content: bytes, source: str) -> etree._Element:
    """
    Parse a response body into its root element.

    Raises:
        ParseError: If the body is empty or not well-formed XML
    """
    if not content:
        raise ParseError(f"{source} returned an empty body")
    try:
        return etree.fromstring(content, parser=_PARSER)
    except etree.XMLSyntaxError as e:
        raise ParseError(f"{source} returned malformed XML: {e}") from e


def local_name(node: etree._Element) -> str:
    # comments and processing instructions have a non-string tag
    if not isinstance(node.tag, str):
        return ""
    return etree.QName(node).localname


def iter_children(node: etree._Element, name: str) -> Iterator[etree._Element]:
    for item in node:
        if local_name(item) == name:
            yield item


def find_child(node: Optional[etree._Element], name: str) -> Optional[etree._Element]:
    if node is None:
        return None
    return next(iter_children(node, name), None)


def child_text(node: Optional[etree._Element], name: str) -> Optional[str]:
    """Stripped text of the first child called `name`, None when absent or blank."""
    return node_text(find_child(node, name))


def children_text(node: etree._Element, name: str) -> List[str]:
    """Stripped, non-blank texts of every child called `name`."""
    texts = (node_text(item) for item in iter_children(node, name))
    return [text for text in texts if text]


def node_text(node: Optional[etree._Element]) -> Optional[str]:
    if node is None or node.text is None:
        return None
    text = node.text.strip()
    return text or None


def xsi_type(node: etree._Element) -> Optional[str]:
    return node.get(f"{{{XSI_NS}}}type")
