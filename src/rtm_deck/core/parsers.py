"""Response parsers, one per declared response format."""

import xml.etree.ElementTree as ET
from enum import Enum
from typing import Any, Callable, Dict, Union

import requests
from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from .exceptions import ParserNotFound, ResponseParseError


class ResponseFormat(str, Enum):
    JSON = "json"
    XML = "xml"
    HTML = "html"  # HTML loaded leniently and exposed as an XML tree
    PLAIN = "plain"  # Body as is, without any processing


def parse_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ResponseParseError(f"Parsing JSON from request response failed: {e}") from e


def parse_xml(response: requests.Response) -> ET.Element:
    try:
        return ET.fromstring(response.content)
    except ET.ParseError as e:
        raise ResponseParseError("Parsing XML from request response failed") from e


def _soup_to_element(tag: Tag) -> ET.Element:
    """Copy a BeautifulSoup tag into an ElementTree element."""
    attrs = {
        name: " ".join(value) if isinstance(value, list) else str(value)
        for name, value in tag.attrs.items()
    }
    element = ET.Element(tag.name, attrs)
    last_child = None

    for child in tag.children:
        if isinstance(child, Tag):
            last_child = _soup_to_element(child)
            element.append(last_child)
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            # Comments, doctypes and CDATA are skipped
            if last_child is None:
                element.text = (element.text or "") + str(child)
            else:
                last_child.tail = (last_child.tail or "") + str(child)

    return element


def parse_html(response: requests.Response) -> ET.Element:
    """Parse HTML the way a browser would and hand back an XML tree.

    Returns the single top-level element, or an ``html`` element wrapping
    all top-level elements when the document has several.
    """
    soup = BeautifulSoup(response.text, "html.parser")
    roots = [child for child in soup.children if isinstance(child, Tag)]

    if not roots:
        raise ResponseParseError("Parsing XML from request response failed: no elements found")
    if len(roots) == 1:
        return _soup_to_element(roots[0])

    wrapper = ET.Element("html")
    for root in roots:
        wrapper.append(_soup_to_element(root))
    return wrapper


def parse_plain(response: requests.Response) -> str:
    return response.text


PARSERS: Dict[ResponseFormat, Callable[[requests.Response], Any]] = {
    ResponseFormat.JSON: parse_json,
    ResponseFormat.XML: parse_xml,
    ResponseFormat.HTML: parse_html,
    ResponseFormat.PLAIN: parse_plain,
}


def get_parser(response_format: Union[ResponseFormat, str]) -> Callable[[requests.Response], Any]:
    """Look up the parser for a response format.

    Raises:
        ParserNotFound if the format is not one of ResponseFormat
    """
    try:
        return PARSERS[ResponseFormat(response_format)]
    except (ValueError, KeyError) as e:
        raise ParserNotFound(
            f"Parser for request response not found: {response_format!r}"
        ) from e
