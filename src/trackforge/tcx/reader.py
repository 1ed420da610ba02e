"""
TCX reader: XML text → validated SourceTcxDocument.

lxml parses the document into a nested dict keyed by element local names
(namespaces dropped). Repeated elements we care about become lists:
  Activities → [Activity, ...]
  Lap        → [Lap, ...]
  Track      → flat [Trackpoint, ...] across every <Track> in a lap
Attributes (Sport, StartTime) are merged into their element's dict.

The dict is validated once with pydantic; nothing downstream sees raw XML.
"""
from pathlib import Path
from typing import Any, Dict, Union

from lxml import etree
from pydantic import ValidationError

from trackforge.tcx.schema import XSI_NS, SourceTcxDocument

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


class TcxParseError(Exception):
    """Raised when TCX text is not well-formed XML."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class TcxValidationError(TcxParseError):
    """Raised when a TCX document parses but doesn't have the expected shape."""


def _local_name(element) -> str:
    return etree.QName(element).localname


def _children(element):
    return [child for child in element if isinstance(child.tag, str)]


def _element_to_value(element) -> Any:
    children = _children(element)
    attributes = {
        etree.QName(key).localname: value
        for key, value in element.attrib.items()
        if etree.QName(key).namespace != XSI_NS
    }

    if not children and not attributes:
        text = (element.text or "").strip()
        return text or None

    result: Dict[str, Any] = dict(attributes)
    for child in children:
        name = _local_name(child)
        if name == "Activities":
            result["Activities"] = [
                _element_to_value(activity)
                for activity in _children(child)
                if _local_name(activity) == "Activity"
            ]
        elif name == "Lap":
            result.setdefault("Lap", []).append(_element_to_value(child) or {})
        elif name == "Track":
            result.setdefault("Track", []).extend(
                _element_to_value(point) or {}
                for point in _children(child)
                if _local_name(point) == "Trackpoint"
            )
        else:
            result[name] = _element_to_value(child)
    return result


def parse_tcx(text: Union[str, bytes], source: str = "<string>") -> Dict[str, Any]:
    """
    Parse TCX text into a nested dict.

    Raises:
        TcxParseError: if the text isn't well-formed XML
    """
    if isinstance(text, str):
        text = text.encode("utf-8")
    # Some exporters emit whitespace before the XML declaration
    text = text.lstrip()
    if not text:
        raise TcxParseError(source, "empty document")

    try:
        root = etree.fromstring(text, parser=_PARSER)
    except etree.XMLSyntaxError as exc:
        raise TcxParseError(source, f"invalid XML: {exc}") from exc

    if _local_name(root) != "TrainingCenterDatabase":
        raise TcxValidationError(source, f"unexpected root element <{_local_name(root)}>")

    value = _element_to_value(root)
    return value if isinstance(value, dict) else {}


def read_tcx(text: Union[str, bytes], source: str = "<string>") -> SourceTcxDocument:
    """
    Parse and validate a TCX document.

    Raises:
        TcxParseError: malformed XML
        TcxValidationError: not exactly one Activity, missing Id, or
            values of the wrong type
    """
    data = parse_tcx(text, source)
    try:
        return SourceTcxDocument.model_validate(data)
    except ValidationError as exc:
        raise TcxValidationError(source, f"invalid TCX document: {exc}") from exc


def read_tcx_file(path: Path) -> SourceTcxDocument:
    if not path.exists():
        raise TcxParseError(str(path), "TCX file not found")
    return read_tcx(path.read_bytes(), str(path))
