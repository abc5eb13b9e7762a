"""
XML Decoding Module

Generic decoder that maps the XML documents produced by ``gluster ... --xml``
onto plain dataclass records.

A record declares where each field lives with ``element()`` / ``elements()``:

    @dataclass
    class Peer:
        hostname: str = element("hostname")
        connected: int = element("connected", 0)

Paths are relative to the record's own element, may descend through several
elements (``"volInfo/volumes/volume"``) and may name an attribute
(``"@hostUuid"``). Missing or empty elements fall back to the field default;
text that cannot be converted to the field type is a decode error.
"""

from dataclasses import MISSING, Field, field, fields, is_dataclass
from typing import Any, Dict, List, Type, TypeVar, get_args, get_origin, get_type_hints
from xml.parsers.expat import ExpatError

import xmltodict

from gluster_exporter.errors import DecodeError

T = TypeVar("T")

XML_PATH = "xml"
TEXT_KEY = "#text"


def element(path: str, default: Any = "") -> Any:
    """Declare a field mapped to a single child element or attribute."""
    return field(default=default, metadata={XML_PATH: path})


def elements(path: str) -> Any:
    """Declare a list field mapped to zero or more repeated elements."""
    return field(default_factory=list, metadata={XML_PATH: path})


def decode_xml(buffer: bytes, record_type: Type[T]) -> T:
    """
    Decode an XML document into ``record_type``.

    Args:
        buffer: Complete XML document
        record_type: Dataclass describing the document; an ``xml_root`` class
            attribute, when present, must match the root element name

    Returns:
        A fully populated record

    Raises:
        DecodeError: on malformed XML or a structural/type mismatch
    """
    try:
        document = xmltodict.parse(buffer)
    except ExpatError as e:
        raise DecodeError(f"malformed XML: {e}") from e

    if not isinstance(document, dict) or len(document) != 1:
        raise DecodeError("expected exactly one root element")

    root_tag, root = next(iter(document.items()))
    expected_root = getattr(record_type, "xml_root", None)
    if expected_root and root_tag != expected_root:
        raise DecodeError(f"expected root element <{expected_root}>, found <{root_tag}>")

    return _build(record_type, root, root_tag)


def _build(record_type: Type[T], node: Any, where: str) -> T:
    if node is None:
        node = {}
    elif isinstance(node, str):
        node = {TEXT_KEY: node}
    elif not isinstance(node, dict):
        raise DecodeError(f"{where}: expected an element, found {type(node).__name__}")

    hints = get_type_hints(record_type)
    values: Dict[str, Any] = {}
    for f in fields(record_type):
        if not f.init:
            continue
        path = f.metadata.get(XML_PATH, f.name)
        raw = _lookup(node, path, where)
        values[f.name] = _convert(hints[f.name], raw, f, f"{where}/{path}")
    return record_type(**values)


def _lookup(node: Dict[str, Any], path: str, where: str) -> Any:
    current: Any = node
    parts = path.split("/")
    for depth, part in enumerate(parts):
        if current is None or isinstance(current, str):
            return None
        if isinstance(current, list):
            consumed = "/".join(parts[:depth])
            raise DecodeError(f"{where}/{consumed}: unexpected repeated element")
        current = current.get(part)
    return current


def _convert(field_type: Any, raw: Any, f: Field, where: str) -> Any:
    if get_origin(field_type) in (list, List):
        (item_type,) = get_args(field_type)
        if raw is None:
            return []
        items = raw if isinstance(raw, list) else [raw]
        return [_convert_item(item_type, item, where) for item in items]

    if raw is None:
        return _default(f, where)
    if isinstance(raw, list):
        raise DecodeError(f"{where}: expected one element, found {len(raw)}")
    return _convert_item(field_type, raw, where)


def _default(f: Field, where: str) -> Any:
    if f.default is not MISSING:
        return f.default
    if f.default_factory is not MISSING:
        return f.default_factory()
    raise DecodeError(f"{where}: missing required element")


def _convert_item(item_type: Any, raw: Any, where: str) -> Any:
    if is_dataclass(item_type):
        return _build(item_type, raw, where)

    if isinstance(raw, dict):
        raw = raw.get(TEXT_KEY)
    text = "" if raw is None else str(raw)

    if item_type is str:
        return text
    if item_type in (int, float):
        if text == "":
            return item_type()
        try:
            return item_type(text)
        except ValueError:
            raise DecodeError(f"{where}: {text!r} is not a valid {item_type.__name__}")
    if item_type is bool:
        lowered = text.lower()
        if lowered in ("1", "true"):
            return True
        if lowered in ("", "0", "false"):
            return False
        raise DecodeError(f"{where}: {text!r} is not a valid bool")
    raise TypeError(f"unsupported record field type: {item_type!r}")
