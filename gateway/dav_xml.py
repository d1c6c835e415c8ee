"""WebDAV XML documents: multistatus listings and lock discovery."""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Iterable, Optional
from urllib.parse import quote

from common.constants import ROOT_DISPLAY_NAME, ROOT_PATH
from common.types import FileRecord

DAV_NS = "DAV:"

ET.register_namespace("D", DAV_NS)


def _dav(tag: str) -> str:
    return f"{{{DAV_NS}}}{tag}"


def _sub(parent: ET.Element, tag: str, text: Optional[str] = None) -> ET.Element:
    element = ET.SubElement(parent, _dav(tag))
    if text is not None:
        element.text = text
    return element


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def http_date(value: datetime) -> str:
    """RFC 1123 date, as used by getlastmodified."""
    return format_datetime(_as_utc(value), usegmt=True)


def iso_date(value: datetime) -> str:
    """ISO 8601 UTC date with millisecond precision, as used by creationdate."""
    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def entry_href(record: FileRecord) -> str:
    """
    Percent-encoded href for a listing entry.

    Collections always end with "/"; the root is exactly "/".
    """
    if record.path == ROOT_PATH:
        return ROOT_PATH
    href = record.path
    if record.is_dir and not href.endswith("/"):
        href += "/"
    return quote(href, safe="/")


def display_name(record: FileRecord) -> str:
    if record.path == ROOT_PATH:
        return ROOT_DISPLAY_NAME
    return record.path.rstrip("/").rsplit("/", 1)[-1]


def build_multistatus(records: Iterable[FileRecord]) -> bytes:
    """
    Serialize records as a 207 multistatus body.

    Args:
        records: Entries to list (the resource itself and its children)

    Returns:
        UTF-8 encoded XML document
    """
    root = ET.Element(_dav("multistatus"))

    for record in records:
        response = _sub(root, "response")
        _sub(response, "href", entry_href(record))

        propstat = _sub(response, "propstat")
        prop = _sub(propstat, "prop")
        _sub(prop, "displayname", display_name(record))
        _sub(prop, "getcontentlength", str(record.size))
        resourcetype = _sub(prop, "resourcetype")
        if record.is_dir:
            _sub(resourcetype, "collection")
        _sub(prop, "getlastmodified", http_date(record.updated_at))
        _sub(prop, "creationdate", iso_date(record.updated_at))
        _sub(propstat, "status", "HTTP/1.1 200 OK")

    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def build_lock_discovery(token: str, owner: str, timeout: str, lock_root: str) -> bytes:
    """
    Serialize an active exclusive write lock as a LOCK response body.

    Args:
        token: Opaque lock token URI
        owner: Lock owner text
        timeout: Timeout value echoed from the request
        lock_root: Href of the locked resource

    Returns:
        UTF-8 encoded XML document
    """
    prop = ET.Element(_dav("prop"))
    activelock = _sub(_sub(prop, "lockdiscovery"), "activelock")

    _sub(_sub(activelock, "locktype"), "write")
    _sub(_sub(activelock, "lockscope"), "exclusive")
    _sub(activelock, "depth", "infinity")
    _sub(activelock, "owner", owner)
    _sub(activelock, "timeout", timeout)
    _sub(_sub(activelock, "locktoken"), "href", token)
    _sub(_sub(activelock, "lockroot"), "href", lock_root)

    return ET.tostring(prop, encoding="utf-8", xml_declaration=True)


def parse_lock_owner(body: bytes) -> Optional[str]:
    """
    Extract the owner text from a LOCK request's lockinfo body.

    Returns:
        Owner text, or None if the body is empty, malformed or has no owner
    """
    if not body or not body.strip():
        return None

    try:
        document = ET.fromstring(body)
    except ET.ParseError:
        return None

    owner = document.find(_dav("owner"))
    if owner is None:
        return None

    text = "".join(owner.itertext()).strip()
    return text or None
