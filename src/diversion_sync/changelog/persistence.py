"""XML persistence for changelog records.

Format::

    <changelog>
      <entry>
        <commitId>...</commitId>
        <msg>...</msg>
        <author>...</author>
        <timestamp>unix seconds</timestamp>
        <files><file>...</file></files>
      </entry>
    </changelog>

``<files>`` is left out for entries without changed paths. A document with
no ``<entry>`` elements is an explicit empty changelog; a missing file means
no changelog was decided.
"""

from __future__ import annotations

import logging
import re
import time
import xml.etree.ElementTree as ET
from pathlib import Path

from diversion_sync.entities import ChangelogEntry, ChangelogRecord
from diversion_sync.errors import MalformedResponseError

logger = logging.getLogger(__name__)

# Code points outside the XML 1.0 Char production
_XML_INVALID = re.compile("[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def _xml_text(value: str) -> str:
    return _XML_INVALID.sub("", value)


def to_element(record: ChangelogRecord) -> ET.Element:
    root = ET.Element("changelog")
    for entry in record.entries:
        node = ET.SubElement(root, "entry")
        ET.SubElement(node, "commitId").text = _xml_text(entry.commit_id)
        ET.SubElement(node, "msg").text = _xml_text(entry.message)
        ET.SubElement(node, "author").text = _xml_text(entry.author_name)
        ET.SubElement(node, "timestamp").text = str(entry.timestamp)
        if entry.changed_paths:
            files = ET.SubElement(node, "files")
            for changed in entry.changed_paths:
                ET.SubElement(files, "file").text = _xml_text(changed)
    return root


def write_changelog(path: Path, record: ChangelogRecord) -> None:
    """Write ``record`` to ``path``, replacing any earlier changelog."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tree = ET.ElementTree(to_element(record))
    ET.indent(tree, space="  ")
    tree.write(path, encoding="UTF-8", xml_declaration=True)
    logger.debug("Wrote changelog with %d entries to %s", len(record.entries), path)


def _text(parent: ET.Element, tag: str) -> str:
    node = parent.find(tag)
    if node is None or node.text is None:
        return ""
    return node.text


def from_element(root: ET.Element) -> ChangelogRecord:
    if root.tag != "changelog":
        msg = f"Unexpected changelog root element <{root.tag}>"
        raise MalformedResponseError(msg)

    entries: list[ChangelogEntry] = []
    for node in root.iter("entry"):
        raw_timestamp = _text(node, "timestamp").strip()
        try:
            timestamp = int(raw_timestamp)
        except ValueError:
            timestamp = int(time.time())

        changed = tuple(
            f.text.strip() for f in node.iter("file") if f.text is not None and f.text.strip()
        )
        entries.append(
            ChangelogEntry(
                commit_id=_text(node, "commitId"),
                message=_text(node, "msg"),
                author_name=_text(node, "author"),
                timestamp=timestamp,
                changed_paths=changed,
            )
        )
    return ChangelogRecord(entries=tuple(entries))


def read_changelog(path: Path) -> ChangelogRecord | None:
    """Load a changelog; None when the file does not exist."""
    if not path.exists():
        return None
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as exc:
        msg = f"Could not parse changelog {path}: {exc}"
        raise MalformedResponseError(msg) from exc
    return from_element(root)
