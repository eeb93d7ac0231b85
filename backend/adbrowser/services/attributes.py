"""Parsing of raw attribute dumps produced by the directory query tool.

Handles the two shapes ``dscl`` emits: a property list (``-plist``) and the
plain text form where multi-valued attributes continue on indented lines::

    RecordName: jdoe
    dsAttrTypeNative:memberOf:
     CN=Staff,OU=Groups,DC=example,DC=local
     CN=VPN Users,OU=Groups,DC=example,DC=local
"""
import plistlib
import re
from typing import Any, Dict, List, Mapping, Optional, Union
from xml.parsers.expat import ExpatError

from adbrowser.logger import get_logger


logger = get_logger("services.attributes")

# A key ends at the first colon followed by whitespace or end of line,
# so prefixed names such as "dsAttrTypeNative:mail" stay whole.
KEY_SEPARATOR = re.compile(r":(?=\s|$)")


class AttributeDump(Dict[str, List[str]]):
    """Attribute name -> ordered, non-empty list of values.

    ``skipped_lines`` counts input lines that could not be attached to any
    attribute; the parser is best-effort and never raises on bad input.
    """

    def __init__(self, *args, skipped_lines: int = 0, **kwargs):
        super().__init__(*args, **kwargs)
        self.skipped_lines = skipped_lines

    def first(self, *names: str) -> Optional[str]:
        """First value of the first attribute present among ``names``."""
        for name in names:
            values = self.get(name)
            if values:
                return values[0]
        return None

    def values_of(self, *names: str) -> List[str]:
        """All values of the first attribute present among ``names``."""
        for name in names:
            values = self.get(name)
            if values:
                return list(values)
        return []


def _split_key(line: str) -> Optional[tuple]:
    match = KEY_SEPARATOR.search(line)
    index = match.start() if match else line.find(":")
    if index <= 0:
        return None
    key = line[:index].strip()
    if not key:
        return None
    return key, line[index + 1:].strip()


def parse_attributes_mapping(data: Mapping[str, Any]) -> AttributeDump:
    """Normalize a generic property dictionary.

    Strings become one-item lists, lists keep their string items in order;
    anything else is dropped.
    """
    result = AttributeDump()
    for key, value in data.items():
        if isinstance(value, str):
            values = [value]
        elif isinstance(value, (list, tuple)):
            values = [v for v in value if isinstance(v, str)]
        else:
            values = []
        if values:
            result[str(key)] = values
    return result


def parse_attributes_text(text: str) -> AttributeDump:
    """Parse colon-delimited attribute text with indented continuation lines.

    Args:
        text: Raw tool output

    Returns:
        AttributeDump with the parsed attributes and the skipped line count
    """
    result = AttributeDump()
    current_key: Optional[str] = None
    current_values: List[str] = []
    has_inline_value = False

    def commit():
        if current_key is not None and current_values:
            result.setdefault(current_key, []).extend(current_values)

    for line in text.splitlines():
        if not line.strip():
            continue

        if line[0] in " \t":
            value = line.strip()
            # An indented "key: value" after an inline value is a new attribute,
            # not another value of the previous one.
            split = _split_key(value) if has_inline_value or current_key is None else None
            if current_key is not None and split is None:
                current_values.append(value)
                continue
            if split is None:
                result.skipped_lines += 1
                continue
        else:
            split = _split_key(line)
            if split is None:
                result.skipped_lines += 1
                continue

        commit()
        current_key, first_value = split
        current_values = [first_value] if first_value else []
        has_inline_value = bool(first_value)

    commit()

    if result.skipped_lines:
        logger.debug("Skipped %d unparseable attribute line(s)", result.skipped_lines)
    return result


def parse_attributes(raw: Union[Mapping[str, Any], str, bytes]) -> AttributeDump:
    """Parse any raw backend output into an AttributeDump.

    Text and bytes are tried as a property list first, then as plain text.
    """
    if isinstance(raw, Mapping):
        return parse_attributes_mapping(raw)

    data = raw.encode("utf-8") if isinstance(raw, str) else raw
    try:
        plist = plistlib.loads(data)
    except (plistlib.InvalidFileException, ExpatError, ValueError, TypeError):
        plist = None

    if isinstance(plist, dict):
        return parse_attributes_mapping(plist)

    text = raw if isinstance(raw, str) else raw.decode("utf-8", errors="replace")
    return parse_attributes_text(text)
