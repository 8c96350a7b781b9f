"""This module parses the flat markup listings the heat pump returns for a screen.

A `GET` on a menu item answers with a `<Content>` document. Information screens
list fields as `<item id='..'><name>..</name><value>..</value></item>`, where the
value carries a unit suffix (`22.3°C`, `8.10 bar`, `1200 l/h`) or the sentinel
`---` when the sensor is not connected. Timer screens nest their slots one level
deeper and add `<type>timer</type>` and the packed `<raw>` value.

Parsing the markup into plain mappings here keeps unit stripping and sentinel
handling independent of the socket layer.
"""

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Dict, List, Optional

from luxtronik_planner.exceptions import FieldNotFound, ProtocolViolation
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

NOT_AVAILABLE = "---"
_NUMBER_WITH_UNIT = re.compile(r"^\s*(-?[0-9]+(?:\.[0-9]+)?)")


@dataclass(frozen=True)
class ScheduleSlot:
    """One editable entry of a weekly timer screen."""

    id: str
    name: str
    value: str
    raw: int


def parse_document(response_text: str) -> ET.Element:
    """Parses a device response into an element tree.

    Args:
        response_text: The raw text frame received from the heat pump.

    Returns:
        The root element of the document.

    Raises:
        ProtocolViolation: If the response is not well-formed markup.
    """
    try:
        return ET.fromstring(response_text)
    except ET.ParseError as ex:
        raise ProtocolViolation(f"Malformed response from heat pump: {ex}") from ex


def parse_fields(response_text: str) -> Dict[str, List[str]]:
    """Maps every field name on a screen to its raw value strings.

    Names are not unique on all screens (the inputs screen lists `HD` both as a
    switch and as a pressure), so all values are kept in document order.

    Args:
        response_text: A `<Content>` listing.

    Returns:
        A dictionary from field name to the list of raw value strings.
    """
    root = parse_document(response_text)

    fields: Dict[str, List[str]] = {}
    for item in root.iter("item"):
        name = item.findtext("name")
        value = item.findtext("value")
        if name is None or value is None:
            continue
        fields.setdefault(name, []).append(value)

    return fields


def to_number(raw_value: str) -> Optional[float]:
    """Converts a raw field value to a float, stripping its unit suffix.

    Returns:
        The numeric reading, 0.0 for the `---` sentinel, or None when the value
        is not numeric (e.g. `Aan`/`Uit` switches).
    """
    if raw_value.strip() == NOT_AVAILABLE:
        return 0.0

    match = _NUMBER_WITH_UNIT.match(raw_value)
    if match is None:
        return None

    return float(match.group(1))


def read_value(item_name: str, response_text: str) -> float:
    """Extracts the numeric reading of a named field from a screen listing.

    Args:
        item_name: The exact field name as shown on the device (e.g. "Aanvoer").
        response_text: The `<Content>` listing returned by a navigation.

    Returns:
        The first numeric value listed under the name.

    Raises:
        FieldNotFound: If the field is absent or never holds a numeric value.
    """
    for raw_value in parse_fields(response_text).get(item_name, []):
        value = to_number(raw_value)
        if value is not None:
            logger.debug("Read %s = %s from %r", item_name, value, raw_value)
            return value

    raise FieldNotFound(item_name)


def parse_schedule_slots(response_text: str) -> List[ScheduleSlot]:
    """Parses the timer items of a weekly schedule screen in display order."""
    root = parse_document(response_text)

    slots: List[ScheduleSlot] = []
    for item in root.iter("item"):
        if item.findtext("type") != "timer":
            continue

        item_id = item.get("id")
        raw = item.findtext("raw")
        if item_id is None or raw is None:
            raise ProtocolViolation("Timer item without id or raw value")

        try:
            raw_value = int(raw)
        except ValueError as ex:
            raise ProtocolViolation(f"Timer item {item_id} has raw value {raw!r}") from ex

        slots.append(
            ScheduleSlot(
                id=item_id,
                name=item.findtext("name", default=""),
                value=item.findtext("value", default=""),
                raw=raw_value,
            )
        )

    return slots
