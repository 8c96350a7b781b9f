"""This module holds the menu tree the heat pump returns after login.

The `LOGIN` response lists the complete menu as nested items, each carrying an
opaque id that must be sent with `GET` to open the corresponding screen. The ids
change between sessions, so the tree is rebuilt on every login and menu screens
are always addressed by their human-readable path, e.g.
"Klokprogramma > Warmwater > Week".
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional

from luxtronik_planner.device.markup import parse_document
from luxtronik_planner.exceptions import PathNotFound, ProtocolViolation

PATH_SEPARATOR = " > "


@dataclass(frozen=True)
class NavigationItem:
    id: Optional[str]
    name: str
    children: List["NavigationItem"] = field(default_factory=list)


class NavigationTree:
    """Resolves menu paths to device item ids.

    The root is synthetic: it has no id and no name, its children are the
    top-level menu entries.
    """

    def __init__(self, items: List[NavigationItem]) -> None:
        self._root = NavigationItem(id=None, name="", children=list(items))

    @property
    def items(self) -> List[NavigationItem]:
        return self._root.children

    @classmethod
    def parse(cls, response_text: str) -> "NavigationTree":
        """Builds the tree from a `<Navigation>` document.

        Raises:
            ProtocolViolation: If the document is malformed or not a navigation listing.
        """
        root = parse_document(response_text)
        if root.tag != "Navigation":
            raise ProtocolViolation(f"Expected a Navigation listing, got <{root.tag}>")

        return cls([cls._parse_item(element) for element in root.findall("item")])

    @classmethod
    def _parse_item(cls, element: ET.Element) -> NavigationItem:
        item_id = element.get("id")
        name = element.findtext("name")
        if item_id is None or name is None:
            raise ProtocolViolation("Navigation item without id or name")

        return NavigationItem(
            id=item_id,
            name=name,
            children=[cls._parse_item(child) for child in element.findall("item")],
        )

    def resolve(self, item_path: str) -> str:
        """Returns the device id of the item at the end of a menu path.

        Each segment is matched exactly against the names of the children at the
        current level; the first match wins.

        Args:
            item_path: Segments joined by " > ", e.g. "Informatie > Temperaturen".

        Raises:
            PathNotFound: For the first segment without a matching child.
        """
        current = self._root
        for segment in item_path.split(PATH_SEPARATOR):
            for child in current.children:
                if child.name == segment:
                    current = child
                    break
            else:
                raise PathNotFound(segment)

        if current.id is None:
            raise PathNotFound(item_path)

        return current.id
