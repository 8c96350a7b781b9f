import pytest

from luxtronik_planner.device.navigation import NavigationItem, NavigationTree
from luxtronik_planner.exceptions import PathNotFound, ProtocolViolation
from tests.conftest import NAVIGATION_RESPONSE


@pytest.fixture
def tree() -> NavigationTree:
    return NavigationTree.parse(NAVIGATION_RESPONSE)


def test_parse_builds_top_level_items(tree):
    assert [item.name for item in tree.items] == [
        "Informatie",
        "Instelling",
        "Klokprogramma",
        "Toegang: Gebruiker",
    ]
    assert tree.items[0].id == "0x45e068"
    assert len(tree.items[0].children) == 10


@pytest.mark.parametrize(
    "path, expected_id",
    [
        ("Informatie", "0x45e068"),
        ("Informatie > Temperaturen", "0x45df90"),
        ("Instelling > Temperaturen", "0x461170"),
        ("Instelling > Systeeminstelling", "0x462988"),
        ("Klokprogramma > Verwarmen > Week", "0x45e118"),
        ("Klokprogramma > Warmwater > Week", "0x4642a8"),
        ("Klokprogramma > Warmwater > Dagen (Ma, Di,...)", "0x463b68"),
        ("Toegang: Gebruiker", "0x45c7b0"),
    ],
)
def test_resolve_returns_item_id(tree, path, expected_id):
    assert tree.resolve(path) == expected_id


def test_resolve_names_the_missing_segment(tree):
    with pytest.raises(PathNotFound) as error:
        tree.resolve("Klokprogramma > Koelen > Week")

    assert error.value.segment == "Koelen"
    assert str(error.value) == "Item Koelen does not exist"


def test_resolve_matches_segments_exactly(tree):
    with pytest.raises(PathNotFound):
        tree.resolve("informatie > Temperaturen")


def test_first_match_wins_for_duplicate_names():
    tree = NavigationTree(
        [
            NavigationItem(id="0x1", name="Informatie"),
            NavigationItem(id="0x2", name="Informatie"),
        ]
    )

    assert tree.resolve("Informatie") == "0x1"


def test_parse_rejects_content_listing():
    with pytest.raises(ProtocolViolation):
        NavigationTree.parse("<Content><name>Temperaturen</name></Content>")


def test_parse_rejects_malformed_markup():
    with pytest.raises(ProtocolViolation):
        NavigationTree.parse("<Navigation><item id='0x1'>")
