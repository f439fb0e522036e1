import pytest

from pobbin.pob import ParseError, parse
from tests.tools import SAMPLE_XML


def test_parse():
    doc = parse(SAMPLE_XML)
    assert doc.build.level == 90
    assert doc.build.class_name == "Witch"
    assert doc.build.ascend_class_name == "Necromancer"
    assert [(s.name, s.value) for s in doc.build.player_stats] == [("Life", "4512"), ("EnergyShield", "120")]
    assert doc.build.minion_stats[0].name == "TotalDPS"

    spectres, flame_dash = doc.skills.skills
    assert spectres.main_active_skill == 0  # "nil"
    assert spectres.enabled and not flame_dash.enabled
    assert spectres.label == "Spectres"
    assert [g.name for g in spectres.gems] == ["Raise Spectre", "Minion Damage"]
    assert spectres.gems[0].level == 21 and spectres.gems[0].quality == 20
    assert flame_dash.gems[0].gem_id is None

    assert doc.tree.active_spec == 1
    assert doc.tree.specs[0].nodes == [4, 8, 15, 16, 23, 42]
    assert doc.tree.specs[0].url == "https://www.pathofexile.com/passive-skill-tree/AAAABgMAAA=="

    assert doc.items.items[0].id == 1
    assert doc.items.items[0].content.splitlines() == ["Rarity: RARE", "Doom Shroud", "Vaal Regalia"]
    assert doc.items.slots[0].item_id == 1
    assert doc.notes == "Summon everything."
    inputs = {i.name: i for i in doc.config.inputs}
    assert inputs["enemyIsBoss"].string == "Pinnacle"
    assert inputs["conditionFocused"].boolean is True
    assert inputs["multiplierWitheredStackCount"].number == 15


def test_parse_minimal():
    """Items, notes and config are optional"""
    doc = parse(
        '<PathOfBuilding><Build level="1" className="Scion" ascendClassName="None" mainSocketGroup="0"/>'
        '<Skills/><Tree activeSpec="1"><Spec nodes=""/></Tree></PathOfBuilding>'
    )
    assert doc.skills.skills == []
    assert doc.tree.specs[0].nodes == []
    assert doc.items.items == []
    assert doc.notes == ""


@pytest.mark.parametrize(
    "text,message",
    [
        ("not xml at all", "Invalid build export"),
        ("<PathOfBuilding><Build>", "Invalid build export"),
        ("<Build/>", "unexpected root element <Build>"),
        ("<PathOfBuilding/>", "(?i)build: field required"),
        (SAMPLE_XML.replace('level="90"', 'level="ninety"'), "level"),
        (SAMPLE_XML.replace('level="90"', 'level="900"'), "level"),
        (SAMPLE_XML.replace('nodes="4,8', 'nodes="x,8'), "nodes"),
        (SAMPLE_XML.replace('<Item id="1">', "<Item>"), "id"),
    ],
)
def test_parse_invalid(text, message):
    with pytest.raises(ParseError, match=message) as e:
        parse(text)
    assert e.value.content == text


def test_parse_rejects_doctype():
    bomb = (
        '<?xml version="1.0"?><!DOCTYPE lolz [<!ENTITY lol "lol"><!ENTITY lol2 "&lol;&lol;&lol;">]>'
        "<PathOfBuilding><Notes>&lol2;</Notes></PathOfBuilding>"
    )
    with pytest.raises(ParseError, match="DOCTYPE"):
        parse(bomb)
