"""
Structural validation of Path of Building exports.

parse() only decides whether a decompressed paste is a build export. The parsed document is
not stored anywhere; rendering and build statistics read the raw paste themselves.
"""

import re
import xml.etree.ElementTree as ET
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

U8 = Annotated[int, Field(ge=0, le=255)]
U16 = Annotated[int, Field(ge=0, le=65535)]

_DOCTYPE = re.compile(r"<!DOCTYPE", re.IGNORECASE)


class ParseError(ValueError):
    def __init__(self, message: str, content: str):
        super().__init__(message)
        self.message = message
        self.content = content


class PobModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BuildStat(PobModel):
    name: str = Field(alias="stat")
    value: str


class Build(PobModel):
    level: U8
    class_name: str = Field(alias="className")
    ascend_class_name: str = Field(alias="ascendClassName")
    main_socket_group: U8 = Field(alias="mainSocketGroup")
    player_stats: list[BuildStat] = Field(default_factory=list, alias="PlayerStat")
    minion_stats: list[BuildStat] = Field(default_factory=list, alias="MinionStat")


class Gem(PobModel):
    name: str = Field(alias="nameSpec")
    skill_id: str | None = Field(None, alias="skillId")
    gem_id: str | None = Field(None, alias="gemId")
    level: U8 = 0
    quality: U8 = 0


class Skill(PobModel):
    main_active_skill: U8 = Field(0, alias="mainActiveSkill")
    enabled: bool = False
    label: str | None = None
    slot: str | None = None
    gems: list[Gem] = Field(default_factory=list, alias="Gem")

    @field_validator("main_active_skill", mode="before")
    @classmethod
    def nil_is_zero(cls, value: Any) -> Any:
        return 0 if value == "nil" else value


class Skills(PobModel):
    skills: list[Skill] = Field(default_factory=list, alias="Skill")


class Spec(PobModel):
    title: str | None = None
    nodes: list[int] = Field(default_factory=list)
    url: str | None = Field(None, alias="URL")

    @field_validator("nodes", mode="before")
    @classmethod
    def split_nodes(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [node for node in value.split(",") if node]
        return value


class Tree(PobModel):
    active_spec: U8 = Field(alias="activeSpec")
    specs: list[Spec] = Field(alias="Spec")


class Item(PobModel):
    id: U16
    content: str = ""


class Slot(PobModel):
    item_id: U16 = Field(alias="itemId")


class Items(PobModel):
    items: list[Item] = Field(default_factory=list, alias="Item")
    slots: list[Slot] = Field(default_factory=list, alias="Slot")


class Input(PobModel):
    name: str
    string: str | None = None
    boolean: bool | None = None
    number: float | None = None


class Config(PobModel):
    inputs: list[Input] = Field(default_factory=list, alias="Input")


class PathOfBuilding(PobModel):
    build: Build = Field(alias="Build")
    skills: Skills = Field(alias="Skills")
    tree: Tree = Field(alias="Tree")
    items: Items = Field(default_factory=Items, alias="Items")
    notes: str = Field("", alias="Notes")
    config: Config = Field(default_factory=Config, alias="Config")


def _children(element: ET.Element, tag: str) -> list[dict[str, Any]]:
    return [dict(child.attrib) for child in element.findall(tag)]


def _spec(element: ET.Element) -> dict[str, Any]:
    d: dict[str, Any] = dict(element.attrib)
    url = element.find("URL")
    if url is not None:
        d["URL"] = (url.text or "").strip()
    return d


def _item(element: ET.Element) -> dict[str, Any]:
    # the text before the first <ModRange> child is the item itself, mod ranges are ignored
    return {**element.attrib, "content": (element.text or "").strip()}


def _to_dict(root: ET.Element) -> dict[str, Any]:
    d: dict[str, Any] = {}
    if (build := root.find("Build")) is not None:
        d["Build"] = {
            **build.attrib,
            "PlayerStat": _children(build, "PlayerStat"),
            "MinionStat": _children(build, "MinionStat"),
        }
    if (skills := root.find("Skills")) is not None:
        # newer exports group skills in <SkillSet> elements
        d["Skills"] = {
            "Skill": [{**s.attrib, "Gem": _children(s, "Gem")} for s in skills.iter("Skill")],
        }
    if (tree := root.find("Tree")) is not None:
        d["Tree"] = {**tree.attrib, "Spec": [_spec(spec) for spec in tree.findall("Spec")]}
    if (items := root.find("Items")) is not None:
        d["Items"] = {
            "Item": [_item(item) for item in items.findall("Item")],
            "Slot": [dict(slot.attrib) for slot in items.iter("Slot")],
        }
    if (notes := root.find("Notes")) is not None:
        d["Notes"] = (notes.text or "").strip()
    if (config := root.find("Config")) is not None:
        d["Config"] = {"Input": _children(config, "Input")}
    return d


def _describe(e: ValidationError) -> str:
    errors = e.errors()
    first = errors[0]
    location = ".".join(str(part) for part in first["loc"])
    more = f" (and {len(errors) - 1} more)" if len(errors) > 1 else ""
    return f"Invalid build export: {location}: {first['msg']}{more}"


def parse(text: str) -> PathOfBuilding:
    """Parse a decompressed export. Raises ParseError with a short message if it is not a valid build."""
    # entity declarations could expand to huge documents, and a build export never has them
    if _DOCTYPE.search(text):
        raise ParseError("Invalid build export: DOCTYPE is not allowed", text)
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseError(f"Invalid build export: {e}", text)
    if root.tag != "PathOfBuilding":
        raise ParseError(f"Invalid build export: unexpected root element <{root.tag}>", text)
    try:
        return PathOfBuilding.model_validate(_to_dict(root))
    except ValidationError as e:
        raise ParseError(_describe(e), text)
