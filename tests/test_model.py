import pytest

from rebos.library import RebosError
from rebos.model import (
    Generation,
    Items,
    ManagerOrder,
    parse_generation,
    parse_manager_order,
    read_generation,
)

SAMPLE = """
imports = ["intensive_apps"]

[managers.system]
items = ["git", "vim"]

[managers.flatpak]
items = ["com.github.tchx84.Flatseal"]
"""


def test_parse_generation_sample():
    gen = parse_generation(SAMPLE)
    assert gen.imports == ["intensive_apps"]
    assert gen.managers["system"] == Items(["git", "vim"])
    assert gen.managers["flatpak"].items == ["com.github.tchx84.Flatseal"]


def test_parse_empty_gives_defaults():
    assert parse_generation("") == Generation()


def test_parse_manager_without_items():
    gen = parse_generation("[managers.cargo]\n")
    assert gen.managers == {"cargo": Items()}


@pytest.mark.parametrize(
    "text",
    [
        "unknown = 1",
        "[managers.system]\nitems = []\nextra = true",
        "imports = [1, 2]",
        "managers = 5",
        "[managers.system]\nitems = 'git'",
        "imports = [",
    ],
)
def test_parse_generation_rejects_bad_documents(text):
    with pytest.raises(RebosError):
        parse_generation(text)


def test_extend_merges_items_and_imports():
    gen = parse_generation(SAMPLE)
    other = Generation(imports=["more"], managers={"system": Items(["htop"]), "cargo": Items(["bacon"])})
    gen.extend(other)
    assert gen.imports == ["intensive_apps", "more"]
    assert gen.managers["system"].items == ["git", "vim", "htop"]
    assert gen.managers["cargo"].items == ["bacon"]
    other.managers["cargo"].items.append("changed")
    assert gen.managers["cargo"].items == ["bacon"]


def test_to_toml_round_trip():
    gen = parse_generation(SAMPLE)
    assert parse_generation(gen.to_toml()) == gen


def test_to_toml_round_trip_empty():
    assert parse_generation(Generation().to_toml()) == Generation()


def test_read_generation_missing_file(tmp_path):
    assert read_generation(tmp_path / "absent.toml") == Generation()


def test_read_generation_from_file(tmp_path):
    path = tmp_path / "gen.toml"
    path.write_text(SAMPLE)
    assert read_generation(path) == parse_generation(SAMPLE)


def test_read_generation_bad_file(tmp_path, capsys):
    path = tmp_path / "gen.toml"
    path.write_text("bogus = true")
    with pytest.raises(RebosError, match="Failed to deserialize generation!"):
        read_generation(path)
    _, err = capsys.readouterr()
    assert str(path) in err


def test_parse_manager_order():
    order = parse_manager_order('begin = ["system"]\nend = ["cargo"]')
    assert order == ManagerOrder(begin=["system"], end=["cargo"])
    assert parse_manager_order("") == ManagerOrder()


def test_parse_manager_order_rejects_unknown_field():
    with pytest.raises(RebosError):
        parse_manager_order("middle = []")