"""Tests for prefab parsing, the registry and the bundled catalogue."""

from __future__ import annotations

import json

import pytest

from tests.helpers import hollow_rows, make_prefab
from townsmith.environment.generators.buildings import (
    PrefabError,
    PrefabRegistry,
    load_prefab_registry,
    pick_prefab,
)
from townsmith.environment.generators.buildings.prefabs import parse_prefab
from townsmith.util.coordinates import Rect, chebyshev
from townsmith.util.rng import CallableRNG

# =============================================================================
# Parsing
# =============================================================================


class TestParsePrefab:
    """Tests for record validation."""

    def test_valid_record(self) -> None:
        prefab = make_prefab("box", 5, 4, tags=["cottage"])
        assert (prefab.width, prefab.height, prefab.category) == (5, 4, "house")
        assert prefab.doors[0].role == "main"
        assert prefab.tags == ("cottage",)

    def test_category_override_is_lowercased(self) -> None:
        prefab = parse_prefab(
            {
                "id": "box",
                "category": "Shop",
                "size": {"w": 3, "h": 3},
                "tiles": hollow_rows(3, 3),
            },
            "house",
        )
        assert prefab.category == "shop"

    def test_codes_are_case_insensitive(self) -> None:
        rows = [[code.lower() for code in row] for row in hollow_rows(3, 3)]
        prefab = parse_prefab(
            {"id": "lower", "size": {"w": 3, "h": 3}, "tiles": rows}, "house"
        )
        assert prefab.tiles[0][0] == "WALL"

    def test_missing_id(self) -> None:
        with pytest.raises(PrefabError, match="missing an 'id'"):
            parse_prefab({"size": {"w": 3, "h": 3}, "tiles": hollow_rows(3, 3)}, "shop")

    def test_missing_size(self) -> None:
        with pytest.raises(PrefabError, match="missing 'size'"):
            parse_prefab({"id": "x", "tiles": hollow_rows(3, 3)}, "house")

    def test_row_count_mismatch(self) -> None:
        with pytest.raises(PrefabError, match="tile rows"):
            parse_prefab(
                {"id": "x", "size": {"w": 3, "h": 4}, "tiles": hollow_rows(3, 3)},
                "house",
            )

    def test_row_width_mismatch(self) -> None:
        rows = hollow_rows(3, 3)
        rows[1].append("FLOOR")
        with pytest.raises(PrefabError, match="row 1"):
            parse_prefab({"id": "x", "size": {"w": 3, "h": 3}, "tiles": rows}, "house")

    def test_unknown_code(self) -> None:
        rows = hollow_rows(3, 3)
        rows[1][1] = "LAVA"
        with pytest.raises(PrefabError, match="unknown tile code"):
            parse_prefab({"id": "x", "size": {"w": 3, "h": 3}, "tiles": rows}, "house")

    def test_door_outside_footprint(self) -> None:
        with pytest.raises(PrefabError, match="outside footprint"):
            make_prefab("x", 4, 4, doors=[(4, 0)], tiles=hollow_rows(4, 4))

    def test_shop_metadata(self) -> None:
        prefab = make_prefab(
            "smithy",
            6,
            5,
            category="shop",
            shop={
                "type": "blacksmith",
                "signText": "Forge",
                "schedule": {"open": "07:00", "close": "16:00"},
            },
        )
        assert prefab.shop is not None
        assert prefab.shop.sign
        assert prefab.shop.sign_text == "Forge"
        assert prefab.shop.has_schedule_override
        assert prefab.shop_type == "blacksmith"

    def test_shop_without_type_is_ignored(self) -> None:
        prefab = make_prefab("odd", 5, 4, category="shop", shop={"sign": False})
        assert prefab.shop is None
        assert prefab.shop_type == "shop"

    def test_shop_type_falls_back_to_tag(self) -> None:
        prefab = make_prefab("tagged", 5, 4, category="shop", tags=["shop", "baker"])
        assert prefab.shop_type == "baker"


class TestPrefab:
    def test_main_door_prefers_role(self) -> None:
        prefab = parse_prefab(
            {
                "id": "two_doors",
                "size": {"w": 6, "h": 5},
                "tiles": hollow_rows(6, 5, doors=[(0, 2), (3, 4)]),
                "doors": [{"x": 0, "y": 2}, {"x": 3, "y": 4, "role": "Main"}],
            },
            "house",
        )
        main = prefab.main_door()
        assert main is not None
        assert (main.x, main.y) == (3, 4)

    def test_main_door_falls_back_to_first(self) -> None:
        prefab = parse_prefab(
            {
                "id": "first",
                "size": {"w": 5, "h": 4},
                "tiles": hollow_rows(5, 4, doors=[(2, 0)]),
                "doors": [{"x": 2, "y": 0}],
            },
            "house",
        )
        main = prefab.main_door()
        assert main is not None
        assert (main.x, main.y) == (2, 0)

    def test_no_doors(self) -> None:
        assert make_prefab("closed", 5, 4, doors=[]).main_door() is None

    def test_has_tag_checks_id(self) -> None:
        prefab = make_prefab("guard_barracks_small", 8, 6)
        assert prefab.has_tag("guard_barracks")
        assert not prefab.has_tag("inn")

    def test_fits(self) -> None:
        prefab = make_prefab("box", 7, 5)
        assert prefab.fits(7, 5)
        assert not prefab.fits(6, 5)


# =============================================================================
# Registry
# =============================================================================


class TestPrefabRegistry:
    def test_groups_by_category(self) -> None:
        registry = PrefabRegistry(
            [make_prefab("a", 5, 4), make_prefab("b", 6, 5, category="shop")]
        )
        assert [p.id for p in registry.houses] == ["a"]
        assert [p.id for p in registry.shops] == ["b"]
        assert registry.inns == ()
        assert len(registry) == 2
        assert registry.by_id("b") is registry.shops[0]
        assert registry.by_id("missing") is None

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(PrefabError, match="Duplicate"):
            PrefabRegistry([make_prefab("a", 5, 4), make_prefab("a", 6, 5)])

    def test_empty(self) -> None:
        registry = PrefabRegistry.empty()
        assert registry.is_empty()
        assert list(registry) == []

    def test_barracks_includes_tagged_houses(self) -> None:
        registry = PrefabRegistry(
            [
                make_prefab("cottage", 5, 4),
                make_prefab("post", 8, 6, tags=["guard_barracks"]),
                make_prefab("fort", 9, 7, category="barracks"),
            ]
        )
        assert {p.id for p in registry.barracks()} == {"post", "fort"}

    def test_from_dict_uses_group_category(self) -> None:
        record = {"id": "inn", "size": {"w": 3, "h": 3}, "tiles": hollow_rows(3, 3)}
        registry = PrefabRegistry.from_dict({"inns": [record]})
        assert registry.inns[0].category == "inn"

    def test_from_dict_rejects_non_list_group(self) -> None:
        with pytest.raises(PrefabError, match="must be a list"):
            PrefabRegistry.from_dict({"houses": {"id": "x"}})

    def test_load_rejects_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "prefabs.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PrefabError, match="invalid JSON"):
            load_prefab_registry(path)

    def test_load_round_trips_file(self, tmp_path) -> None:
        path = tmp_path / "prefabs.json"
        record = {"id": "hut", "size": {"w": 3, "h": 3}, "tiles": hollow_rows(3, 3)}
        path.write_text(json.dumps({"houses": [record]}), encoding="utf-8")
        assert [p.id for p in load_prefab_registry(path)] == ["hut"]

    def test_load_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_prefab_registry(tmp_path / "nope.json")


class TestPickPrefab:
    def test_empty_returns_none(self) -> None:
        assert pick_prefab([], CallableRNG(lambda: 0.5)) is None

    def test_uses_one_draw(self) -> None:
        prefabs = [make_prefab(name, 5, 4) for name in ("a", "b", "c")]
        assert pick_prefab(prefabs, CallableRNG(lambda: 0.0)).id == "a"
        assert pick_prefab(prefabs, CallableRNG(lambda: 0.99)).id == "c"


# =============================================================================
# Bundled catalogue
# =============================================================================


class TestDefaultCatalogue:
    """Sanity checks on the prefabs shipped with the package."""

    def test_every_group_is_populated(self, default_prefabs) -> None:
        assert default_prefabs.houses
        assert default_prefabs.shops
        assert default_prefabs.inns
        assert default_prefabs.plazas
        assert default_prefabs.barracks()

    def test_buildings_have_doors_on_their_ring(self, default_prefabs) -> None:
        for prefab in default_prefabs:
            if prefab.category == "plaza":
                continue
            ring = Rect(0, 0, prefab.width, prefab.height)
            assert prefab.doors, prefab.id
            for door in prefab.doors:
                assert ring.is_perimeter(door.x, door.y), prefab.id
                assert prefab.tiles[door.y][door.x] == "DOOR", prefab.id

    def test_windows_are_spaced(self, default_prefabs) -> None:
        """No authored window touches a door or another window."""
        for prefab in default_prefabs:
            cells = [
                (x, y, code)
                for y, row in enumerate(prefab.tiles)
                for x, code in enumerate(row)
            ]
            windows = [(x, y) for x, y, code in cells if code == "WINDOW"]
            doors = [(x, y) for x, y, code in cells if code == "DOOR"]
            for i, w in enumerate(windows):
                assert all(chebyshev(w, d) >= 2 for d in doors), prefab.id
                assert all(chebyshev(w, o) >= 2 for o in windows[i + 1 :]), prefab.id

    def test_shops_have_distinct_types(self, default_prefabs) -> None:
        types = [p.shop_type for p in default_prefabs.shops]
        assert len(types) == len(set(types))

    def test_some_house_fits_a_block(self, default_prefabs) -> None:
        """The grid-block scan draws footprints up to 8x6."""
        assert any(p.fits(8, 6) for p in default_prefabs.houses)
