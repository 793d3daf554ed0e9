"""
Tests for content loading and validation.
"""

import json

import pytest

from ..content import (
    CardDestination,
    CardRarity,
    ContentValidationError,
    CountSource,
    GameSettings,
    load_content,
    validate_content,
)


def minimal_bundle(**overrides) -> dict:
    data = {
        "settings": {"max_mental": 12, "penalty_step": 3},
        "cards": [
            {"id": "post", "name": "Post", "motivation_cost": 1, "impression_rate": 0.5},
            {
                "id": "spawner",
                "name": "Spawner",
                "rarity": "rare",
                "generated_cards": [{"card_id": "post", "destination": "draw_middle", "copies": 2}],
                "count_effects": [{"source": "min_draw_discard", "followers_per_card": 5}],
            },
            {"id": "rage", "name": "Rage", "card_type": "monster", "play_condition": "monster_mode_only"},
        ],
        "stages": [
            {
                "id": "one",
                "name": "One",
                "initial_deck": ["post", "post", "spawner"],
                "draft_pool": ["spawner"],
                "monster_pool": ["rage"],
                "quota_table": [10, 20],
                "probability_table": [
                    {"min_impressions": 0, "common_weight": 70, "rare_weight": 30},
                    {"min_impressions": 500, "common_weight": 50, "rare_weight": 40, "epic_weight": 10},
                ],
                "clear_condition": {"target_score": 100},
                "monster_preset": {"preset_id": "snap", "title": "Snap"},
            },
            {"id": "two", "name": "Two", "initial_deck": ["post"], "monster_pool": ["rage"],
             "required_stage_ids": ["one"]},
        ],
    }
    data.update(overrides)
    return data


class TestLoader:
    def test_load_dict(self):
        bundle = load_content(minimal_bundle())

        assert bundle.settings.max_mental == 12
        assert bundle.settings.penalty_step == 3
        assert bundle.settings.max_motivation == GameSettings().max_motivation

        spawner = bundle.cards["spawner"]
        assert spawner.rarity == CardRarity.RARE
        assert spawner.generated_cards[0].destination == CardDestination.DRAW_MIDDLE
        assert spawner.count_effects[0].source == CountSource.MIN_DRAW_DISCARD

        one = bundle.get_stage("one")
        assert one.quota_table == (10, 20)
        assert one.probability_table.row_for(600).epic_weight == 10
        assert one.clear_condition.target_score == 100
        assert one.monster_preset.preset_id == "snap"
        assert bundle.next_stage("one").id == "two"
        assert bundle.next_stage("two") is None

    def test_load_file(self, tmp_path):
        path = tmp_path / "content.json"
        path.write_text(json.dumps(minimal_bundle()))
        assert len(load_content(path).stages) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(ContentValidationError) as exc:
            load_content(tmp_path / "missing.json")
        assert "not found" in exc.value.errors[0]

    def test_bad_json(self, tmp_path):
        path = tmp_path / "content.json"
        path.write_text("{")
        with pytest.raises(ContentValidationError):
            load_content(path)

    def test_dangling_card_reference(self):
        data = minimal_bundle()
        data["stages"][0]["draft_pool"].append("ghost")

        with pytest.raises(ContentValidationError) as exc:
            load_content(data)

        assert any("ghost" in e for e in exc.value.errors)

    def test_dangling_stage_requirement(self):
        data = minimal_bundle()
        data["stages"][1]["required_stage_ids"] = ["zero"]

        with pytest.raises(ContentValidationError) as exc:
            load_content(data)

        assert any("zero" in e for e in exc.value.errors)

    def test_unknown_fields_are_reported(self):
        data = minimal_bundle(settings={"max_mentl": 3})
        data["cards"][0]["impresion_rate"] = 1.0

        with pytest.raises(ContentValidationError) as exc:
            load_content(data)

        assert len(exc.value.errors) == 2

    def test_bad_enum_value(self):
        data = minimal_bundle()
        data["cards"][0]["rarity"] = "legendary"
        with pytest.raises(ContentValidationError):
            load_content(data)

    def test_bad_settings(self):
        with pytest.raises(ContentValidationError) as exc:
            load_content(minimal_bundle(settings={"monster_threshold": 50}))
        assert any("monster_threshold" in e for e in exc.value.errors)

    def test_non_numeric_setting(self):
        with pytest.raises(ContentValidationError) as exc:
            load_content(minimal_bundle(settings={"max_mental": "ten", "await_draw_animation": 1}))
        assert len(exc.value.errors) == 2
        assert any("settings.max_mental" in e for e in exc.value.errors)
        assert any("settings.await_draw_animation" in e for e in exc.value.errors)

    def test_settings_must_be_an_object(self):
        with pytest.raises(ContentValidationError) as exc:
            load_content(minimal_bundle(settings=[1, 2]))
        assert "'settings' must be an object" in exc.value.errors[0]

    def test_entries_that_are_not_objects(self):
        data = minimal_bundle()
        data["cards"].append("not_a_card")
        data["stages"].append(7)

        with pytest.raises(ContentValidationError) as exc:
            load_content(data)

        assert any("card at index 3" in e for e in exc.value.errors)
        assert any("stage at index 2" in e for e in exc.value.errors)

    def test_bad_card_field_type(self):
        data = minimal_bundle()
        data["cards"][0]["motivation_cost"] = "one"
        with pytest.raises(ContentValidationError) as exc:
            load_content(data)
        assert any("'post'" in e and "motivation_cost" in e for e in exc.value.errors)

    def test_bad_nested_entry(self):
        data = minimal_bundle()
        data["cards"][1]["generated_cards"] = ["post"]
        data["stages"][0]["initial_deck"] = [{"id": "post"}]

        with pytest.raises(ContentValidationError) as exc:
            load_content(data)

        assert any("'spawner'" in e for e in exc.value.errors)
        assert any("initial_deck" in e for e in exc.value.errors)

    def test_top_level_must_be_an_object(self, tmp_path):
        path = tmp_path / "content.json"
        path.write_text("[]")
        with pytest.raises(ContentValidationError) as exc:
            load_content(path)
        assert "must be an object" in exc.value.errors[0]


class TestValidation:
    def test_starter_content_is_valid(self, starter_content):
        result = validate_content(starter_content)
        assert result.valid, result.errors

    def test_empty_monster_pool_warns(self):
        data = minimal_bundle()
        data["stages"][1]["monster_pool"] = []

        bundle = load_content(data)
        result = validate_content(bundle)

        assert result.valid
        assert any("monster pool" in w for w in result.warnings)

    def test_descending_probability_rows(self):
        data = minimal_bundle()
        data["stages"][0]["probability_table"].reverse()
        with pytest.raises(ContentValidationError):
            load_content(data)
