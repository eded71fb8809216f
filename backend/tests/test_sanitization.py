from rfq_intel.models.schemas import ItemConfig, Rejected, RemoteConfig
from rfq_intel.utils.sanitization import (
    build_cost_request,
    clean_text,
    is_valid_for_cost_calc,
    sanitize,
    sanitize_all,
    sanitize_config,
)


def test_clean_text_strips_control_characters():
    assert clean_text("  Flange\x00\x1f ") == "Flange"
    assert clean_text(None) == ""


def test_zero_dimension_item_is_rejected(make_item):
    item = make_item(length=0, width=0, height=0)
    result = sanitize(item)
    assert isinstance(result, Rejected)
    assert result.item_id == item.id
    assert result.reason == "zero dimensions"
    assert not is_valid_for_cost_calc(item)


def test_placeholder_name_is_rejected(make_item):
    result = sanitize(make_item(description="{{article_name}}"))
    assert isinstance(result, Rejected)
    assert result.reason == "placeholder name"


def test_config_dimensions_take_precedence(make_item):
    item = make_item(
        length=0,
        width=0,
        height=0,
        config=ItemConfig(dimensions={"length": "10", "width": 5, "height": "x"}),
    )
    result = sanitize(item)
    assert isinstance(result, RemoteConfig)
    assert result.dimensions.length == 10
    assert result.dimensions.width == 5
    assert result.dimensions.height == 0


def test_sanitize_config_defaults_and_feature_remap(make_item):
    item = make_item(
        material="Brass",
        config=ItemConfig(
            features=[
                {"feature_type": "thread", "spec": " M8\n"},
                {"feature_type": "laser_engraving", "spec": "logo"},
                {"feature_type": ["bad"], "spec": None},
            ]
        ),
    )
    config = sanitize_config(item)
    assert config.form == "A"
    assert config.material == "Brass"
    assert config.material_id == ""
    assert config.weight_per_unit == 0.0
    assert [f.feature_type.value for f in config.features] == ["thread", "other", "other"]
    assert [f.spec for f in config.features] == ["M8", "logo", ""]


def test_config_material_wins_over_item_material(make_item):
    item = make_item(material="Brass", config=ItemConfig(material="SS 304", form="B"))
    config = sanitize_config(item)
    assert config.material == "SS 304"
    assert config.form == "B"


def test_build_cost_request_is_batch_of_one(make_item):
    request = build_cost_request(make_item(item_id="7", description="Shaft  M8 "))
    body = request.model_dump(mode="json")
    assert len(body["requested_items"]) == 1
    entry = body["requested_items"][0]
    assert entry["pos"] == "7"
    assert entry["article_name"] == "Shaft  M8 "
    assert entry["quantity"] == 10
    assert entry["config"]["dimensions"] == {"length": 100.0, "width": 50.0, "height": 20.0}


def test_sanitize_all_partitions_items(make_item):
    good = make_item("1")
    bad = make_item("2", length=0, width=0, height=0)
    accepted, rejected = sanitize_all([good, bad])
    assert [item.id for item, _ in accepted] == ["1"]
    assert [r.item_id for r in rejected] == ["2"]
