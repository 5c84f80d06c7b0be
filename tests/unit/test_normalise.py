import pytest

from vector_tiles.common.errors import ConfigError
from vector_tiles.pipeline.normalise import RECORD_TYPES, get_record_type, missing_fields, normalise_record


def test_landsat_record_derives_scene_code_day_and_year(make_landsat_record):
    feature = normalise_record(make_landsat_record(), get_record_type("landsat"))

    assert feature is not None
    assert feature.scene_code == "LC8001002"
    assert feature.day_of_year == 230
    assert feature.year == "16"
    assert feature.cloud_coverage == 4.0
    assert feature.geometry["type"] == "Polygon"


def test_sentinel_record_derives_scene_code_day_and_year(make_sentinel_record):
    feature = normalise_record(make_sentinel_record(), get_record_type("sentinel2"))

    assert feature is not None
    assert feature.scene_code == "03NWE0"
    assert feature.day_of_year == 230
    assert feature.year == "16"


def test_sentinel_day_of_year_accepts_timestamps(make_sentinel_record):
    feature = normalise_record(make_sentinel_record(date="2015-01-01T10:20:30.000Z"), get_record_type("sentinel2"))
    assert feature.day_of_year == 1
    assert feature.year == "15"


@pytest.mark.parametrize("field", RECORD_TYPES["landsat"].required_fields)
def test_landsat_missing_required_field_is_skipped(make_landsat_record, field):
    record = make_landsat_record()
    del record[field]
    assert normalise_record(record, get_record_type("landsat")) is None


@pytest.mark.parametrize("field", RECORD_TYPES["sentinel2"].required_fields)
def test_sentinel_null_required_field_is_skipped(make_sentinel_record, field):
    record = make_sentinel_record(**{field: None})
    strategy = get_record_type("sentinel2")
    assert normalise_record(record, strategy) is None
    assert missing_fields(record, strategy) == [field]


def test_zero_values_count_as_present(make_sentinel_record):
    feature = normalise_record(make_sentinel_record(cloud_coverage=0, utm_zone=0), get_record_type("sentinel2"))
    assert feature.cloud_coverage == 0.0
    assert feature.scene_code.startswith("00")


def test_unparseable_values_are_skipped(make_sentinel_record, make_landsat_record):
    assert normalise_record(make_sentinel_record(date="not-a-date"), get_record_type("sentinel2")) is None
    assert normalise_record(make_landsat_record(scene_id="LC8"), get_record_type("landsat")) is None


def test_feature_serialises_to_geojson(make_sentinel_record):
    feature = normalise_record(make_sentinel_record(), get_record_type("sentinel2"))
    assert feature.to_geojson()["properties"] == {
        "cloudCoverage": 12.5,
        "dayOfYear": 230,
        "sceneCode": "03NWE0",
        "year": "16",
    }


def test_unknown_record_type_raises_config_error():
    with pytest.raises(ConfigError):
        get_record_type("modis")


@pytest.mark.parametrize("field", ["date", "latitude_band", "grid_square", "path"])
def test_sentinel_empty_string_field_is_skipped(make_sentinel_record, field):
    record = make_sentinel_record(**{field: ""})
    strategy = get_record_type("sentinel2")
    assert normalise_record(record, strategy) is None
    assert missing_fields(record, strategy) == [field]


def test_landsat_empty_scene_id_is_skipped(make_landsat_record):
    assert normalise_record(make_landsat_record(scene_id=""), get_record_type("landsat")) is None
