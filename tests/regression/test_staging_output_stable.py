from pathlib import Path

import pytest

from vector_tiles.cli import parse_args, run_command

CONFIG = """search:
  url: "http://es.test:9200"
  index: sat-api
publish:
  api_url: "https://api.mapbox.test"
  token_env: TEST_MAPBOX_TOKEN
run:
  concurrency: 1
  staging_dir: {staging}
groups:
  - pattern: "2016"
    record_type: landsat
    destination_id: landsat-2016
    account: devseed
"""


def _run_once(tmp_path: Path, name: str, search_client) -> Path:
    staging = tmp_path / name
    config = tmp_path / f"{name}.yml"
    config.write_text(CONFIG.format(staging=staging), encoding="utf-8")
    args = parse_args(["--config", str(config), "--dry-run", "--run-id", f"run-{name}"])
    assert run_command(args, search_client=search_client) == 0
    return staging / "landsat-2016.geojson"


@pytest.mark.regression
def test_staged_collection_is_byte_stable_for_same_inputs(tmp_path: Path, fake_search_client, make_landsat_record):
    def _records():
        return {"landsat": [make_landsat_record(row=row) for row in range(1, 5)]}

    first = _run_once(tmp_path, "first", fake_search_client(_records()))
    second = _run_once(tmp_path, "second", fake_search_client(_records()))

    assert first.read_bytes() == second.read_bytes()
    assert b'"sceneCode":"LC8001004"' in first.read_bytes()
