from __future__ import annotations

import json
from pathlib import Path

import pytest

from vector_tiles.cli import parse_args, run_command
from vector_tiles.common.constants import EXIT_FAILURE, EXIT_SUCCESS

CONFIG = """search:
  url: "http://es.test:9200"
  index: sat-api
  page_size: 2
publish:
  api_url: "https://api.mapbox.test"
  token_env: TEST_MAPBOX_TOKEN
run:
  concurrency: 2
  staging_dir: {staging}
groups:
  - pattern: "2016"
    record_type: sentinel2
    destination_id: s2-2016
    account: devseed
  - pattern: "2016"
    record_type: landsat
    destination_id: landsat-2016
    account: devseed
    filter: "dayOrNight:DAY"
  - pattern: "2015-03"
    record_type: sentinel2
    destination_id: s2-2015-03
    account: devseed
"""


def _config(tmp_path: Path) -> Path:
    path = tmp_path / "updater.yml"
    path.write_text(CONFIG.format(staging=tmp_path / "staging"), encoding="utf-8")
    return path


@pytest.mark.integration
def test_cli_run_stages_and_publishes_every_group(
    tmp_path, monkeypatch, fake_search_client, fake_publisher, make_sentinel_record, make_landsat_record
):
    monkeypatch.setenv("TEST_MAPBOX_TOKEN", "tk.test")
    search = fake_search_client(
        {
            "sentinel2": [make_sentinel_record(), make_sentinel_record(grid_square="XY")],
            "landsat": [make_landsat_record()],
        }
    )
    publisher = fake_publisher()
    args = parse_args(["--config", str(_config(tmp_path)), "--run-id", "run-smoke"])

    exit_code = run_command(args, search_client=search, publisher=publisher)

    assert exit_code == EXIT_SUCCESS
    assert sorted(request.destination_id for request in publisher.requests) == ["landsat-2016", "s2-2015-03", "s2-2016"]
    summary = json.loads((tmp_path / "staging" / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "success"
    assert summary["groups"]["s2-2016"]["feature_count"] == 2
    assert summary["groups"]["landsat-2016"]["corrected_count"] == 1
    assert summary["groups"]["s2-2016"]["skipped_missing"] == 0
    assert summary["groups"]["s2-2016"]["skipped_unparseable"] == 0


@pytest.mark.integration
def test_cli_exits_nonzero_when_a_group_fails(tmp_path, monkeypatch, fake_search_client, fake_publisher, make_sentinel_record):
    monkeypatch.setenv("TEST_MAPBOX_TOKEN", "tk.test")
    search = fake_search_client({"sentinel2": [make_sentinel_record()]})
    publisher = fake_publisher(failing_destinations={"s2-2016"})
    args = parse_args(["--config", str(_config(tmp_path)), "--concurrency", "1"])

    exit_code = run_command(args, search_client=search, publisher=publisher)

    assert exit_code == EXIT_FAILURE
    summary = json.loads((tmp_path / "staging" / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "failed"
    assert summary["failure"]["group"] == "s2-2016"
    assert summary["failure"]["error_code"] == "PUBLISH_ERROR"


@pytest.mark.integration
def test_cli_requires_token_unless_dry_run(tmp_path, monkeypatch, fake_search_client, make_sentinel_record):
    monkeypatch.delenv("TEST_MAPBOX_TOKEN", raising=False)
    search = fake_search_client({"sentinel2": [make_sentinel_record()]})
    config = str(_config(tmp_path))

    assert run_command(parse_args(["--config", config]), search_client=search) == EXIT_FAILURE

    exit_code = run_command(parse_args(["--config", config, "--dry-run", "--group", "s2-2016"]), search_client=search)
    assert exit_code == EXIT_SUCCESS
    assert (tmp_path / "staging" / "s2-2016.geojson").exists()
    assert not (tmp_path / "staging" / "s2-2015-03.geojson").exists()


@pytest.mark.integration
def test_cli_rejects_unknown_group(tmp_path, fake_search_client):
    args = parse_args(["--config", str(_config(tmp_path)), "--dry-run", "--group", "nope"])
    assert run_command(args, search_client=fake_search_client()) == EXIT_FAILURE


@pytest.mark.integration
@pytest.mark.parametrize("flag", ["--concurrency", "--page-size"])
def test_cli_rejects_explicit_zero_override(tmp_path, flag, fake_search_client, make_sentinel_record):
    search = fake_search_client({"sentinel2": [make_sentinel_record()]})
    args = parse_args(["--config", str(_config(tmp_path)), "--dry-run", flag, "0"])

    assert run_command(args, search_client=search) == EXIT_FAILURE
    assert search.calls == []
