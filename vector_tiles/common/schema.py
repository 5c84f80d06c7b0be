"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from vector_tiles.common.errors import ConfigError

GROUP_REQUIRED = {"pattern", "record_type", "destination_id", "account"}
GENERATED_REQUIRED = {"record_type", "base_year", "destination_prefix", "account"}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_int(value: object, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{ctx} must be a positive integer, got {value!r}")


def _validate_list(cfg: dict, key: str, required: set[str], allow_unknown: bool) -> None:
    entries = cfg.get(key) or []
    if not isinstance(entries, list):
        raise ConfigError(f"{key} must be a list")
    for idx, entry in enumerate(entries):
        ctx = f"{key}[{idx}]"
        _assert_required_keys(entry, required, ctx)
        _assert_no_unknown_keys(entry, required | {"filter"}, ctx, allow_unknown)


def validate_updater_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"search", "publish", "run"}
    top_known = top_required | {"groups", "generated"}
    _assert_required_keys(cfg, top_required, "updater config")
    _assert_no_unknown_keys(cfg, top_known, "updater config", allow_unknown)

    _assert_required_keys(cfg["search"], {"url", "index"}, "search")
    _assert_no_unknown_keys(cfg["search"], {"url", "index", "page_size"}, "search", allow_unknown)
    if "page_size" in cfg["search"]:
        _assert_positive_int(cfg["search"]["page_size"], "search.page_size")

    _assert_required_keys(cfg["publish"], {"api_url", "token_env"}, "publish")
    _assert_no_unknown_keys(
        cfg["publish"],
        {"api_url", "token_env", "poll_interval_seconds", "timeout_seconds", "minzoom", "maxzoom"},
        "publish",
        allow_unknown,
    )

    _assert_required_keys(cfg["run"], {"concurrency", "staging_dir"}, "run")
    _assert_positive_int(cfg["run"]["concurrency"], "run.concurrency")

    _validate_list(cfg, "groups", GROUP_REQUIRED, allow_unknown)
    _validate_list(cfg, "generated", GENERATED_REQUIRED, allow_unknown)

    return cfg
