"""Derive the list of groups from explicit and generated config entries."""

from __future__ import annotations

from vector_tiles.common.errors import ConfigError
from vector_tiles.common.models import Group
from vector_tiles.common.time_utils import date_range_for_pattern
from vector_tiles.pipeline.normalise import get_record_type


def _explicit_group(entry: dict) -> Group:
    return Group(
        date_pattern=str(entry["pattern"]),
        record_type=str(entry["record_type"]),
        destination_id=str(entry["destination_id"]),
        account=str(entry["account"]),
        query_filter=entry.get("filter") or None,
    )


def _generated_groups(entry: dict, current_year: int) -> list[Group]:
    base_year = int(entry["base_year"])
    if base_year > current_year:
        raise ConfigError(f"generated base_year {base_year} is after the current year {current_year}")
    return [
        Group(
            date_pattern=str(year),
            record_type=str(entry["record_type"]),
            destination_id=f"{entry['destination_prefix']}-{year}",
            account=str(entry["account"]),
            query_filter=entry.get("filter") or None,
        )
        for year in range(base_year, current_year + 1)
    ]


def build_groups(explicit: list[dict], generated: list[dict], *, current_year: int) -> list[Group]:
    groups = [_explicit_group(entry) for entry in explicit]
    for entry in generated:
        groups.extend(_generated_groups(entry, current_year))

    seen: set[str] = set()
    for group in groups:
        get_record_type(group.record_type)
        date_range_for_pattern(group.date_pattern)
        if group.destination_id in seen:
            raise ConfigError(f"Duplicate destination_id across groups: {group.destination_id}")
        seen.add(group.destination_id)

    return groups
