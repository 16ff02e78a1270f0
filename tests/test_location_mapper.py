from __future__ import annotations

from factories import make_location
from membership.services.location_mapper import build_platform_index, location_name_index, resolve_location_id


def test_every_platform_id_maps_to_the_canonical_location() -> None:
    locations = [
        make_location("loc-1", "Downtown", pos="L-100", partner=[" P-100 "]),
        make_location("loc-2", "Uptown", pos="L-200"),
    ]

    index = build_platform_index(locations)

    assert index == {"L-100": "loc-1", "P-100": "loc-1", "L-200": "loc-2"}
    assert resolve_location_id(["P-100"], index) == "loc-1"
    assert resolve_location_id(" L-200 ", index) == "loc-2"


def test_unknown_or_malformed_platform_ids_do_not_resolve() -> None:
    index = build_platform_index([make_location("loc-1", "Downtown", pos="L-100")])

    assert resolve_location_id("L-999", index) is None
    assert resolve_location_id(None, index) is None
    assert resolve_location_id([], index) is None
    assert resolve_location_id([["L-100"]], index) is None
    assert resolve_location_id(100, index) is None


def test_blank_platform_ids_are_skipped() -> None:
    index = build_platform_index([make_location("loc-1", "Downtown", pos="", partner=[])])
    assert index == {}


def test_conflicting_claims_keep_the_first_location() -> None:
    index = build_platform_index(
        [
            make_location("loc-1", "Downtown", pos="L-100"),
            make_location("loc-2", "Uptown", partner="L-100"),
        ]
    )
    assert index["L-100"] == "loc-1"


def test_location_name_index() -> None:
    names = location_name_index([make_location("loc-1", "Downtown"), make_location("loc-2", "")])
    assert names == {"loc-1": "Downtown"}
