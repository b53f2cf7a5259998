from __future__ import annotations

import json

import pytest

from core.models import NestedPointer, RawPointer
from core.pointers import MAX_POINTER_DEPTH, gateway_address, normalize_pointer, parse_pointer

GATEWAY = "https://gw.example/ipfs/"
CANONICAL = "https://gw.example/ipfs/bafybeigabc"


@pytest.mark.parametrize(
    "pointer",
    [
        "ipfs://bafybeigabc",
        "https://gw.example/ipfs/bafybeigabc",
        "bafybeigabc",
        {"gatewayUrl": "https://gw.example/ipfs/bafybeigabc"},
    ],
)
def test_all_pointer_shapes_reach_the_same_address(pointer) -> None:
    assert normalize_pointer(pointer, GATEWAY) == CANONICAL


def test_parse_pointer_shapes() -> None:
    assert parse_pointer("  bafy  ") == RawPointer("bafy")
    assert parse_pointer({"cid": "bafy"}) == NestedPointer({"cid": "bafy"})
    assert parse_pointer(json.dumps({"cid": "bafy"})) == NestedPointer({"cid": "bafy"})
    assert parse_pointer("{not json") == RawPointer("{not json")
    assert parse_pointer(None) is None
    assert parse_pointer("   ") is None
    assert parse_pointer(12) is None


def test_key_priority_is_first_present_non_empty() -> None:
    pointer = {
        "hash": "bafyhash",
        "cid": "bafycid",
        "url": "",
        "ipfsUrl": "ipfs://bafyipfsurl",
    }
    assert normalize_pointer(pointer, GATEWAY) == f"{GATEWAY}bafyipfsurl"


def test_nested_objects_recurse() -> None:
    pointer = {"src": {"href": {"cid": "bafydeep"}}}
    assert normalize_pointer(pointer, GATEWAY) == f"{GATEWAY}bafydeep"


def test_json_string_pointer_is_decoded() -> None:
    pointer = json.dumps({"cid": "bafyjson", "name": "metadata.json"})
    assert normalize_pointer(pointer, GATEWAY) == f"{GATEWAY}bafyjson"


def test_ipfs_scheme_variants() -> None:
    assert normalize_pointer("ipfs://ipfs/bafyx", GATEWAY) == f"{GATEWAY}bafyx"
    assert normalize_pointer("ipfs://bafyx/chat.json", GATEWAY) == f"{GATEWAY}bafyx/chat.json"
    assert normalize_pointer("ipfs://", GATEWAY) is None


def test_other_urls_are_used_unchanged() -> None:
    url = "https://files.example.org/messages/1.json"
    assert normalize_pointer(url, GATEWAY) == url


def test_empty_inputs_normalize_to_none() -> None:
    assert normalize_pointer(None, GATEWAY) is None
    assert normalize_pointer("", GATEWAY) is None
    assert normalize_pointer({}, GATEWAY) is None
    assert normalize_pointer({"name": "no pointer keys"}, GATEWAY) is None


def test_gateway_address_adds_missing_slash() -> None:
    assert gateway_address("bafy", "https://gw.example/ipfs") == "https://gw.example/ipfs/bafy"


def _nested_json(levels: int, cid: str = "bafydeep") -> str:
    return '{"src":' * levels + json.dumps(cid) + "}" * levels


def test_nesting_within_limit_resolves() -> None:
    pointer = _nested_json(MAX_POINTER_DEPTH)
    assert normalize_pointer(pointer, GATEWAY) == f"{GATEWAY}bafydeep"


@pytest.mark.parametrize("levels", [MAX_POINTER_DEPTH + 1, 5_000, 200_000])
def test_deeply_nested_json_string_gives_no_address(levels: int) -> None:
    pointer = _nested_json(levels)
    assert parse_pointer(pointer) is None
    assert normalize_pointer(pointer, GATEWAY) is None


def test_deeply_nested_objects_give_no_address() -> None:
    pointer: dict = {"cid": "bafydeep"}
    for _ in range(MAX_POINTER_DEPTH + 1):
        pointer = {"src": pointer}
    assert normalize_pointer(pointer, GATEWAY) is None


def test_brackets_inside_strings_do_not_count_as_nesting() -> None:
    pointer = json.dumps({"name": "{" * 50, "cid": "bafyname"})
    assert normalize_pointer(pointer, GATEWAY) == f"{GATEWAY}bafyname"
