"""Tests for ordered claim sets."""

from __future__ import annotations

import pytest

from tokencore.claims import ClaimSet, ClaimSetError
from tokencore.crypto.errors import CredentialError, CredentialErrorCode


def test_serialization_is_compact_and_ordered() -> None:
    claims = ClaimSet()
    claims.add("login", "alice")
    claims.add("admin", True)
    claims.add("exp", 1700000000)

    assert claims.to_bytes() == b'{"login":"alice","admin":true,"exp":1700000000}'
    assert list(claims) == ["login", "admin", "exp"]


def test_nested_sets_serialize_recursively() -> None:
    inner = ClaimSet.from_mapping({"role": "viewer", "level": 2})
    outer = ClaimSet()
    outer.add("profile", inner)
    outer.add("meta", {"source": "login"})

    assert outer.to_bytes() == (
        b'{"profile":{"role":"viewer","level":2},"meta":{"source":"login"}}'
    )
    assert isinstance(outer["meta"], ClaimSet)


def test_non_ascii_values_are_emitted_as_utf8() -> None:
    claims = ClaimSet.from_mapping({"login": "żaneta"})
    assert claims.to_bytes() == '{"login":"żaneta"}'.encode("utf-8")


def test_duplicate_name_is_rejected() -> None:
    claims = ClaimSet.from_mapping({"login": "alice"})
    with pytest.raises(ClaimSetError) as excinfo:
        claims.add("login", "bob")
    assert excinfo.value.code is CredentialErrorCode.ADD_CLAIM_FAILED
    assert claims["login"] == "alice"


@pytest.mark.parametrize("value", [1.5, ["a"], object()])
def test_unsupported_value_types_are_rejected(value: object) -> None:
    with pytest.raises(ClaimSetError) as excinfo:
        ClaimSet().add("claim", value)
    assert excinfo.value.code is CredentialErrorCode.ADD_CLAIM_FAILED


def test_missing_name_or_value_is_null_parameter() -> None:
    with pytest.raises(ClaimSetError) as excinfo:
        ClaimSet().add(None, "x")  # type: ignore[arg-type]
    assert excinfo.value.code is CredentialErrorCode.NULL_PARAMETER

    with pytest.raises(ClaimSetError) as excinfo:
        ClaimSet().add("x", None)
    assert excinfo.value.code is CredentialErrorCode.NULL_PARAMETER


def test_from_json_round_trips_canonical_bytes() -> None:
    original = ClaimSet.from_mapping({"alg": "HS256", "typ": "JWT", "n": {"a": 1}})
    parsed = ClaimSet.from_json(original.to_bytes())
    assert parsed == original
    assert parsed.to_bytes() == original.to_bytes()


def test_from_json_rejects_duplicate_names() -> None:
    ClaimSet.from_json('{"name": 1, "name_1": 2}')
    with pytest.raises(ClaimSetError):
        ClaimSet.from_json('{"name": 1, "name": 2}')


@pytest.mark.parametrize("raw", ["[1, 2]", "not json", b"\xff\xfe\x00"])
def test_from_json_rejects_non_objects(raw: object) -> None:
    with pytest.raises(CredentialError) as excinfo:
        ClaimSet.from_json(raw)  # type: ignore[arg-type]
    assert excinfo.value.code is CredentialErrorCode.INVALID_ENCODING


@pytest.mark.parametrize(
    "raw",
    [
        pytest.param('{"n":' + "9" * 5000 + "}", id="oversized-int"),
        pytest.param('{"a":' * 100000 + "1" + "}" * 100000, id="deep-nesting"),
    ],
)
def test_from_json_reports_parser_limits_as_invalid_encoding(raw: str) -> None:
    with pytest.raises(CredentialError) as excinfo:
        ClaimSet.from_json(raw)
    assert excinfo.value.code is CredentialErrorCode.INVALID_ENCODING
