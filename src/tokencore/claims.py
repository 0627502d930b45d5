"""Ordered claim sets used for token headers and payloads."""

from __future__ import annotations

import json
from typing import Any, Iterator, Mapping, Union

from .crypto.errors import CredentialError, CredentialErrorCode, invalid_encoding

ClaimValue = Union[str, int, bool, "ClaimSet"]


class ClaimSetError(CredentialError):
    """Raised when a claim set rejects a name or value."""


class ClaimSet:
    """Insertion-ordered collection of uniquely named claim values.

    Values are strings, integers, booleans or nested claim sets.  The
    canonical byte form is compact JSON (no whitespace) in insertion order.
    """

    def __init__(self) -> None:
        self._claims: dict[str, ClaimValue] = {}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ClaimSet":
        claims = cls()
        for name, value in mapping.items():
            claims.add(name, value)
        return claims

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "ClaimSet":
        """Parse a JSON object, rejecting duplicate names at any depth."""

        def _build(pairs: list[tuple[str, Any]]) -> ClaimSet:
            claims = cls()
            for name, value in pairs:
                claims.add(name, value)
            return claims

        try:
            parsed = json.loads(data, object_pairs_hook=_build)
        except (ValueError, RecursionError) as exc:
            # Includes JSONDecodeError, UnicodeDecodeError and integer digit limits.
            raise invalid_encoding(f"Claim set is not valid JSON: {exc}") from exc
        if not isinstance(parsed, ClaimSet):
            raise invalid_encoding("Claim set must be a JSON object")
        return parsed

    def add(self, name: str, value: Any) -> None:
        if name is None:
            raise ClaimSetError(
                CredentialErrorCode.NULL_PARAMETER,
                "Claim name must not be None",
                details={"parameter": "name"},
            )
        if not isinstance(name, str) or not name:
            raise ClaimSetError(
                CredentialErrorCode.ADD_CLAIM_FAILED, "Claim name must be a non-empty string"
            )
        if name in self._claims:
            raise ClaimSetError(
                CredentialErrorCode.ADD_CLAIM_FAILED,
                f"Duplicate claim '{name}'",
                details={"claim": name},
            )
        self._claims[name] = _coerce_value(name, value)

    def get(self, name: str, default: Any = None) -> Any:
        return self._claims.get(name, default)

    def items(self):
        return self._claims.items()

    def to_dict(self) -> dict[str, Any]:
        return {
            name: value.to_dict() if isinstance(value, ClaimSet) else value
            for name, value in self._claims.items()
        }

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False).encode(
            "utf-8"
        )

    def __getitem__(self, name: str) -> ClaimValue:
        return self._claims[name]

    def __contains__(self, name: object) -> bool:
        return name in self._claims

    def __iter__(self) -> Iterator[str]:
        return iter(self._claims)

    def __len__(self) -> int:
        return len(self._claims)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClaimSet):
            return NotImplemented
        return list(self.to_dict().items()) == list(other.to_dict().items())

    def __repr__(self) -> str:
        return f"ClaimSet({self.to_dict()!r})"


def _coerce_value(name: str, value: Any) -> ClaimValue:
    if value is None:
        raise ClaimSetError(
            CredentialErrorCode.NULL_PARAMETER,
            f"Claim '{name}' has no value",
            details={"claim": name},
        )
    if isinstance(value, (ClaimSet, str, bool, int)):
        return value
    if isinstance(value, Mapping):
        return ClaimSet.from_mapping(value)
    raise ClaimSetError(
        CredentialErrorCode.ADD_CLAIM_FAILED,
        f"Unsupported value type {type(value).__name__} for claim '{name}'",
        details={"claim": name},
    )


__all__ = ["ClaimSet", "ClaimSetError", "ClaimValue"]
