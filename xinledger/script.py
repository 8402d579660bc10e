"""Threshold scripts guarding outputs."""

from __future__ import annotations

import binascii
import json

OPERATOR_0 = 0x00
OPERATOR_64 = 0x40
OPERATOR_SUM = 0xFE
OPERATOR_CMP = 0xFF


class ScriptError(ValueError):
    """A script is malformed or not satisfied."""


class Script(bytes):
    """A byte script of the form CMP SUM threshold."""

    @classmethod
    def threshold(cls, n: int) -> Script:
        return cls(bytes((OPERATOR_CMP, OPERATOR_SUM, n)))

    def verify_format(self) -> None:
        if len(self) != 3:
            raise ScriptError(f"invalid script length {len(self)}")
        if self[0] != OPERATOR_CMP or self[1] != OPERATOR_SUM:
            raise ScriptError(f"invalid script operators {self[0]} {self[1]}")
        if self[2] > OPERATOR_64:
            raise ScriptError(f"invalid script threshold {self[2]}")

    def validate(self, total: int) -> None:
        """Check the format and that ``total`` signatures meet the threshold."""
        self.verify_format()
        if total < self[2]:
            raise ScriptError(f"invalid signature keys {total} {self[2]}")

    def __str__(self) -> str:
        return self.hex()

    def to_json(self) -> str:
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str) -> Script:
        decoded = json.loads(text)
        if not isinstance(decoded, str):
            raise ScriptError(f"script must be a JSON string: {text!r}")
        try:
            return cls(binascii.unhexlify(decoded))
        except binascii.Error as exc:
            raise ScriptError(f"invalid script hex {decoded!r}") from exc