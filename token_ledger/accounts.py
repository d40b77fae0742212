"""
Account Identity Module

Opaque fixed-size account identifiers. An AccountId carries no meaning beyond
identity: two ids are the same account iff their raw bytes are equal.
"""

from dataclasses import dataclass
from typing import Final

ACCOUNT_ID_LENGTH: Final[int] = 32


@dataclass(frozen=True, order=True)
class AccountId:
    """Immutable 32-byte account identifier"""
    raw: bytes

    def __post_init__(self):
        if not isinstance(self.raw, (bytes, bytearray)):
            raise ValueError(f"AccountId requires bytes, got {type(self.raw).__name__}")
        if len(self.raw) != ACCOUNT_ID_LENGTH:
            raise ValueError(
                f"AccountId must be exactly {ACCOUNT_ID_LENGTH} bytes, got {len(self.raw)}"
            )
        # Normalize bytearray so the id stays hashable
        object.__setattr__(self, 'raw', bytes(self.raw))

    @classmethod
    def from_byte(cls, value: int) -> 'AccountId':
        """Build an id made of one repeated byte (e.g. 0x00 for a test account)"""
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Byte value out of range: {value}")
        return cls(bytes([value]) * ACCOUNT_ID_LENGTH)

    @classmethod
    def from_hex(cls, value: str) -> 'AccountId':
        """Parse an id from its hex rendering, with or without a 0x prefix"""
        if value.startswith(("0x", "0X")):
            value = value[2:]
        try:
            raw = bytes.fromhex(value)
        except ValueError as e:
            raise ValueError(f"Invalid AccountId hex: {e}") from e
        return cls(raw)

    def to_hex(self) -> str:
        return self.raw.hex()

    def short(self) -> str:
        """Abbreviated form for log lines"""
        return f"{self.raw[:4].hex()}..{self.raw[-2:].hex()}"

    def __str__(self) -> str:
        return self.to_hex()

    def __repr__(self) -> str:
        return f"AccountId({self.short()})"
