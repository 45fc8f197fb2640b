"""Felt helpers: u256 (low, high) pairs, hex rendering and event selectors."""

from __future__ import annotations

from starknet_py.hash.selector import get_selector_from_name

U128_BOUND = 1 << 128
U256_BOUND = 1 << 256

# Computed once per process: sn_keccak of the Cairo event name.
PAYMENT_CREATED_SELECTOR = get_selector_from_name("PaymentCreated")
PAYMENT_COMPLETED_SELECTOR = get_selector_from_name("PaymentCompleted")


def to_int(value: int | str) -> int:
    """Coerce a felt given as int, ``0x`` hex or decimal string."""
    if isinstance(value, int):
        return value
    text = value.strip().lower()
    if text.startswith("0x"):
        return int(text, 16)
    return int(text)


def u256_from_felts(low: int, high: int) -> int:
    """Rebuild a u256 from its two 128-bit halves."""
    if not 0 <= low < U128_BOUND:
        raise ValueError(f"u256 low half out of range: {low:#x}")
    if not 0 <= high < U128_BOUND:
        raise ValueError(f"u256 high half out of range: {high:#x}")
    return (high << 128) + low


def u256_to_felts(value: int) -> tuple[int, int]:
    """Split a u256 into ``(low, high)``."""
    if not 0 <= value < U256_BOUND:
        raise ValueError(f"value does not fit in u256: {value}")
    return value % U128_BOUND, value >> 128


def felt_to_hex(value: int) -> str:
    """Render an address-like felt as 0x-prefixed, 64 digit hex."""
    return f"0x{value:064x}"


def felt_to_token(value: int) -> str:
    """Render a felt as a correlation token.

    Lowercase hex without prefix, padded to whole bytes, which is how order
    ids are minted (hex of random bytes).
    """
    digits = f"{value:x}"
    if len(digits) % 2:
        digits = "0" + digits
    return digits
