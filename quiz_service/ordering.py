from typing import Sequence, TypeVar

T = TypeVar("T")

_MASK_32 = 0xFFFFFFFF
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223


def seed_from(text: str) -> int:
    """32-bit polynomial string hash (h = h*31 + code point)."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & _MASK_32
    return h


def lcg(state: int) -> int:
    return (state * LCG_MULTIPLIER + LCG_INCREMENT) & _MASK_32


def seeded_shuffle(items: Sequence[T], seed: int) -> list[T]:
    """Fisher-Yates driven by the LCG; the input is left untouched."""
    out = list(items)
    state = seed & _MASK_32
    for i in range(len(out) - 1, 0, -1):
        state = lcg(state)
        j = state % (i + 1)
        out[i], out[j] = out[j], out[i]
    return out


def session_order(items: Sequence[T], user_id: str, session_id: str) -> list[T]:
    return seeded_shuffle(items, seed_from(f"{user_id}:{session_id}"))
