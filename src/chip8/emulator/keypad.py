"""
Keypad (Input Latch) for CHIP-8 VM
==================================

The CHIP-8 has a 16-key hexadecimal keypad. The VM only ever sees a
16-element down/up latch indexed by key code; the host refreshes the whole
latch once per cycle and the VM reads it.

COSMAC VIP keypad and the conventional host mapping:

    CHIP-8 keypad         Host keyboard
    +---+---+---+---+     +---+---+---+---+
    | 1 | 2 | 3 | C |     | 1 | 2 | 3 | 4 |
    +---+---+---+---+     +---+---+---+---+
    | 4 | 5 | 6 | D |     | Q | W | E | R |
    +---+---+---+---+     +---+---+---+---+
    | 7 | 8 | 9 | E |     | A | S | D | F |
    +---+---+---+---+     +---+---+---+---+
    | A | 0 | B | F |     | Z | X | C | V |
    +---+---+---+---+     +---+---+---+---+

Copyright (c) 2025 chip8-vm Contributors
"""

from typing import Dict, Iterable, List, Optional, Union


NUM_KEYS = 16


# =============================================================================
# HOST KEY TABLE
# =============================================================================
# Maps host key names (upper case) to CHIP-8 key codes.

KEY_MAP: Dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}


def key_code(key: Union[str, int]) -> int:
    """
    Resolve a host key name or raw key code to a CHIP-8 key code.

    Args:
        key: Host key name from KEY_MAP (case-insensitive) or int 0-15

    Raises:
        ValueError: If the key is unknown or out of range
    """
    if isinstance(key, int):
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key code must be 0-15, got {key}")
        return key

    code = KEY_MAP.get(key.upper())
    if code is None:
        raise ValueError(
            f"Unknown key '{key}'. Valid keys: {', '.join(KEY_MAP)}"
        )
    return code


def state_from_names(names: Iterable[Union[str, int]]) -> List[bool]:
    """
    Build a full 16-element latch with the given keys down.

    Example:
        >>> state = state_from_names(["W", "S"])
        >>> [i for i, down in enumerate(state) if down]
        [5, 8]
    """
    state = [False] * NUM_KEYS
    for name in names:
        state[key_code(name)] = True
    return state


class Keypad:
    """
    16-key input latch.

    The host either overwrites the whole latch once per cycle with
    set_state(), or drives individual keys with press_key()/release_key().

    Example:
        >>> kp = Keypad()
        >>> kp.press_key("Q")
        >>> kp.is_pressed(0x4)
        True
        >>> kp.first_pressed()
        4
    """

    def __init__(self):
        self._keys = [False] * NUM_KEYS

    @property
    def keys(self) -> tuple[bool, ...]:
        """Read-only view of the latch, indexed by key code."""
        return tuple(self._keys)

    def set_state(self, keys: Iterable[bool]) -> None:
        """
        Overwrite the whole latch.

        Args:
            keys: Exactly 16 truthy/falsy values, index = key code

        Raises:
            ValueError: If keys does not have 16 entries
        """
        state = [bool(k) for k in keys]
        if len(state) != NUM_KEYS:
            raise ValueError(f"Keypad state needs {NUM_KEYS} entries, got {len(state)}")
        self._keys = state

    def is_pressed(self, key: int) -> bool:
        """True if the key with this code is down."""
        return self._keys[key]

    def first_pressed(self) -> Optional[int]:
        """Lowest-indexed key that is down, or None."""
        for index, down in enumerate(self._keys):
            if down:
                return index
        return None

    def press_key(self, key: Union[str, int]) -> None:
        """Mark a key down by host name or key code."""
        self._keys[key_code(key)] = True

    def release_key(self, key: Union[str, int]) -> None:
        """Mark a key up by host name or key code."""
        self._keys[key_code(key)] = False

    def release_all(self) -> None:
        """Mark every key up."""
        self._keys = [False] * NUM_KEYS

    def __repr__(self) -> str:
        down = ", ".join(f"{i:X}" for i, k in enumerate(self._keys) if k)
        return f"Keypad(down=[{down}])"
