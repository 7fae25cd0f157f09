"""
Hotkey conflict detection for LLM Translator.

Checks key combinations against the host platform's reserved shortcuts and
against the combinations this application already holds, and picks a
fallback from a fixed list when the preferred combination is unavailable.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set

from loguru import logger

from ..utils.keyboard_utils import KeyboardUtils
from .errors import HotkeyConflictError

MAX_COMBO_KEYS = 4


@dataclass(frozen=True)
class KeyCombo:
    """Unordered set of canonical key names; 'Shift+Ctrl+T' == 'Ctrl+Shift+T'."""

    keys: FrozenSet[str]

    @classmethod
    def parse(cls, hotkey: str) -> "KeyCombo":
        """Parse a hotkey string such as 'Ctrl+Shift+T'.

        Raises:
            ValueError: Empty combination, unknown key name, more than one
                non-modifier key or more than four keys.
        """
        raw_keys = KeyboardUtils.split_hotkey(hotkey)
        if not raw_keys:
            raise ValueError("Hotkey cannot be empty")

        keys = set()
        for raw in raw_keys:
            key = KeyboardUtils.normalize_key(raw)
            if key is None:
                raise ValueError(f"Unknown key '{raw}' in hotkey '{hotkey}'")
            keys.add(key)

        non_modifiers = [key for key in keys if not KeyboardUtils.is_modifier(key)]
        if len(non_modifiers) > 1:
            raise ValueError(f"Hotkey '{hotkey}' has more than one non-modifier key")

        if len(keys) > MAX_COMBO_KEYS:
            raise ValueError(f"Hotkey '{hotkey}' has more than {MAX_COMBO_KEYS} keys")

        return cls(frozenset(keys))

    @classmethod
    def of(cls, *keys: str) -> "KeyCombo":
        return cls.parse("+".join(keys))

    def __len__(self) -> int:
        return len(self.keys)

    def __str__(self) -> str:
        return "+".join(KeyboardUtils.order_keys(self.keys))

    def to_pynput(self) -> str:
        return KeyboardUtils.format_hotkey_for_pynput(self.keys)

    def display(self, platform: Optional[str] = None) -> str:
        return KeyboardUtils.format_hotkey_for_display(self.keys, platform)


class HotkeyVerdict(str, Enum):
    """Result of checking a combination."""

    VALID = "valid"
    SYSTEM_CONFLICT = "system_conflict"
    ALREADY_REGISTERED = "already_registered"
    TOO_SIMPLE = "too_simple"


# Shortcuts owned by the operating system or universally expected by applications
RESERVED_HOTKEYS: Dict[str, List[str]] = {
    'windows': [
        'alt+tab', 'alt+f4', 'ctrl+alt+delete', 'cmd+l', 'cmd+tab', 'cmd+d', 'cmd+r',
        'cmd+e', 'ctrl+shift+esc', 'alt+esc', 'ctrl+esc',
        'ctrl+c', 'ctrl+v', 'ctrl+x', 'ctrl+z', 'ctrl+y', 'ctrl+a',
    ],
    'darwin': [
        'cmd+q', 'cmd+w', 'cmd+space', 'cmd+tab', 'cmd+h', 'cmd+m', 'cmd+alt+esc',
        'cmd+shift+3', 'cmd+shift+4', 'cmd+shift+5', 'ctrl+cmd+q', 'ctrl+cmd+space',
        'cmd+c', 'cmd+v', 'cmd+x', 'cmd+z', 'cmd+a',
    ],
    'linux': [
        'alt+tab', 'alt+f4', 'alt+f2', 'ctrl+alt+delete', 'ctrl+alt+l', 'ctrl+alt+t',
        'cmd+l', 'ctrl+c', 'ctrl+v', 'ctrl+x', 'ctrl+z', 'ctrl+y', 'ctrl+a',
    ],
}

DEFAULT_FALLBACKS = (
    'ctrl+shift+t',
    'ctrl+alt+t',
    'alt+shift+t',
    'ctrl+shift+l',
    'ctrl+alt+l',
    'alt+shift+l',
)


def _build_reserved_table() -> Dict[str, FrozenSet[KeyCombo]]:
    return {
        platform: frozenset(KeyCombo.parse(hotkey) for hotkey in hotkeys)
        for platform, hotkeys in RESERVED_HOTKEYS.items()
    }


# Built once at import; read-only afterwards
RESERVED_COMBOS: Dict[str, FrozenSet[KeyCombo]] = _build_reserved_table()


class HotkeyValidator:
    """Validates combinations and suggests fallbacks.

    The reserved table is chosen once from the platform given at construction
    (the current platform by default). The fallback list is fixed, so
    suggest_alternative always terminates after at most one pass over it.
    """

    def __init__(self, platform: Optional[str] = None, fallbacks: Optional[Sequence[str]] = None):
        self.platform = platform or KeyboardUtils.get_platform()
        self._reserved = RESERVED_COMBOS.get(self.platform, frozenset())
        self._fallbacks = tuple(KeyCombo.parse(h) for h in (fallbacks or DEFAULT_FALLBACKS))
        self._registered: Set[KeyCombo] = set()

        if self.platform not in RESERVED_COMBOS:
            logger.warning(f"No reserved hotkey table for platform '{self.platform}'")

    @property
    def fallbacks(self) -> tuple:
        return self._fallbacks

    @property
    def registered(self) -> FrozenSet[KeyCombo]:
        return frozenset(self._registered)

    def is_reserved(self, combo: KeyCombo) -> bool:
        return combo in self._reserved

    def validate(self, combo: KeyCombo) -> HotkeyVerdict:
        if combo in self._reserved:
            return HotkeyVerdict.SYSTEM_CONFLICT
        if combo in self._registered:
            return HotkeyVerdict.ALREADY_REGISTERED
        if len(combo) < 2 or not any(KeyboardUtils.is_modifier(key) for key in combo.keys):
            return HotkeyVerdict.TOO_SIMPLE
        return HotkeyVerdict.VALID

    def register(self, combo: KeyCombo) -> None:
        """Claim a combination for this application.

        Raises:
            HotkeyConflictError: The combination does not validate.
        """
        verdict = self.validate(combo)
        if verdict is not HotkeyVerdict.VALID:
            raise HotkeyConflictError(combo, verdict)
        self._registered.add(combo)
        logger.debug(f"Hotkey claimed: {combo}")

    def unregister(self, combo: KeyCombo) -> bool:
        if combo in self._registered:
            self._registered.discard(combo)
            logger.debug(f"Hotkey released: {combo}")
            return True
        return False

    def clear_registered(self) -> None:
        self._registered.clear()

    def suggest_alternative(
        self, combo: KeyCombo, exclude: Iterable[KeyCombo] = ()
    ) -> Optional[KeyCombo]:
        """First fallback that validates and is neither `combo` nor excluded.

        `combo` itself is always skipped, even when it appears in the fallback
        list and would validate: callers ask for an alternative after the
        combo was rejected, possibly by the hotkey backend rather than by
        validate(), so suggesting it again would loop.
        """
        skipped = set(exclude)
        skipped.add(combo)
        for candidate in self._fallbacks:
            if candidate in skipped:
                continue
            if self.validate(candidate) is HotkeyVerdict.VALID:
                return candidate
        return None


__all__ = [
    "KeyCombo",
    "HotkeyVerdict",
    "HotkeyValidator",
    "RESERVED_HOTKEYS",
    "RESERVED_COMBOS",
    "DEFAULT_FALLBACKS",
]
