"""
Keyboard utilities for LLM Translator.

This module provides utilities for working with keyboard combinations:
normalizing key names, and formatting combinations for pynput and for display.
"""

import platform as _platform
import re
from typing import Iterable, List, Optional

# Aliases for modifier keys. The OS key is called "cmd" everywhere, as pynput does.
MODIFIER_ALIASES = {
    'ctrl': 'ctrl',
    'control': 'ctrl',
    'alt': 'alt',
    'option': 'alt',
    'opt': 'alt',
    'shift': 'shift',
    'cmd': 'cmd',
    'command': 'cmd',
    'win': 'cmd',
    'windows': 'cmd',
    'super': 'cmd',
    'meta': 'cmd',
}

# Canonical modifier order for formatting
MODIFIER_ORDER = ('ctrl', 'alt', 'shift', 'cmd')

MODIFIERS = frozenset(MODIFIER_ORDER)

# Special keys that need special handling
SPECIAL_KEYS = {
    'space': 'space',
    'enter': 'enter',
    'return': 'enter',
    'tab': 'tab',
    'esc': 'esc',
    'escape': 'esc',
    'backspace': 'backspace',
    'delete': 'delete',
    'del': 'delete',
    'insert': 'insert',
    'home': 'home',
    'end': 'end',
    'pageup': 'page_up',
    'page_up': 'page_up',
    'pagedown': 'page_down',
    'page_down': 'page_down',
    'up': 'up',
    'down': 'down',
    'left': 'left',
    'right': 'right',
}

# Display names of the OS key per platform
CMD_DISPLAY_NAMES = {
    'windows': 'Win',
    'darwin': 'Cmd',
    'linux': 'Super',
}


class KeyboardUtils:
    """Utility class for keyboard operations."""

    @staticmethod
    def get_platform() -> str:
        """Get the current platform."""
        system = _platform.system().lower()
        if system in ('windows', 'linux', 'darwin'):
            return system
        return 'unknown'

    @staticmethod
    def is_modifier(key: str) -> bool:
        return key in MODIFIERS

    @staticmethod
    def normalize_key(key: str) -> Optional[str]:
        """Normalize a single key name.

        Args:
            key: Key name in any supported spelling

        Returns:
            Optional[str]: Canonical key name or None if unknown
        """
        key = key.strip().lower()
        if not key:
            return None

        if key in MODIFIER_ALIASES:
            return MODIFIER_ALIASES[key]

        if key in SPECIAL_KEYS:
            return SPECIAL_KEYS[key]

        # Single character
        if len(key) == 1 and (key.isalnum() or key in "`-=[];',./\\"):
            return key

        # Function keys
        if re.match(r'^f([1-9]|1[0-9]|2[0-4])$', key):
            return key

        return None

    @staticmethod
    def split_hotkey(hotkey: str) -> List[str]:
        """Split a hotkey string like 'Ctrl+Shift+T' into raw key names."""
        if not hotkey:
            return []
        return [part.strip() for part in hotkey.split('+') if part.strip()]

    @staticmethod
    def order_keys(keys: Iterable[str]) -> List[str]:
        """Order canonical keys: modifiers first in a fixed order, then the rest."""
        keys = set(keys)
        modifiers = [m for m in MODIFIER_ORDER if m in keys]
        others = sorted(k for k in keys if k not in MODIFIERS)
        return modifiers + others

    @staticmethod
    def format_hotkey_for_pynput(keys: Iterable[str]) -> str:
        """Format canonical keys for pynput GlobalHotKeys.

        Returns:
            str: Hotkey formatted for pynput (e.g., '<ctrl>+<shift>+t')
        """
        formatted_parts = []
        for key in KeyboardUtils.order_keys(keys):
            if len(key) == 1:
                formatted_parts.append(key)
            else:
                formatted_parts.append(f"<{key}>")
        return '+'.join(formatted_parts)

    @staticmethod
    def format_hotkey_for_display(keys: Iterable[str], platform: Optional[str] = None) -> str:
        """Format canonical keys for display purposes (e.g., 'Ctrl + Shift + T')."""
        platform = platform or KeyboardUtils.get_platform()

        formatted_parts = []
        for key in KeyboardUtils.order_keys(keys):
            if key == 'cmd':
                formatted_parts.append(CMD_DISPLAY_NAMES.get(platform, 'Cmd'))
            elif len(key) == 1 or re.match(r'^f\d+$', key):
                formatted_parts.append(key.upper())
            else:
                formatted_parts.append(key.replace('_', ' ').title())

        return ' + '.join(formatted_parts)

    @staticmethod
    def get_copy_modifier(platform: Optional[str] = None) -> str:
        """Modifier used for copy/paste shortcuts on the platform."""
        platform = platform or KeyboardUtils.get_platform()
        return 'cmd' if platform == 'darwin' else 'ctrl'


__all__ = ["KeyboardUtils", "MODIFIERS", "MODIFIER_ORDER", "SPECIAL_KEYS"]
