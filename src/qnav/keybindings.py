"""Editor keybinding table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping

from qnav.keys import KeyId, Keystroke, format_keystroke, keystroke_from_id

EditorAction = Literal[
    # Suggestions
    "completion",
    "searchUp",
    # Cursor movement
    "backward",
    "forward",
    "moveToHead",
    "moveToTail",
    "moveToPreviousNearest",
    "moveToNextNearest",
    # Deletion
    "erase",
    "eraseAll",
    "eraseToPreviousNearest",
    "eraseToNextNearest",
]

EditorKeybindingsConfig = Mapping[str, KeyId]

DEFAULT_EDITOR_KEYBINDINGS: dict[EditorAction, KeyId] = {
    "moveToTail": "ctrl+e",
    "backward": "left",
    "forward": "right",
    "completion": "tab",
    "moveToHead": "ctrl+a",
    "moveToPreviousNearest": "alt+b",
    "moveToNextNearest": "alt+f",
    "erase": "backspace",
    "eraseAll": "ctrl+u",
    "eraseToPreviousNearest": "ctrl+w",
    "eraseToNextNearest": "alt+d",
    "searchUp": "up",
}

# Order in which edit-mode actions claim a keystroke; the first match wins
EDIT_ACTION_PRIORITY: tuple[EditorAction, ...] = (
    "completion",
    "backward",
    "forward",
    "moveToHead",
    "moveToTail",
    "moveToPreviousNearest",
    "moveToNextNearest",
    "erase",
    "eraseAll",
    "eraseToPreviousNearest",
    "eraseToNextNearest",
)

_ACTION_FIELDS: dict[EditorAction, str] = {
    "moveToTail": "move_to_tail",
    "backward": "backward",
    "forward": "forward",
    "completion": "completion",
    "moveToHead": "move_to_head",
    "moveToPreviousNearest": "move_to_previous_nearest",
    "moveToNextNearest": "move_to_next_nearest",
    "erase": "erase",
    "eraseAll": "erase_all",
    "eraseToPreviousNearest": "erase_to_previous_nearest",
    "eraseToNextNearest": "erase_to_next_nearest",
    "searchUp": "search_up",
}


class KeybindingConfigError(ValueError):
    """Raised for unknown actions or unparsable key ids in a keybinding config."""


@dataclass(frozen=True)
class Keybinds:
    """One keystroke per editor action, fixed for the life of the editor.

    Slots may share a keystroke; :meth:`resolve` then reports the action
    that comes first in ``EDIT_ACTION_PRIORITY``.
    """

    move_to_tail: Keystroke
    backward: Keystroke
    forward: Keystroke
    completion: Keystroke
    move_to_head: Keystroke
    move_to_previous_nearest: Keystroke
    move_to_next_nearest: Keystroke
    erase: Keystroke
    erase_all: Keystroke
    erase_to_previous_nearest: Keystroke
    erase_to_next_nearest: Keystroke
    search_up: Keystroke
    _edit_lookup: dict[Keystroke, EditorAction] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        lookup: dict[Keystroke, EditorAction] = {}
        for action in EDIT_ACTION_PRIORITY:
            lookup.setdefault(self.keystroke_for(action), action)
        object.__setattr__(self, "_edit_lookup", lookup)

    @classmethod
    def from_config(cls, config: EditorKeybindingsConfig | None = None) -> Keybinds:
        """Build a table from the defaults overlaid with *config* key ids."""
        merged: dict[str, KeyId] = dict(DEFAULT_EDITOR_KEYBINDINGS)
        for action, key_id in (config or {}).items():
            if action not in _ACTION_FIELDS:
                raise KeybindingConfigError(f"Unknown editor action: {action!r}")
            if not isinstance(key_id, str):
                raise KeybindingConfigError(
                    f"Key for action {action!r} must be a string, got {key_id!r}"
                )
            merged[action] = key_id

        kwargs: dict[str, Keystroke] = {}
        for action, key_id in merged.items():
            try:
                kwargs[_ACTION_FIELDS[action]] = keystroke_from_id(key_id)
            except (TypeError, ValueError) as e:
                raise KeybindingConfigError(
                    f"Invalid key {key_id!r} for action {action!r}: {e}"
                ) from e
        return cls(**kwargs)

    def keystroke_for(self, action: EditorAction) -> Keystroke:
        return getattr(self, _ACTION_FIELDS[action])

    def resolve(self, keystroke: Keystroke) -> EditorAction | None:
        """Return the edit-mode action bound to *keystroke*, if any."""
        return self._edit_lookup.get(keystroke)

    def to_config(self) -> dict[EditorAction, KeyId]:
        """Render the table back into ``{action: key id}`` form."""
        return {
            action: format_keystroke(self.keystroke_for(action))
            for action in _ACTION_FIELDS
        }


DEFAULT_KEYBINDS = Keybinds.from_config()
