"""Keystroke decoding for raw terminal input.

Turns complete terminal input sequences (kitty keyboard protocol, xterm
``modifyOtherKeys``, legacy VT escapes, control bytes and plain text) into
structured :class:`Keystroke` values, and converts textual key ids such as
``"ctrl+a"`` or ``"alt+left"`` to and from keystrokes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Optional

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str

# ---------------------------------------------------------------------------
# Keystroke model
# ---------------------------------------------------------------------------


class Modifiers(IntFlag):
    """Modifier keys held during a keystroke (kitty protocol bit layout)."""

    NONE = 0
    SHIFT = 1
    ALT = 2
    CONTROL = 4
    SUPER = 8
    HYPER = 16
    META = 32


class KeyEventKind(Enum):
    PRESS = "press"
    REPEAT = "repeat"
    RELEASE = "release"


class KeyEventState(IntFlag):
    """Auxiliary state reported alongside a keystroke."""

    NONE = 0
    KEYPAD = 1
    CAPS_LOCK = 2
    NUM_LOCK = 4


@dataclass(frozen=True)
class Keystroke:
    """One decoded terminal key event.

    ``code`` is either a single character (``"a"``, ``"A"``, ``" "``) or a
    named key from :class:`Key` (``"tab"``, ``"up"``, ``"f5"``). Equality is
    structural over all four fields.
    """

    code: str
    modifiers: Modifiers = Modifiers.NONE
    kind: KeyEventKind = KeyEventKind.PRESS
    state: KeyEventState = KeyEventState.NONE

    @property
    def char(self) -> str | None:
        """The printable character carried by this keystroke, if any."""
        if len(self.code) == 1 and self.code.isprintable():
            return self.code
        return None


# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key codes used in keystrokes and key ids."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    clear = "clear"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"


NAMED_KEYS: frozenset[str] = frozenset(
    {
        Key.escape, Key.enter, Key.tab, Key.backspace, Key.delete,
        Key.insert, Key.clear, Key.home, Key.end, Key.page_up,
        Key.page_down, Key.up, Key.down, Key.left, Key.right,
        *(f"f{n}" for n in range(1, 13)),
    }
)

# Aliases accepted in key ids
_KEY_ALIASES: dict[str, str] = {
    "esc": Key.escape,
    "return": Key.enter,
    "space": " ",
    "pageup": Key.page_up,
    "pagedown": Key.page_down,
}

_MODIFIER_NAMES: dict[str, Modifiers] = {
    "ctrl": Modifiers.CONTROL,
    "control": Modifiers.CONTROL,
    "shift": Modifiers.SHIFT,
    "alt": Modifiers.ALT,
    "meta": Modifiers.META,
    "super": Modifiers.SUPER,
    "hyper": Modifiers.HYPER,
}

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LOCK_MASK = 64 + 128
_CAPS_LOCK_BIT = 64
_NUM_LOCK_BIT = 128

_KP_ENTER = 57414

CODEPOINTS: dict[int, str] = {
    27: Key.escape,
    9: Key.tab,
    13: Key.enter,
    127: Key.backspace,
    _KP_ENTER: Key.enter,
}

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[15~": "f5",
    "\x1b[17~": "f6",
    "\x1b[18~": "f7",
    "\x1b[19~": "f8",
    "\x1b[20~": "f9",
    "\x1b[21~": "f10",
    "\x1b[23~": "f11",
    "\x1b[24~": "f12",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[E": "clear",
}

# rxvt-style modified arrows
LEGACY_MODIFIED_SEQUENCES: dict[str, tuple[str, Modifiers]] = {
    "\x1b[a": ("up", Modifiers.SHIFT),
    "\x1b[b": ("down", Modifiers.SHIFT),
    "\x1b[c": ("right", Modifiers.SHIFT),
    "\x1b[d": ("left", Modifiers.SHIFT),
    "\x1bOa": ("up", Modifiers.CONTROL),
    "\x1bOb": ("down", Modifiers.CONTROL),
    "\x1bOc": ("right", Modifiers.CONTROL),
    "\x1bOd": ("left", Modifiers.CONTROL),
    "\x1b[Z": ("tab", Modifiers.SHIFT),
}

# Shifted key mapping for symbols (shift + base key)
SHIFTED_KEY_MAP: dict[str, str] = {
    "`": "~",
    "1": "!",
    "2": "@",
    "3": "#",
    "4": "$",
    "5": "%",
    "6": "^",
    "7": "&",
    "8": "*",
    "9": "(",
    "0": ")",
    "-": "_",
    "=": "+",
    "[": "{",
    "]": "}",
    "\\": "|",
    ";": ":",
    "'": '"',
    ",": "<",
    ".": ">",
    "/": "?",
}

UNSHIFTED_KEY_MAP: dict[str, str] = {v: k for k, v in SHIFTED_KEY_MAP.items()}

# ---------------------------------------------------------------------------
# Kitty protocol parsing
# ---------------------------------------------------------------------------


@dataclass
class ParsedKittySequence:
    codepoint: int
    shifted_key: Optional[int]
    base_layout_key: Optional[int]
    modifier: int
    event_type: int  # 1 = press, 2 = repeat, 3 = release


# CSI u format: \x1b[<codepoint>(:<shifted_key>(:<base_layout_key>))?(;<modifier>(:<event_type>))?u
_KITTY_CSI_U_RE = re.compile(
    r"\x1b\[(\d+)(?::(\d*)(?::(\d+))?)?(?:;(\d+)(?::(\d+))?)?u$"
)

# Arrows, home/end and F1-F4 with modifier: \x1b[1;<modifier>(:<event_type>)?<letter>
_KITTY_LETTER_RE = re.compile(r"\x1b\[1;(\d+)(?::(\d+))?([ABCDHFPQRS])$")

# Functional keys with modifier: \x1b[<number>(;<modifier>(:<event_type>)?)?~
_KITTY_FUNCTIONAL_RE = re.compile(r"\x1b\[(\d+)(?:;(\d+)(?::(\d+))?)?~$")

# xterm modifyOtherKeys: \x1b[27;<modifier>;<keycode>~
_MODIFY_OTHER_KEYS_RE = re.compile(r"\x1b\[27;(\d+);(\d+)~$")

_LETTER_TO_KEY: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

_FUNCTIONAL_NUMBER_TO_KEY: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
    7: "home",
    8: "end",
    11: "f1",
    12: "f2",
    13: "f3",
    14: "f4",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

# Kitty private-use codepoints for keypad and function keys
_KITTY_PRIVATE_CODEPOINTS: dict[int, str] = {
    57364: "f1",
    57365: "f2",
    57366: "f3",
    57367: "f4",
    57368: "f5",
    57369: "f6",
    57370: "f7",
    57371: "f8",
    57372: "f9",
    57373: "f10",
    57374: "f11",
    57375: "f12",
    57417: "left",
    57418: "right",
    57419: "up",
    57420: "down",
    57421: "pageUp",
    57422: "pageDown",
    57423: "home",
    57424: "end",
    57425: "insert",
    57426: "delete",
}

_EVENT_TYPES: dict[int, KeyEventKind] = {
    1: KeyEventKind.PRESS,
    2: KeyEventKind.REPEAT,
    3: KeyEventKind.RELEASE,
}


def parse_kitty_sequence(data: str) -> ParsedKittySequence | None:
    """Parse a kitty keyboard protocol sequence from terminal input data.

    Returns a ``ParsedKittySequence`` or ``None`` if the data does not match
    any recognised kitty protocol pattern. Named keys are reported with a
    negative codepoint indexing into ``_NAMED_CODEPOINTS``.
    """
    m = _KITTY_CSI_U_RE.match(data)
    if m:
        return ParsedKittySequence(
            codepoint=int(m.group(1)),
            shifted_key=int(m.group(2)) if m.group(2) else None,
            base_layout_key=int(m.group(3)) if m.group(3) else None,
            modifier=int(m.group(4)) if m.group(4) else 1,
            event_type=int(m.group(5)) if m.group(5) else 1,
        )

    m = _KITTY_LETTER_RE.match(data)
    if m:
        return ParsedKittySequence(
            codepoint=_named_codepoint(_LETTER_TO_KEY[m.group(3)]),
            shifted_key=None,
            base_layout_key=None,
            modifier=int(m.group(1)),
            event_type=int(m.group(2)) if m.group(2) else 1,
        )

    m = _KITTY_FUNCTIONAL_RE.match(data)
    if m:
        name = _FUNCTIONAL_NUMBER_TO_KEY.get(int(m.group(1)))
        if name is None:
            return None
        return ParsedKittySequence(
            codepoint=_named_codepoint(name),
            shifted_key=None,
            base_layout_key=None,
            modifier=int(m.group(2)) if m.group(2) else 1,
            event_type=int(m.group(3)) if m.group(3) else 1,
        )

    return None


_NAMED_CODEPOINTS: list[str] = sorted(NAMED_KEYS)


def _named_codepoint(name: str) -> int:
    return -1 - _NAMED_CODEPOINTS.index(name)


def _split_modifier(raw: int) -> tuple[Modifiers, KeyEventState]:
    bits = raw - 1
    state = KeyEventState.NONE
    if bits & _CAPS_LOCK_BIT:
        state |= KeyEventState.CAPS_LOCK
    if bits & _NUM_LOCK_BIT:
        state |= KeyEventState.NUM_LOCK
    return Modifiers(bits & ~LOCK_MASK & 0x3F), state


def _char_code(codepoint: int, shifted_key: int | None, modifiers: Modifiers) -> str | None:
    ch = chr(codepoint)
    if not ch.isprintable():
        return None
    if modifiers & Modifiers.SHIFT:
        if shifted_key:
            return chr(shifted_key)
        if ch.isalpha():
            return ch.upper()
        return SHIFTED_KEY_MAP.get(ch, ch)
    return ch


def _keystroke_from_kitty(parsed: ParsedKittySequence) -> Keystroke | None:
    modifiers, state = _split_modifier(parsed.modifier)
    kind = _EVENT_TYPES.get(parsed.event_type, KeyEventKind.PRESS)
    cp = parsed.codepoint

    if cp < 0:
        code: str | None = _NAMED_CODEPOINTS[-1 - cp]
    elif cp in CODEPOINTS:
        code = CODEPOINTS[cp]
        if cp == _KP_ENTER:
            state |= KeyEventState.KEYPAD
    elif cp in _KITTY_PRIVATE_CODEPOINTS:
        code = _KITTY_PRIVATE_CODEPOINTS[cp]
        if cp >= 57417:
            state |= KeyEventState.KEYPAD
    else:
        code = _char_code(cp, parsed.shifted_key, modifiers)

    if code is None:
        return None
    return Keystroke(code, modifiers, kind, state)


# ---------------------------------------------------------------------------
# parse_keystroke: determine what key was pressed from raw input
# ---------------------------------------------------------------------------


def parse_keystroke(data: str) -> Keystroke | None:  # noqa: C901
    """Decode one complete raw input sequence into a :class:`Keystroke`.

    Returns ``None`` for empty input and for sequences that do not describe
    a key (terminal responses, mouse reports, unknown escapes).
    """
    if not data:
        return None

    # --- modifyOtherKeys format: CSI 27;modifier;keycode ~ ---
    m = _MODIFY_OTHER_KEYS_RE.match(data)
    if m:
        modifiers, state = _split_modifier(int(m.group(1)))
        keycode = int(m.group(2))
        code = CODEPOINTS.get(keycode) or _char_code(keycode, None, modifiers)
        if code is None:
            return None
        return Keystroke(code, modifiers, KeyEventKind.PRESS, state)

    # --- Kitty protocol and xterm modified keys ---
    parsed = parse_kitty_sequence(data)
    if parsed is not None:
        return _keystroke_from_kitty(parsed)

    # --- Legacy escape sequences ---
    if data in LEGACY_KEY_SEQUENCES:
        return Keystroke(LEGACY_KEY_SEQUENCES[data])
    if data in LEGACY_MODIFIED_SEQUENCES:
        name, modifiers = LEGACY_MODIFIED_SEQUENCES[data]
        return Keystroke(name, modifiers)

    # --- Simple single-byte keys ---
    if data == "\x1b":
        return Keystroke(Key.escape)
    if data in ("\r", "\n"):
        return Keystroke(Key.enter)
    if data == "\t":
        return Keystroke(Key.tab)
    if data in ("\x7f", "\x08"):
        return Keystroke(Key.backspace)
    if data == "\x00":
        return Keystroke(" ", Modifiers.CONTROL)

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return Keystroke(chr(ord(data) + ord("a") - 1), Modifiers.CONTROL)

    # --- Alt + key (ESC prefix) ---
    if len(data) >= 2 and data[0] == "\x1b":
        inner = parse_keystroke(data[1:])
        if inner is None or inner.modifiers & Modifiers.ALT:
            return None
        return Keystroke(inner.code, inner.modifiers | Modifiers.ALT, inner.kind, inner.state)

    # --- Plain printable character ---
    if len(data) == 1 and data.isprintable():
        if data.isalpha() and data.isupper():
            return Keystroke(data, Modifiers.SHIFT)
        if data in UNSHIFTED_KEY_MAP:
            return Keystroke(data, Modifiers.SHIFT)
        return Keystroke(data)

    return None


# ---------------------------------------------------------------------------
# Key ids
# ---------------------------------------------------------------------------


def keystroke_from_id(key_id: KeyId) -> Keystroke:
    """Build a press :class:`Keystroke` from a key id like ``"ctrl+shift+a"``.

    Raises ``ValueError`` for unknown modifiers or key names.
    """
    if not key_id:
        raise ValueError("empty key id")

    # A trailing "+" names the plus key itself ("ctrl++")
    if key_id.endswith("+") and (len(key_id) == 1 or key_id.endswith("++")):
        head, key = key_id[:-2], "+"
        parts = head.split("+") if head else []
    else:
        *parts, key = key_id.split("+")

    modifiers = Modifiers.NONE
    for part in parts:
        flag = _MODIFIER_NAMES.get(part.lower())
        if flag is None:
            raise ValueError(f"unknown modifier {part!r} in key id {key_id!r}")
        modifiers |= flag

    lowered = key.lower()
    if lowered in _KEY_ALIASES:
        code = _KEY_ALIASES[lowered]
    elif key in NAMED_KEYS:
        code = key
    elif lowered in NAMED_KEYS:
        code = lowered
    elif len(key) == 1 and key.isprintable():
        code = key
    else:
        raise ValueError(f"unknown key {key!r} in key id {key_id!r}")

    if len(code) == 1 and modifiers & Modifiers.SHIFT:
        if code.isalpha():
            code = code.upper()
        else:
            code = SHIFTED_KEY_MAP.get(code, code)
    elif len(code) == 1 and (
        (code.isalpha() and code.isupper()) or code in UNSHIFTED_KEY_MAP
    ):
        # "A" and "?" are only typed with shift held
        modifiers |= Modifiers.SHIFT

    return Keystroke(code, modifiers)


def format_keystroke(keystroke: Keystroke) -> KeyId:
    """Render a keystroke back into key id form (``"ctrl+alt+left"``)."""
    parts: list[str] = []
    mods = keystroke.modifiers
    if mods & Modifiers.CONTROL:
        parts.append("ctrl")
    if mods & Modifiers.SHIFT and keystroke.char is None:
        parts.append("shift")
    if mods & Modifiers.ALT:
        parts.append("alt")
    if mods & Modifiers.SUPER:
        parts.append("super")
    if mods & Modifiers.HYPER:
        parts.append("hyper")
    if mods & Modifiers.META:
        parts.append("meta")
    code = "space" if keystroke.code == " " else keystroke.code
    parts.append(code)
    return "+".join(parts)
