#!/usr/bin/env python3
"""Best-effort JSON scanner for truncated input.

Every scanner takes the text and an offset and returns a ``(value, end)``
tuple, or ``None`` when nothing can be built at that offset yet. ``end`` is
one past the last character the scanner claimed. None of these functions
raise for any text input.
"""
import logging
import string
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 256

WHITESPACE = ' \t\n\r'
DIGITS = '0123456789'
HEXDIGITS = frozenset(string.hexdigits)

SIMPLE_ESCAPES = {
    '"': '"',
    '\\': '\\',
    '/': '/',
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
}

ScanResult = Optional[Tuple[Any, int]]


class _Nothing:
    """Marker for "no value extracted"; distinct from JSON null (``None``)."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return 'NOTHING'

    def __reduce__(self):
        return (_Nothing, ())


NOTHING = _Nothing()


def skip_ws(text: str, i: int) -> int:
    """Return the index of the next non-whitespace character (or len(text))."""
    n = len(text)
    while i < n and text[i] in WHITESPACE:
        i += 1
    return i


def scan_value(text: str, i: int, depth: int = 0,
               max_depth: int = DEFAULT_MAX_DEPTH) -> ScanResult:
    """Dispatch on the next significant character."""
    i = skip_ws(text, i)
    if i >= len(text):
        return None

    ch = text[i]
    if ch == '"':
        return scan_string(text, i)
    if ch == '{' or ch == '[':
        if depth >= max_depth:
            logger.debug("nesting depth %d reached at offset %d", max_depth, i)
            return None
        if ch == '{':
            return scan_object(text, i, depth + 1, max_depth)
        return scan_array(text, i, depth + 1, max_depth)
    if ch == '-' or ch in DIGITS:
        return scan_number(text, i)
    if ch == 't':
        return scan_keyword(text, i, 'true', True)
    if ch == 'f':
        return scan_keyword(text, i, 'false', False)
    if ch == 'n':
        return scan_keyword(text, i, 'null', None)
    return None


def scan_keyword(text: str, i: int, word: str, value: Any) -> ScanResult:
    # t, f and n each start exactly one keyword, so any prefix is enough.
    remaining = text[i:i + len(word)]
    if remaining and word.startswith(remaining):
        return value, i + len(remaining)
    return None


def _read_hex4(text: str, i: int) -> Optional[int]:
    hex_digits = text[i:i + 4]
    if len(hex_digits) == 4 and all(c in HEXDIGITS for c in hex_digits):
        return int(hex_digits, 16)
    return None


def scan_string(text: str, i: int) -> Tuple[str, int]:
    """Scan a string whose opening quote is at ``text[i]``.

    Returns the decoded characters up to the closing quote, or up to the end
    of the buffer when the string is still open. An escape sequence that is
    cut off by the end of the buffer is dropped, never emitted half-decoded.
    """
    n = len(text)
    i += 1
    out: List[str] = []

    while i < n:
        ch = text[i]
        if ch == '"':
            return ''.join(out), i + 1
        if ch != '\\':
            out.append(ch)
            i += 1
            continue

        i += 1
        if i >= n:
            break
        esc = text[i]
        if esc in SIMPLE_ESCAPES:
            out.append(SIMPLE_ESCAPES[esc])
            i += 1
        elif esc == 'u':
            code = _read_hex4(text, i + 1)
            if code is None:
                break
            i += 5
            if 0xD800 <= code <= 0xDBFF:
                if text[i:i + 2] == '\\u':
                    low = _read_hex4(text, i + 2)
                    if low is None:
                        if n - (i + 2) < 4:
                            # partner escape still arriving; hold the high half back
                            i -= 6
                            break
                    elif 0xDC00 <= low <= 0xDFFF:
                        code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                        i += 6
                elif text[i:i + 2] in ('', '\\'):
                    i -= 6
                    break
            out.append(chr(code))
        else:
            out.append(esc)
            i += 1

    return ''.join(out), i


def scan_number(text: str, i: int) -> ScanResult:
    """Scan a numeral, trimming a dangling ``-``, ``.``, ``e`` or exponent sign.

    The returned offset covers the whole syntactic extent, including any
    trimmed tail, so a container does not read the tail as a new token.
    """
    n = len(text)
    end = i
    if end < n and text[end] == '-':
        end += 1
    while end < n and text[end] in DIGITS:
        end += 1
    if end < n and text[end] == '.':
        end += 1
        while end < n and text[end] in DIGITS:
            end += 1
    if end < n and text[end] in 'eE':
        end += 1
        if end < n and text[end] in '+-':
            end += 1
        while end < n and text[end] in DIGITS:
            end += 1

    num_end = end
    while num_end > i and text[num_end - 1] not in DIGITS:
        num_end -= 1
    if num_end == i:
        return None

    literal = text[i:num_end]
    try:
        if '.' in literal or 'e' in literal or 'E' in literal:
            value = float(literal)
        else:
            value = int(literal)
    except ValueError:
        # e.g. "-e5": digits present but not a numeral
        return None
    return value, end


def scan_object(text: str, i: int, depth: int = 1,
                max_depth: int = DEFAULT_MAX_DEPTH) -> Tuple[Dict[str, Any], int]:
    """Scan an object whose ``{`` is at ``text[i]``.

    Members whose value has not started yet are left out entirely.
    """
    n = len(text)
    i += 1
    obj: Dict[str, Any] = {}

    while True:
        i = skip_ws(text, i)
        if i >= n:
            break
        ch = text[i]
        if ch == '}':
            i += 1
            break
        if ch == ',':
            i += 1
            continue
        if ch != '"':
            break

        key, i = scan_string(text, i)
        i = skip_ws(text, i)
        if i >= n or text[i] != ':':
            break
        i += 1

        member = scan_value(text, i, depth, max_depth)
        if member is None:
            break
        # duplicate keys: last one wins, like json.loads
        obj[key], i = member

        i = skip_ws(text, i)
        if i >= n:
            break
        if text[i] == ',':
            i += 1
            continue
        if text[i] == '}':
            i += 1
        break

    return obj, i


def scan_array(text: str, i: int, depth: int = 1,
               max_depth: int = DEFAULT_MAX_DEPTH) -> Tuple[List[Any], int]:
    """Scan an array whose ``[`` is at ``text[i]``."""
    n = len(text)
    i += 1
    items: List[Any] = []

    while True:
        i = skip_ws(text, i)
        if i >= n:
            break
        ch = text[i]
        if ch == ']':
            i += 1
            break
        if ch == ',':
            i += 1
            continue

        element = scan_value(text, i, depth, max_depth)
        if element is None:
            break
        value, i = element
        items.append(value)

        i = skip_ws(text, i)
        if i >= n:
            break
        if text[i] == ',':
            i += 1
            continue
        if text[i] == ']':
            i += 1
        break

    return items, i


def parse(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Return the most complete value in ``text``, or ``NOTHING``.

    ``text`` may be any prefix of a JSON document. Whatever follows the
    first value is ignored.
    """
    result = scan_value(text, 0, 0, max_depth)
    if result is None:
        return NOTHING
    return result[0]
