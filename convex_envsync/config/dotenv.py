"""Reader for ``KEY=VALUE`` environment files.

Format rules:

- blank lines and lines whose first non-whitespace character is ``#``
  are skipped
- an optional leading ``export`` is ignored
- each remaining line is split on the first ``=``
- a value wrapped in one matching pair of double quotes loses exactly that
  outer pair; quotes inside are kept verbatim
- the last occurrence of a key wins, first-seen order is kept

Multi-line values are not supported.  Key material such as
``JWT_PRIVATE_KEY`` is excluded from bulk sync and written separately.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Set, Tuple

from convex_envsync.config.models import ConfigEntry
from convex_envsync.errors import MalformedLineError

_EXPORT_PREFIX = "export "


def _unquote(raw: str) -> Tuple[str, bool]:
    """Strip a single outer pair of double quotes from *raw*."""
    if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
        return raw[1:-1], True
    return raw, False


def iter_lines(lines: Iterable[str]) -> Iterator[Tuple[str, str, bool]]:
    """Yield ``(key, value, was_quoted)`` for each assignment line.

    Raises :class:`MalformedLineError` on a line without ``=`` or with an
    empty key.  Line numbers are 1-based.
    """
    for lineno, line in enumerate(lines, start=1):
        text = line.rstrip("\r\n")
        stripped = text.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith(_EXPORT_PREFIX):
            stripped = stripped[len(_EXPORT_PREFIX):].lstrip()
        if "=" not in stripped:
            raise MalformedLineError(lineno, text)
        key, raw_value = stripped.split("=", 1)
        key = key.strip()
        if not key:
            raise MalformedLineError(lineno, text, reason="empty key")
        value, quoted = _unquote(raw_value.strip())
        yield key, value, quoted


def parse_lines(lines: Iterable[str]) -> Dict[str, str]:
    """Parse *lines* into an ordered ``{key: value}`` mapping."""
    result: Dict[str, str] = {}
    for key, value, _ in iter_lines(lines):
        result[key] = value
    return result


def quoted_keys(lines: Iterable[str]) -> Set[str]:
    """Return keys whose final occurrence had a double-quoted value."""
    quoted: Dict[str, bool] = {}
    for key, _, was_quoted in iter_lines(lines):
        quoted[key] = was_quoted
    return {k for k, q in quoted.items() if q}


def parse_entries(lines: Iterable[str]) -> List[ConfigEntry]:
    """Parse *lines* into :class:`ConfigEntry` objects in sync order."""
    return [ConfigEntry(key=k, value=v) for k, v in parse_lines(lines).items()]


def load_env_file(path: str | Path) -> List[ConfigEntry]:
    """Read a UTF-8 env file and return its entries.

    The whole file is parsed before anything is returned, so a malformed
    line anywhere means no entry reaches the remote store.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as fh:
        lines = fh.read().splitlines()
    return parse_entries(lines)


def serialize_entries(
    entries: Mapping[str, str] | Iterable[ConfigEntry],
    quoted: Iterable[str] = (),
) -> str:
    """Render entries back to ``KEY=VALUE`` lines.

    Values whose key is in *quoted* are wrapped in double quotes.
    """
    if isinstance(entries, Mapping):
        pairs = list(entries.items())
    else:
        pairs = [(e.key, e.value) for e in entries]
    quoted_set = set(quoted)
    out: List[str] = []
    for key, value in pairs:
        if key in quoted_set:
            out.append(f'{key}="{value}"')
        else:
            out.append(f"{key}={value}")
    return "\n".join(out) + ("\n" if out else "")
