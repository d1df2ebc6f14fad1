"""
Fuzzy key matching and naming convention analysis.
"""

from collections.abc import Iterable, Sequence
import re
from typing import NamedTuple, Optional

MAX_DISTANCE = 2
MAX_SUGGESTIONS = 3

_UPPER = re.compile(r'[A-Z]')

class Candidate(NamedTuple):
    """
    A key that may have been intended instead of a missing key.
    """

    key: str
    distance: int
    contained: bool

def levenshtein(first: str, second: str) -> int:
    """
    Calculate the edit distance between two strings.
    """

    if not first:
        return len(second)
    if not second:
        return len(first)

    previous = list(range(len(second) + 1))
    for i, left in enumerate(first, start=1):
        current = [i]
        for j, right in enumerate(second, start=1):
            cost = 0 if left == right else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1,
                               previous[j - 1] + cost))
        previous = current

    return previous[-1]

def candidates(target: str, keys: Iterable[str]) -> list[Candidate]:
    """
    Compare a `target` key case-insensitively with each of the `keys` and
    return those that are within the edit distance limit or contain, or are
    contained by, the target. Empty keys are never candidates. The candidates
    keep the order of `keys`.
    """

    lower = target.lower()
    result: list[Candidate] = []
    for key in keys:
        if not key:
            continue
        key_lower = key.lower()
        contained = bool(lower) and (key_lower in lower or lower in key_lower)
        distance = levenshtein(lower, key_lower)
        if contained or distance <= MAX_DISTANCE:
            result.append(Candidate(key, distance, contained))

    return result

def find_similar_keys(target: str, keys: Iterable[str],
                      limit: int = MAX_SUGGESTIONS) -> list[str]:
    """
    Suggest keys that are similar to a missing `target` key, in the order that
    they appear in `keys`, up to `limit` suggestions.
    """

    return [candidate.key for candidate in candidates(target, keys)[:limit]]

def to_camel_case(name: str) -> str:
    """
    Convert a snake_case or PascalCase name to camelCase.
    """

    if '_' in name:
        parts = [part for part in name.split('_') if part]
        if not parts:
            return name
        return parts[0] + ''.join(part[0].upper() + part[1:]
                                  for part in parts[1:])
    return name[:1].lower() + name[1:]

def to_pascal_case(name: str) -> str:
    """
    Convert a snake_case or camelCase name to PascalCase.
    """

    camel = to_camel_case(name)
    return camel[:1].upper() + camel[1:]

def to_snake_case(name: str) -> str:
    """
    Convert a camelCase or PascalCase name to snake_case.
    """

    snake = _UPPER.sub(lambda match: f'_{match.group(0).lower()}', name)
    return snake[1:] if snake.startswith('_') and not name.startswith('_') \
        else snake

def naming_style(name: str) -> str:
    """
    Describe the naming convention of a key.
    """

    if '_' in name.strip('_'):
        return 'snake_case'
    if name[:1].isupper():
        return 'PascalCase'
    if _UPPER.search(name):
        return 'camelCase'
    return 'lowercase'

def find_convention_match(target: str, keys: Sequence[str]) -> Optional[str]:
    """
    Find a key which is the camelCase, snake_case or PascalCase variant of
    a missing `target` key, if any.
    """

    for variant in (to_camel_case(target), to_snake_case(target),
                    to_pascal_case(target)):
        if variant != target and variant in keys:
            return variant

    return None

def find_case_match(target: str, keys: Iterable[str]) -> Optional[str]:
    """
    Find a key which only differs from a missing `target` key in letter case.
    """

    lower = target.lower()
    for key in keys:
        if key != target and key.lower() == lower:
            return key

    return None
