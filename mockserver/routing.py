from dataclasses import dataclass
from typing import NamedTuple, Sequence

# Path-pattern matching for mock rules.
#   /users/:id       -> ':id' binds one non-empty segment
#   /files/*rest     -> '*rest' binds the non-empty remainder (last segment only)

LITERAL, PARAM, CATCH_ALL = 0, 1, 2


class InvalidPatternError(ValueError):
    pass


@dataclass(frozen=True)
class Segment:
    kind: int
    value: str      # literal text, or the parameter name


@dataclass(frozen=True)
class Pattern:
    raw: str
    segments: tuple[Segment, ...]

    @property
    def rank(self) -> tuple[int, ...]:
        """Lower sorts first: literals beat params beat catch-alls, left to right."""
        return tuple(seg.kind for seg in self.segments)

    def match(self, parts: list[str]) -> dict[str, str] | None:
        params: dict[str, str] = {}
        for i, seg in enumerate(self.segments):
            if seg.kind == CATCH_ALL:
                rest = '/'.join(parts[i:])
                if not rest:
                    return None
                params[seg.value] = rest
                return params
            if i >= len(parts):
                return None
            part = parts[i]
            if seg.kind == PARAM:
                if not part:
                    return None
                params[seg.value] = part
            elif part != seg.value:
                return None
        if len(parts) != len(self.segments):
            return None
        return params


def split_path(path: str) -> list[str]:
    return path.split('/')[1:]


def parse_pattern(raw: str) -> Pattern:
    if not raw.startswith('/'):
        raise InvalidPatternError(f'pattern must start with "/": {raw!r}')

    parts = split_path(raw)
    segments = []
    seen = set()
    for i, part in enumerate(parts):
        if part[:1] in (':', '*'):
            name = part[1:]
            if not name:
                raise InvalidPatternError(f'empty parameter name in {raw!r}')
            if name in seen:
                raise InvalidPatternError(f'duplicate parameter {name!r} in {raw!r}')
            seen.add(name)
            if part[0] == '*':
                if i != len(parts) - 1:
                    raise InvalidPatternError(f'catch-all must be the last segment: {raw!r}')
                segments.append(Segment(CATCH_ALL, name))
            else:
                segments.append(Segment(PARAM, name))
        else:
            segments.append(Segment(LITERAL, part))
    return Pattern(raw, tuple(segments))


class RouteMatch(NamedTuple):
    index: int
    params: dict[str, str]


class RouteTable:
    """
    Read-only path -> rule index table.

    Holds one entry per distinct pattern string. build() walks the rules in
    order, so when two rules share a pattern the later one's index replaces
    the earlier one's. Method filtering is left to the caller.
    """
    def __init__(self, entries: Sequence[tuple[Pattern, int]] = ()):
        self._entries = tuple(sorted(
            entries, key=lambda entry: entry[0].rank,
        ))  # stable sort keeps build order among equal ranks

    @classmethod
    def build(cls, rules: Sequence) -> 'RouteTable':
        by_pattern: dict[str, tuple[Pattern, int]] = {}
        for idx, rule in enumerate(rules):
            by_pattern[rule.path] = (parse_pattern(rule.path), idx)
        return cls(list(by_pattern.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, path: str) -> RouteMatch | None:
        parts = split_path(path)
        for pattern, idx in self._entries:
            params = pattern.match(parts)
            if params is not None:
                return RouteMatch(idx, params)
        return None
