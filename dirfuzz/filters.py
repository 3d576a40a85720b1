import re
from typing import FrozenSet, Iterable, Optional, Set

from dirfuzz.errors import InvalidLengthFilter
from dirfuzz.probe import ProbeResponse


# ═══════════════════════════════════════════════════════════════
#  Content-length matchers
# ═══════════════════════════════════════════════════════════════

class LengthMatcher:
    """Matches nothing; the default when no length filter is given."""

    def matches(self, length: int) -> bool:
        return False

    def __eq__(self, other):
        return type(self) is type(other)

    def __hash__(self):
        return hash(type(self))

    def __repr__(self):
        return "LengthMatcher()"


class SeparateLengths(LengthMatcher):
    def __init__(self, lengths: Iterable[int]):
        self.lengths: FrozenSet[int] = frozenset(lengths)

    def matches(self, length: int) -> bool:
        return length in self.lengths

    def __eq__(self, other):
        return isinstance(other, SeparateLengths) and self.lengths == other.lengths

    def __hash__(self):
        return hash(self.lengths)

    def __repr__(self):
        return f"SeparateLengths({sorted(self.lengths)})"


class LengthRange(LengthMatcher):
    """Inclusive range; low must be strictly below high."""

    def __init__(self, low: int, high: int):
        if low >= high:
            raise InvalidLengthFilter(f"Invalid content-length range {low}-{high}: low must be < high")
        self.low = low
        self.high = high

    def matches(self, length: int) -> bool:
        return self.low <= length <= self.high

    def __eq__(self, other):
        return isinstance(other, LengthRange) and (self.low, self.high) == (other.low, other.high)

    def __hash__(self):
        return hash((self.low, self.high))

    def __repr__(self):
        return f"LengthRange({self.low}, {self.high})"


def parse_length_filter(text: str) -> LengthMatcher:
    """
    '20,300' -> SeparateLengths({20, 300}); '20-300' -> LengthRange(20, 300).
    Non-numeric list items are ignored; a range needs exactly two integers.
    """
    text = (text or "").strip()
    if not text:
        return LengthMatcher()
    if "-" in text:
        parts = [p.strip() for p in text.split("-")]
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            raise InvalidLengthFilter(f"Expected 2 values in content-length range, got {text!r}")
        return LengthRange(int(parts[0]), int(parts[1]))
    return SeparateLengths(int(p) for p in (x.strip() for x in text.split(",")) if p.isdigit())


# ═══════════════════════════════════════════════════════════════
#  Body matcher
# ═══════════════════════════════════════════════════════════════

class BodyMatcher:
    """Case-sensitive substring match; an empty text never matches."""

    def __init__(self, text: Optional[str] = None):
        self.text = text or None

    def matches(self, body: str) -> bool:
        return self.text is not None and self.text in body

    def __eq__(self, other):
        return isinstance(other, BodyMatcher) and self.text == other.text

    def __hash__(self):
        return hash(self.text)

    def __repr__(self):
        return f"BodyMatcher({self.text!r})"


# ═══════════════════════════════════════════════════════════════
#  Status selectors
# ═══════════════════════════════════════════════════════════════

def parse_status_selector(selector: str) -> Set[int]:
    out: Set[int] = set()
    parts = [p.strip() for p in selector.split(",") if p.strip()]
    for p in parts:
        pl = p.lower()
        if re.fullmatch(r"\d{3}", p):
            out.add(int(p))
        elif re.fullmatch(r"[1-5]xx", pl):
            base = int(p[0]) * 100
            out.update(range(base, base + 100))
        elif re.fullmatch(r"\d{3}\s*-\s*\d{3}", p):
            a, b = [int(x) for x in re.split(r"\s*-\s*", p)]
            if a > b:
                a, b = b, a
            out.update(range(a, b + 1))
        else:
            raise ValueError(f"Invalid status selector: {p}")
    return out


# ═══════════════════════════════════════════════════════════════
#  Response filtering
# ═══════════════════════════════════════════════════════════════

class ResponseFilter:
    """
    Drops a response as soon as any one of its matchers fires; the three
    conditions are OR'd.
    """

    def __init__(self,
                 exclude_status: Iterable[int] = (),
                 content_length: Optional[LengthMatcher] = None,
                 body: Optional[BodyMatcher] = None):
        self.exclude_status: FrozenSet[int] = frozenset(exclude_status)
        self.content_length = content_length or LengthMatcher()
        self.body = body or BodyMatcher()

    def should_filter(self, response: ProbeResponse) -> bool:
        if response.status_code in self.exclude_status:
            return True
        if self.content_length.matches(response.content_length):
            return True
        if self.body.matches(response.body):
            return True
        return False

    def filter(self, response: ProbeResponse) -> Optional[ProbeResponse]:
        return None if self.should_filter(response) else response
