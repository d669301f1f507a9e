"""
Reporting periods

Period labels look like "First Half 2025". Each year has three reporting
periods, in order: First Half, Third Quarter, Fourth Quarter.
"""
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .errors import InvalidPeriod

PERIOD_NAMES = ("First Half", "Third Quarter", "Fourth Quarter")

# Lowercase spellings accepted by the parser, including the legacy API typo
_NAME_ALIASES = {
    "first half": "First Half",
    "third quarter": "Third Quarter",
    "fourth quarter": "Fourth Quarter",
    "forth quarter": "Fourth Quarter",
}

_END_DATES = {
    "First Half": "30 Jun",
    "Third Quarter": "30 Sep",
    "Fourth Quarter": "31 Dec",
}


@dataclass(frozen=True)
class PeriodLabel:
    """A parsed period label"""
    year: int
    name: str  # one of PERIOD_NAMES

    def __str__(self) -> str:
        return f"{self.name} {self.year}"


def parse_period_label(label: str) -> PeriodLabel:
    """
    Split "<PeriodName> <Year>" into year and canonical period name.

    Raises InvalidPeriod for anything that is not a known period name
    followed by a numeric year.
    """
    parts = (label or "").strip().split()
    if len(parts) < 2:
        raise InvalidPeriod(f"Invalid period format: {label!r}", details={"label": label})

    try:
        year = int(parts[-1])
    except ValueError:
        raise InvalidPeriod(f"Invalid year in period label: {label!r}", details={"label": label}) from None

    raw_name = " ".join(parts[:-1])
    name = _NAME_ALIASES.get(raw_name.lower())
    if name is None:
        raise InvalidPeriod(
            f"Invalid time period: {raw_name}. Must be one of: {', '.join(PERIOD_NAMES)}",
            details={"label": label},
        )
    return PeriodLabel(year=year, name=name)


def period_end_date(label: str) -> str:
    """Human-readable end date of a period, e.g. "30 Jun 2025" """
    parsed = parse_period_label(label)
    return f"{_END_DATES[parsed.name]} {parsed.year}"


class PeriodSequence:
    """Ordered, finite sequence of reporting periods known in advance"""

    def __init__(self, labels: Iterable[str]):
        self._labels = [str(parse_period_label(label)) for label in labels]
        self._index = {label: i for i, label in enumerate(self._labels)}
        if len(self._index) != len(self._labels):
            raise InvalidPeriod("Period sequence contains duplicate labels")

    @classmethod
    def for_years(cls, first_year: int, last_year: int) -> "PeriodSequence":
        """All periods from First Half <first_year> to Fourth Quarter <last_year>"""
        return cls(
            f"{name} {year}"
            for year in range(first_year, last_year + 1)
            for name in PERIOD_NAMES
        )

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, label: object) -> bool:
        return label in self._index

    @property
    def labels(self) -> list[str]:
        return list(self._labels)

    def canonical(self, label: str) -> str:
        """Canonical spelling of a label that belongs to this sequence"""
        canonical = str(parse_period_label(label))
        if canonical not in self._index:
            raise InvalidPeriod(f"Unknown period: {label!r}", details={"label": label})
        return canonical

    def index(self, label: str) -> int:
        """Position of a label in the sequence"""
        return self._index[self.canonical(label)]

    def previous(self, label: str) -> Optional[str]:
        """Period immediately before label, or None for the first period"""
        i = self.index(label)
        return self._labels[i - 1] if i > 0 else None

    def next(self, label: str) -> Optional[str]:
        """Period immediately after label, or None for the last period"""
        i = self.index(label)
        return self._labels[i + 1] if i + 1 < len(self._labels) else None

    def later(self, label: str) -> list[str]:
        """All periods after label"""
        return self._labels[self.index(label) + 1:]
