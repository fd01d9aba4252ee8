"""Assign grouped, letter-suffixed names (``"Kepler-<label> <letter>"``) to confirmations.

Signals sharing a group base (``K00752`` for ``K00752.01`` and ``K00752.02``) are
treated as one physical system and share a numeric label; each member gets the
next free letter starting at ``b``. A group seen for the first time opens a new
label one above the highest label anywhere in the store.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from exosync.domain.model import group_base

if TYPE_CHECKING:
    from exosync.domain.ports.persistence import CandidateRepository

log = getLogger(__name__)

NAME_PREFIX: Final[str] = "Kepler"
LETTERS: Final[str] = "bcdefghijklmnopqrstuvwxyz"
FIRST_LETTER: Final[str] = LETTERS[0]
# Labels this large are epoch milliseconds from the fallback path.
FALLBACK_LABEL_FLOOR: Final[int] = 10**12

_LABEL_PATTERN = re.compile(rf"{NAME_PREFIX}-(\d+)", re.IGNORECASE)
_LETTER_PATTERN = re.compile(rf"{NAME_PREFIX}-\d+\s+([a-z])", re.IGNORECASE)


class AllocationKind(StrEnum):
    EXISTING_GROUP = "existing_group"
    NEW_GROUP = "new_group"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class NameAllocation:
    name: str
    kind: AllocationKind

    @property
    def fallback(self) -> bool:
        """Whether the name came from the time-derived degraded path."""

        return self.kind is AllocationKind.FALLBACK


@dataclass(frozen=True, slots=True)
class PlanetName:
    label: int
    letter: str

    @classmethod
    def parse(cls, name: str | None) -> PlanetName | None:
        label = parse_label(name)
        letter = parse_letter(name)
        if label is None or letter is None:
            return None
        return cls(label=label, letter=letter)

    def __str__(self) -> str:
        return format_name(self.label, self.letter)


def format_name(label: int, letter: str) -> str:
    return f"{NAME_PREFIX}-{label} {letter}"


def parse_label(name: str | None) -> int | None:
    if not name:
        return None
    match = _LABEL_PATTERN.search(name)
    return int(match.group(1)) if match else None


def parse_letter(name: str | None) -> str | None:
    if not name:
        return None
    match = _LETTER_PATTERN.search(name)
    return match.group(1).lower() if match else None


def next_letter(used: Iterable[str]) -> str:
    """Return the first letter of ``b..z`` not in ``used``; ``z`` once all are taken."""

    taken = {letter.lower() for letter in used}
    for letter in LETTERS:
        if letter not in taken:
            return letter
    return LETTERS[-1]


def group_letters(names: Iterable[str]) -> dict[int, list[str]]:
    """Index the letters in use by numeric label, ignoring unparseable names."""

    groups: dict[int, list[str]] = {}
    for name in names:
        label = parse_label(name)
        if label is None:
            continue
        letters = groups.setdefault(label, [])
        letter = parse_letter(name)
        if letter is not None:
            letters.append(letter)
    return groups


def most_populated_label(groups: dict[int, list[str]]) -> int:
    """Pick the label with the most members; ties go to the highest label."""

    return max(groups, key=lambda label: (len(groups[label]), label))


def highest_label(names: Iterable[str]) -> int:
    """Highest deterministic label in use; fallback labels never count."""

    labels = [
        label
        for label in map(parse_label, names)
        if label is not None and label < FALLBACK_LABEL_FLOOR
    ]
    return max(labels, default=0)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def fallback_name(clock: Callable[[], datetime] = _utcnow) -> NameAllocation:
    name = format_name(int(clock().timestamp() * 1000), FIRST_LETTER)
    return NameAllocation(name=name, kind=AllocationKind.FALLBACK)


def allocate_name(
    identity: str,
    *,
    repository: CandidateRepository,
    clock: Callable[[], datetime] = _utcnow,
) -> NameAllocation:
    """Return the next name for a newly confirmed ``identity``.

    The repository must already contain every record persisted earlier in the
    current pass, so consecutive members of one group get consecutive letters.
    A group that has used every letter gets a fallback name.
    """

    try:
        base = group_base(identity)
        groups = group_letters(repository.names_in_group(base))
        if groups:
            label = most_populated_label(groups)
            letter = next_letter(groups[label])
            if letter in groups[label]:
                allocation = fallback_name(clock)
                log.warning(
                    f"[{identity}] group {label} of {base} has no free letter, "
                    f"using fallback name {allocation.name}"
                )
                return allocation
            name = str(PlanetName(label=label, letter=letter))
            log.debug(f"[{identity}] joining group {label} of {base} as {name}")
            return NameAllocation(name=name, kind=AllocationKind.EXISTING_GROUP)

        label = highest_label(repository.assigned_names()) + 1
        name = str(PlanetName(label=label, letter=FIRST_LETTER))
        log.debug(f"[{identity}] opening new group {label} for {base}")
        return NameAllocation(name=name, kind=AllocationKind.NEW_GROUP)
    except Exception:  # noqa: BLE001
        allocation = fallback_name(clock)
        log.exception(
            f"[{identity}] name allocation failed, using fallback name {allocation.name}"
        )
        return allocation


@dataclass(frozen=True, slots=True)
class SystemSummary:
    """Confirmed planets sharing one ``Kepler-<label>`` system name."""

    label: int
    planets: tuple[str, ...]

    @property
    def name(self) -> str:
        return f"{NAME_PREFIX}-{self.label}"


def summarize_systems(
    names: Iterable[str],
    *,
    search: str = "",
    limit: int = 50,
) -> list[SystemSummary]:
    """Group assigned names into systems ordered by label.

    ``search`` is a case-insensitive substring filter applied to planet names
    before grouping, so counts only include matching planets.
    """

    needle = search.strip().lower()
    members: dict[int, list[str]] = {}
    for name in names:
        label = parse_label(name)
        if label is None or (needle and needle not in name.lower()):
            continue
        members.setdefault(label, []).append(name)
    return [
        SystemSummary(label=label, planets=tuple(sorted(members[label])))
        for label in sorted(members)[: max(limit, 0)]
    ]
