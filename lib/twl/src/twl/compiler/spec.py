"""Compiler IR spec - selections and the fragments a compilation yields."""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, NamedTuple, Optional, Tuple

from twl.ast.spec import Recommend, Script


class Direction(str, Enum):
    """Whether to emit the tweaks themselves or the code that undoes them."""

    FORWARD = "forward"
    REVERT = "revert"

    def __str__(self) -> str:
        return self.value


class ResolvedCode(NamedTuple):
    """Fully expanded code of a call or script."""

    code: str
    revert_code: Optional[str] = None


@dataclass(frozen=True)
class Selection:
    """Which scripts to compile and in which direction.

    `names` and `categories` of None mean no restriction. A `level` of None
    disables level filtering; unleveled scripts pass every level filter.
    """

    names: Optional[FrozenSet[str]] = None
    categories: Optional[FrozenSet[str]] = None
    level: Optional[Recommend] = None
    direction: Direction = Direction.FORWARD

    @classmethod
    def of(
        cls,
        names: Optional[Iterable[str]] = None,
        categories: Optional[Iterable[str]] = None,
        level: Optional[Recommend] = None,
        revert: bool = False,
    ) -> "Selection":
        return cls(
            names=frozenset(names) if names is not None else None,
            categories=frozenset(categories) if categories is not None else None,
            level=level,
            direction=Direction.REVERT if revert else Direction.FORWARD,
        )

    def matches(self, script: Script, path: Tuple[str, ...] = ()) -> bool:
        if self.names is not None and script.name not in self.names:
            return False
        if self.categories is not None and not self.categories.intersection(path):
            return False
        if self.level is not None and not self.level.includes(script.recommend):
            return False
        return True


@dataclass(frozen=True)
class Fragment:
    """One selected script's resolved code, ready to be emitted."""

    name: str
    code: str
    revert_code: Optional[str] = None
    direction: Direction = Direction.FORWARD

    @property
    def text(self) -> str:
        """The code emitted for this fragment's direction."""
        if self.direction is Direction.REVERT:
            return self.revert_code or ""
        return self.code

    @property
    def title(self) -> str:
        if self.direction is Direction.REVERT:
            return f"{self.name} (revert)"
        return self.name
