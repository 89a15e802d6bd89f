"""Alias expansion for input lines."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog

from kubeshell.core.config.models import Alias

logger = structlog.get_logger()

_WHITESPACE_RE = re.compile(r"\s")


@dataclass(frozen=True)
class ExpandedAlias:
    """Outcome of one expansion step.

    ``expansion`` is None when nothing was expanded, in which case ``rest``
    is the original line.
    """

    expansion: Alias | None
    rest: str


class AliasExpander:
    """Holds user aliases and expands the first word of a line.

    Args:
        aliases: Initial aliases, in display order.
        on_change: Called with the full alias list after every add or
            successful remove, typically to persist it.
    """

    def __init__(
        self,
        aliases: Iterable[Alias] = (),
        on_change: Callable[[list[Alias]], None] | None = None,
    ) -> None:
        self._aliases: list[Alias] = list(aliases)
        self._on_change = on_change

    @property
    def aliases(self) -> list[Alias]:
        """Aliases in insertion order."""
        return list(self._aliases)

    def _position(self, name: str) -> int | None:
        for i, alias in enumerate(self._aliases):
            if alias.alias == name:
                return i
        return None

    def get(self, name: str) -> Alias | None:
        pos = self._position(name)
        return self._aliases[pos] if pos is not None else None

    def add(self, name: str, expansion: str) -> Alias:
        """Create or replace the alias ``name``.

        A replaced alias moves to the end of the display order.

        Raises:
            ConfigSaveError: If persisting the new alias set fails. The alias
                is still active for this session.
        """
        alias = Alias(alias=name, expanded=expansion)
        pos = self._position(name)
        if pos is not None:
            del self._aliases[pos]
        self._aliases.append(alias)
        logger.debug("alias_added", alias=name, expanded=expansion)
        self._changed()
        return alias

    def remove(self, name: str) -> bool:
        """Remove the alias ``name``.

        Returns:
            True if the alias existed and was removed.
        """
        pos = self._position(name)
        if pos is None:
            return False
        del self._aliases[pos]
        logger.debug("alias_removed", alias=name)
        self._changed()
        return True

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.aliases)

    def expand(self, line: str, previous_word: str | None = None) -> ExpandedAlias:
        """Expand the first word of ``line`` once.

        The word is not expanded when it equals ``previous_word``, which is
        how an alias can map a word to itself without recursing.

        Example:
            >>> expander = AliasExpander([Alias(alias="g", expanded="get pods")])
            >>> expander.expand("g -o wide")
            ExpandedAlias(expansion=Alias(alias='g', expanded='get pods'), rest=' -o wide')
        """
        match = _WHITESPACE_RE.search(line)
        pos = match.start() if match else len(line)
        word = line[:pos]

        if previous_word is None or previous_word != word:
            alias = self.get(word)
            if alias is not None:
                return ExpandedAlias(expansion=alias, rest=line[pos:])
        return ExpandedAlias(expansion=None, rest=line)

    def expand_line(self, line: str) -> str:
        """Expand ``line`` until no alias applies.

        Besides the single-word guard in ``expand``, an alias that comes up
        a second time in one expansion chain stops the chain, so cycles such
        as ``a -> b``, ``b -> a`` terminate.
        """
        previous: str | None = None
        seen: set[str] = set()
        while True:
            result = self.expand(line, previous)
            if result.expansion is None:
                return line
            name = result.expansion.alias
            if name in seen:
                logger.debug("alias_cycle_stopped", alias=name, line=line)
                return line
            seen.add(name)
            line = result.expansion.expanded + result.rest
            previous = name
