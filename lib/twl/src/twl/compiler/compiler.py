"""Compiler - turns a Collection and a Selection into ordered Fragments."""

import logging
from typing import List, Optional, Set

from twl.ast.spec import Collection, Script
from twl.compiler.resolver import Resolver, merge, trim
from twl.compiler.spec import Direction, Fragment, ResolvedCode, Selection
from twl.errors import CompileError, ResolutionError, UnknownCategory, UnknownScript

log = logging.getLogger(__name__)


class Compiler:
    """Compiles a Collection into Fragments."""

    def __init__(self, collection: Collection, resolver: Optional[Resolver] = None):
        """Initialize compiler.

        Args:
            collection: The collection to compile.
            resolver: Resolver for function calls. A new one is created if omitted.
        """
        self.collection = collection
        self.resolver = resolver or Resolver(collection)

    def compile(self, selection: Optional[Selection] = None) -> List[Fragment]:
        """Compile the selected scripts.

        Algorithm:
        1. Walk the category tree depth-first in declaration order
        2. Keep scripts matching the selection's names, categories and level
        3. Resolve each script's calls
        4. In revert direction, skip scripts without revert code
        5. Emit each distinct text once, at its first occurrence

        Args:
            selection: What to compile. Defaults to every script, forward.

        Returns:
            Fragments in emission order.

        Raises:
            UnknownScript: The selection names scripts the collection lacks.
            UnknownCategory: The selection names categories the collection lacks.
            CompileError: A selected script failed to resolve. Nothing is
                returned in that case.
        """
        selection = selection or Selection()
        self._check_selection(selection)

        emitted: Set[str] = set()
        fragments: List[Fragment] = []

        for path, script in self.collection.walk():
            if not selection.matches(script, path):
                continue

            try:
                resolved = self.resolve_script(script)
            except ResolutionError as exc:
                raise CompileError(script.name, selection.direction.value, exc) from exc

            if selection.direction is Direction.REVERT and resolved.revert_code is None:
                log.debug("Skipping %r: no revert code", script.name)
                continue

            fragment = Fragment(
                name=script.name,
                code=resolved.code,
                revert_code=resolved.revert_code,
                direction=selection.direction,
            )
            text = fragment.text
            if not text:
                log.debug("Skipping %r: empty code", script.name)
                continue
            if text in emitted:
                log.debug("Skipping %r: same code already emitted", script.name)
                continue

            emitted.add(text)
            fragments.append(fragment)

        log.info("Compiled %d script(s) (%s)", len(fragments), selection.direction)
        return fragments

    def resolve_script(self, script: Script) -> ResolvedCode:
        """Resolve a script's code and revert code."""
        if script.calls:
            return merge(self.resolver.resolve(call) for call in script.calls)

        revert_code = None
        if script.revert_code is not None:
            revert_code = trim(script.revert_code) or None
        return ResolvedCode(code=trim(script.code or ""), revert_code=revert_code)

    def _check_selection(self, selection: Selection) -> None:
        if selection.names is not None:
            unknown = [n for n in selection.names if self.collection.get_script(n) is None]
            if unknown:
                raise UnknownScript(unknown)

        if selection.categories is not None:
            known = {c.name for c in self.collection.iter_categories()}
            unknown = [c for c in selection.categories if c not in known]
            if unknown:
                raise UnknownCategory(unknown)


def compile(collection: Collection, selection: Optional[Selection] = None) -> List[Fragment]:
    """Compile `collection` under `selection` with a fresh Compiler."""
    return Compiler(collection).compile(selection)
