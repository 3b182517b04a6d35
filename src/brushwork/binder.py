"""
View binder: keyed enter/update/exit joins and a per-session view cache.

Each view is bound to a list of datums with a key function. Binding diffs the new datums
against the previously bound ones by key:
- enter: keys that are new,
- update: keys present before and now whose datum changed,
- exit: keys that disappeared.

A view is rebuilt only when its patch is non-empty or its signature (non-datum inputs such
as scale domains) changed; otherwise the cached output is returned as-is, so re-binding the
same input is idempotent. Binding a view that is not mounted is a no-op.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

__all__ = ["JoinPatch", "BoundView", "join_keyed", "ViewBinder"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class JoinPatch:
    enter: tuple[Hashable, ...] = ()
    update: tuple[Hashable, ...] = ()
    exit: tuple[Hashable, ...] = ()

    @property
    def empty(self) -> bool:
        return not (self.enter or self.update or self.exit)


@dataclass
class BoundView(Generic[T]):
    name: str
    patch: JoinPatch
    output: T
    rebuilt: bool
    keys: list[Hashable] = field(default_factory=list)


def join_keyed(
    previous: dict[Hashable, Any],
    items: Sequence[Any],
    key: Callable[[Any], Hashable],
) -> tuple[JoinPatch, dict[Hashable, Any]]:
    """
    Diff items against the previously bound datums.

    Args:
        previous (dict[Hashable, Any]): key -> datum from the last bind.
        items (Sequence[Any]): New datums; the first datum wins on a duplicate key.
        key (Callable): Key accessor.

    Returns:
        tuple[JoinPatch, dict[Hashable, Any]]: The patch and the new key -> datum mapping
        (insertion order follows items).
    """
    current: dict[Hashable, Any] = {}
    for item in items:
        k = key(item)
        if k not in current:
            current[k] = item
    enter = tuple(k for k in current if k not in previous)
    update = tuple(k for k in current if k in previous and previous[k] != current[k])
    exit_ = tuple(k for k in previous if k not in current)
    return JoinPatch(enter=enter, update=update, exit=exit_), current


class ViewBinder:
    """
    Session-scoped registry of mounted views and their last bound state.

    Mount a view by name (optionally with a callback receiving each rebuilt output), then
    call bind() on every refresh. Outputs are cached per view between binds.
    """

    def __init__(self) -> None:
        self._targets: dict[str, Callable[[Any], None] | None] = {}
        self._data: dict[str, dict[Hashable, Any]] = {}
        self._signatures: dict[str, Any] = {}
        self._outputs: dict[str, Any] = {}

    def mount(self, name: str, target: Callable[[Any], None] | None = None) -> None:
        self._targets[name] = target

    def mount_all(self, names: Iterable[str]) -> None:
        for name in names:
            self.mount(name)

    def unmount(self, name: str) -> None:
        self._targets.pop(name, None)
        self._data.pop(name, None)
        self._signatures.pop(name, None)
        self._outputs.pop(name, None)

    def is_mounted(self, name: str) -> bool:
        return name in self._targets

    @property
    def mounted(self) -> list[str]:
        return list(self._targets)

    def bind(
        self,
        name: str,
        items: Sequence[Any],
        *,
        key: Callable[[Any], Hashable],
        build: Callable[[Sequence[Any]], T],
        signature: Any = None,
    ) -> BoundView[T] | None:
        if name not in self._targets:
            return None
        previous = self._data.get(name, {})
        patch, current = join_keyed(previous, items, key)
        first_bind = name not in self._outputs
        changed = first_bind or not patch.empty or self._signatures.get(name) != signature
        if changed:
            output = build(items)
            self._outputs[name] = output
            self._data[name] = current
            self._signatures[name] = signature
            logger.debug(
                "view %s rebuilt: enter=%d update=%d exit=%d",
                name,
                len(patch.enter),
                len(patch.update),
                len(patch.exit),
            )
            target = self._targets[name]
            if target is not None:
                target(output)
        return BoundView(
            name=name,
            patch=patch,
            output=self._outputs[name],
            rebuilt=changed,
            keys=list(current),
        )
