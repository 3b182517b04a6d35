from __future__ import annotations

from typing import Any

from brushwork.binder import JoinPatch, ViewBinder, join_keyed


def _key(d: dict[str, Any]) -> str:
    return d["id"]


def test_join_reports_enter_update_exit() -> None:
    # Arrange
    previous = {"a": {"id": "a", "v": 1}, "b": {"id": "b", "v": 2}}
    items = [{"id": "b", "v": 3}, {"id": "c", "v": 4}]

    # Act
    patch, current = join_keyed(previous, items, _key)

    # Assert
    assert patch == JoinPatch(enter=("c",), update=("b",), exit=("a",))
    assert list(current) == ["b", "c"]


def test_join_first_datum_wins_on_duplicate_key() -> None:
    patch, current = join_keyed({}, [{"id": "a", "v": 1}, {"id": "a", "v": 2}], _key)

    assert patch.enter == ("a",)
    assert current["a"]["v"] == 1


def test_rebinding_same_input_is_idempotent() -> None:
    binder = ViewBinder()
    binder.mount("scatter")
    calls: list[int] = []

    def build(items):
        calls.append(len(items))
        return object()

    items = [{"id": "a", "v": 1}, {"id": "b", "v": 2}]
    first = binder.bind("scatter", items, key=_key, build=build)
    second = binder.bind("scatter", list(items), key=_key, build=build)

    assert first is not None and second is not None
    assert first.rebuilt and not second.rebuilt
    assert second.patch.empty
    assert second.output is first.output
    assert calls == [2]


def test_changed_datum_rebuilds_with_update_patch() -> None:
    binder = ViewBinder()
    binder.mount("scatter")
    build = lambda items: [d["v"] for d in items]  # noqa: E731

    binder.bind("scatter", [{"id": "a", "v": 1}], key=_key, build=build)
    bound = binder.bind("scatter", [{"id": "a", "v": 5}], key=_key, build=build)

    assert bound is not None
    assert bound.patch.update == ("a",)
    assert bound.output == [5]


def test_signature_change_forces_rebuild() -> None:
    binder = ViewBinder()
    binder.mount("slopegraph")
    items = [{"id": "a"}]

    binder.bind("slopegraph", items, key=_key, build=list, signature=25)
    same = binder.bind("slopegraph", items, key=_key, build=list, signature=25)
    changed = binder.bind("slopegraph", items, key=_key, build=list, signature=30)

    assert same is not None and not same.rebuilt
    assert changed is not None and changed.rebuilt and changed.patch.empty


def test_unmounted_view_is_not_bound() -> None:
    binder = ViewBinder()

    assert binder.bind("map", [{"id": "a"}], key=_key, build=list) is None
    assert binder.mounted == []


def test_target_receives_each_rebuilt_output() -> None:
    received: list[Any] = []
    binder = ViewBinder()
    binder.mount("files", received.append)

    binder.bind("files", [{"id": "a"}], key=_key, build=len)
    binder.bind("files", [{"id": "a"}], key=_key, build=len)
    binder.bind("files", [{"id": "a"}, {"id": "b"}], key=_key, build=len)

    assert received == [1, 2]


def test_unmount_drops_cached_state() -> None:
    binder = ViewBinder()
    binder.mount_all(["stats", "files"])
    binder.bind("stats", [{"id": "a"}], key=_key, build=len)

    binder.unmount("stats")
    binder.mount("stats")
    bound = binder.bind("stats", [{"id": "a"}], key=_key, build=len)

    assert bound is not None and bound.rebuilt
    assert bound.patch.enter == ("a",)
    assert binder.is_mounted("files")
