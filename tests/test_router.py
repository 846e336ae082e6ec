"""
tests/test_router.py

Routing: an event concerns a watch iff one of its paths is the watch root
or lies below it.
"""
import sys

import pytest

from watchrun.watchdog.events import EventKind
from watchrun.watchdog.router import route
from tests.conftest import make_event, make_watch


def test_path_below_root_is_routed(watched_dir):
    watch = make_watch(watched_dir)
    event = make_event(EventKind.CREATE_FILE, watched_dir / "a.txt")
    assert route(event, [watch]) == [watch]


def test_root_itself_is_routed(watched_dir):
    watch = make_watch(watched_dir)
    event = make_event(EventKind.MODIFY_METADATA, watched_dir)
    assert route(event, [watch]) == [watch]


def test_deeply_nested_path_is_routed(watched_dir):
    watch = make_watch(watched_dir)
    event = make_event(EventKind.CREATE_FILE, watched_dir / "x" / "y" / "z.txt")
    assert route(event, [watch]) == [watch]


def test_sibling_with_common_string_prefix_is_not_routed(tmp_path):
    root = tmp_path / "a"
    root.mkdir()
    watch = make_watch(root)
    event = make_event(EventKind.CREATE_FILE, tmp_path / "ab" / "file.txt")
    assert route(event, [watch]) == []


def test_unrelated_path_is_not_routed(watched_dir, tmp_path):
    watch = make_watch(watched_dir)
    event = make_event(EventKind.CREATE_FILE, tmp_path / "elsewhere.txt")
    assert route(event, [watch]) == []


def test_any_path_of_event_is_enough(watched_dir, tmp_path):
    watch = make_watch(watched_dir)
    event = make_event(EventKind.RENAME_BOTH, tmp_path / "outside.txt", watched_dir / "inside.txt")
    assert route(event, [watch]) == [watch]


def test_configuration_order_is_preserved(tmp_path):
    outer = tmp_path / "outer"
    inner = outer / "inner"
    inner.mkdir(parents=True)
    watches = [make_watch(inner), make_watch(tmp_path / "other"), make_watch(outer)]
    event = make_event(EventKind.CREATE_FILE, inner / "f.txt")

    assert route(event, watches) == [watches[0], watches[2]]


def test_missing_root_still_routes_by_configured_path(tmp_path):
    root = tmp_path / "not-yet"
    watch = make_watch(root)
    event = make_event(EventKind.CREATE_FOLDER, root)
    assert route(event, [watch]) == [watch]


@pytest.mark.skipif(sys.platform == "win32", reason="symlink loops need POSIX")
def test_unresolvable_root_is_excluded(tmp_path):
    loop = tmp_path / "loop"
    loop.symlink_to(loop)
    watch = make_watch(loop)
    event = make_event(EventKind.CREATE_FILE, loop / "file.txt")
    assert route(event, [watch]) == []


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need POSIX")
def test_symlinked_root_matches_resolved_event_paths(tmp_path):
    real = tmp_path / "real"
    real.mkdir()
    link = tmp_path / "link"
    link.symlink_to(real)
    watch = make_watch(link)
    event = make_event(EventKind.CREATE_FILE, real.resolve() / "f.txt")
    assert route(event, [watch]) == [watch]
