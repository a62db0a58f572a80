import pytest

from living_story.exceptions import NoSnapshotAvailable
from living_story.models import Phase
from living_story.undo import UndoManager


def test_undo_without_snapshot_raises(store):
    manager = UndoManager()
    assert not manager.can_undo()
    with pytest.raises(NoSnapshotAvailable):
        manager.undo(store)


def test_undo_restores_snapshot(store):
    manager = UndoManager()
    before = store.copy_states()
    manager.snapshot(store, "edit one-line")

    store.set_content(Phase.ONE_LINE, "changed")
    store.set_lock(Phase.SCENE_BEATS, True)
    manager.undo(store)

    assert store.copy_states() == before
    assert not manager.can_undo()


def test_snapshot_is_isolated_from_later_edits(store):
    manager = UndoManager()
    manager.snapshot(store)
    store.get(Phase.ONE_LINE).content.characters.append("Theo")

    manager.undo(store)
    assert store.get(Phase.ONE_LINE).content.characters == []


def test_only_latest_snapshot_is_kept(store):
    manager = UndoManager()
    manager.snapshot(store, "first")
    store.set_content(Phase.ONE_LINE, "first edit")
    manager.snapshot(store, "second")
    store.set_content(Phase.ONE_LINE, "second edit")

    manager.undo(store)
    assert store.get(Phase.ONE_LINE).content.summary == "first edit"
    with pytest.raises(NoSnapshotAvailable):
        manager.undo(store)


def test_discard(store):
    manager = UndoManager()
    manager.snapshot(store)
    manager.discard()
    assert not manager.can_undo()
