import sys
import pathlib

BASE_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from legaldraft.services.history import Draft, EditHistory


def _history(*entries):
    history = EditHistory(entries[0])
    for entry in entries[1:]:
        history.commit(entry)
    return history


def test_undo_twice_then_redo_once():
    history = _history("v0", "v1", "v2")
    assert history.index == 2

    history.undo()
    assert history.undo() == "v0"
    assert history.index == 0

    assert history.redo() == "v1"
    assert history.index == 1


def test_undo_and_redo_are_inverse():
    history = _history("a", "b", "c")
    history.undo()
    before = (history.index, history.current)
    history.undo()
    history.redo()
    assert (history.index, history.current) == before


def test_boundaries_are_no_ops():
    history = _history("only")
    assert not history.can_undo and not history.can_redo
    assert history.undo() == "only"
    assert history.redo() == "only"
    assert history.index == 0


def test_commit_after_undo_drops_future():
    history = _history("v0", "v1", "v2")
    history.undo()
    history.undo()
    history.commit("v1'")
    assert history.entries == ("v0", "v1'")
    assert history.index == 1
    assert not history.can_redo


def test_fresh_draft_has_single_entry_history():
    draft = Draft(content="text", language="en")
    assert draft.history.entries == ("text",)
    assert draft.history.index == 0

    replaced = draft.replaced("new text")
    assert replaced.content == "new text"
    assert replaced.language == "en"
    assert replaced.history.entries == ("new text",)
