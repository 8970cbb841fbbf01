"""
Tests for the form boundary, configuration, the file store and the CLI.
"""
import json

import pytest

from taskboard import cli
from taskboard.attachments import FilePayload
from taskboard.config import load_settings
from taskboard.exceptions import InvalidInput
from taskboard.forms import ColumnForm, TaskForm
from taskboard.manager import BoardManager
from taskboard.store import FileStore


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Forms
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_blank_names_rejected():
    with pytest.raises(InvalidInput):
        ColumnForm.parse({"name": "   "})
    with pytest.raises(InvalidInput):
        TaskForm.parse({"name": "", "column_id": "todo"})
    with pytest.raises(InvalidInput):
        TaskForm.parse({"name": "x"})


def test_task_form_accepts_camel_case_and_blank_deadline():
    form = TaskForm.parse({"name": " Write ", "columnId": "todo", "isFavorite": True, "deadline": ""})
    assert form.name == "Write"
    assert form.column_id == "todo"
    assert form.is_favorite is True
    assert form.deadline is None


@pytest.mark.asyncio
async def test_submit_task_form_creates(manager):
    form = TaskForm.parse({"name": "From form", "column_id": "done", "deadline": "2030-02-03"})
    task_id = await manager.submit_task_form(form)
    task = manager.find_task(task_id)
    assert task.column_id == "done"
    assert task.deadline.isoformat() == "2030-02-03"


@pytest.mark.asyncio
async def test_submit_task_form_with_files_creates_with_attachments(manager):
    form = TaskForm.parse({"name": "Files", "column_id": "todo"})
    files = [FilePayload(name="a.txt", content=b"a")]
    task_id = await manager.submit_task_form(form, files=files)
    assert [a.name for a in manager.find_task(task_id).attachments] == ["a.txt"]


@pytest.mark.asyncio
async def test_submit_task_form_edit(manager):
    task_id = manager.create_task("Old", "todo")
    old = await manager.add_attachment(task_id, FilePayload(name="old.txt", content=b"o"))
    form = TaskForm.parse({"name": "New", "column_id": "done"})
    result = await manager.submit_task_form(
        form,
        files=[FilePayload(name="new.txt", content=b"n")],
        remove_attachment_ids=[old.id],
        task_id=task_id,
    )
    task = manager.find_task(task_id)
    assert result == task_id
    assert task.name == "New"
    assert task.column_id == "done"
    assert [a.name for a in task.attachments] == ["new.txt"]


def test_submit_column_form(manager):
    column_id = manager.submit_column_form(ColumnForm.parse({"name": "Review"}))
    assert manager.get_column(column_id).name == "Review"
    manager.submit_column_form(ColumnForm.parse({"name": "Done"}), column_id=column_id)
    assert manager.get_column(column_id) is None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Config and file store
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_settings_defaults_and_env():
    assert load_settings({}).data_dir == ".taskboard"
    settings = load_settings({"TASKBOARD_DIR": "/tmp/b", "TASKBOARD_LOG_LEVEL": "debug",
                              "TASKBOARD_STORAGE_KEY": "k"})
    assert settings.data_dir == "/tmp/b"
    assert settings.log_level == "DEBUG"
    assert settings.storage_key == "k"


def test_file_store_round_trip(tmp_path):
    store = FileStore(tmp_path / "board")
    assert store.read("key") is None
    store.write("key", b"{}")
    assert store.read("key") == b"{}"
    assert (tmp_path / "board" / "key.json").exists()
    assert [p.name for p in (tmp_path / "board").iterdir()] == ["key.json"]


def test_manager_over_file_store(tmp_path):
    first = BoardManager(store=FileStore(tmp_path))
    task_id = first.create_task("on disk", "in-progress")
    second = BoardManager(store=FileStore(tmp_path))
    assert second.find_task(task_id).name == "on disk"


def test_legacy_file_is_migrated(tmp_path):
    legacy = {"tasks": [{"id": "old-1", "title": "Legacy", "columnId": "todo", "favorite": True}]}
    (tmp_path / "taskboard-state.json").write_text(json.dumps(legacy))
    manager = BoardManager(store=FileStore(tmp_path))
    task = manager.find_task("old-1")
    assert task.name == "Legacy"
    assert task.is_favorite is True


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CLI
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _run(tmp_path, *argv):
    return cli.main([*argv, "--dir", str(tmp_path)])


def _board(tmp_path):
    return BoardManager(store=FileStore(tmp_path))


def test_cli_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()


def test_cli_add_and_show(tmp_path, capsys):
    assert _run(tmp_path, "add", "Write docs", "-c", "todo", "-f") == 0
    assert _run(tmp_path, "show") == 0
    out = capsys.readouterr().out
    assert "Write docs" in out
    assert "★" in out


def test_cli_show_json(tmp_path, capsys):
    _run(tmp_path, "add-column", "Review")
    capsys.readouterr()
    assert _run(tmp_path, "show", "--json") == 0
    data = json.loads(capsys.readouterr().out)
    assert [c["name"] for c in data["columns"]][-1] == "Review"


def test_cli_add_with_attachment(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hi")
    assert _run(tmp_path, "add", "With file", "-c", "done", "-a", str(path)) == 0
    task = _board(tmp_path).state.column_tasks("done")[0]
    assert [a.name for a in task.attachments] == ["notes.txt"]


def test_cli_move_edit_favorite_delete(tmp_path):
    _run(tmp_path, "add", "A", "-c", "todo")
    task_id = _board(tmp_path).state.column_tasks("todo")[0].id

    assert _run(tmp_path, "move", task_id, "done", "--index", "0") == 0
    assert _board(tmp_path).find_task(task_id).column_id == "done"

    assert _run(tmp_path, "edit", task_id, "--name", "Renamed", "--deadline", "2032-01-01") == 0
    task = _board(tmp_path).find_task(task_id)
    assert task.name == "Renamed"
    assert task.deadline.isoformat() == "2032-01-01"

    assert _run(tmp_path, "favorite", task_id) == 0
    assert _board(tmp_path).find_task(task_id).is_favorite is True

    assert _run(tmp_path, "delete", task_id) == 0
    assert _board(tmp_path).find_task(task_id) is None


def test_cli_rename_column_merges(tmp_path, capsys):
    _run(tmp_path, "add-column", "Extra")
    column_id = _board(tmp_path).columns[-1].id
    _run(tmp_path, "add", "x", "-c", column_id)
    capsys.readouterr()
    assert _run(tmp_path, "rename-column", column_id, "Done") == 0
    assert "Merged" in capsys.readouterr().out
    board = _board(tmp_path)
    assert board.get_column(column_id) is None
    assert [t.name for t in board.state.column_tasks("done")] == ["x"]


def test_cli_sort_and_reorder_columns(tmp_path):
    assert _run(tmp_path, "sort-column", "todo", "Z-A") == 0
    assert _run(tmp_path, "reorder-columns", "done", "in-progress", "todo") == 0
    board = _board(tmp_path)
    assert board.get_column("todo").sort_option.value == "Z-A"
    assert [c.id for c in board.columns] == ["done", "in-progress", "todo"]


def test_cli_attach_detach(tmp_path):
    _run(tmp_path, "add", "A", "-c", "todo")
    task_id = _board(tmp_path).state.column_tasks("todo")[0].id
    path = tmp_path / "img.png"
    path.write_bytes(b"\x89PNG")
    assert _run(tmp_path, "attach", task_id, str(path)) == 0
    attachment = _board(tmp_path).find_task(task_id).attachments[0]
    assert attachment.media_type == "image/png"
    assert _run(tmp_path, "detach", task_id, attachment.id) == 0
    assert _board(tmp_path).find_task(task_id).attachments == []


def test_cli_errors(tmp_path, capsys):
    assert _run(tmp_path, "delete", "missing") == 1
    assert _run(tmp_path, "add", "A", "-c", "nope") == 1
    assert _run(tmp_path, "add", "  ", "-c", "todo") == 2
    assert _run(tmp_path, "attach", "missing", "file") == 1
    out = capsys.readouterr().out
    assert "Task not found: missing" in out
    assert "Column not found: nope" in out


def test_cli_export_attachment(tmp_path, capsys):
    _run(tmp_path, "add", "A", "-c", "todo")
    task_id = _board(tmp_path).state.column_tasks("todo")[0].id
    source = tmp_path / "report.bin"
    source.write_bytes(b"\x00\x01payload")
    _run(tmp_path, "attach", task_id, str(source))
    attachment = _board(tmp_path).find_task(task_id).attachments[0]

    output = tmp_path / "out" / "copy.bin"
    output.parent.mkdir()
    assert _run(tmp_path, "export-attachment", task_id, attachment.id, "-o", str(output)) == 0
    assert output.read_bytes() == b"\x00\x01payload"

    assert _run(tmp_path, "export-attachment", task_id, "missing") == 1
    assert "Attachment not found: missing" in capsys.readouterr().out
