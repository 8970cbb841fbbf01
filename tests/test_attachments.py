"""
Tests for attachment ingestion: add/remove, atomic task creation with files,
read failures leaving the board untouched.
"""
import asyncio
import base64
import gc

import pytest

from taskboard.attachments import FilePayload, decode_data_uri, read_attachments, to_data_uri
from taskboard.exceptions import AttachmentReadFailure, TaskNotFound
from taskboard.manager import BoardManager


def test_data_uri_encoding():
    uri = to_data_uri(b"hello", "text/plain")
    assert uri == "data:text/plain;base64," + base64.b64encode(b"hello").decode()
    assert decode_data_uri(uri) == b"hello"


def test_decode_rejects_non_data_uri():
    with pytest.raises(ValueError):
        decode_data_uri("https://example.com/a.png")


def test_media_type_guessed_from_name():
    assert FilePayload(name="photo.png", content=b"").guess_media_type() == "image/png"
    assert FilePayload(name="blob", content=b"").guess_media_type() == "application/octet-stream"
    assert FilePayload(name="x.png", content=b"", media_type="text/plain").guess_media_type() == "text/plain"


@pytest.mark.asyncio
async def test_read_attachments_keeps_order(tmp_path):
    path = tmp_path / "second.txt"
    path.write_bytes(b"two")
    payloads = [FilePayload(name="first.txt", content=b"one"), FilePayload.from_path(path)]
    attachments = await read_attachments(payloads)
    assert [a.name for a in attachments] == ["first.txt", "second.txt"]
    assert decode_data_uri(attachments[1].data) == b"two"
    assert attachments[0].id != attachments[1].id


@pytest.mark.asyncio
async def test_read_attachments_raises_first_failure_in_order(tmp_path):
    """Every failed read is collected; the earliest payload's error is raised"""
    payloads = [
        FilePayload(name="ok.txt", content=b"ok"),
        FilePayload.from_path(tmp_path / "first-missing"),
        FilePayload.from_path(tmp_path / "second-missing"),
    ]
    with pytest.raises(AttachmentReadFailure) as excinfo:
        await read_attachments(payloads)
    assert excinfo.value.name == "first-missing"


@pytest.mark.asyncio
async def test_failed_batch_leaves_no_unretrieved_errors(tmp_path):
    """No pending task is left holding an exception after a failed batch"""
    loop = asyncio.get_running_loop()
    unhandled = []
    loop.set_exception_handler(lambda _loop, context: unhandled.append(context))
    payloads = [FilePayload.from_path(tmp_path / f"missing-{i}") for i in range(3)]
    with pytest.raises(AttachmentReadFailure):
        await read_attachments(payloads)
    await asyncio.sleep(0)
    gc.collect()
    assert unhandled == []


@pytest.mark.asyncio
async def test_add_attachment(manager):
    task_id = manager.create_task("with file", "todo")
    attachment = await manager.add_attachment(task_id, FilePayload(name="a.txt", content=b"abc"))
    task = manager.find_task(task_id)
    assert [a.id for a in task.attachments] == [attachment.id]
    assert attachment.media_type == "text/plain"
    assert decode_data_uri(task.attachments[0].data) == b"abc"


@pytest.mark.asyncio
async def test_add_attachment_appends_in_order(manager):
    task_id = manager.create_task("files", "done")
    for name in ("1.txt", "2.txt", "3.txt"):
        await manager.add_attachment(
            task_id, FilePayload(name=name, content=b"x"), column_id_hint="done"
        )
    assert [a.name for a in manager.find_task(task_id).attachments] == ["1.txt", "2.txt", "3.txt"]


@pytest.mark.asyncio
async def test_add_attachment_wrong_hint_falls_back_to_scan(manager):
    task_id = manager.create_task("files", "done")
    await manager.add_attachment(
        task_id, FilePayload(name="a.txt", content=b"x"), column_id_hint="todo"
    )
    assert len(manager.find_task(task_id).attachments) == 1


@pytest.mark.asyncio
async def test_add_attachment_unknown_task_raises(manager):
    before = manager.state
    with pytest.raises(TaskNotFound):
        await manager.add_attachment("missing", FilePayload(name="a", content=b"x"))
    assert manager.state is before


@pytest.mark.asyncio
async def test_add_attachment_read_failure_leaves_state(manager, tmp_path):
    task_id = manager.create_task("t", "todo")
    before = manager.state
    with pytest.raises(AttachmentReadFailure):
        await manager.add_attachment(task_id, FilePayload.from_path(tmp_path / "nope.bin"))
    assert manager.state is before


@pytest.mark.asyncio
async def test_remove_attachment(manager):
    task_id = manager.create_task("t", "todo")
    keep = await manager.add_attachment(task_id, FilePayload(name="k", content=b"k"))
    drop = await manager.add_attachment(task_id, FilePayload(name="d", content=b"d"))
    manager.remove_attachment(task_id, drop.id)
    assert [a.id for a in manager.find_task(task_id).attachments] == [keep.id]


def test_remove_attachment_unknown_ids_noop(manager):
    task_id = manager.create_task("t", "todo")
    before = manager.state
    manager.remove_attachment(task_id, "missing")
    manager.remove_attachment("missing", "missing")
    assert manager.state is before


@pytest.mark.asyncio
async def test_delete_task_drops_attachments(manager, store):
    task_id = manager.create_task("t", "todo")
    attachment = await manager.add_attachment(task_id, FilePayload(name="a", content=b"secret"))
    assert attachment.id.encode() in store.read(manager.storage_key)
    manager.delete_task(task_id)
    assert attachment.id.encode() not in store.read(manager.storage_key)
    assert manager.find_task(task_id) is None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Atomic creation with files
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class _CountingStore:
    def __init__(self):
        self.writes = []

    def read(self, key):
        return None

    def write(self, key, data):
        self.writes.append(data)


@pytest.mark.asyncio
async def test_create_task_with_attachments_is_one_transition():
    store = _CountingStore()
    manager = BoardManager(store=store)
    files = [FilePayload(name=f"{i}.txt", content=str(i).encode()) for i in range(3)]
    task_id = await manager.create_task_with_attachments("batch", "todo", files=files)

    assert len(store.writes) == 1
    task = manager.find_task(task_id)
    assert [a.name for a in task.attachments] == ["0.txt", "1.txt", "2.txt"]
    assert manager.state.column_tasks("todo")[-1].id == task_id


@pytest.mark.asyncio
async def test_create_task_with_attachments_failure_creates_nothing(manager, tmp_path):
    files = [FilePayload(name="ok.txt", content=b"ok"), FilePayload.from_path(tmp_path / "missing")]
    before = manager.state
    with pytest.raises(AttachmentReadFailure):
        await manager.create_task_with_attachments("never", "todo", files=files)
    assert manager.state is before
    assert manager.tasks == []
