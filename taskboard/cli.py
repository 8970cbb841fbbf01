#!/usr/bin/env python3
"""
TASKBOARD - CLI Interface
=========================
Command-line front end for a persistent kanban board.

Usage:
    taskboard show
    taskboard add-column "Review"
    taskboard rename-column column-1a2b "Done"      # merges into "Done"
    taskboard sort-column todo A-Z
    taskboard add "Write docs" --column todo --favorite --attach notes.txt
    taskboard move 3f2a9c todo --index 0
    taskboard attach 3f2a9c screenshot.png
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .attachments import FilePayload, decode_data_uri
from .config import load_settings
from .exceptions import AttachmentReadFailure, InvalidInput, NotFound
from .forms import ColumnForm, TaskForm
from .manager import BoardManager
from .schema import SortOption
from .store import FileStore


def _add_dir(parser: argparse.ArgumentParser, default: str) -> None:
    parser.add_argument("--dir", default=default, help="Board directory")


def build_parser(default_dir: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskboard",
        description="Taskboard - single-user kanban board",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  taskboard show                               Show the board
  taskboard show --json                        Dump the stored board
  taskboard add-column Review                  Add a column at the end
  taskboard rename-column <id> Done            Rename (merges on name clash)
  taskboard sort-column <id> Z-A               Set a column's sort mode
  taskboard reorder-columns done todo ...      Reorder columns (pass all ids)
  taskboard add "Fix bug" -c todo -f           Add a favorite task
  taskboard move <task> done --index 0         Move a task to a position
  taskboard attach <task> ./report.pdf         Attach a file
  taskboard export-attachment <task> <att> -o out.pdf
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # SHOW command
    show_parser = subparsers.add_parser("show", help="Show the board")
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")
    _add_dir(show_parser, default_dir)

    # COLUMN commands
    add_column_parser = subparsers.add_parser("add-column", help="Create a column")
    add_column_parser.add_argument("name", help="Column name")
    _add_dir(add_column_parser, default_dir)

    rename_parser = subparsers.add_parser("rename-column", help="Rename a column")
    rename_parser.add_argument("column_id", help="Column ID")
    rename_parser.add_argument("name", help="New name")
    _add_dir(rename_parser, default_dir)

    delete_column_parser = subparsers.add_parser("delete-column", help="Delete a column and its tasks")
    delete_column_parser.add_argument("column_id", help="Column ID")
    _add_dir(delete_column_parser, default_dir)

    sort_parser = subparsers.add_parser("sort-column", help="Set a column's sort mode")
    sort_parser.add_argument("column_id", help="Column ID")
    sort_parser.add_argument("sort", choices=[o.value for o in SortOption], help="Sort mode")
    _add_dir(sort_parser, default_dir)

    reorder_parser = subparsers.add_parser("reorder-columns", help="Reorder columns")
    reorder_parser.add_argument("column_ids", nargs="+", help="Every column ID, in the new order")
    _add_dir(reorder_parser, default_dir)

    # TASK commands
    add_parser = subparsers.add_parser("add", help="Create a task")
    add_parser.add_argument("name", help="Task name")
    add_parser.add_argument("-c", "--column", required=True, help="Column ID")
    add_parser.add_argument("-d", "--description", default="", help="Description")
    add_parser.add_argument("--deadline", help="Deadline (YYYY-MM-DD)")
    add_parser.add_argument("-f", "--favorite", action="store_true", help="Mark as favorite")
    add_parser.add_argument("-a", "--attach", action="append", default=[], help="File to attach (repeatable)")
    _add_dir(add_parser, default_dir)

    edit_parser = subparsers.add_parser("edit", help="Edit a task")
    edit_parser.add_argument("task_id", help="Task ID")
    edit_parser.add_argument("--name", help="New name")
    edit_parser.add_argument("-c", "--column", help="Move to the end of this column")
    edit_parser.add_argument("-d", "--description", help="Description")
    edit_parser.add_argument("--deadline", help="Deadline (YYYY-MM-DD, empty to clear)")
    _add_dir(edit_parser, default_dir)

    move_parser = subparsers.add_parser("move", help="Move a task")
    move_parser.add_argument("task_id", help="Task ID")
    move_parser.add_argument("column_id", help="Target column ID")
    move_parser.add_argument("-i", "--index", type=int, help="Target position (default: end)")
    _add_dir(move_parser, default_dir)

    delete_parser = subparsers.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("task_id", help="Task ID")
    _add_dir(delete_parser, default_dir)

    favorite_parser = subparsers.add_parser("favorite", help="Toggle a task's favorite flag")
    favorite_parser.add_argument("task_id", help="Task ID")
    _add_dir(favorite_parser, default_dir)

    task_parser = subparsers.add_parser("task", help="Show one task")
    task_parser.add_argument("task_id", help="Task ID")
    _add_dir(task_parser, default_dir)

    # ATTACHMENT commands
    attach_parser = subparsers.add_parser("attach", help="Attach files to a task")
    attach_parser.add_argument("task_id", help="Task ID")
    attach_parser.add_argument("files", nargs="+", help="Files to attach")
    _add_dir(attach_parser, default_dir)

    detach_parser = subparsers.add_parser("detach", help="Remove an attachment")
    detach_parser.add_argument("task_id", help="Task ID")
    detach_parser.add_argument("attachment_id", help="Attachment ID")
    _add_dir(detach_parser, default_dir)

    export_parser = subparsers.add_parser("export-attachment", help="Write an attachment to a file")
    export_parser.add_argument("task_id", help="Task ID")
    export_parser.add_argument("attachment_id", help="Attachment ID")
    export_parser.add_argument("-o", "--output", help="Output path (default: attachment name)")
    _add_dir(export_parser, default_dir)

    return parser


def _print_task(manager: BoardManager, task_id: str) -> None:
    task = manager.require_task(task_id)
    column = manager.get_column(task.column_id)
    print(f"{'★ ' if task.is_favorite else ''}{task.name}  [{task.id}]")
    print(f"   Column: {column.name if column else task.column_id}")
    if task.description:
        print(f"   Description: {task.description}")
    if task.deadline:
        print(f"   Deadline: {task.deadline.isoformat()}")
    print(f"   Created: {task.created_at.isoformat()}")
    print(f"   Updated: {task.updated_at.isoformat()}")
    for attachment in task.attachments:
        print(f"   📎 [{attachment.id}] {attachment.name} ({attachment.media_type})")


def run(args: argparse.Namespace) -> int:
    manager = BoardManager(store=FileStore(args.dir), storage_key=args.storage_key)

    if args.command == "show":
        if args.json:
            print(json.dumps(manager.state.model_dump(mode="json", by_alias=True), indent=2))
        else:
            print(manager.get_status_report())

    elif args.command == "add-column":
        column_id = manager.submit_column_form(ColumnForm.parse({"name": args.name}))
        print(f"✅ Created column: {args.name} ({column_id})")

    elif args.command == "rename-column":
        manager.require_column(args.column_id)
        manager.submit_column_form(ColumnForm.parse({"name": args.name}), column_id=args.column_id)
        if manager.get_column(args.column_id) is None:
            print(f"🔀 Merged into existing column '{args.name}'")
        else:
            print(f"✅ Renamed column to: {args.name}")

    elif args.command == "delete-column":
        column = manager.require_column(args.column_id)
        manager.delete_column(column.id)
        print(f"🗑️ Deleted column: {column.name}")

    elif args.command == "sort-column":
        manager.require_column(args.column_id)
        manager.set_column_sort(args.column_id, SortOption(args.sort))
        print(f"✅ Sort mode for {args.column_id}: {args.sort}")

    elif args.command == "reorder-columns":
        manager.reorder_columns(args.column_ids)
        print("✅ Columns: " + ", ".join(c.name for c in manager.columns))

    elif args.command == "add":
        manager.require_column(args.column)
        form = TaskForm.parse({
            "name": args.name,
            "column_id": args.column,
            "description": args.description,
            "deadline": args.deadline,
            "is_favorite": args.favorite,
        })
        files = [FilePayload.from_path(path) for path in args.attach]
        task_id = asyncio.run(manager.submit_task_form(form, files=files))
        print(f"✅ Created task: {form.name} ({task_id})")

    elif args.command == "edit":
        task = manager.require_task(args.task_id)
        if args.column:
            manager.require_column(args.column)
        form = TaskForm.parse({
            "name": args.name if args.name is not None else task.name,
            "column_id": args.column or task.column_id,
            "description": args.description if args.description is not None else task.description,
            "deadline": args.deadline if args.deadline is not None else task.deadline,
            "is_favorite": task.is_favorite,
            "image_url": task.image_url,
        })
        asyncio.run(manager.submit_task_form(form, task_id=task.id))
        print(f"✅ Updated task: {form.name}")

    elif args.command == "move":
        manager.require_task(args.task_id)
        manager.require_column(args.column_id)
        index = args.index
        if index is None:
            index = len(manager.state.column_tasks(args.column_id))
        manager.move_task(args.task_id, args.column_id, index)
        print(f"✅ Moved {args.task_id} to {args.column_id} at position {index}")

    elif args.command == "delete":
        task = manager.require_task(args.task_id)
        manager.delete_task(task.id)
        print(f"🗑️ Deleted task: {task.name}")

    elif args.command == "favorite":
        manager.require_task(args.task_id)
        is_favorite = manager.toggle_favorite(args.task_id)
        print(f"{'★ Favorited' if is_favorite else '☆ Unfavorited'}: {args.task_id}")

    elif args.command == "task":
        _print_task(manager, args.task_id)

    elif args.command == "attach":
        task = manager.require_task(args.task_id)

        async def _attach_all():
            for path in args.files:
                attachment = await manager.add_attachment(
                    task.id, FilePayload.from_path(path), column_id_hint=task.column_id
                )
                print(f"📎 Attached: {attachment.name} ({attachment.id})")

        asyncio.run(_attach_all())

    elif args.command == "detach":
        manager.require_task(args.task_id)
        manager.remove_attachment(args.task_id, args.attachment_id)
        print(f"✅ Removed attachment: {args.attachment_id}")

    elif args.command == "export-attachment":
        task = manager.require_task(args.task_id)
        attachment = next((a for a in task.attachments if a.id == args.attachment_id), None)
        if attachment is None:
            print(f"❌ Attachment not found: {args.attachment_id}")
            return 1
        output = Path(args.output or attachment.name)
        try:
            output.write_bytes(decode_data_uri(attachment.data))
        except (ValueError, OSError) as e:
            print(f"❌ Could not export {attachment.name}: {e}")
            return 2
        print(f"💾 Exported: {attachment.name} -> {output}")

    return 0


def main(argv=None) -> int:
    settings = load_settings()
    parser = build_parser(settings.data_dir)
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
    args.storage_key = settings.storage_key

    try:
        return run(args)
    except NotFound as e:
        print(f"❌ {e}")
        return 1
    except (InvalidInput, AttachmentReadFailure) as e:
        print(f"❌ {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
