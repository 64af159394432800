"""Command-line front end of the structure editor engine.

Opens the tree of one prompt, applies a single edit and waits for the
remote store to acknowledge it:

    prompttree show planner 1.0
    prompttree move planner 1.0 summary_1.0 400 225
    prompttree add planner 1.0 planner_1.0 --child-name "Follow up"
    prompttree link planner 1.0 planner_1.0 critic 2.0
    prompttree detach planner 1.0 summary_1.0
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from prompttree.config import ClientSettings, log_level_from_env
from prompttree.engine.add_child import AddChildWorkflow
from prompttree.engine.graph_store import GraphStore
from prompttree.errors import PromptTreeError
from prompttree.models.prompt_entity import FlowPosition, PromptRef
from prompttree.sdk.prompt_client import PromptStoreClient


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and edit a prompt hierarchy")
    parser.add_argument("name", help="Name of the root prompt")
    parser.add_argument("version", help="Version of the root prompt")
    parser.add_argument("--api-url", default=None, help="Prompt store base URL")
    parser.add_argument("--log-level", default=log_level_from_env())

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("show", help="Print nodes and edges as JSON")

    move = sub.add_parser("move", help="Move a node and persist its position")
    move.add_argument("node")
    move.add_argument("x", type=float)
    move.add_argument("y", type=float)

    detach = sub.add_parser("detach", help="Clear the parent of a node")
    detach.add_argument("node")

    add = sub.add_parser("add", help="Create a new child prompt")
    add.add_argument("parent")
    add.add_argument("--child-name", required=True)
    add.add_argument("--child-version", default="1.0")

    link = sub.add_parser("link", help="Re-parent an existing prompt")
    link.add_argument("parent")
    link.add_argument("child_name")
    link.add_argument("child_version")
    return parser


async def run(args: argparse.Namespace, client: PromptStoreClient) -> int:
    store = GraphStore(client)
    workflow = AddChildWorkflow(store)
    await store.initialize(PromptRef(name=args.name, version=args.version))

    ok = True
    if args.command == "move":
        store.apply_position_change(args.node, FlowPosition(x=args.x, y=args.y), is_final=True)
    elif args.command == "detach":
        ok = await store.detach(args.node)
    elif args.command in ("add", "link"):
        workflow.open(args.parent)
        if args.command == "add":
            workflow.set_draft(args.child_name, args.child_version)
        else:
            workflow.choose_existing(PromptRef(name=args.child_name, version=args.child_version))
        ok = await workflow.commit() is not None

    await store.wait_idle()
    if not ok:
        error = workflow.error or store.error or f"{args.command} was refused"
        print(f"error: {error}", file=sys.stderr)
        return 1
    print(store.snapshot().model_dump_json(indent=2))
    return 0


async def _main(args: argparse.Namespace) -> int:
    settings = ClientSettings.from_env()
    if args.api_url:
        settings.base_url = args.api_url
    async with PromptStoreClient.from_settings(settings) as client:
        try:
            return await run(args, client)
        except PromptTreeError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level)
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
