from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional

from .builder import PromptBuilder
from .config import PromptBuilderConfig
from .errors import PromptBuilderError
from .gateway import Gateway
from .logging import configure_logging


def _print_tree(builder: PromptBuilder) -> None:
    store = builder.store
    for category in store.sorted_categories():
        print(f"[{category.id}] {category.name}")
        for section in store.sections_for_category(category.id):
            label = section.title or (section.content.splitlines() or [""])[0][:60]
            print(f"    [{section.id}] {label}")


async def _run(args: argparse.Namespace, gateway: Optional[Gateway]) -> int:
    config = PromptBuilderConfig(api_url=args.api_url)
    builder = PromptBuilder(gateway=gateway) if gateway is not None else PromptBuilder.from_config(config)
    async with builder:
        await builder.initialize()

        if args.cmd == "list":
            _print_tree(builder)
            return 0

        if args.cmd == "compile":
            builder.store.select_many(args.select)
            if args.custom is not None:
                builder.store.update_custom_prompt(args.custom, enabled=True)
            if args.remote:
                text = await builder.compile_remote()
            else:
                text = builder.compile().compiled_text
            sys.stdout.write(text + "\n")
            return 0

    raise AssertionError("unreachable")


def main(argv: Optional[list[str]] = None, *, gateway: Optional[Gateway] = None) -> int:
    parser = argparse.ArgumentParser(prog="prompt-builder")
    parser.add_argument("--api-url", default=None, help="API base URL (defaults to $PROMPT_BUILDER_API_URL)")
    parser.add_argument("--log-level", default=None, help="Logging level (defaults to $PROMPT_BUILDER_LOG_LEVEL)")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_list = sub.add_parser("list", help="List categories and their sections")
    p_list.set_defaults(cmd="list")

    p_compile = sub.add_parser("compile", help="Compile selected sections into a prompt")
    p_compile.add_argument("--select", nargs="*", default=[], metavar="ID", help="Section ids to include")
    p_compile.add_argument("--custom", default=None, help="Custom text placed before the sections")
    p_compile.add_argument("--remote", action="store_true", help="Compile on the server instead of locally")
    p_compile.set_defaults(cmd="compile")

    args = parser.parse_args(argv)
    configure_logging("prompt_builder", args.log_level or PromptBuilderConfig().log_level)

    try:
        return asyncio.run(_run(args, gateway))
    except PromptBuilderError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
