"""``n`` -- create files, workspaces, and project scaffolds.

Usage::

    n notes.txt                       # one empty file in the current directory
    n nw my-app --template python-cli # workspace ./my-app from a template
    n nwc "a flask todo app"          # workspace named by the AI
    n new "add a docs folder"         # AI structure into the current directory
    n templates                       # list available templates
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from ncreate import __version__
from ncreate.ai_client import StructureGenerator
from ncreate.config import Config, load_config
from ncreate.errors import NCreateError, ProviderError
from ncreate.scaffolder.materializer import ConflictPolicy, Materializer, MaterializeResult
from ncreate.scaffolder.models import ProjectStructure
from ncreate.scaffolder.normalizer import normalize
from ncreate.scaffolder.paths import normalize_relative, resolve
from ncreate.scaffolder.plan import CreateFile, MaterializationPlan
from ncreate.scaffolder.registry import TemplateRegistry
from ncreate.scaffolder.renderer import TemplateRenderer
from ncreate.utils import (
    console,
    display_path,
    print_error,
    print_plan_table,
    print_result,
    print_warning,
    sanitize_name,
)

COMMANDS = ("file", "nw", "nwc", "new", "templates")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _key_value(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    key = key.strip()
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    return key, value


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: $NCREATE_CONFIG or ~/.config/ncreate/config.json)",
    )
    common.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be created without writing anything",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="List every created and skipped path",
    )

    parser = argparse.ArgumentParser(
        prog="n",
        description="Create files, workspaces, and project scaffolds.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  n notes.txt\n"
            "  n nw my-app --template python-cli --var description='Todo CLI'\n"
            "  n nwc \"a flask todo app\"\n"
            "  n new \"add a docs folder with an index page\"\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    p_file = sub.add_parser("file", parents=[common], help="Create one file (default command)")
    p_file.add_argument("filename", help="Relative path of the file to create")
    p_file.add_argument(
        "--executable", "-x",
        action="store_true",
        help="Set the executable bit",
    )

    p_nw = sub.add_parser("nw", parents=[common], help="Create a workspace directory")
    p_nw.add_argument("name", help="Workspace directory name")
    p_nw.add_argument(
        "--template", "-t",
        default=None,
        help="Template to populate the workspace with (default: config default_template)",
    )
    p_nw.add_argument(
        "--var",
        dest="variables",
        action="append",
        type=_key_value,
        default=[],
        metavar="KEY=VALUE",
        help="Template variable override (repeatable)",
    )

    p_nwc = sub.add_parser("nwc", parents=[common], help="Create a workspace from an AI-generated structure")
    p_nwc.add_argument("prompt", nargs="+", help="Project description")

    p_new = sub.add_parser("new", parents=[common], help="Add an AI-generated structure to the current directory")
    p_new.add_argument("prompt", nargs="+", help="Project description")

    sub.add_parser("templates", parents=[common], help="List available templates")
    return parser


def _expand_shorthand(argv: list[str]) -> list[str]:
    """``n foo.txt`` is shorthand for ``n file foo.txt``."""
    if argv and argv[0] not in COMMANDS and argv[0] not in ("-h", "--help", "--version"):
        return ["file", *argv]
    return argv


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _materialize(
    plan: MaterializationPlan,
    root: Path,
    policy: ConflictPolicy,
    args: argparse.Namespace,
) -> MaterializeResult | None:
    materializer = Materializer()
    if args.dry_run:
        actions = materializer.preflight(plan, root, policy)
        print_plan_table(actions, title=f"Dry run: {display_path(root)}")
        return None
    result = await materializer.apply(plan, root, policy)
    print_result(result, verbose=args.verbose)
    return result


async def cmd_file(args: argparse.Namespace, config: Config, cwd: Path) -> MaterializeResult | None:
    entry = CreateFile(path=normalize_relative(args.filename), executable=args.executable)
    return await _materialize(MaterializationPlan.of([entry]), cwd, ConflictPolicy.FAIL, args)


async def cmd_workspace(args: argparse.Namespace, config: Config, cwd: Path) -> MaterializeResult | None:
    root = resolve(cwd, args.name)
    template_name = args.template or config.default_template

    if template_name:
        template = TemplateRegistry.from_config(config).load(template_name)
        overrides = {"name": root.name, **dict(args.variables)}
        plan = TemplateRenderer().render(template, overrides)
    else:
        if args.variables:
            print_warning("--var has no effect without a template")
        plan = MaterializationPlan()

    if root.exists():
        print_warning(f"{display_path(root)} already exists; existing files are never overwritten")
    return await _materialize(plan, root, ConflictPolicy.FAIL, args)


async def _ask_ai(args: argparse.Namespace, config: Config) -> ProjectStructure:
    prompt = " ".join(args.prompt)
    generator = StructureGenerator.from_config(config.ai)
    with console.status(f"Asking {generator.client.provider} ({generator.model})..."):
        return await generator.generate(prompt)


async def cmd_ai_workspace(args: argparse.Namespace, config: Config, cwd: Path) -> MaterializeResult | None:
    structure = await _ask_ai(args, config)
    plan = normalize(structure)
    dirname = sanitize_name(structure.name)
    if not dirname:
        raise ProviderError(f"project name {structure.name!r} is not usable as a directory name")
    return await _materialize(plan, resolve(cwd, dirname), ConflictPolicy.FAIL, args)


async def cmd_ai_here(args: argparse.Namespace, config: Config, cwd: Path) -> MaterializeResult | None:
    structure = await _ask_ai(args, config)
    plan = normalize(structure)
    return await _materialize(plan, cwd, ConflictPolicy.SKIP, args)


def cmd_templates(args: argparse.Namespace, config: Config) -> None:
    registry = TemplateRegistry.from_config(config)
    names = list(registry.list())
    if not names:
        print_warning("No templates found")
        return
    for name in names:
        console.print(name, markup=False, highlight=False)


async def run(args: argparse.Namespace, config: Config, cwd: Path | None = None) -> MaterializeResult | None:
    """Execute the parsed command. Errors propagate as ``NCreateError``."""
    cwd = cwd or Path.cwd()
    if args.command == "file":
        return await cmd_file(args, config, cwd)
    if args.command == "nw":
        return await cmd_workspace(args, config, cwd)
    if args.command == "nwc":
        return await cmd_ai_workspace(args, config, cwd)
    if args.command == "new":
        return await cmd_ai_here(args, config, cwd)
    cmd_templates(args, config)
    return None


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``n``."""
    parser = build_parser()
    args = parser.parse_args(_expand_shorthand(sys.argv[1:] if argv is None else argv))

    try:
        config = load_config(args.config)
        asyncio.run(run(args, config))
    except NCreateError as exc:
        print_error(str(exc))
        for note in getattr(exc, "__notes__", []):
            print_warning(note)
        sys.exit(1)
    except KeyboardInterrupt:
        print_error("Interrupted; files created so far were not rolled back")
        sys.exit(130)


if __name__ == "__main__":
    main()
