"""Command line entry point for study-quiz."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from importlib import metadata
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console

from .core import (
    CONFIG_FILENAME,
    QuizConfig,
    TomlConfigError,
    WorkspaceError,
    WorkspaceLayout,
    configure_logger,
    ensure_workspace,
    find_config,
    load_config,
    write_config_template,
)
from .quiz import (
    CatalogError,
    JsonFileStore,
    Phase,
    QuizCategory,
    QuizController,
    load_catalog,
    run_quiz_session,
)
from .quiz.state import progress

_ERRORS = (TomlConfigError, CatalogError, WorkspaceError)


@dataclass(frozen=True)
class _Runtime:
    layout: WorkspaceLayout
    config: QuizConfig
    controller: QuizController


def _version() -> str:
    try:
        return metadata.version("study-quiz")
    except metadata.PackageNotFoundError:
        return "unknown"


def _load_runtime(args: argparse.Namespace) -> _Runtime:
    layout = ensure_workspace()
    config_path = find_config(
        getattr(args, "config", None),
        search=(layout.path_for("config"),),
    )
    config = load_config(config_path)
    verbose = bool(getattr(args, "verbose", False)) or config.verbose
    logger, _ = configure_logger(
        "study_quiz",
        log_dir=layout.path_for("logs"),
        level=config.log_level,
        verbose=verbose,
    )
    catalog = load_catalog(config.catalog_path)
    store = JsonFileStore(config.storage_dir or layout.path_for("sessions"))
    controller = QuizController(catalog, store, logger=logger)
    return _Runtime(layout=layout, config=config, controller=controller)


def _cmd_init(args: argparse.Namespace, console: Console) -> int:
    target = Path(args.path or CONFIG_FILENAME).expanduser().resolve()
    write_config_template(target, overwrite=bool(args.force))
    console.print(f"Created template {target}")
    return 0


def _cmd_play(
    args: argparse.Namespace,
    console: Console,
    input_provider: Callable[[], str],
) -> int:
    runtime = _load_runtime(args)
    controller = runtime.controller
    if not controller.catalog:
        console.print("Question catalog is empty.")
        return 1
    if args.player:
        controller.set_player(args.player)
    if args.category:
        category = QuizCategory.parse(args.category)
        if category is None:
            print(
                f"Error: unknown category '{args.category}'.",
                file=sys.stderr,
            )
            return 2
        controller.select_category(category)
    run_quiz_session(
        controller,
        console,
        input_provider,
        show_explanations=bool(args.explain),
    )
    return 0


def _cmd_status(args: argparse.Namespace, console: Console) -> int:
    controller = _load_runtime(args).controller
    session = controller.session
    if controller.phase is Phase.NO_PLAYER:
        console.print("No saved session.")
        return 1
    console.print(f"Player: {session.player}")
    console.print(f"Phase: {session.phase.value}")
    if session.category is None:
        return 0
    console.print(f"Category: {session.category.label}")
    if session.completed:
        results = controller.results()
        console.print(
            f"Score: {results.score}/{results.total} "
            f"({results.percentage}%)"
        )
        return 0
    console.print(
        f"Question {min(session.current_index + 1, session.question_count)}"
        f" of {session.question_count} "
        f"({progress(session) * 100:.0f}%), score {session.score}"
    )
    return 0


def _cmd_reset(args: argparse.Namespace, console: Console) -> int:
    controller = _load_runtime(args).controller
    controller.reset()
    console.print("Saved session cleared.")
    return 0


def _cmd_categories(args: argparse.Namespace, console: Console) -> int:
    catalog = _load_runtime(args).controller.catalog
    for category, count in catalog.counts().items():
        console.print(f"- {category.value} ({category.label}): {count}")
    return 0 if len(catalog) else 1


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="study-quiz",
        description="Take a quiz in the terminal; progress is saved as you go",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("-V", "--version", action="version", version=_version())
    sub = p.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser("init", help="Create a study-quiz.toml template")
    sp_init.add_argument("--path", help="Where to write the template")
    sp_init.add_argument("--force", action="store_true")

    def _with_config(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--config", help="Path to study-quiz.toml")
        parser.add_argument(
            "--verbose", action="store_true", help="Log to stderr as well"
        )

    sp_play = sub.add_parser("play", help="Start or resume a quiz")
    _with_config(sp_play)
    sp_play.add_argument("--player", help="Player name for a new session")
    sp_play.add_argument(
        "--category",
        help="Category to start with (true-false, single-choice, "
        "multi-select)",
    )
    sp_play.add_argument("--explain", dest="explain", action="store_true")
    sp_play.add_argument("--no-explain", dest="explain", action="store_false")
    sp_play.set_defaults(explain=True)

    sp_status = sub.add_parser("status", help="Show the saved session")
    _with_config(sp_status)
    sp_reset = sub.add_parser("reset", help="Discard the saved session")
    _with_config(sp_reset)
    sp_cats = sub.add_parser(
        "categories", help="List categories with question counts"
    )
    _with_config(sp_cats)
    return p


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Console | None = None,
    input_provider: Callable[[], str] | None = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    out = console or Console()
    reader = input_provider or (lambda: out.input("[bold cyan]> [/]"))
    try:
        if args.command == "init":
            return _cmd_init(args, out)
        if args.command == "play":
            return _cmd_play(args, out, reader)
        if args.command == "status":
            return _cmd_status(args, out)
        if args.command == "reset":
            return _cmd_reset(args, out)
        if args.command == "categories":
            return _cmd_categories(args, out)
    except _ERRORS as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    parser.print_help()  # pragma: no cover - argparse enforces a command
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
