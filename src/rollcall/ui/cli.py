from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from rollcall.app import add_student, export_registry, import_registry_file, plan_registry_import
from rollcall.config import (
    ActorConfig,
    ConfigurationError,
    configure_logging,
    get_import_config,
)
from rollcall.domain.registry_import import (
    Actor,
    ImportContext,
    ImportFlags,
    RegistryImportError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from rollcall.domain.registry_import import ImportPlan

log = logging.getLogger(__name__)


def _add_scope_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--institution",
        type=str,
        required=True,
        help="Institution whose registry is read or written",
    )
    parser.add_argument(
        "--department",
        type=str,
        help="Restrict to one department; overrides department values in the file",
    )


def _add_actor_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--actor-id",
        type=str,
        help="Operator id stamped on written rows (defaults to ROLLCALL_ACTOR_ID)",
    )
    parser.add_argument(
        "--actor-name",
        type=str,
        help="Operator name stamped on written rows (defaults to ROLLCALL_ACTOR_NAME)",
    )


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk import and maintain the student registry")
    subparsers = parser.add_subparsers(dest="command", required=True)

    plan = subparsers.add_parser("plan", help="Show what importing a file would change")
    plan.add_argument("file", type=Path, help="CSV or XLSX file to inspect")
    _add_scope_arguments(plan)
    _add_actor_arguments(plan)
    plan.add_argument(
        "--whitelist",
        action="store_true",
        help="Mark every imported student as whitelisted",
    )

    import_ = subparsers.add_parser("import", help="Import a CSV or XLSX file into the registry")
    import_.add_argument("file", type=Path, help="CSV or XLSX file to import")
    _add_scope_arguments(import_)
    _add_actor_arguments(import_)
    import_.add_argument(
        "--whitelist",
        action="store_true",
        help="Mark every imported student as whitelisted",
    )
    import_.add_argument(
        "--batch-size",
        type=_positive_int,
        default=None,
        help="Records written per batch (defaults to config)",
    )
    import_.add_argument(
        "--yes",
        action="store_true",
        help="Commit without asking for confirmation",
    )

    export = subparsers.add_parser("export", help="Export the registry to an XLSX workbook")
    export.add_argument("output", type=Path, help="Destination .xlsx path")
    _add_scope_arguments(export)

    student = subparsers.add_parser("add-student", help="Create or update a single student")
    _add_scope_arguments(student)
    _add_actor_arguments(student)
    student.add_argument("--name", type=str, required=True, help="Full name")
    student.add_argument("--roll-number", type=str, required=True, help="Roll number")
    student.add_argument("--email", type=str, required=True, help="Email address")
    student.add_argument("--cgpa", type=str, help="UG CGPA")
    student.add_argument("--backlogs", type=str, help="Number of backlogs")
    student.add_argument("--passout-year", type=str, help="Year of passing out")
    student.add_argument(
        "--whitelist",
        action="store_true",
        help="Mark the student as whitelisted",
    )

    return parser.parse_args(list(argv))


def _resolve_actor(args: argparse.Namespace) -> Actor:
    if args.actor_id and args.actor_name:
        return Actor(actor_id=args.actor_id, actor_name=args.actor_name)
    configured = ActorConfig.from_environment()
    return Actor(
        actor_id=args.actor_id or configured.actor_id,
        actor_name=args.actor_name or configured.actor_name,
    )


def _context(args: argparse.Namespace) -> ImportContext:
    return ImportContext(
        institution=args.institution,
        department=args.department,
        default_department=get_import_config().default_department,
    )


def _describe_plan(plan: ImportPlan) -> None:
    log.info("Import plan: %s", plan.summary())
    for row in plan.skipped:
        detail = row.detail or ", ".join(field.label for field in row.missing_fields)
        log.info("  row %s skipped (%s): %s", row.row_index, row.reason, detail)


def _confirm_on_terminal(plan: ImportPlan) -> bool:
    _describe_plan(plan)
    if plan.size == 0:
        log.info("Nothing to import")
        return False
    answer = input(f"Commit {plan.size} records? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def _auto_confirm(plan: ImportPlan) -> bool:
    _describe_plan(plan)
    return True


def _report_progress(percent: int) -> None:
    log.info("Import progress: %s%%", percent)


def _run(args: argparse.Namespace) -> int:
    if args.command == "plan":
        staged = plan_registry_import(
            args.file,
            context=_context(args),
            actor=_resolve_actor(args),
            flags=ImportFlags(whitelist=args.whitelist),
        )
        _describe_plan(staged.plan)
        staged.cancel()
        return 0

    if args.command == "import":
        confirm: Callable[[ImportPlan], bool] = (
            _auto_confirm if args.yes else _confirm_on_terminal
        )
        result = import_registry_file(
            args.file,
            context=_context(args),
            actor=_resolve_actor(args),
            flags=ImportFlags(whitelist=args.whitelist),
            batch_size=args.batch_size,
            confirm=confirm,
            on_progress=_report_progress,
        )
        if result is None:
            log.info("Import cancelled; registry unchanged")
            return 0
        log.info(result.message())
        return 0 if result.succeeded else 1

    if args.command == "export":
        export_registry(args.output, institution=args.institution, department=args.department)
        return 0

    if args.command == "add-student":
        student = add_student(
            name=args.name,
            roll_number=args.roll_number,
            email=args.email,
            context=_context(args),
            actor=_resolve_actor(args),
            department=args.department,
            cgpa=args.cgpa,
            backlogs=args.backlogs,
            passout_year=args.passout_year,
            whitelisted=args.whitelist,
        )
        log.info("Saved student %s (%s)", student.roll_number, student.id)
        return 0

    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        exit_code = _run(parsed_args)
    except (RegistryImportError, ConfigurationError) as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during registry command")
        sys.exit(1)
    sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
