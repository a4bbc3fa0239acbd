import argparse
import json
import logging
from typing import Callable, TextIO

from workbench.configuration.container import Container
from workbench.domain.jira import JiraTicket
from workbench.domain.jira_check import ConnectionReport
from workbench.domain.result import EXIT_CODES, ErrorKind, Failure, exit_code_for
from workbench.domain.story import SprintInfo, StoryMode, StoryOutcome, StoryRequest

logger = logging.getLogger(__name__)

PROG = "workbench"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Personal SRE workbench: Jira story creation and sprint lookup",
    )
    parser.add_argument("--config", metavar="PATH", help="use this config file instead of the default locations")
    parser.add_argument("--debug", action="store_true", help="enable debug output for every subsystem")
    parser.add_argument("--debug-jira", action="store_true", help="trace Jira HTTP requests and responses")
    parser.add_argument("--debug-sprint", action="store_true", help="trace sprint detection")
    parser.add_argument("--debug-ai", action="store_true", help="trace AI gateway calls")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    story_parser = subparsers.add_parser(
        "quick-story", aliases=["qs"], help="create a Jira story and add it to the active sprint",
    )
    story_parser.add_argument("summary", nargs="?", help="story title")
    story_parser.add_argument("-d", "--description", default="", help="story description (markdown)")
    story_parser.add_argument("-f", "--file", dest="file_path", help="read title (first line) and description from a file")
    ai_group = story_parser.add_mutually_exclusive_group()
    ai_group.add_argument("--ai", action="store_true", help="enhance title and description with the AI gateway")
    ai_group.add_argument("--no-ai", action="store_true", help="disable AI enhancement even if enabled in config")
    ai_group.add_argument("--ai-only", action="store_true", help="only show the AI-enhanced content, do not create a ticket")
    story_parser.add_argument("--dry-run", action="store_true", help="show what would be created without creating it")
    story_parser.set_defaults(handler=cmd_quick_story)

    sprint_parser = subparsers.add_parser("sprint", help="show the current sprint and my tickets in it")
    sprint_parser.set_defaults(handler=cmd_sprint)

    ticket_parser = subparsers.add_parser("ticket", help="show a single Jira ticket")
    ticket_parser.add_argument("key", help="ticket key, e.g. PROJ-123")
    ticket_parser.set_defaults(handler=cmd_ticket)

    check_parser = subparsers.add_parser("jira-check", help="test the Jira connection and credentials")
    check_parser.add_argument("ticket", nargs="?", help="optional ticket key to fetch as part of the check")
    check_parser.set_defaults(handler=cmd_jira_check)

    return parser


# ----------------------------------------------------------------------
# Command handlers
# ----------------------------------------------------------------------

def cmd_quick_story(args: argparse.Namespace, container: Container, out: TextIO, err: TextIO) -> int:
    request = StoryRequest(
        summary=args.summary,
        description=args.description,
        file_path=args.file_path,
        ai=args.ai,
        no_ai=args.no_ai,
        ai_only=args.ai_only,
        dry_run=args.dry_run,
    )
    result = container.create_story_use_case.execute(request)
    if not result.ok:
        return report_failure(result.error, err)

    outcome = result.value
    for warning in outcome.warnings:
        print(f"Warning: {warning}", file=err)
    _print_story(outcome, container, out)
    return EXIT_CODES["success"]


def cmd_sprint(args: argparse.Namespace, container: Container, out: TextIO, err: TextIO) -> int:
    result = container.get_sprint_info_use_case.execute()
    if not result.ok:
        return report_failure(result.error, err)
    if result.value is None:
        print(f"No active sprint found for project {container.settings.jira.default_project}", file=out)
        return EXIT_CODES["success"]
    _print_sprint(result.value, out)
    return EXIT_CODES["success"]


def cmd_ticket(args: argparse.Namespace, container: Container, out: TextIO, err: TextIO) -> int:
    result = container.get_ticket_use_case.execute(args.key)
    if not result.ok:
        return report_failure(result.error, err)
    _print_ticket(result.value, out)
    return EXIT_CODES["success"]


def cmd_jira_check(args: argparse.Namespace, container: Container, out: TextIO, err: TextIO) -> int:
    result = container.check_jira_connection_use_case.execute(args.ticket)
    if not result.ok:
        return report_failure(result.error, err)
    report = result.value
    _print_check_report(report, out)
    if not report.ok:
        print(f"Error: {report.errors[0]}", file=err)
        return exit_code_for(report.failure_kind or ErrorKind.EXTERNAL_API)
    return EXIT_CODES["success"]


def report_failure(error: Failure, err: TextIO) -> int:
    logger.debug("실패 상세: kind=%s, context=%s", error.kind.value, error.context)
    print(f"Error: {error.message}", file=err)
    missing = error.context.get("missing_fields")
    if missing:
        print("Set the missing values in ~/.config/workbench/config.yaml or ./workbench.yaml", file=err)
    return exit_code_for(error.kind)


def dispatch(
    args: argparse.Namespace,
    container: Container,
    out: TextIO,
    err: TextIO,
) -> int:
    handler: Callable[..., int] = args.handler
    return handler(args, container, out, err)


# ----------------------------------------------------------------------
# Output formatting
# ----------------------------------------------------------------------

def _print_story(outcome: StoryOutcome, container: Container, out: TextIO) -> None:
    content = outcome.content
    if outcome.mode is StoryMode.AI_ONLY:
        print("AI-enhanced content:" if outcome.ai_enhanced else "Content (unchanged):", file=out)
        print(f"Title: {content.title}", file=out)
        print(f"Description: {content.description}", file=out)
        return

    if outcome.mode is StoryMode.DRY_RUN:
        jira = container.settings.jira
        print("Dry run - no ticket created", file=out)
        print(f"Project: {jira.default_project}", file=out)
        print(f"Type: {jira.default_issue_type}", file=out)
        print(f"Title: {content.title}", file=out)
        if content.description:
            print(f"Description: {content.description}", file=out)
        if not jira.auto_add_to_sprint:
            print("Sprint: disabled (jira.auto_add_to_sprint = false)", file=out)
        elif outcome.sprint is not None:
            print(f"Sprint: {outcome.sprint.name} (id {outcome.sprint.id})", file=out)
        else:
            print("Sprint: no active sprint found", file=out)
        print("Payload:", file=out)
        print(json.dumps(outcome.issue_data, indent=2, ensure_ascii=False, default=str), file=out)
        return

    issue = outcome.issue
    print(f"Created {issue.key}: {content.title}", file=out)
    if issue.url:
        print(f"URL: {issue.url}", file=out)
    attachment = outcome.sprint_attachment
    if attachment is not None and attachment.added:
        print(f"Added to sprint: {attachment.sprint.name}", file=out)


def _print_sprint(info: SprintInfo, out: TextIO) -> None:
    print(f"Current sprint: {info.name} (id {info.id})", file=out)
    remaining = "unknown" if info.days_remaining is None else str(info.days_remaining)
    print(f"Days remaining: {remaining}", file=out)
    print(f"My tickets ({len(info.assigned_tickets)}):", file=out)
    for line in info.assigned_tickets:
        print(f"  {line}", file=out)
    print(f"JQL: {info.jql}", file=out)


def _print_ticket(ticket: JiraTicket, out: TextIO) -> None:
    rows = [
        ("Key", ticket.key),
        ("Summary", ticket.summary),
        ("Status", ticket.status),
        ("Type", ticket.issuetype),
        ("Priority", ticket.priority),
        ("Assignee", ticket.assignee),
        ("Reporter", ticket.reporter),
        ("Created", ticket.created),
        ("Updated", ticket.updated),
        ("URL", ticket.url),
    ]
    for label, value in rows:
        if value:
            print(f"{label + ':':<10} {value}", file=out)


def _print_check_report(report: ConnectionReport, out: TextIO) -> None:
    print("Checking Jira configuration and connectivity", file=out)
    for number, step in enumerate(report.steps, start=1):
        print(file=out)
        print(f"{number}. {step.title}", file=out)
        first, *rest = step.lines or ("",)
        print(f"   [{step.status.value}] {first}".rstrip(), file=out)
        for line in rest:
            print(f"   {line}", file=out)

    print(file=out)
    print("Summary", file=out)
    print(f"   {report.passed}/{report.possible} checks passed", file=out)
    if report.errors:
        print("Errors:", file=out)
        for message in report.errors:
            print(f"   - {message}", file=out)
    if report.warnings:
        print("Warnings:", file=out)
        for message in report.warnings:
            print(f"   - {message}", file=out)
    if report.ok:
        print(f'Success: Jira integration is working. Create tickets with: {PROG} qs "Your ticket summary"', file=out)
    else:
        print("Check your config file (~/.config/workbench/config.yaml or ./workbench.yaml) "
              "and the WORKBENCH_JIRA_* environment variables", file=out)
