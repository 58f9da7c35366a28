"""mailroom CLI: organizations, mail intake and pickup, recipients, photos."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from mailroom import __version__
from mailroom.api_client import MailroomAPIClient
from mailroom.config import settings
from mailroom.errors.exceptions import MailroomError
from mailroom.logging_config import configure_logging
from mailroom.models.enums import ImageFormat, MailItemStatus, MailItemType, RecipientType
from mailroom.models.mail_item import MailItem, MailItemCreate, MailItemFilters
from mailroom.models.recipient import RecipientCreate
from mailroom.selection_store import FileSelectionStore
from mailroom.services.dashboard_service import DashboardService
from mailroom.services.mail_lifecycle import MailItemLifecycle
from mailroom.services.organization_context import OrganizationContext
from mailroom.services.photo_optimizer import (
    ImageOptimizationOptions,
    base64_size,
    format_file_size,
    optimize_image_file,
)
from mailroom.services.recipient_service import RecipientService
from mailroom.services.trial_status import trial_status


@asynccontextmanager
async def _connect(args: argparse.Namespace) -> AsyncIterator[OrganizationContext]:
    """Open a client and load the organization context for one command."""
    client = MailroomAPIClient(
        args.api_url or settings.api_url,
        token=settings.api_token,
        timeout=settings.request_timeout,
    )
    context = OrganizationContext(
        client,
        FileSelectionStore(settings.state_path),
        refetch_interval=settings.refetch_interval,
    )
    async with client:
        await context.load()
        yield context


def _format_item(item: MailItem) -> str:
    recipient = item.recipient.full_name if item.recipient else "-"
    arrived = item.arrived_at.strftime("%Y-%m-%d %H:%M") if item.arrived_at else "-"
    tracking = item.tracking_number or "-"
    return f"{item.id}  {item.type:<15} {item.status:<10} {arrived}  {recipient}  {tracking}"


# --- orgs ---


async def _orgs(args: argparse.Namespace) -> None:
    async with _connect(args) as context:
        if args.action == "list":
            if not context.organizations:
                print("No organizations. Create one to get started.")
                return
            for org in context.organizations:
                marker = "*" if context.current and org.id == context.current.id else " "
                print(f"{marker} {org.id}  {org.name}  ({org.role}, {org.plan_type})")

        elif args.action == "switch":
            if not args.organization_id:
                print("Error: organization_id is required", file=sys.stderr)
                sys.exit(1)
            if context.switch_organization(args.organization_id):
                print(f"Switched to {context.current.name}")
            else:
                print(f"Not a member of {args.organization_id}; still using "
                      f"{context.current.name if context.current else 'no organization'}")

        elif args.action == "current":
            org = context.current
            if org is None:
                print("No organization selected")
                return
            await context.refresh()
            org = context.current
            if org is None:
                print("No organization selected")
                return
            status = trial_status(org)
            print(f"{org.name} ({org.id})")
            print(f"  Role: {org.role}")
            print(f"  Plan: {org.plan_type} [{org.subscription_status}]")
            if status.is_trial_active:
                print(f"  Trial: {status.days_remaining} day(s) remaining")
            elif status.is_expired:
                print("  Trial: expired")
            print(f"  Packages this month: {status.packages_used}/{status.packages_limit}")


def cmd_orgs(args: argparse.Namespace) -> None:
    asyncio.run(_orgs(args))


# --- mail ---


async def _mail(args: argparse.Namespace) -> None:
    async with _connect(args) as context:
        session = context.session()
        lifecycle = MailItemLifecycle(context.client, context.cache)

        if args.action == "list":
            filters = MailItemFilters(status=args.status, type=args.type)
            items = await lifecycle.list(session, filters)
            if not items:
                print("No mail items.")
            for item in items:
                print(_format_item(item))

        elif args.action == "pending":
            for item in await lifecycle.pending_pickups(session):
                print(_format_item(item))

        elif args.action == "intake":
            if not args.type:
                print("Error: --type is required", file=sys.stderr)
                sys.exit(1)
            photo = None
            if args.photo:
                photo = optimize_image_file(Path(args.photo), _photo_options(args))
            item = await lifecycle.create(
                session,
                MailItemCreate(
                    type=args.type,
                    recipient_id=args.recipient or "",
                    location_id=args.location or "",
                    tracking_number=args.tracking or "",
                    sender=args.sender or "",
                    description=args.description or "",
                    photo_data=photo,
                ),
            )
            print(f"Logged: {item.id} ({item.type}, {item.status})")

        elif args.action in ("notify", "deliver"):
            if not args.item_id:
                print("Error: item_id is required", file=sys.stderr)
                sys.exit(1)
            item = await lifecycle.get(session, args.item_id)
            if args.action == "notify":
                updated = await lifecycle.notify(session, item)
            else:
                updated = await lifecycle.deliver(session, item)
            print(f"{updated.id}: {updated.status}")

        elif args.action == "delete":
            if not args.item_id:
                print("Error: item_id is required", file=sys.stderr)
                sys.exit(1)
            await lifecycle.delete(session, args.item_id)
            print(f"Deleted: {args.item_id}")

        elif args.action == "history":
            if not args.item_id:
                print("Error: item_id is required", file=sys.stderr)
                sys.exit(1)
            for entry in await lifecycle.history(session, args.item_id):
                when = entry.created_at.isoformat() if entry.created_at else "-"
                change = f"{entry.previous_status or '-'} -> {entry.new_status or '-'}"
                print(f"{when}  {entry.action:<15} {change}  {entry.performed_by or ''}")


def cmd_mail(args: argparse.Namespace) -> None:
    asyncio.run(_mail(args))


# --- recipients ---


async def _recipients(args: argparse.Namespace) -> None:
    async with _connect(args) as context:
        session = context.session()
        service = RecipientService(context.client, context.cache)

        if args.action == "list":
            if args.search:
                recipients = await service.search(session, args.search)
            else:
                recipients = await service.list(session, active_only=not args.all)
            for r in recipients:
                unit = f" unit {r.unit}" if r.unit else ""
                print(f"{r.id}  {r.full_name}  ({r.recipient_type}){unit}  {r.email or ''}")

        elif args.action == "add":
            if not args.first_name or not args.last_name:
                print("Error: --first-name and --last-name are required", file=sys.stderr)
                sys.exit(1)
            recipient = await service.create(
                session,
                RecipientCreate(
                    first_name=args.first_name,
                    last_name=args.last_name,
                    email=args.email or "",
                    phone=args.phone or "",
                    unit=args.unit,
                    department=args.department,
                    recipient_type=args.recipient_type or RecipientType.GUEST,
                ),
            )
            print(f"Added: {recipient.full_name} ({recipient.id})")


def cmd_recipients(args: argparse.Namespace) -> None:
    asyncio.run(_recipients(args))


# --- stats ---


async def _stats(args: argparse.Namespace) -> None:
    async with _connect(args) as context:
        session = context.session()
        dashboard = DashboardService(context.client, context.cache)
        stats = await dashboard.stats(session)
        print(f"Today's mail:       {stats.todays_mail}")
        print(f"Pending pickups:    {stats.pending_pickups}")
        print(f"Active recipients:  {stats.active_recipients}")
        print(f"Delivery rate:      {stats.delivery_rate:.0f}%")
        if args.activity:
            print("\nRecent activity:")
            for item in await dashboard.recent_activity(session, limit=args.activity):
                print(f"  {_format_item(item)}")


def cmd_stats(args: argparse.Namespace) -> None:
    asyncio.run(_stats(args))


# --- photo (offline) ---


def _photo_options(args: argparse.Namespace) -> ImageOptimizationOptions:
    def pick(name, default):
        value = getattr(args, name, None)
        return default if value is None else value

    return ImageOptimizationOptions(
        max_width=pick("max_width", settings.photo_max_width),
        max_height=pick("max_height", settings.photo_max_height),
        quality=pick("quality", settings.photo_quality),
        format=pick("format", settings.photo_format),
    )


def cmd_photo(args: argparse.Namespace) -> None:
    source = Path(args.file)
    if not source.is_file():
        print(f"Error: file not found: {source}", file=sys.stderr)
        sys.exit(1)
    data_url = optimize_image_file(source, _photo_options(args))
    original = source.stat().st_size
    optimized = base64_size(data_url)
    if args.output:
        Path(args.output).write_text(data_url, encoding="utf-8")
        print(f"Wrote: {args.output}")
    else:
        print(data_url)
    print(f"{format_file_size(original)} -> {format_file_size(optimized)}", file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="mailroom",
        description="Log, notify and hand out mail and packages from the command line",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--api-url", help=f"Mailroom API URL (default: {settings.api_url})")
    parser.add_argument("--log-level", help=f"Log level (default: {settings.log_level})")
    sub = parser.add_subparsers(dest="command")

    # orgs
    p_orgs = sub.add_parser("orgs", help="List, inspect and switch organizations")
    p_orgs.add_argument("action", choices=["list", "switch", "current"])
    p_orgs.add_argument("organization_id", nargs="?", help="Organization ID (for switch)")

    # mail
    p_mail = sub.add_parser("mail", help="Mail intake and pickup")
    p_mail.add_argument("action", choices=["list", "pending", "intake", "notify", "deliver", "delete", "history"])
    p_mail.add_argument("item_id", nargs="?", help="Mail item ID (for notify/deliver/delete/history)")
    p_mail.add_argument("--type", choices=[t.value for t in MailItemType], help="Mail type (intake, list filter)")
    p_mail.add_argument("--status", choices=[s.value for s in MailItemStatus], help="Status filter (for list)")
    p_mail.add_argument("--recipient", help="Recipient ID (for intake)")
    p_mail.add_argument("--location", help="Storage location ID (for intake)")
    p_mail.add_argument("--tracking", help="Tracking number (for intake)")
    p_mail.add_argument("--sender", help="Sender (for intake)")
    p_mail.add_argument("--description", help="Description (for intake)")
    p_mail.add_argument("--photo", help="Photo file to optimize and attach (for intake)")

    # recipients
    p_rcpt = sub.add_parser("recipients", help="Manage recipients")
    p_rcpt.add_argument("action", choices=["list", "add"])
    p_rcpt.add_argument("--search", help="Filter by name, email, unit or department (for list)")
    p_rcpt.add_argument("--all", action="store_true", help="Include inactive recipients (for list)")
    p_rcpt.add_argument("--first-name")
    p_rcpt.add_argument("--last-name")
    p_rcpt.add_argument("--email")
    p_rcpt.add_argument("--phone")
    p_rcpt.add_argument("--unit")
    p_rcpt.add_argument("--department")
    p_rcpt.add_argument("--recipient-type", choices=[t.value for t in RecipientType])

    # stats
    p_stats = sub.add_parser("stats", help="Dashboard counters")
    p_stats.add_argument("--activity", type=int, default=0, metavar="N", help="Also show the N latest items")

    # photo
    p_photo = sub.add_parser("photo", help="Optimize a package photo into a base64 data URL")
    p_photo.add_argument("file")
    p_photo.add_argument("-o", "--output", help="Write the data URL to a file instead of stdout")
    p_photo.add_argument("--max-width", type=int)
    p_photo.add_argument("--max-height", type=int)
    p_photo.add_argument("--quality", type=float)
    p_photo.add_argument("--format", choices=[f.value for f in ImageFormat])

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level or settings.log_level, json_output=settings.log_json)

    commands = {
        "orgs": cmd_orgs,
        "mail": cmd_mail,
        "recipients": cmd_recipients,
        "stats": cmd_stats,
        "photo": cmd_photo,
    }
    try:
        commands[args.command](args)
    except MailroomError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        sys.exit(1)
    except ValueError as exc:
        # Includes pydantic validation errors and bad photo options.
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
