"""Command implementations for the CLI interface."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, TextIO

from ..config import JsonFilePreferenceStore, MemoryPreferenceStore, PreferenceStore
from ..core.fields import DealField
from ..core.formatting import format_field
from ..core.model import Deal, DealStage, deal_from_dict
from ..core.search import FilterDimension, available_options
from ..core.sorting import SortDirection, SortState
from ..i18n import _
from ..services.directory import InMemoryDirectory
from ..services.notifications import NotificationService
from ..settings import AppSettings, NotificationSettings
from ..ui import list_state as transitions
from ..ui.column_config import ColumnConfigStore
from ..ui.list_state import ListState, derive_view

STAGE_CHOICES = [e.value for e in DealStage]
FIELD_CHOICES = [e.value for e in DealField]


@dataclass
class Command:
    """Describe a CLI command and its argument handler."""

    func: Callable[[argparse.Namespace], int | None]
    help: str
    add_arguments: Callable[[argparse.ArgumentParser], None]


def _read_json(path: str | Path) -> Any:
    with Path(path).open("r", encoding="utf-8") as fh:
        return json.load(fh)


def load_deals(path: str | Path) -> list[Deal]:
    """Load deals from a JSON array or an object with a ``deals`` array."""
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("deals", [])
    if not isinstance(data, list):
        raise ValueError(_("expected a list of deals in {path}").format(path=path))
    return [deal_from_dict(entry) for entry in data]


def _settings(args: argparse.Namespace) -> AppSettings:
    return getattr(args, "app_settings", None) or AppSettings()


def _preference_store(settings: AppSettings) -> PreferenceStore:
    path = settings.listing.preferences_path
    if path:
        return JsonFilePreferenceStore(path)
    return MemoryPreferenceStore()


# ---------------------------------------------------------------------------
# list


def render_page(
    deals: Sequence[Deal],
    state: ListState,
    columns: ColumnConfigStore,
    out: TextIO,
) -> None:
    """Write the page selected by *state* as tab separated text."""
    view = derive_view(deals, state)
    visible = columns.visible_columns()
    out.write("\t".join(["id", *(c.label for c in visible)]) + "\n")
    for deal in view.rows:
        cells = [deal.id, *(format_field(deal, c.field) for c in visible)]
        out.write("\t".join(cells) + "\n")
    page = view.page
    out.write(
        _("Page {page} of {pages} ({count} deals)").format(
            page=page.current_page, pages=page.total_pages, count=page.total_items
        )
        + "\n"
    )


def cmd_list(args: argparse.Namespace, out: TextIO | None = None) -> int:
    """Print one page of deals filtered and sorted per *args*."""
    out = out or sys.stdout
    settings = _settings(args)
    deals = load_deals(args.file)
    store = _preference_store(settings)
    columns = ColumnConfigStore(
        store,
        min_width=settings.listing.min_column_width,
        default_width=settings.listing.default_column_width,
    )
    columns.load()

    state = ListState.from_settings(settings.listing)
    if args.page_size:
        state = replace(state, page_size=args.page_size)
    if args.search:
        state = transitions.set_search_term(state, args.search)
    if args.stage:
        filters = state.filters.with_allowed(FilterDimension.STAGES, args.stage)
        state = transitions.set_filters(state, filters)
    if args.owner:
        state = transitions.set_owner(state, args.owner)
    if args.sort:
        direction = SortDirection.ASC if args.asc else SortDirection.DESC
        state = transitions.set_sort(state, SortState(DealField(args.sort), direction))
    state = transitions.clamp_state(deals, replace(state, current_page=args.page))
    render_page(deals, state, columns, out)
    return 0


def add_list_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", help=_("JSON file with deals"))
    p.add_argument("--search", help=_("free-text search term"))
    p.add_argument(
        "--stage",
        action="append",
        choices=STAGE_CHOICES,
        help=_("restrict to stage (repeatable)"),
    )
    p.add_argument("--owner", help=_("restrict to one lead owner"))
    p.add_argument("--sort", choices=FIELD_CHOICES, help=_("field to sort by"))
    p.add_argument("--asc", action="store_true", help=_("sort ascending"))
    p.add_argument("--page", type=int, default=1, help=_("page number"))
    p.add_argument("--page-size", type=int, help=_("deals per page"))


# ---------------------------------------------------------------------------
# options


def cmd_options(args: argparse.Namespace, out: TextIO | None = None) -> int:
    """Print distinct filter values found in a deal file as JSON."""
    out = out or sys.stdout
    options = available_options(load_deals(args.file))
    json.dump(asdict(options), out, ensure_ascii=False, indent=2)
    out.write("\n")
    return 0


def add_options_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", help=_("JSON file with deals"))


# ---------------------------------------------------------------------------
# notify


def cmd_notify(args: argparse.Namespace, out: TextIO | None = None) -> int:
    """Send a task notification described by a JSON request file."""
    out = out or sys.stdout
    settings = _settings(args)
    notification_settings = settings.notifications
    if not notification_settings.has_credentials:
        notification_settings = NotificationSettings.from_env()
    profiles = _read_json(args.profiles) if args.profiles else []
    preferences = _read_json(args.preferences) if args.preferences else {}
    service = NotificationService(
        notification_settings, InMemoryDirectory(profiles, preferences)
    )
    result = asyncio.run(service.send(_read_json(args.request)))
    json.dump(result, out, ensure_ascii=False, indent=2)
    out.write("\n")
    return 0 if result["ok"] else 1


def add_notify_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("request", help=_("JSON file with the notification request"))
    p.add_argument("--profiles", help=_("JSON file with user profiles"))
    p.add_argument("--preferences", help=_("JSON file with notification preferences"))


COMMANDS: dict[str, Command] = {
    "list": Command(cmd_list, _("show a page of deals"), add_list_arguments),
    "options": Command(cmd_options, _("show available filter values"), add_options_arguments),
    "notify": Command(cmd_notify, _("send a task notification e-mail"), add_notify_arguments),
}
