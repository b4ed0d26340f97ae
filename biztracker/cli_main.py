# SPDX-License-Identifier: AGPL-3.0-or-later
"""BizTracker command-line entrypoints."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from bizcore.contracts.relationship import EntityType, RelationshipType
from bizcore.reports.aggregates import dashboard_summary
from biztracker.api.client import ApiClient, ApiError
from biztracker.api.envelope import EnvelopeError
from biztracker.cache import QueryCache
from biztracker.entities import EntityReader
from biztracker.logging_setup import setup_logging
from biztracker.preferences import PreferencesStore
from biztracker.relationships.jobs import ConversionJobPoller, JobPollTimeout
from biztracker.relationships.store import RelationshipStore
from biztracker.settings import Settings
from biztracker.util.serialization import safe_serialize

logger = logging.getLogger(__name__)

LOG_FILENAME = "biztracker.log"

ENTITY_CHOICES = [e.value for e in EntityType]
RELATIONSHIP_CHOICES = [r.value for r in RelationshipType]


def _client(settings: Settings) -> ApiClient:
    return ApiClient.from_settings(settings)


def _store(args) -> RelationshipStore:
    return RelationshipStore(_client(args.settings), QueryCache())


def _emit(payload) -> None:
    print(safe_serialize(payload))


def relationships_list_cmd(args):
    store = _store(args)
    if args.side == "primary":
        records = store.get_by_primary(args.entity_id, args.entity_type, args.relationship_type)
    else:
        records = store.get_by_secondary(args.entity_id, args.entity_type, args.relationship_type)
    _emit(records)


def relationships_convert_cmd(args):
    _emit(_store(args).convert_legacy(args.entity_id, args.entity_type))


def relationships_convert_all_cmd(args):
    store = _store(args)
    if not args.wait:
        _emit(store.convert_all())
        return None
    poller = ConversionJobPoller.from_settings(store, args.settings)

    def _progress(status) -> None:
        print(status.summary(), file=sys.stderr)

    status = poller.start_and_wait(on_update=_progress)
    _emit(status)
    return 0 if status.status == "completed" else 1


def relationships_job_cmd(args):
    status = _store(args).get_conversion_job_status(args.job_id)
    _emit({"job": status, "summary": status.summary()})


def _wire_relationships(subparsers):
    sp = subparsers.add_parser("relationships", help="Query and convert entity relationships")
    sub = sp.add_subparsers()
    for side in ("primary", "secondary"):
        p = sub.add_parser(side, help=f"Relationships whose {side} end is the given entity")
        p.add_argument("entity_id")
        p.add_argument("entity_type", choices=ENTITY_CHOICES)
        p.add_argument("--relationship-type", choices=RELATIONSHIP_CHOICES, default=None)
        p.set_defaults(func=relationships_list_cmd, side=side)
    pc = sub.add_parser("convert", help="Convert one entity's legacy references")
    pc.add_argument("entity_type", choices=ENTITY_CHOICES)
    pc.add_argument("entity_id")
    pc.set_defaults(func=relationships_convert_cmd)
    pa = sub.add_parser("convert-all", help="Start the bulk legacy conversion job")
    pa.add_argument("--wait", action="store_true", help="Poll until the job finishes")
    pa.set_defaults(func=relationships_convert_all_cmd)
    pj = sub.add_parser("job", help="Show a conversion job's status")
    pj.add_argument("job_id")
    pj.set_defaults(func=relationships_job_cmd)


def dashboard_cmd(args):
    reader = EntityReader(_client(args.settings), QueryCache())
    prefs = PreferencesStore.from_settings(args.settings).load_or_default()
    summary = dashboard_summary(
        reader.list_items(),
        reader.list_sales(),
        reader.list_purchases(),
        prefs,
    )
    _emit(summary.to_dict())


def _wire_dashboard(subparsers):
    parser = subparsers.add_parser("dashboard", help="Inventory, sales and purchase totals")
    parser.set_defaults(func=dashboard_cmd)


def prefs_show_cmd(args):
    prefs = PreferencesStore.from_settings(args.settings).load_or_default()
    _emit(prefs)


def prefs_set_cmd(args):
    store = PreferencesStore.from_settings(args.settings)
    try:
        updated = store.update(args.key, args.value)
    except KeyError:
        print(f"Error: unknown preference {args.key!r}", file=sys.stderr)
        return 2
    except ValidationError as exc:
        print(f"Error: invalid value for {args.key}: {exc.errors()[0]['msg']}", file=sys.stderr)
        return 2
    _emit(updated)


def _wire_prefs(subparsers):
    sp = subparsers.add_parser("prefs", help="Display preferences")
    sub = sp.add_subparsers()
    p1 = sub.add_parser("show", help="Print the effective preferences")
    p1.set_defaults(func=prefs_show_cmd)
    p2 = sub.add_parser("set", help="Set one preference, e.g. unit_thresholds.kg 2")
    p2.add_argument("key")
    p2.add_argument("value")
    p2.set_defaults(func=prefs_set_cmd)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="biztracker", description="BizTracker relationship tools")
    parser.add_argument("--debug", action="store_true", help="Log requests at DEBUG level")
    subparsers = parser.add_subparsers(dest="command")
    _wire_relationships(subparsers)
    _wire_dashboard(subparsers)
    _wire_prefs(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    args.settings = Settings()
    setup_logging(
        args.settings.resolve_data_dir() / LOG_FILENAME,
        level=logging.DEBUG if args.debug else logging.INFO,
    )
    try:
        result = func(args)
    except ApiError as exc:
        logger.error("command %s failed: %s", args.command, exc.message)
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except (EnvelopeError, JobPollTimeout) as exc:
        logger.error("command %s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0 if result is None else int(result)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())


__all__ = ["build_parser", "main"]
