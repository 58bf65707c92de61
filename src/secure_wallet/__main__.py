# Main Entry Point - SecureWallet maintenance CLI
#
# The entry point owns the process-wide CategoryRegistry: it is loaded from
# the custom category store once here and passed to whatever needs it.
#
#   secure-wallet categories [--json]
#   secure-wallet add-category definition.json
#   secure-wallet remove-category <id>
#   secure-wallet generate-password [--preset strong|memorable|pin|maximum] [--length N]
#   secure-wallet passphrase [--words N] [--separator -]
#   secure-wallet audit [--limit N]

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .config import load_settings
from .core import EventSeverity, EventType, get_audit_logger
from .vault import CategoryRegistry, CategorySchema, CategoryStore, VaultError
from .vault.password_generator import PRESETS, generate_passphrase, generate_password

logger = logging.getLogger(__name__)


def _audit_category(event_type: EventType, category_id: str, message: str, **details) -> None:
    try:
        get_audit_logger().log_event(
            event_type,
            EventSeverity.INFO,
            message,
            details={"category": category_id, **details},
        )
    except Exception:
        logger.exception("Audit write failed for %s", event_type.value)


def _cmd_categories(registry: CategoryRegistry, args) -> int:
    categories = registry.all_categories()
    if args.json:
        print(json.dumps([c.to_dict() | {"provenance": c.provenance.value} for c in categories], indent=2))
        return 0
    for schema in categories:
        sensitive = ", ".join(sorted(schema.sensitive_field_names)) or "-"
        print(f"{schema.id:<20} {schema.label:<28} [{schema.provenance.value}] sensitive: {sensitive}")
    return 0


def _cmd_add_category(registry: CategoryRegistry, args) -> int:
    with open(args.definition, encoding="utf-8") as fh:
        schema = CategorySchema.from_dict(json.load(fh))
    registry.register(schema)
    _audit_category(
        EventType.CATEGORY_REGISTERED,
        schema.id,
        f"Category registered: {schema.id}",
        fields=list(schema.field_names),
    )
    print(f"Registered category '{schema.id}' ({len(schema.fields)} fields)")
    return 0


def _cmd_remove_category(registry: CategoryRegistry, args) -> int:
    registry.unregister(args.category_id)
    _audit_category(EventType.CATEGORY_DELETED, args.category_id, f"Category deleted: {args.category_id}")
    print(f"Removed category '{args.category_id}'")
    return 0


def _cmd_generate_password(registry: CategoryRegistry, args) -> int:
    options = PRESETS[args.preset]
    if args.length:
        options = replace(options, length=args.length)
    print(generate_password(options))
    return 0


def _cmd_passphrase(registry: CategoryRegistry, args) -> int:
    print(generate_passphrase(args.words, args.separator))
    return 0


def _cmd_audit(registry: CategoryRegistry, args) -> int:
    for event in get_audit_logger().query_events(limit=args.limit):
        print(f"{event.get('occurred_at')}  {event.get('event_type'):<26} {event.get('message')}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secure-wallet",
        description="SecureWallet - encrypted wallet core maintenance",
    )
    parser.add_argument("--version", action="version", version=f"SecureWallet v{__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("categories", help="List built-in and custom categories")
    p.add_argument("--json", action="store_true", help="Print definitions as JSON")
    p.set_defaults(func=_cmd_categories)

    p = sub.add_parser("add-category", help="Register a custom category from a JSON file")
    p.add_argument("definition", help="Path to {id, label, fields: [...]} JSON")
    p.set_defaults(func=_cmd_add_category)

    p = sub.add_parser("remove-category", help="Remove a custom category")
    p.add_argument("category_id")
    p.set_defaults(func=_cmd_remove_category)

    p = sub.add_parser("generate-password", help="Print a random password")
    p.add_argument("--preset", choices=sorted(PRESETS), default="strong")
    p.add_argument("--length", type=int, default=None)
    p.set_defaults(func=_cmd_generate_password)

    p = sub.add_parser("passphrase", help="Print a random passphrase")
    p.add_argument("--words", type=int, default=4)
    p.add_argument("--separator", default="-")
    p.set_defaults(func=_cmd_passphrase)

    p = sub.add_parser("audit", help="Show recent audit events")
    p.add_argument("--limit", type=int, default=20)
    p.set_defaults(func=_cmd_audit)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    registry = CategoryRegistry.load(CategoryStore(str(settings.categories_db)))

    try:
        return args.func(registry, args)
    except VaultError as e:
        print(f"Error ({e.kind.value}): {e.message}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
