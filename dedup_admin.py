"""CRM deduplication — admin entry point.

Runs one deduplication operation per invocation inside a single database
session (committed on success, rolled back on error).

Usage:
  # Scan a tenant for likely duplicate organizations
  python dedup_admin.py detect --tenant-id <uuid> --entity-type organization

  # Review pending contact suggestions as JSON
  python dedup_admin.py suggestions --tenant-id <uuid> --entity-type contact

  # Merge a suggestion, keeping --primary-id
  python dedup_admin.py merge --tenant-id <uuid> --user-id <uuid> \
      --suggestion-id <uuid> --primary-id <uuid>

  # Dismiss a suggestion
  python dedup_admin.py dismiss --tenant-id <uuid> --user-id <uuid> \
      --suggestion-id <uuid>
"""
import argparse
import asyncio
import json
import logging
import os
import sys
import uuid

from dotenv import load_dotenv

from db.models import EntityType
from dedup import (
    DeduplicationError,
    detect_duplicates,
    dismiss_suggestion,
    list_suggestions,
    merge_suggestion,
)

logger = logging.getLogger(__name__)


def _entity_type(value: str) -> EntityType:
    try:
        return EntityType(value.upper())
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"entity type must be one of: {', '.join(t.value.lower() for t in EntityType)}"
        )


def _uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a valid UUID: {value!r}")


async def run_command(args: argparse.Namespace) -> dict:
    """Execute one sub-command and return a JSON-serializable result."""
    # Imported here so --help works without DATABASE_URL
    from db.connection import dispose_engine, get_db

    try:
        async with get_db() as session:
            if args.command == "detect":
                result = await detect_duplicates(session, args.tenant_id, args.entity_type)
                return result.model_dump()

            if args.command == "suggestions":
                views = await list_suggestions(session, args.tenant_id, args.entity_type)
                return {"suggestions": [v.model_dump(mode="json") for v in views]}

            if args.command == "merge":
                counts = await merge_suggestion(
                    session,
                    suggestion_id=args.suggestion_id,
                    primary_id=args.primary_id,
                    tenant_id=args.tenant_id,
                    acting_user_id=args.user_id,
                )
                return {"message": "Records merged successfully", "reparented": counts}

            if args.command == "dismiss":
                await dismiss_suggestion(
                    session,
                    suggestion_id=args.suggestion_id,
                    tenant_id=args.tenant_id,
                    acting_user_id=args.user_id,
                )
                return {"message": "Suggestion dismissed"}

            raise ValueError(f"Unknown command: {args.command}")
    finally:
        await dispose_engine()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CRM duplicate detection and review",
    )
    sub = parser.add_subparsers(dest="command")

    detect = sub.add_parser("detect", help="Detect duplicate organizations or contacts")
    detect.add_argument("--tenant-id", type=_uuid, required=True)
    detect.add_argument("--entity-type", type=_entity_type, required=True,
                        help="organization or contact")

    suggestions = sub.add_parser("suggestions", help="List pending duplicate suggestions")
    suggestions.add_argument("--tenant-id", type=_uuid, required=True)
    suggestions.add_argument("--entity-type", type=_entity_type, required=True,
                             help="organization or contact")

    merge = sub.add_parser("merge", help="Merge a suggestion into the chosen primary record")
    merge.add_argument("--tenant-id", type=_uuid, required=True)
    merge.add_argument("--user-id", type=_uuid, required=True, help="Reviewing user")
    merge.add_argument("--suggestion-id", type=_uuid, required=True)
    merge.add_argument("--primary-id", type=_uuid, required=True,
                       help="Record to keep; the other one is deleted")

    dismiss = sub.add_parser("dismiss", help="Dismiss a suggestion without merging")
    dismiss.add_argument("--tenant-id", type=_uuid, required=True)
    dismiss.add_argument("--user-id", type=_uuid, required=True, help="Reviewing user")
    dismiss.add_argument("--suggestion-id", type=_uuid, required=True)

    return parser


def main(argv=None) -> int:
    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    try:
        result = asyncio.run(run_command(args))
    except DeduplicationError as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return 2

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
