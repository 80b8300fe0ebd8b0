"""
Family tree layout command line.

1) Load a family document: a saved JSON document, a GEDCOM file, or a
   family fetched from the REST API.
2) Lay out each generation: sort members, group couples, flag groups with
   children.
3) Validate the family data for cycles, impossible ages and broken references.
4) Print the layout, and optionally render it as a Graphviz chart.
"""

import argparse
from pathlib import Path
import sys

from ged4py.parser import ParserError

from api_client import ApiError, FamilyTreeClient
from config import settings
from database import create_database
from gedcom_import import import_gedcom
from layout import layout_family
from models import FamilyData
from parsing import load_family_json
from plotting import format_layout, plot_layout
from validation import validate_family


MAX_WARNINGS_SHOWN = 10


def load_source(source: Path, family_name: str | None = None) -> FamilyData:
    """Load a family document from a .ged or .json file."""
    if not source.exists():
        raise FileNotFoundError(f"No such file: {source}")
    if source.suffix.lower() == ".ged":
        return import_gedcom(source, family_name)
    family = load_family_json(source)
    if family_name:
        family.settings.family_name = family_name
    return family


def show_family(family: FamilyData, plot_path: Path | None = None):
    print("Laying out generations...")
    layouts = layout_family(family)
    member_count = sum(len(g.members) for g in family.generations)
    print(f"  {len(layouts)} generations, {member_count} members")

    print("Validating family data...")
    warnings = validate_family(family)
    if warnings:
        print(f"  Found {len(warnings)} validation warnings:")
        for w in warnings[:MAX_WARNINGS_SHOWN]:
            print(f"    - {w}")
        if len(warnings) > MAX_WARNINGS_SHOWN:
            print(f"    ... and {len(warnings) - MAX_WARNINGS_SHOWN} more")
    else:
        print("  No validation issues found")

    print()
    print(format_layout(family, layouts))

    if plot_path:
        print()
        print(f"Plotting family chart to: {plot_path}")
        plot_layout(family, layouts, plot_path)
        print(f"Chart saved to {plot_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="family-layout", description=__doc__.splitlines()[1])
    parser.add_argument(
        "--session-db",
        type=Path,
        default=settings.session_db_path,
        help="SQLite file holding the login session",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="lay out a family from a .json or .ged file")
    show.add_argument("source", type=Path)
    show.add_argument("--name", help="family name to display")
    show.add_argument("--plot", type=Path, help="write a chart (png, svg or pdf)")

    fetch = sub.add_parser("fetch", help="fetch a family from the API and lay it out")
    fetch.add_argument("family_id")
    fetch.add_argument("--plot", type=Path, help="write a chart (png, svg or pdf)")

    sub.add_parser("families", help="list your families")

    login = sub.add_parser("login", help="log in and store the session token")
    login.add_argument("account", help="email or username")
    login.add_argument("password")

    sub.add_parser("logout", help="forget the stored session token")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.command == "show":
            print(f"Loading family: {args.source}")
            show_family(load_source(args.source, args.name), args.plot)
            return 0

        conn = create_database(args.session_db)
        try:
            with FamilyTreeClient(conn) as client:
                if args.command == "fetch":
                    print(f"Fetching family {args.family_id} from {settings.api_base_url}")
                    show_family(client.get_family(args.family_id), args.plot)
                elif args.command == "families":
                    families = client.list_families()
                    if not families:
                        print("No families yet")
                    for item in families:
                        print(f"{item.id}\t{item.name}\t{item.updated_at}")
                elif args.command == "login":
                    user = client.login(args.account, args.password)
                    print(f"Logged in as {user.nickname} <{user.email}>")
                elif args.command == "logout":
                    client.logout()
                    print("Logged out")
        finally:
            conn.close()
    except (ApiError, ParserError, ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
