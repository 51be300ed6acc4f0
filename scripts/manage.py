import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from codeshare.core.app_factory import build_container
from codeshare.core.config import Settings
from codeshare.core.logging import configure_logging

COMMANDS = ("stats", "info", "backup", "restore", "export", "import", "reset", "cleanup")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CodeShare database maintenance")
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("file", nargs="?", help="Target file for export, source file for import")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    configure_logging()
    parser = _parser()
    args = parser.parse_args(argv)
    if args.command == "import" and not args.file:
        parser.error("import requires a FILE argument")

    container = build_container(Settings())
    maintenance = container.maintenance_service
    try:
        if args.command == "stats":
            print(json.dumps(maintenance.stats().to_dict(), indent=2))
        elif args.command == "info":
            print(json.dumps(maintenance.info(), indent=2))
        elif args.command == "backup":
            result = maintenance.create_backup()
            print("Backup created." if result.success else f"Backup failed: {result.error}")
            return 0 if result.success else 1
        elif args.command == "restore":
            result = maintenance.restore_from_backup()
            if not result.success or not result.data:
                print(f"Restore failed: {result.error or 'no backup found'}")
                return 1
            print("Backup restored.")
        elif args.command == "export":
            payload = maintenance.export_json()
            if args.file:
                Path(args.file).write_text(payload, encoding="utf-8")
                print("Export written to", args.file)
            else:
                print(payload)
        elif args.command == "import":
            result = maintenance.import_json(Path(args.file).read_text(encoding="utf-8"))
            if not result.success:
                print(f"Import failed: {result.error}")
                return 1
            print("Imported {users} users and {snippets} snippets.".format(**result.data))
        elif args.command == "reset":
            result = maintenance.reset()
            print("Database reset." if result.success else f"Reset failed: {result.error}")
            return 0 if result.success else 1
        elif args.command == "cleanup":
            print(json.dumps(maintenance.cleanup(), indent=2))
    finally:
        container.store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
