import argparse
import json
import logging
import sys

from project_access.adapters.sqlite.migrator import SQLiteMigrator
from project_access.config import configure_logging, get_settings
from project_access.rules.loader import load_rules

logger = logging.getLogger("cli")


def handle_migrate(db_path: str) -> None:
    applied = SQLiteMigrator(db_path).run_migrations()
    print(f"Applied {len(applied)} migration(s).")


def handle_check_rules(rules_path: str | None) -> None:
    try:
        rules = load_rules(rules_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Rules invalid: %s", e)
        sys.exit(1)

    summary = {
        "rules_version": rules.project.rules_version,
        "default_template": rules.default_template,
        "templates": {
            name: sorted(t.policies) for name, t in sorted(rules.templates.items())
        },
    }
    print(json.dumps(summary, indent=2))


def handle_serve(host: str, port: int) -> None:
    import uvicorn

    uvicorn.run("project_access.api.main:app", host=host, port=port)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Project access CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending database migrations")

    check_parser = subparsers.add_parser("check-rules", help="Validate the access rules file")
    check_parser.add_argument("--rules", help="Path to rules YAML (defaults to bundled rules)")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command == "migrate":
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        handle_migrate(settings.db_path)
    elif args.command == "check-rules":
        handle_check_rules(args.rules or settings.rules_path)
    elif args.command == "serve":
        handle_serve(args.host, args.port)


if __name__ == "__main__":
    main()
