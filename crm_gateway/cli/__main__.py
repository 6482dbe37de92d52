from __future__ import annotations

import argparse
import sys
from pathlib import Path

import uvicorn

from crm_gateway.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config, load_env_file
from crm_gateway.db.pool import Database, DatabaseUnavailable
from crm_gateway.db.project_insert import InvalidTableName
from crm_gateway.db.schema import init_database
from crm_gateway.excel.reader import SheetNotFound, SourceUnreadable, list_sheet_names, read_sheet
from crm_gateway.logging.init import log_summary, setup_logging
from crm_gateway.models.config_models import GatewayConfig
from crm_gateway.services.importer import ImportRequest, run_excel_import
from crm_gateway.services.summary import render_summary_line

"""CLI entrypoint.

Commands:
- serve          run the HTTP API with uvicorn
- init-db        create the CRM tables (idempotent)
- import FILE    import one sheet into the projects table, print a SUMMARY line
- inspect-data   print sheet names, headers and the first rows of a workbook

Exit codes: 0 all rows imported, 2 some or all rows failed, 1 fatal
(config, unreadable file, database unavailable).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

INSPECT_ROWS = 3


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="crm_gateway", description="CRM gateway: spreadsheet import and admin API")
    p.add_argument("--config", type=Path, default=None, help=f"YAML config (default: {DEFAULT_CONFIG_PATH} if present)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="Run the HTTP API")
    sub.add_parser("init-db", help="Create CRM tables if missing")

    imp = sub.add_parser("import", help="Import a spreadsheet into the projects table")
    imp.add_argument("file", help="Path to the .xlsx file")
    imp.add_argument("--sheet", default=None, help="Sheet name (default: first sheet)")
    imp.add_argument("--table", default=None, help="Target table (default: imports.default_table)")

    ins = sub.add_parser("inspect-data", help="Print sheet headers & first rows then exit")
    ins.add_argument("file", help="Path to the .xlsx file")
    return p.parse_args(argv)


def _resolve_config_path(arg: Path | None) -> Path | None:
    if arg is not None:
        return arg
    return DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None


def _open_database(cfg: GatewayConfig) -> Database:
    database = Database(cfg.database)
    database.open()
    return database


def _serve(cfg: GatewayConfig) -> int:
    from crm_gateway.api.app import create_app

    uvicorn.run(create_app(cfg), host=cfg.server.host, port=cfg.server.port, log_config=None)
    return EXIT_SUCCESS_ALL


def _init_db(cfg: GatewayConfig, logger) -> int:
    try:
        database = _open_database(cfg)
    except DatabaseUnavailable as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    try:
        with database.cursor() as cur:
            created = init_database(cur)
    finally:
        database.close()
    logger.info(f"schema ready: {len(created)} tables")
    return EXIT_SUCCESS_ALL


def _import(cfg: GatewayConfig, args: argparse.Namespace, logger) -> int:
    request = ImportRequest(
        file_path=args.file,
        table_name=args.table or cfg.imports.default_table,
        sheet_name=args.sheet,
    )
    try:
        database = _open_database(cfg)
    except DatabaseUnavailable as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    try:
        outcome = run_excel_import(database, request, cfg.imports, show_progress=True)
    except (SourceUnreadable, SheetNotFound) as e:
        logger.error(f"read: {e}")
        return EXIT_FATAL
    except InvalidTableName as e:
        logger.error(f"table: {e}")
        return EXIT_FATAL
    finally:
        database.close()

    for line in outcome.rendered_errors():
        logger.warning(line)
    logger.info(outcome.message)
    # The formatter adds the "SUMMARY " label itself.
    log_summary(render_summary_line(outcome)[len("SUMMARY "):])

    if outcome.errors:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _inspect_data(path: str) -> int:
    try:
        names = list_sheet_names(path)
    except SourceUnreadable as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {Path(path).name}")
    for name in names:
        try:
            sheet = read_sheet(path, name)
        except (SourceUnreadable, SheetNotFound) as e:
            print(f"  SHEET: {name} error={e}")
            continue
        headers = [sheet.headers[i] for i in sorted(sheet.headers)]
        print(f"  SHEET: {name} cols={headers} rows={len(sheet.rows)}")
        for row in sheet.rows[:INSPECT_ROWS]:
            print(f"    row {row.row_number}: {list(row.cells)}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # None reads the process arguments; [] is kept as an explicit empty list.
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)

    load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(_resolve_config_path(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    logger.debug("debug mode enabled")

    if args.command == "serve":
        return _serve(cfg)
    if args.command == "init-db":
        return _init_db(cfg, logger)
    if args.command == "import":
        return _import(cfg, args, logger)
    return _inspect_data(args.file)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
