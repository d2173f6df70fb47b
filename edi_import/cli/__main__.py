from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from edi_import import APP_NAME, __version__
from edi_import.config.loader import DEFAULT_CONFIG_PATH, ENVIRONMENTS, AppConfig, ConfigError, current_environment
from edi_import.config.provider import ConfigProvider
from edi_import.db.connection import Database, mask_dsn, resolve_dsn
from edi_import.db.lock import ExclusiveLock
from edi_import.edi.reader import parse_rows
from edi_import.errors import InfrastructureError
from edi_import.logging.init import log_summary, setup_logging
from edi_import.services.orchestrator import ImportOrchestrator, ProcessingError, scan_edi_files
from edi_import.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env (overrides the process environment)
- Load and validate the configuration for the selected environment
- Configure logging (console + optional rotating file)
- Open the database connection and run the import under the exclusive lock
- Log the SUMMARY line

Exit codes: 0 when the run completed (individual files may still have
failed, see the archive table and the error log), 1 on fatal errors.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values take precedence over the environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="edi-import", description="EDI order file -> PostgreSQL importer")
    p.add_argument("-e", "--environment", choices=ENVIRONMENTS, help="Configuration environment")
    p.add_argument("-i", "--interactive", action="store_true", help="Wait for Enter before exiting")
    p.add_argument("-v", "--version", action="store_true", help="Show version information and exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true",
                   help="Print the classified rows of each input file then exit")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Base configuration file")
    return p.parse_args(argv)


def _version_text(environment: str, interactive: bool) -> str:
    return (
        f"{APP_NAME} {__version__}\n"
        f"environment: {environment}\n"
        f"user: {getpass.getuser()}\n"
        f"interactive: {interactive}"
    )


def _inspect_data(cfg: AppConfig) -> int:
    try:
        files = scan_edi_files(Path(cfg.input_file_location))
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not files:
        print("inspect: no input files")
        return EXIT_SUCCESS
    for f in files:
        print(f"FILE: {f.name}")
        try:
            rows = parse_rows(f.read_text(encoding="utf-8-sig"))
        except Exception as e:  # pragma: no cover
            print(f"  read_error: {e}")
            continue
        for row in rows:
            print(f"  [{row.line_number}] {row.kind.name} indicator={row.indicator!r} fields={len(row.fields)}")
    return EXIT_SUCCESS


def _wait_for_exit(interactive: bool) -> None:
    if interactive:
        input("Press Enter to exit...")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an empty list must not fall back to sys.argv (pytest arguments)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    environment = args.environment or current_environment()
    if args.version:
        print(_version_text(environment, args.interactive))
        return EXIT_SUCCESS

    code = _run(args, logger)
    _wait_for_exit(args.interactive)
    return code


def _run(args: argparse.Namespace, logger: logging.Logger) -> int:
    provider = ConfigProvider.from_file(args.config, args.environment)
    try:
        cfg = provider.current()
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    setup_logging(cfg.logging)
    if args.debug:
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    if args.inspect_data:
        return _inspect_data(cfg)

    dsn = resolve_dsn(cfg.database)
    logger.info(
        f"Starting {APP_NAME} {__version__} environment={cfg.environment} "
        f"database={mask_dsn(dsn)} user={getpass.getuser()}"
    )
    logger.info(f"Processing files from: {cfg.input_file_location}")

    try:
        with Database(dsn) as db:
            # relative disabled-file paths resolve next to the base configuration file
            orchestrator = ImportOrchestrator(provider, ExclusiveLock(db), base_dir=args.config.resolve().parent)
            result = orchestrator.run()
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except InfrastructureError:
        # already logged as CRITICAL where it was raised
        logger.error("Import aborted")
        return EXIT_FATAL
    except Exception as e:
        logger.critical(f"Unexpected error: {e}", exc_info=True)
        return EXIT_FATAL

    if result.disabled:
        return EXIT_SUCCESS

    summary_line = render_summary_line(result)
    # log_summary adds the SUMMARY label itself
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
