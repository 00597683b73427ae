"""
Command-line interface for the Factorial time tracking tool.

This module provides the CLI using argparse and orchestrates the browser
session for each command.
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from .config import Config
from .date_utils import (
    DateParseError,
    parse_date,
    parse_time,
    parse_break_minutes,
    current_week_dates,
)
from .models import WorkEntry, WeekSummary
from .network_utils import ensure_connectivity, ConnectivityError
from .playwright_client import run_session, LoginError, NavigationError
from .selectors import FactorialSelectors
from .logging_utils import (
    setup_logging,
    get_logger,
    log_section,
    log_error,
    log_success,
)


# Commands that need neither credentials nor a browser
OFFLINE_COMMANDS = ('setup',)


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Enable verbose logging (debug level)'
    )

    parser.add_argument(
        '--headed',
        action='store_true',
        help='Show the browser window instead of running headless'
    )

    parser.add_argument(
        '--skip-network-check',
        action='store_true',
        help='Do not probe the Factorial site before launching the browser'
    )


def _add_time_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        '-s', '--start',
        type=str,
        metavar='HH:MM',
        help='Start time (defaults to DEFAULT_START_TIME)'
    )

    parser.add_argument(
        '-e', '--end',
        type=str,
        metavar='HH:MM',
        help='End time (defaults to DEFAULT_END_TIME)'
    )

    parser.add_argument(
        '-b', '--break',
        dest='break_minutes',
        type=str,
        metavar='MINUTES',
        help='Break length in minutes (defaults to DEFAULT_BREAK_MINUTES)'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog='factorial_bot',
        description='Automated time tracking for Factorial HR',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check that the credentials in .env work
  python -m factorial_bot login

  # Log today with the default hours
  python -m factorial_bot log-today

  # Log today with custom hours and a 30 minute break
  python -m factorial_bot log-today --start 08:30 --end 16:30 --break 30

  # Log Monday to Friday of the current week
  python -m factorial_bot log-week

  # Log a specific day
  python -m factorial_bot log-custom --date 2025-01-15 --start 10:00 --end 18:00

  # Fill whichever day still has missing hours
  python -m factorial_bot log-any

  # Inspect the attendance page in a visible browser
  python -m factorial_bot debug --wait 120
        """
    )

    common = argparse.ArgumentParser(add_help=False)
    _add_common_arguments(common)

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser(
        'login',
        parents=[common],
        help='Test login to Factorial'
    )

    today_parser = subparsers.add_parser(
        'log-today',
        parents=[common],
        help='Log work hours for today'
    )
    _add_time_arguments(today_parser)
    today_parser.add_argument(
        '-d', '--description',
        type=str,
        help='Work description'
    )

    week_parser = subparsers.add_parser(
        'log-week',
        parents=[common],
        help='Log work hours for Monday to Friday of the current week'
    )
    _add_time_arguments(week_parser)

    custom_parser = subparsers.add_parser(
        'log-custom',
        parents=[common],
        help='Log work hours for a specific date'
    )
    custom_parser.add_argument(
        '-d', '--date',
        type=str,
        required=True,
        metavar='YYYY-MM-DD',
        help='Date to log'
    )
    _add_time_arguments(custom_parser)
    custom_parser.add_argument(
        '--description',
        type=str,
        help='Work description'
    )

    subparsers.add_parser(
        'log-any',
        parents=[common],
        help='Log default hours into the first day with missing hours'
    )

    debug_parser = subparsers.add_parser(
        'debug',
        parents=[common],
        help='Open a visible browser on the attendance page and describe it'
    )
    debug_parser.add_argument(
        '--wait',
        type=int,
        default=300,
        metavar='SECONDS',
        help='Seconds to keep the browser open (default: 300)'
    )

    subparsers.add_parser(
        'setup',
        parents=[common],
        help='Show configuration instructions'
    )

    return parser


def validate_args(args: argparse.Namespace) -> bool:
    """
    Validate and normalize date, time and break arguments.

    Parsed values replace the raw strings on ``args``.

    Args:
        args: Parsed arguments

    Returns:
        True if valid, False otherwise
    """
    logger = get_logger()

    try:
        if getattr(args, 'date', None) is not None:
            args.date = parse_date(args.date)
        if getattr(args, 'start', None) is not None:
            args.start = parse_time(args.start)
        if getattr(args, 'end', None) is not None:
            args.end = parse_time(args.end)
        if getattr(args, 'break_minutes', None) is not None:
            args.break_minutes = parse_break_minutes(args.break_minutes)
    except DateParseError as e:
        log_error(str(e), logger)
        return False

    if getattr(args, 'wait', 0) < 0:
        log_error("--wait cannot be negative", logger)
        return False

    return True


def build_config(args: argparse.Namespace) -> Config:
    """
    Load configuration from the environment and apply command-line overrides.

    Args:
        args: Parsed and validated arguments

    Returns:
        Configuration for this run

    Raises:
        ValueError: If the environment holds malformed values
    """
    config = Config.from_env()

    if args.verbose:
        config.log_level = 'debug'
    if args.headed or args.command == 'debug':
        config.headless = False
    if args.skip_network_check:
        config.check_connectivity = False

    return config


def _entry_for(day: date, args: argparse.Namespace, config: Config,
               description: Optional[str] = None) -> WorkEntry:
    return WorkEntry.from_defaults(
        day,
        config,
        start_time=args.start,
        end_time=args.end,
        break_minutes=args.break_minutes,
        description=description,
    )


def cmd_login(args: argparse.Namespace, config: Config) -> int:
    """
    Execute the login command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    log_section("Testing Login", get_logger())
    run_session(config, lambda client: None, navigate=False)
    log_success("Login test successful!", get_logger())
    return 0


def cmd_log_today(args: argparse.Namespace, config: Config) -> int:
    """
    Execute the log-today command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    logger = get_logger()
    entry = _entry_for(date.today(), args, config, args.description)

    log_section("Logging Today's Hours", logger)
    for line in entry.format_details():
        logger.info(f"  {line}")

    result = run_session(config, lambda client: client.time_tracker().log_work_hours(entry))

    if not result.success:
        log_error(f"Failed to log hours for {entry.date}: {result.error}", logger)
        return 1

    if result.nothing_to_do:
        log_success("No missing hours found - nothing to log", logger)
    else:
        log_success(f"Hours logged for {entry.date}", logger)
    return 0


def cmd_log_week(args: argparse.Namespace, config: Config) -> int:
    """
    Execute the log-week command.

    Days are logged in order in a single browser session.

    Returns:
        Exit code (0 if every day succeeded, 1 otherwise)
    """
    logger = get_logger()
    entries = [_entry_for(day, args, config) for day in current_week_dates()]

    log_section("Logging Current Week", logger)
    logger.info(f"Days to log: {', '.join(entry.date for entry in entries)}")

    def log_entries(client) -> WeekSummary:
        tracker = client.time_tracker()
        summary = WeekSummary()
        for i, entry in enumerate(entries):
            if i > 0 and config.entry_delay > 0:
                client.page.wait_for_timeout(config.entry_delay)
            logger.info("")
            logger.info(f"[{i + 1}/{len(entries)}] {entry.date}")
            summary.add_result(tracker.log_work_hours(entry))
        return summary

    summary = run_session(config, log_entries)
    logger.info(summary.format_summary())

    if summary.failed:
        logger.warning("Operation completed with errors")
        return 1

    logger.info("Operation completed successfully")
    return 0


def cmd_log_custom(args: argparse.Namespace, config: Config) -> int:
    """
    Execute the log-custom command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    logger = get_logger()
    entry = _entry_for(args.date, args, config, args.description)

    log_section(f"Logging Hours for {entry.date}", logger)
    for line in entry.format_details():
        logger.info(f"  {line}")

    result = run_session(config, lambda client: client.time_tracker().log_work_hours(entry))

    if not result.success:
        log_error(f"Failed to log hours for {entry.date}: {result.error}", logger)
        return 1

    if result.nothing_to_do:
        log_success("No missing hours found - nothing to log", logger)
    else:
        log_success(f"Hours logged for {entry.date}", logger)
    return 0


def cmd_log_any(args: argparse.Namespace, config: Config) -> int:
    """
    Execute the log-any command.

    Returns:
        Exit code (0 for success or nothing to do, 1 on failure)
    """
    logger = get_logger()
    log_section("Logging Any Missing Hours", logger)

    result = run_session(config, lambda client: client.time_tracker().log_any_missing_hours())

    if not result.success:
        log_error(f"Failed to log missing hours: {result.error}", logger)
        return 1

    if result.nothing_to_do:
        log_success("No missing hours found - all days appear to be properly logged", logger)
    else:
        log_success(f"Logged missing hours for row date {result.row_date}", logger)
    return 0


def cmd_debug(args: argparse.Namespace, config: Config) -> int:
    """
    Execute the debug command.

    Logs in with a visible browser, opens the first reachable attendance
    URL, saves a screenshot and describes the interactive elements.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    logger = get_logger()
    log_section("Debug Mode", logger)

    def inspect(client) -> int:
        if not client.open_first_reachable(FactorialSelectors.TIME_TRACKING_PATHS):
            logger.warning("No attendance URL could be opened, inspecting current page")

        screenshot = client.take_screenshot("debug-page.png")
        if screenshot:
            logger.info(f"Screenshot saved: {screenshot}")

        info = client.inspect_page()
        logger.info(f"URL: {info['url']}")
        logger.info(f"Title: {info['title']}")

        logger.info(f"Buttons ({info['button_count']} total):")
        for i, button in enumerate(info['buttons'], 1):
            logger.info(
                f"  {i}. text='{button.get('text')}' class='{button.get('class')}' "
                f"id='{button.get('id')}' aria-label='{button.get('aria_label')}'"
            )

        logger.info(f"Inputs ({info['input_count']} total):")
        for i, field in enumerate(info['inputs'], 1):
            logger.info(
                f"  {i}. type='{field.get('type')}' name='{field.get('name')}' "
                f"placeholder='{field.get('placeholder')}'"
            )

        logger.info(f"Forms: {info['form_count']}")

        if args.wait > 0:
            logger.info(f"Keeping browser open for {args.wait} seconds (Ctrl+C to stop)...")
            client.page.wait_for_timeout(args.wait * 1000)
        return 0

    return run_session(config, inspect, navigate=False)


def cmd_setup(args: argparse.Namespace, config: Optional[Config] = None) -> int:
    """
    Execute the setup command.

    Returns:
        Exit code (always 0)
    """
    logger = get_logger()
    log_section("Setup Instructions", logger)

    logger.info("1. Copy .env.example to .env")
    logger.info("2. Set FACTORIAL_EMAIL and FACTORIAL_PASSWORD in .env")
    logger.info("3. Optionally adjust DEFAULT_START_TIME, DEFAULT_END_TIME and DEFAULT_BREAK_MINUTES")
    logger.info("4. Install the browser: playwright install chromium")
    logger.info("5. Test the login: python -m factorial_bot login")
    logger.info("")

    if Path('.env').exists():
        log_success(".env file found", logger)
    else:
        logger.warning(".env file not found - create one from .env.example")

    return 0


COMMANDS = {
    'login': cmd_login,
    'log-today': cmd_log_today,
    'log-week': cmd_log_week,
    'log-custom': cmd_log_custom,
    'log-any': cmd_log_any,
    'debug': cmd_debug,
}


def main(argv=None):
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Console only until the configuration is known
    setup_logging(verbose=getattr(args, 'verbose', False))

    logger = get_logger()

    # Show header
    logger.info("")
    logger.info("=" * 70)
    logger.info("  Factorial Time Tracking Automation")
    logger.info("=" * 70)

    # Check if command was specified
    if not args.command:
        parser.print_help()
        return 1

    if args.command in OFFLINE_COMMANDS:
        return cmd_setup(args)

    # Validate arguments before touching configuration or the browser
    if not validate_args(args):
        return 1

    try:
        config = build_config(args)
        config.validate()
    except ValueError as e:
        log_error(f"Configuration error: {e}", logger)
        logger.info("Run 'python -m factorial_bot setup' for configuration help")
        return 1

    setup_logging(
        verbose=args.verbose,
        level_name=config.log_level,
        log_file=config.log_file
    )
    logger = get_logger()

    if config.check_connectivity:
        try:
            logger.info(f"Checking connectivity to {config.base_url}...")
            ensure_connectivity(config.base_url)
        except ConnectivityError as e:
            for line in str(e).splitlines():
                logger.error(line)
            logger.info("Use --skip-network-check to bypass this check")
            return 1

    try:
        return COMMANDS[args.command](args, config)

    except KeyboardInterrupt:
        logger.info("")
        logger.warning("Operation cancelled by user")
        return 130  # Standard exit code for SIGINT

    except (LoginError, NavigationError) as e:
        logger.info("")
        log_error(str(e), logger)
        return 1

    except Exception as e:
        logger.info("")
        log_error(f"Operation failed: {e}", logger)
        if config.log_level == 'debug':
            import traceback
            logger.debug(traceback.format_exc())
        return 1


if __name__ == '__main__':
    sys.exit(main())
