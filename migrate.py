#!/usr/bin/env python3
"""
Medium to Hugo Migration Tool - Main CLI Entry Point

Converts a Medium export (the .zip downloaded from Medium's settings page, or
its extracted directory) into Hugo content: one Markdown file with YAML front
matter per post, plus the post images.
"""

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from config_loader import ConfigLoader, get_nested
from exporters import ExportError
from fetchers import ExportReader, ExportReadError, HttpClient
from logger import log_config, log_section, setup_logging
from orchestrator import ConversionOrchestrator, ConversionReport

# Version
__version__ = "1.0.0"

DEFAULT_CONFIG_PATH = 'config.yaml'


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Convert a Medium export into Hugo compatible Markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert a downloaded export
  python migrate.py -f medium-export.zip

  # Convert an extracted export into a Hugo site's content folder
  python migrate.py -f ./medium-export -o ./my-site/content

  # Skip posts without a body, don't download images
  python migrate.py -f medium-export.zip -e --no-images

  # Verbose logging
  python migrate.py -f medium-export.zip -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '-f', '--file',
        type=str,
        help='Medium export .zip file or extracted export directory'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        help='Output directory (default: ./medium-to-hugo)'
    )

    parser.add_argument(
        '-e', '--ignore-empty',
        action='store_true',
        help='Do not write posts whose converted body is empty'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH} if present)'
    )

    parser.add_argument(
        '--no-images',
        action='store_true',
        help='Rewrite image references without downloading the images'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        help='Network timeout in seconds (default: 30)'
    )

    parser.add_argument(
        '--insecure',
        action='store_true',
        help='Skip TLS certificate verification (also enabled by ALLOW_INSECURE=true)'
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write a JSON report of the run to this path'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def load_configuration(args: argparse.Namespace) -> dict:
    """Load the config file (explicit path must exist) and apply CLI overrides."""
    if args.config:
        config = ConfigLoader.load(args.config)
    else:
        config = ConfigLoader.load_or_default(DEFAULT_CONFIG_PATH)

    config = ConfigLoader.merge_with_args(config, args)
    ConfigLoader.validate(config)
    return config


def run_conversion(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the conversion pipeline over the whole export."""
    input_path = get_nested(config, 'input.path')
    logger.info(f"Starting conversion of {input_path}")

    try:
        with ExportReader(input_path, logger=logger) as reader, HttpClient.from_config(config) as client:
            orchestrator = ConversionOrchestrator(config, fetcher=client, logger=logger)
            batch = orchestrator.run(reader)

    except (ExportReadError, ExportError) as e:
        logger.error(str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    report_generator = ConversionReport(logger)
    print("\n" + report_generator.format_console_report(batch))

    if args.report:
        report_generator.export_json_report(batch, args.report)

    if batch.errored:
        logger.warning(f"Conversion completed with {len(batch.errored)} errored posts")
    else:
        logger.info("Conversion completed successfully")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        # Minimal logging for config loading
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('medium_hugo_migrator.migrate')

        log_section("Medium to Hugo Migration Tool")
        logger.info(f"Version: {__version__}")

        config = load_configuration(args)

        # Reconfigure logging with config file settings; -v flags were merged in
        setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level')
        )
        logger = logging.getLogger('medium_hugo_migrator.migrate')

        log_config(config)

        return run_conversion(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nConversion interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
