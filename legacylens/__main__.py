import argparse
import logging
import sys
from typing import List, Optional

from .core.config import ConfigurationError, apply_cli_overrides, load_config
from .core.pipeline import AnalysisPipeline


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="legacylens",
        description="legacylens - structural analysis of legacy JSP/Java web applications",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML or JSON configuration file"
    )
    parser.add_argument(
        "--root-dir", "--rootDir",
        dest="root_dir",
        type=str,
        default=None,
        help="Root directory of the codebase to analyze"
    )
    parser.add_argument(
        "--output-dir", "--outputDir",
        dest="output_dir",
        type=str,
        default=None,
        help="Directory for page JSON and migration reports"
    )
    parser.add_argument(
        "--include",
        action="append",
        default=[],
        help="Comma-separated include globs (repeatable)"
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Comma-separated exclude globs (repeatable)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for legacylens."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args.config)
        config = apply_cli_overrides(
            config,
            root_dir=args.root_dir,
            output_dir=args.output_dir,
            include_patterns=args.include,
            exclude_patterns=args.exclude,
        )
        result = AnalysisPipeline(config).run()
    except (ConfigurationError, OSError) as e:
        logger.error(f"Scan failed: {e}")
        return 1

    logger.info(f"Analyzed {len(result.pages)} pages; reports written to {result.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
