# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.ad_client import ActiveDirectoryClient
from core.entra_client import EntraIDClient
from core.observer import LoggingProgressObserver
from reconcilers.hybrid_reconciler import HybridIdentityReconciler
from reports.hybrid_summary import HybridAuditSummary
from utils.config import Config


def setup_logging(level: str = "INFO") -> str:
    """Setup logging configuration with both console and file output"""
    # Create logs directory if it doesn't exist
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    # Generate date-stamped filename
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"hybrid_identity_audit_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler always gets DEBUG
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def default_output_path(config: Config) -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return str(Path(config.output_dir) / f"HybridUserAudit_{timestamp}.csv")


def build_entra_client(args, config: Config) -> Optional[EntraIDClient]:
    """Entra ID client, or None when the cloud side is skipped or not configured"""
    logger = logging.getLogger(__name__)

    if args.no_cloud:
        logger.info("Entra ID lookup disabled (--no-cloud)")
        return None

    if not config.validate_entra_config():
        logger.warning(f"Entra ID not configured, exporting AD data only. "
                       f"Missing: {config.get_missing_entra_vars()}")
        return None

    return EntraIDClient(
        tenant_id=config.entra_tenant_id or "",
        client_id=config.entra_client_id or "",
        client_secret=config.entra_client_secret or "",
        access_token=config.entra_access_token
    )


def handle_export(args, config: Config) -> None:
    """Run the AD / Entra ID reconciliation and write the CSV export"""
    logger = logging.getLogger(__name__)

    if not config.validate_ad_config():
        logger.error(f"Missing required environment variables: {config.get_missing_ad_vars()}")
        sys.exit(1)

    output_csv = args.output_csv or default_output_path(config)
    Path(output_csv).parent.mkdir(parents=True, exist_ok=True)

    entra_client = build_entra_client(args, config)

    try:
        with ActiveDirectoryClient(
                config.ad_server, config.ad_username,
                config.ad_password, config.base_dn,
                page_size=config.ad_page_size
        ) as ad_client:
            if not ad_client.is_connected:
                logger.error("Cannot continue without an Active Directory connection")
                sys.exit(1)

            reconciler = HybridIdentityReconciler(
                ad_client,
                entra_client,
                observer=LoggingProgressObserver(),
                duplicate_policy=config.duplicate_policy,
                continue_on_error=not args.fail_fast,
                encoding=config.output_encoding
            )
            stats = reconciler.run(output_csv)
    finally:
        if entra_client is not None:
            entra_client.close()

    logger.info("Export completed successfully!")
    logger.info(f"Output file: {output_csv}")
    if stats.failed_prefixes:
        logger.warning(f"Export is incomplete, failed prefixes: {stats.failed_prefixes}")


def handle_summarize(args, config: Config) -> None:
    """Build the Excel audit workbook from an existing export"""
    logger = logging.getLogger(__name__)

    if not Path(args.input_csv).exists():
        logger.error(f"Input file not found: {args.input_csv}")
        sys.exit(1)

    summary = HybridAuditSummary(args.input_csv, stale_days=args.stale_days)
    summary.load_data()
    summary.export_summary(args.output_xlsx)
    logger.info(f"Directory only: {len(summary.get_directory_only())}, "
                f"enabled mismatches: {len(summary.get_enabled_mismatches())}, "
                f"stale: {len(summary.get_stale_accounts())}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hybrid Identity Audit - AD / Entra ID user reconciliation")
    subparsers = parser.add_subparsers(dest='command', help='Command')

    export_parser = subparsers.add_parser('export', help='Reconcile AD and Entra ID users into a CSV file')
    export_parser.add_argument('output_csv', nargs='?', help='Output CSV file path (default: timestamped file in OUTPUT_DIR)')
    export_parser.add_argument('--no-cloud', action='store_true', help='Skip Entra ID and export AD data only')
    export_parser.add_argument('--fail-fast', action='store_true', help='Abort on the first failed AD prefix query')

    summary_parser = subparsers.add_parser('summarize', help='Excel audit summary of an export')
    summary_parser.add_argument('input_csv', help='CSV file produced by the export command')
    summary_parser.add_argument('output_xlsx', help='Output Excel file path')
    summary_parser.add_argument('--stale-days', type=int, default=90,
                                help='Days without AD logon before an enabled account counts as stale')

    # Global arguments
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    config = Config()

    try:
        if args.command == 'export':
            handle_export(args, config)
        elif args.command == 'summarize':
            handle_summarize(args, config)
        else:
            logger.error(f"Unknown command: {args.command}")
            sys.exit(1)

    except Exception as e:
        logger.error(f"Processing failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
