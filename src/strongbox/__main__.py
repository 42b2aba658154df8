# Main Entry Point - API server
#
# Loads configuration (.env, STRONGBOX_* variables, command-line flags),
# points the audit logger and the routes at it, and serves the API.

import sys
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from . import __version__
from .config import VaultConfig
from .core import EventSeverity, EventType, configure_audit_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="strongbox",
        description="Strongbox - local encrypted secret store with a JSON API",
    )

    parser.add_argument(
        "--store",
        type=Path,
        help="Vault storage root (default: $STRONGBOX_STORE or ~/.strongbox)"
    )

    parser.add_argument(
        "--host",
        help="API host (default: $STRONGBOX_HOST or 127.0.0.1)"
    )

    parser.add_argument(
        "--port",
        type=int,
        help="API port (default: $STRONGBOX_PORT or 3000)"
    )

    parser.add_argument(
        "--iterations",
        type=int,
        help="PBKDF2 iterations for newly created vaults (minimum 50000)"
    )

    parser.add_argument(
        "--audit-log-dir",
        type=Path,
        help="Audit log directory (default: $STRONGBOX_AUDIT_LOG_DIR or ./audit_logs)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Strongbox v{__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> VaultConfig:
    """Environment config with command-line flags layered on top."""
    return VaultConfig.from_env(
        storage_root=args.store,
        kdf_iterations=args.iterations,
        audit_log_dir=args.audit_log_dir,
        host=args.host,
        port=args.port,
    )


def main(argv: Optional[List[str]] = None):
    """Main entry point for Strongbox."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s'
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    audit = configure_audit_logger(config.audit_log_dir)
    audit.log_event(
        event_type=EventType.SYSTEM_START,
        severity=EventSeverity.INFO,
        message="Strongbox starting",
        details={
            "version": __version__,
            "store": str(config.storage_root),
            "host": config.host,
            "port": config.port,
        }
    )

    from .api.main import start_api_server
    from .api.vault_routes import set_vault_config

    set_vault_config(config)

    try:
        start_api_server(host=config.host, port=config.port)
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        audit.log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.INFO,
            message="Strongbox stopped (user interrupt)"
        )
    except Exception as e:
        print(f"\n\nError: {str(e)}")
        audit.log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.CRITICAL,
            message=f"Strongbox crashed: {str(e)}"
        )
        sys.exit(1)
    else:
        audit.log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.INFO,
            message="Strongbox stopped"
        )


if __name__ == "__main__":
    main()
