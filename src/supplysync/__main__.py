"""supplysync command line entry point.

Run the scheduler (supplier sync + inventory auto-sync):
    python -m supplysync

Run one supplier sync cycle and print the status:
    python -m supplysync --once

Run one global inventory reconciliation:
    python -m supplysync --inventory

Test a supplier's credentials:
    python -m supplysync --test-connection giga-main
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


async def _run_once(service) -> int:
    status = await service.orchestrator.run_sync_cycle()
    print(json.dumps(status.to_dict(), indent=2))
    return 1 if status.errors else 0


async def _run_inventory(service) -> int:
    status = await service.reconciler.sync_global_inventory()
    print(json.dumps(status.to_dict(), indent=2))
    return 1 if status.errors else 0


async def _test_connection(service, supplier_id: str) -> int:
    result = await service.orchestrator.test_supplier(supplier_id)
    print(json.dumps(asdict(result), indent=2))
    return 0 if result.success else 1


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="supplysync: supplier catalog and inventory sync")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--once", action="store_true", help="Run one supplier sync cycle and exit")
    mode.add_argument(
        "--inventory", action="store_true", help="Run one global inventory sync and exit"
    )
    mode.add_argument(
        "--test-connection",
        metavar="SUPPLIER_ID",
        default=None,
        help="Test connection for one supplier and exit",
    )
    parser.add_argument(
        "--suppliers-dir",
        default=None,
        help="Directory of supplier TOML files (default: SUPPLIERS_DIR env or ./suppliers)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: LOG_LEVEL env or INFO)",
    )

    args = parser.parse_args()
    load_dotenv()

    from .config import get_config
    from .scheduler import build_service, run_scheduler

    config = get_config()
    if args.suppliers_dir:
        config = config.model_copy(update={"suppliers_dir": args.suppliers_dir})
    setup_logging(args.log_level or config.log_level)

    if args.once or args.inventory or args.test_connection:
        service = build_service(config)

        async def _run() -> int:
            try:
                if args.once:
                    return await _run_once(service)
                if args.inventory:
                    return await _run_inventory(service)
                return await _test_connection(service, args.test_connection)
            finally:
                if service.classifier is not None:
                    await service.classifier.aclose()

        sys.exit(asyncio.run(_run()))

    logger.info(f"Starting {config.service_name} scheduler")
    try:
        asyncio.run(run_scheduler(config))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
