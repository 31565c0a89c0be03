"""
CLI entry point for the CRM client.

Usage:
    python main.py get-order 1234
    python main.py find-orders --email jane@example.com --days 7
    python main.py provinces US
    python main.py tax 2 ca
    python main.py --staging --debug get-order 1234
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta

import config
from clients import CRMClient
from errors import CRMClientError
from schemas import CRMConfig, LogRecord
from utils import setup_logging

logger = logging.getLogger(__name__)


def log_record(record: LogRecord) -> None:
    """Log sink that writes each call through stdlib logging."""
    logger.info(
        "%s -> HTTP %s in %.1f ms%s",
        record.endpoint,
        record.http_response_code,
        record.latency,
        f" ({record.info})" if record.info else "",
    )
    logger.debug("log record: %s", record.model_dump(by_alias=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Query the CRM order API from the command line."
    )
    parser.add_argument(
        "--staging",
        action="store_true",
        help="Use the vendor staging environment",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    get_order = sub.add_parser("get-order", help="Fetch one order by ID")
    get_order.add_argument("order_id")

    find = sub.add_parser("find-orders", help="Search orders by date range")
    find.add_argument(
        "--days",
        type=int,
        default=1,
        help="Search window in days before now (default: 1)",
    )
    find.add_argument("--email", help="Filter by customer email")
    find.add_argument("--order-id", type=int, help="Filter by order ID")

    provinces = sub.add_parser("provinces", help="List provinces for a country")
    provinces.add_argument("country")

    tax = sub.add_parser("tax", help="Quote tax for a product")
    tax.add_argument("product_id", type=int)
    tax.add_argument("country")

    return parser


def run(crm: CRMClient, args: argparse.Namespace):
    """Dispatch a parsed command to the client."""
    if args.command == "get-order":
        return crm.get_order(args.order_id)
    if args.command == "find-orders":
        now = datetime.now()
        criteria = {}
        if args.email:
            criteria["email"] = args.email
        if args.order_id:
            criteria["order_id"] = args.order_id
        return crm.find_orders(now - timedelta(days=args.days), now, **criteria)
    if args.command == "provinces":
        return crm.get_provinces(args.country)
    return crm.get_tax_for_product(args.product_id, args.country)


def main() -> None:
    """Parse arguments, call the API, and output results."""
    args = build_parser().parse_args()

    setup_logging(level=logging.DEBUG if args.debug else logging.INFO)

    try:
        crm_config = CRMConfig.from_env()
        if args.staging:
            crm_config = CRMConfig(
                **{**crm_config.model_dump(), "base_url": config.STAGING_URL}
            )

        with CRMClient(crm_config, logger=log_record) as crm:
            result = run(crm, args)

        print(json.dumps(result, indent=2))

    except CRMClientError as e:
        logger.error("%s: %s", e.name, e.message)
        print(json.dumps({"error": e.to_dict()}), file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        logger.error("Request failed: %s", e)
        print(json.dumps({"error": str(e)}), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
