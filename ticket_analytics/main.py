"""Main module entrypoint for command-line metric queries.

This module validates startup configuration, runs one analytics metric and
prints its rows as JSON. Any analytics failure is reported as an explicit
error state with a non-zero exit status, never as an empty result.
"""

import argparse
import json
import sys
from dataclasses import asdict

from ticket_analytics.bootstrap import bootstrap_create_health_service, bootstrap_create_query_service
from ticket_analytics.config import config_load_settings
from ticket_analytics.domain import AnalyticsError, AnalyticsMetric, AnalyticsQuery, MetricKind

_METRIC_COMMANDS = {
    "gross-revenue": AnalyticsMetric.GROSS_REVENUE,
    "refund-amount": AnalyticsMetric.REFUND_AMOUNT,
    "net-revenue": AnalyticsMetric.NET_REVENUE,
    "tickets-sold": AnalyticsMetric.TICKETS_SOLD,
}


def main(argv: list[str] | None = None) -> None:
    """Run selected runtime command with validated startup configuration.

    Args:
        argv: Optional argument list; defaults to process arguments.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with status 1 when the command fails.
    """

    argument_parser = main_build_argument_parser()
    parsed_arguments = argument_parser.parse_args(argv)
    settings = config_load_settings()

    if parsed_arguments.command == "health":
        health_service = bootstrap_create_health_service(settings)
        try:
            health_status = health_service.db_check_health()
        except ConnectionError as error:
            print(f"HEALTH_ERROR: {error}", file=sys.stderr)
            raise SystemExit(1) from error
        print(json.dumps(asdict(health_status)))
        if health_status.status != "ok":
            raise SystemExit(1)
        return

    metric = _METRIC_COMMANDS[parsed_arguments.command]
    currency = parsed_arguments.currency
    if currency is None and metric.kind == MetricKind.MONEY:
        currency = settings.analytics_default_currency

    query = AnalyticsQuery(
        scope=parsed_arguments.scope,
        store_ids=main_parse_store_ids(parsed_arguments.store_ids),
        start_ts=parsed_arguments.start_ts,
        end_ts=parsed_arguments.end_ts,
        currency=currency,
    )
    query_service = bootstrap_create_query_service(settings)
    operations = {
        AnalyticsMetric.GROSS_REVENUE: query_service.analytics_get_gross_revenue,
        AnalyticsMetric.REFUND_AMOUNT: query_service.analytics_get_refund_amount,
        AnalyticsMetric.NET_REVENUE: query_service.analytics_get_net_revenue,
        AnalyticsMetric.TICKETS_SOLD: query_service.analytics_get_tickets_sold,
    }

    try:
        rows = operations[metric](query)
    except AnalyticsError as error:
        print(
            f"ANALYTICS_ERROR: {type(error).__name__} code={error.violation_code or 'unspecified'}: {error}",
            file=sys.stderr,
        )
        raise SystemExit(1) from error

    print(json.dumps({"metric": metric.value, "rows": [asdict(row) for row in rows]}))


def main_build_argument_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser.

    Returns:
        argparse.ArgumentParser: Parser for metric and health commands.
    """

    argument_parser = argparse.ArgumentParser(description="Ticket analytics runtime entrypoint")
    argument_parser.add_argument(
        "command",
        choices=(*_METRIC_COMMANDS, "health"),
        help="Metric to compute, or `health` to verify the ledger database",
        type=str,
    )
    argument_parser.add_argument("--scope", dest="scope", default="vendor", type=str, help="`admin` or `vendor`")
    argument_parser.add_argument(
        "--store-ids",
        dest="store_ids",
        default="",
        type=str,
        help="Comma-separated store ids (admin scope only)",
    )
    argument_parser.add_argument("--start-ts", dest="start_ts", type=int, help="Inclusive window start (epoch seconds)")
    argument_parser.add_argument("--end-ts", dest="end_ts", type=int, help="Inclusive window end (epoch seconds)")
    argument_parser.add_argument("--currency", dest="currency", type=str, help="ISO currency code for money metrics")
    return argument_parser


def main_parse_store_ids(raw_store_ids: str) -> frozenset[int]:
    """Parse comma-separated store ids.

    Args:
        raw_store_ids: Comma-separated integers, possibly blank.

    Returns:
        frozenset[int]: Parsed store identifiers.

    Raises:
        ValueError: Raised when an item is not an integer.
    """

    return frozenset(int(item) for item in raw_store_ids.split(",") if item.strip())


if __name__ == "__main__":
    main()
