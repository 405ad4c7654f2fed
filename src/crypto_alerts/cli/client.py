"""CLI for poking a running crypto_alerts server.

Usage:
  crypto-alerts health
  crypto-alerts price BTC
  crypto-alerts prices BTC ETH PEPE
  crypto-alerts search doge
  crypto-alerts details ETH
  crypto-alerts --user 1 watchlist
  crypto-alerts --user 1 alerts list
  crypto-alerts --user 1 alerts create BTC 75000 above
  crypto-alerts sweep
"""
import argparse
import json
import sys

import httpx


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_health(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/health")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_price(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/prices/{args.symbol}")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_prices(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post("/prices", json={"symbols": args.symbols})
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_search(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/prices/search/{args.query}")
    r.raise_for_status()
    data = r.json()
    print(f"Found {len(data)} coins for '{args.query}'")
    print_json(data)
    return 0


def cmd_history(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/prices/history/{args.symbol}", params={"days": args.days})
    r.raise_for_status()
    data = r.json()
    print(f"Found {len(data)} history points for {args.symbol}")
    print_json(data[: args.head] if args.head else data)
    return 0


def cmd_details(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/prices/details/{args.symbol}")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_watchlist(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/prices/watchlist")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_register(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post("/users", json={"email": args.email})
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_alerts_list(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/alerts")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_alerts_create(client: httpx.Client, args: argparse.Namespace) -> int:
    body = {"symbol": args.symbol, "target_price": args.target_price, "alert_type": args.alert_type}
    r = client.post("/alerts/test" if args.dry_run else "/alerts", json=body)
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_alerts_history(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/alerts/history")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_portfolio(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/portfolio")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_sweep(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.post("/alerts/sweep")
    r.raise_for_status()
    print_json(r.json())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Query the crypto_alerts API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8001",
        help="API base URL (default: http://localhost:8001)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Request timeout in seconds (default: 60; rate-limited calls may wait)",
    )
    parser.add_argument("--user", type=int, default=None, help="User id sent as X-User-Id")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    subparsers.add_parser("health", help="GET /health")

    p = subparsers.add_parser("price", help="GET /prices/{symbol}")
    p.add_argument("symbol", help="Ticker (e.g. BTC, ETH)")
    p = subparsers.add_parser("prices", help="POST /prices (up to 10 tickers)")
    p.add_argument("symbols", nargs="+", help="Tickers")
    p = subparsers.add_parser("search", help="GET /prices/search/{query}")
    p.add_argument("query", help="Name or ticker fragment (min 2 chars)")
    p = subparsers.add_parser("history", help="GET /prices/history/{symbol}")
    p.add_argument("symbol", help="Ticker")
    p.add_argument("--days", type=int, default=7, help="Days of history (default: 7)")
    p.add_argument("--head", type=int, default=0, help="Show only first N points (0 = all)")

    p = subparsers.add_parser("details", help="GET /prices/details/{symbol}")
    p.add_argument("symbol", help="Ticker")
    subparsers.add_parser("watchlist", help="GET /prices/watchlist (needs --user)")

    p = subparsers.add_parser("register", help="POST /users")
    p.add_argument("email", help="Contact address for alert emails")

    alerts = subparsers.add_parser("alerts", help="Alert routes (/alerts, needs --user)")
    alerts_sub = alerts.add_subparsers(dest="alerts_cmd", required=True)
    alerts_sub.add_parser("list", help="GET /alerts")
    p = alerts_sub.add_parser("create", help="POST /alerts")
    p.add_argument("symbol", help="Ticker")
    p.add_argument("target_price", help="Target USD price")
    p.add_argument("alert_type", choices=["above", "below"])
    p.add_argument("--dry-run", action="store_true", help="Use POST /alerts/test instead")
    alerts_sub.add_parser("history", help="GET /alerts/history")

    subparsers.add_parser("portfolio", help="GET /portfolio (needs --user)")
    subparsers.add_parser("sweep", help="POST /alerts/sweep")
    return parser


HANDLERS = {
    "health": cmd_health,
    "price": cmd_price,
    "prices": cmd_prices,
    "search": cmd_search,
    "history": cmd_history,
    "details": cmd_details,
    "watchlist": cmd_watchlist,
    "register": cmd_register,
    "alerts": {
        "list": cmd_alerts_list,
        "create": cmd_alerts_create,
        "history": cmd_alerts_history,
    },
    "portfolio": cmd_portfolio,
    "sweep": cmd_sweep,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    base_url = args.base_url.rstrip("/")

    handler = HANDLERS[args.command]
    if isinstance(handler, dict):
        handler = handler[args.alerts_cmd]

    headers = {"X-User-Id": str(args.user)} if args.user is not None else {}
    try:
        with httpx.Client(base_url=base_url, timeout=args.timeout, headers=headers) as client:
            return handler(client, args)
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code}", file=sys.stderr)
        if e.response.content:
            try:
                print(e.response.json(), file=sys.stderr)
            except ValueError:
                print(e.response.text, file=sys.stderr)
        return 1
    except httpx.RequestError as e:
        print(f"Request error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
