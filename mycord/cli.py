# mycord/cli.py
import argparse
import ipaddress
import socket
from typing import List, Optional

from .client import ChatClient
from .config import DEFAULT_HOST, DEFAULT_PORT, ClientConfig, configure_logging, resolve_username


def port_number(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("invalid port") from None
    if not 0 < port <= 65535:
        raise argparse.ArgumentTypeError("invalid port")
    return port


def ipv4_address(value: str) -> str:
    try:
        return str(ipaddress.IPv4Address(value))
    except ValueError:
        raise argparse.ArgumentTypeError("invalid IPv4 address") from None


def resolve_domain(domain: str) -> str:
    try:
        infos = socket.getaddrinfo(domain, None, socket.AF_INET, socket.SOCK_STREAM)
    except OSError as err:
        raise ValueError(f"DNS lookup failed for {domain}: {err}") from err
    if not infos:
        raise ValueError(f"DNS lookup failed for {domain} (no IPv4 found)")
    return infos[0][4][0]


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="mycord", description="mycord client")
    target = ap.add_mutually_exclusive_group()
    target.add_argument(
        "--ip", "--host",
        dest="ip",
        type=ipv4_address,
        help=f'IP to connect to (default: "{DEFAULT_HOST}")',
    )
    target.add_argument(
        "--domain",
        help="domain name to connect to (if domain is specified, IP must not be)",
    )
    ap.add_argument("--port", type=port_number, default=DEFAULT_PORT, help=f"port to connect to (default: {DEFAULT_PORT})")
    ap.add_argument("--name", help="user name to log in with (default: your login name)")
    ap.add_argument("--quiet", action="store_true", help="do not perform alerts or mention highlighting")
    ap.add_argument("--tui", action="store_true", help="run the full-screen terminal interface")
    ap.add_argument("--gravemind", action="store_true", help="start in gravemind mode")
    ap.add_argument("--no-menu", action="store_true", help="skip the start menu (full-screen interface only)")
    ap.add_argument("--debug-log", metavar="PATH", help="write debug logs to PATH")
    return ap


def config_from_args(args: argparse.Namespace) -> ClientConfig:
    """Raises ValueError for a bad username or an unresolvable domain."""
    host = args.ip or DEFAULT_HOST
    if args.domain:
        host = resolve_domain(args.domain)
    return ClientConfig(
        host=host,
        port=args.port,
        username=resolve_username(args.name),
        quiet=args.quiet,
        tui=args.tui,
        theme="gravemind" if args.gravemind else "spartan",
        start_menu=not args.no_menu,
        debug_log=args.debug_log,
    )


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        cfg = config_from_args(args)
    except ValueError as err:
        ap.error(str(err))
    configure_logging(cfg)
    return ChatClient(cfg).run()
