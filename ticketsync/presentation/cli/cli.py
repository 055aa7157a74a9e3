"""
CLI Module

Architectural Intent:
- Command-line interface for ticketsync
- Entry point for running the webhook server and one-off operations
- Delegates to application use cases via composition root
- Supports --verbose/--debug flags for log level control
"""

import argparse
import asyncio
import logging
import sys
import traceback
from pathlib import Path

from ticketsync.infrastructure.logging import configure_logging


async def async_main():
    parser = argparse.ArgumentParser(
        description="ticketsync: ConnectWise <-> PagerDuty webhook bridge"
    )
    parser.add_argument(
        "--config", "-c", default=None, help="Path to JSON config (default: ticketsync.json)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit structured JSON logs"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the webhook server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default from config)")

    sync_parser = subparsers.add_parser(
        "sync-ticket", help="Sync one ConnectWise ticket to PagerDuty now"
    )
    sync_parser.add_argument("ticket_id", type=int, help="ConnectWise ticket ID")

    verify_parser = subparsers.add_parser(
        "verify-signature", help="Check a PagerDuty signature against a saved body"
    )
    verify_parser.add_argument("--secret", required=True, help="Webhook signing secret")
    verify_parser.add_argument(
        "--signature", required=True, help="X-PagerDuty-Signature header value"
    )
    verify_parser.add_argument("body_file", help="File holding the exact request body")

    args = parser.parse_args()

    from ticketsync.infrastructure.config import load_config

    config = load_config(args.config)

    # Flags win over the configured level
    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = config.log_level
    configure_logging(level=level, json_format=args.json_logs or config.log_json)

    verbose = args.verbose or args.debug

    if args.command == "verify-signature":
        from ticketsync.domain.services.signature_verifier import verify_signature

        try:
            raw_body = Path(args.body_file).read_bytes()
        except FileNotFoundError as e:
            print(f"[-] Body file not found: {e}")
            sys.exit(1)
        if verify_signature(raw_body, args.signature, args.secret):
            print("[+] Signature valid.")
        else:
            print("[-] Signature invalid.")
            sys.exit(1)
        return

    if args.command == "sync-ticket":
        from ticketsync.composition_root import create_container

        container = create_container(config)
        print(f"[*] Syncing ConnectWise ticket #{args.ticket_id}...")
        result = await container.manual_sync.execute(args.ticket_id)
        if result.ok:
            print(f"[+] {result.outcome.value}: {result.message}")
            if result.incident_id:
                print(f"[*] PagerDuty incident: {result.incident_id}")
        else:
            print(f"[-] {result.outcome.value}: {result.message}")
            sys.exit(1)
        return

    if args.command == "serve":
        from ticketsync.composition_root import create_container
        from ticketsync.presentation.web.app import TicketSyncWebApp

        host = args.host or config.web.host
        port = args.port if args.port is not None else config.web.port

        try:
            container = create_container(config)
            container.telemetry.initialize()
            app = TicketSyncWebApp(container)
            await app.start(host, port)
        except (OSError, ValueError) as e:
            print(f"[-] Failed to start server: {e}")
            if verbose:
                traceback.print_exc()
            sys.exit(1)

        print(f"[*] ticketsync listening on http://{host}:{app.port}")
        print("[*] Press Ctrl+C to stop.")
        try:
            while True:
                await asyncio.sleep(1)
        finally:
            app.stop()
            container.telemetry.shutdown()
        return

    parser.print_help()


def main():
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        print("\n[*] ticketsync stopped.")


if __name__ == "__main__":
    main()
