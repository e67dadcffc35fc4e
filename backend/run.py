"""
Command line entry point for the DACO workflow service.

Usage:
    python run.py serve                  # API server on 127.0.0.1:8000
    python run.py serve --reload         # Development mode with auto-reload
    python run.py serve --port 8080      # Custom port
    python run.py remind                 # One reminder pass, then exit
    python run.py remind --threshold-days 14
    python run.py remind --now 2024-03-20T06:00:00Z   # Replay a missed pass
"""
import argparse
import asyncio
import json

import uvicorn

from daco_workflow.utils.time import parse_iso


def serve(args: argparse.Namespace) -> None:
    workers = 1 if args.reload else args.workers
    print(f"Starting DACO workflow API on {args.host}:{args.port} (reload={args.reload}, workers={workers})")
    uvicorn.run(
        "daco_workflow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers
    )


def remind(args: argparse.Namespace) -> None:
    """Run the reminder pass once, outside the in-process scheduler"""
    from daco_workflow.utils.logger import setup_logging
    from daco_workflow.repositories.mongo_client import close_connection
    from daco_workflow.scheduler.reminder_scheduler import ReminderService

    setup_logging()
    try:
        summary = asyncio.run(ReminderService(threshold_days=args.threshold_days).run(now=args.now))
    finally:
        close_connection()
    print(json.dumps(summary.model_dump(mode="json"), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DACO application workflow service")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_parser = commands.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    serve_parser.add_argument(
        "--workers", type=int, default=1,
        help="Worker processes (ignored with --reload). Each runs its own reminder scheduler."
    )
    serve_parser.set_defaults(handler=serve)

    remind_parser = commands.add_parser("remind", help="Send due reminders once and print the run summary")
    remind_parser.add_argument(
        "--threshold-days", type=int, default=None,
        help="Override REMINDER_THRESHOLD_DAYS for this run"
    )
    remind_parser.add_argument(
        "--now", type=parse_iso, default=None, metavar="ISO_TIMESTAMP",
        help="Reference time for stall windows (default: current UTC time)"
    )
    remind_parser.set_defaults(handler=remind)

    return parser


def main():
    args = build_parser().parse_args()
    args.handler(args)


if __name__ == "__main__":
    main()
