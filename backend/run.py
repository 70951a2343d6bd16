"""
Run the escalation service with uvicorn.

Usage:
    python run.py
    python run.py --reload          # Development mode with auto-reload
    python run.py --port 8080       # Custom port
    python run.py --no-scheduler    # API only; cycles run via POST /api/v1/escalations/process
"""
import argparse
import os
import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the civic escalation API server")
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Do not start the periodic escalation job in this process"
    )

    args = parser.parse_args()

    # Settings are read when the app module is imported, so set this first
    if args.no_scheduler:
        os.environ["ESCALATION_SCHEDULER_ENABLED"] = "false"

    print("Starting civic escalation API server...")
    print(f"  Host: {args.host}")
    print(f"  Port: {args.port}")
    print(f"  Reload: {args.reload}")
    print(f"  Scheduler: {'disabled' if args.no_scheduler else 'per ESCALATION_SCHEDULER_ENABLED'}")
    print()

    # Single worker: each worker would start its own escalation scheduler
    uvicorn.run(
        "civic_escalation.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1
    )


if __name__ == "__main__":
    main()
