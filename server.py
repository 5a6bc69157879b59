#!/usr/bin/env python3
"""
Server management script.

Keeps a single API instance per host by recording its PID.

Usage:
    python server.py start   # Start server (stops a recorded instance first)
    python server.py stop    # Stop the recorded instance
    python server.py status  # Check if the recorded instance is alive
"""

import os
import signal
import sys
from pathlib import Path

import uvicorn

from config import settings

PID_FILE = Path(__file__).parent / "server.pid"


def read_pid():
    """PID of the recorded instance, or None."""
    if not PID_FILE.exists():
        return None
    try:
        return int(PID_FILE.read_text().strip())
    except ValueError:
        PID_FILE.unlink()
        return None


def is_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except OSError:
        return False
    return True


def stop_server() -> bool:
    """Stop the recorded instance. Returns True if one was stopped."""
    pid = read_pid()
    if pid is None:
        return False

    stopped = False
    if is_running(pid):
        os.kill(pid, signal.SIGTERM)
        print(f"[OK] Stopped server (PID: {pid})")
        stopped = True
    if PID_FILE.exists():
        PID_FILE.unlink()
    return stopped


def start_server():
    """Start uvicorn in this process and record its PID."""
    stop_server()

    PID_FILE.write_text(str(os.getpid()))
    print(f"[OK] API: http://localhost:{settings.api_port}")
    if settings.debug:
        print(f"[OK] Docs: http://localhost:{settings.api_port}/docs")

    try:
        uvicorn.run(
            "main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug
        )
    finally:
        if PID_FILE.exists():
            PID_FILE.unlink()


def show_status():
    pid = read_pid()
    if pid is not None and is_running(pid):
        print(f"[OK] Server is running (PID: {pid})")
    else:
        print("[NOT RUNNING] Server is not running")
        print("              Start with: python server.py start")


def main():
    """Main entry point."""
    command = sys.argv[1] if len(sys.argv) > 1 else "start"

    if command == "start":
        start_server()
    elif command == "stop":
        if not stop_server():
            print("[OK] No server processes found")
    elif command == "status":
        show_status()
    else:
        print("Usage: python server.py [start|stop|status]")
        sys.exit(1)


if __name__ == "__main__":
    main()
