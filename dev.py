#!/usr/bin/env python3
"""
Dev mode runner for disclosure-ux

Watches the package for Python changes and restarts the HTTP/SSE server.
"""
import os
import subprocess
import sys
import time
from pathlib import Path
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

PACKAGE_DIR = Path(__file__).parent / "mcp_disclosure_ux"
DEBOUNCE_SECONDS = 0.5


class ServerRestartHandler(FileSystemEventHandler):
    """Restarts server on Python file changes."""

    def __init__(self, port: str):
        self.port = port
        self.process = None
        self.last_restart = 0.0
        self.start_server()

    def start_server(self):
        """(Re)start uvicorn serving the SSE app."""
        self.stop()

        print(f"Starting server on port {self.port}...")
        self.process = subprocess.Popen(
            [sys.executable, "-m", "uvicorn", "mcp_disclosure_ux.server_http:app",
             "--host", "127.0.0.1", "--port", self.port],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
            env={**os.environ, "PORT": self.port}
        )
        self.last_restart = time.monotonic()
        print(f"Server started (PID: {self.process.pid})")
        print(f"Watching {PACKAGE_DIR} for changes...")

    def on_any_event(self, event):
        """Restart on created/modified/moved .py files, at most once per debounce window."""
        if event.is_directory or not str(event.src_path).endswith('.py'):
            return
        if time.monotonic() - self.last_restart < DEBOUNCE_SECONDS:
            return
        print(f"\n{event.src_path} {event.event_type} - restarting...")
        self.start_server()

    def stop(self):
        """Stop the server process."""
        if self.process:
            print("Stopping server...")
            self.process.terminate()
            self.process.wait()
            self.process = None


def main():
    """Run dev server with auto-restart."""
    port = os.environ.get("PORT", "5002")
    print("disclosure-ux dev mode")
    print("Ctrl+C to stop\n")

    handler = ServerRestartHandler(port)
    observer = Observer()
    observer.schedule(handler, str(PACKAGE_DIR), recursive=True)
    observer.start()

    try:
        # Stream server output
        while True:
            process = handler.process
            if process and process.stdout:
                line = process.stdout.readline()
                if line:
                    print(line, end='')
                    continue
            time.sleep(0.1)
    except KeyboardInterrupt:
        print("\nStopping dev server...")
        observer.stop()
        handler.stop()

    observer.join()


if __name__ == "__main__":
    main()
