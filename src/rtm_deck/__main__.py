"""CLI entry point for RTM Deck."""

import json
import sys
import time
from pathlib import Path

from . import PACKAGE_NAME


def usage():
    print(f"Usage: python -m {PACKAGE_NAME} <command> <dashboard.yaml> [args]")
    print("\nCommands:")
    print("  serve <config> [port]        - Run the long polling resource endpoint")
    print("  watch <config> [server_url]  - Poll the endpoint and print widget updates")
    print("  fetch <config> <widget_id>   - Fetch one widget's data once and print it")
    sys.exit(1)


def serve(dashboard, port: int):
    from .server import create_app
    print(f"🚀 Serving {dashboard.name} on port {port}")
    create_app(dashboard).run(host="0.0.0.0", port=port)


def watch(dashboard, server_url: str):
    from .core.loader import create_widget_instance
    url_base = server_url.rstrip("/") + "/" + dashboard.url_base.strip("/")
    print(f"👀 Watching {len(dashboard.widgets)} widget(s) at {url_base}")

    for widget_config in dashboard.widgets:
        widget = create_widget_instance(widget_config, dashboard, url_base=url_base)
        # Polls keep going on timer threads, errors included
        widget.scheduler.call_later(0, widget.start_listening)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("👋 Stopped")


def fetch(dashboard, widget_id: str):
    from .core.loader import create_daos
    widget = next((w for w in dashboard.widgets if w.id == widget_id), None)
    if widget is None:
        print(f"❌ Widget {widget_id} not found in {dashboard.id}")
        sys.exit(1)

    dao = create_daos(dashboard)[widget.dao]
    data = getattr(dao, widget.method)(widget.params)
    print(json.dumps(data, indent=2, default=str))


def main():
    """Main CLI entry point."""
    if len(sys.argv) < 3:
        usage()

    command = sys.argv[1]
    from .core.loader import load_dashboard_config
    dashboard = load_dashboard_config(Path(sys.argv[2]))

    if command == "serve":
        port = int(sys.argv[3]) if len(sys.argv) > 3 else 5000
        serve(dashboard, port)
    elif command == "watch":
        server_url = sys.argv[3] if len(sys.argv) > 3 else "http://localhost:5000"
        watch(dashboard, server_url)
    elif command == "fetch":
        if len(sys.argv) < 4:
            usage()
        fetch(dashboard, sys.argv[3])
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
