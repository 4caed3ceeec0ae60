#!/usr/bin/env python3
"""
Console Door Remote.

Connects to the WiFly module, prints every door state change and presses
the door button each time Enter is hit. Ctrl+C quits.

Settings come from a JSON file given as the first argument, or from the
WIFLY_HOST, WIFLY_PORT and WIFLY_PASSWORD environment variables.
"""

import logging
import sys
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wifly import ConfigurationError, DoorConnector, DoorListener, FileConfigSource, config_from_env

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


class PrintingListener(DoorListener):
    """Prints door events. Runs on the connector's worker thread."""

    def on_door_opened(self):
        print("Door: OPENED")

    def on_door_moving(self):
        print("Door: MOVING")

    def on_door_closed(self):
        print("Door: CLOSED")

    def on_door_invalid(self):
        print("Door: INVALID (both sensors triggered)")

    def on_connection_lost(self):
        print("Connection problem, retrying...")


def main():
    if len(sys.argv) > 1:
        config = FileConfigSource(sys.argv[1])
    else:
        try:
            config = config_from_env()
        except ConfigurationError as e:
            print(f"{e}. Pass a JSON settings file or set WIFLY_HOST.")
            return 1

    connector = DoorConnector(PrintingListener(), config)
    connector.open()
    print("Press Enter to move the door, Ctrl+C to quit.")

    try:
        while True:
            input()
            connector.press_button()
    except (KeyboardInterrupt, EOFError):
        print("\nClosing...")
    finally:
        connector.close()
        connector.shutdown(timeout=5.0)
        print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
