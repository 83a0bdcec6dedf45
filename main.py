#!/usr/bin/env python3
"""
bbw: Better Bitwarden, a terminal front-end for the Bitwarden CLI

Search the vault, copy usernames, passwords, notes and URLs to the
clipboard, and generate passwords without leaving the terminal.
"""

import os
import sys
import argparse

from bbw.app import BbwApp


def main():
    """Main entry point for bbw."""
    parser = argparse.ArgumentParser(
        description="A terminal front-end for the Bitwarden CLI"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="bbw 0.1.0"
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help="config file (default: ~/.config/bbw/config.yaml)"
    )

    args = parser.parse_args()

    try:
        app = BbwApp(config_path=args.config)
        sys.exit(app.run())
    except KeyboardInterrupt:
        print("\nExiting bbw...")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}")
        # Only show traceback if BW_DEBUG=1
        if os.environ.get('BW_DEBUG', '0') == '1':
            import traceback
            print("Debug traceback:")
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
