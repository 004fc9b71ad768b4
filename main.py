#!/usr/bin/env python3
"""
termweb - Browse the web in your terminal.

Quick start:
    python main.py https://example.com     # Open a page
    python main.py example.com --fps 15    # Scheme added, lower frame rate

For more options: python main.py --help
"""

from termweb.cli import main

if __name__ == "__main__":
    exit(main())
