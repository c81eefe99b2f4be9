#!/usr/bin/env python3
"""
DHCP6Mod - Main Entry Point

Allows running the builder as 'python -m dhcp6mod'; see dhcp6mod.cli for options.
"""

import sys

from dhcp6mod.cli import main

if __name__ == "__main__":
    sys.exit(main())
