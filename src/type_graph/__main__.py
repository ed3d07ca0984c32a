# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Entry point for running the CLI as a module: python -m type_graph"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
