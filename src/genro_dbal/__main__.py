# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI entry point for genro-dbal (gdbal command).

Usage:
    gdbal --help
    gdbal ping
    gdbal query "SELECT * FROM users WHERE id = ?" --param 42
"""

from .cli import main

if __name__ == "__main__":
    main()
