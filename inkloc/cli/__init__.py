"""
inkloc CLI - inklocctl command-line interface.

Usage:
    python -m inkloc.cli.inklocctl tag stories/
    python -m inkloc.cli.inklocctl tag stories/ --retag --in-place --json strings.json
    python -m inkloc.cli.inklocctl check stories/main.ink

Author: inkloc contributors | 2026-10-18
"""

from inkloc.cli.inklocctl import main
