"""CLI entry point: python -m extprobe"""

from extprobe.cli import main

main()
