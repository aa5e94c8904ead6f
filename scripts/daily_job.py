"""Script entry point for cron users: run the daily job once."""
from __future__ import annotations

from electrorank.cli import main as cli_main


def main() -> None:
    cli_main(["run"])


if __name__ == "__main__":
    main()
