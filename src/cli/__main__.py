"""Allow ``python -m src.cli`` execution."""

from src.cli.discover import main

main()
