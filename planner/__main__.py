"""
Entry point for running the CLI with `python -m planner`.
"""
from planner.cli import main

if __name__ == "__main__":
    main()
