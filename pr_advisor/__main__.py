"""Entry-point for ``python -m pr_advisor``."""

from __future__ import annotations

import sys

from pr_advisor import __version__


def main() -> None:
    """Print a short help message and exit."""
    print(
        f"pr_advisor v{__version__}\n"
        "\n"
        "Reviewer suggestions for pull-request triage\n"
        "\n"
        "Usage:\n"
        "  python -m pr_advisor                          Show this help message\n"
        "  python scripts/fetch.py OWNER/REPO PR         Snapshot a PR's review data\n"
        "  python scripts/suggest.py [--live OWNER/REPO PR]\n"
        "                                                Rank reviewers, print markdown\n"
        "  streamlit run app/streamlit_app.py             Launch the dashboard\n"
    )
    sys.exit(0)


if __name__ == "__main__":
    main()
