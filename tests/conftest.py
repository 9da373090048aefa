import os
import tempfile
from collections.abc import Sequence

import pytest

# The logger opens its files at import time; keep test runs out of ./logs.
os.environ.setdefault("TGSEARCH_LOGS_DIR", tempfile.mkdtemp(prefix="tgsearch-logs-"))

LIVE_TEST_DIR = "tests/e2e/"


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Also run searches against the Telegram account in TELEGRAM_SESSION.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", "integration: talks to Telegram through an authorized session"
    )
    config.addinivalue_line("markers", "e2e: full search through the live Telethon backend")
    config.addinivalue_line("markers", "property: hypothesis-driven invariant checks")


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: Sequence[pytest.Item],
) -> None:
    run_live = config.getoption("--run-integration")
    skip_live = pytest.mark.skip(
        reason="needs a Telegram session; rerun with --run-integration"
    )
    for item in items:
        if LIVE_TEST_DIR in item.nodeid:
            item.add_marker("integration")
            item.add_marker("e2e")
        live = item.get_closest_marker("integration") or item.get_closest_marker("e2e")
        if live and not run_live:
            item.add_marker(skip_live)
