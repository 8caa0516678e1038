import logging

import pytest


@pytest.fixture
def search_results():
    return [
        {
            "title": "Quarterly revenue and EBITDA",
            "snippet": "Gross margin improved to 40% while revenue grew 12% year over year.",
            "link": "https://finance.example.com/q3",
        },
        {
            "title": "Holiday photos",
            "snippet": "Beach pictures from summer.",
            "link": "https://photos.example.org/beach",
        },
        {
            "title": "Cloud computing market outlook",
            "snippet": "According to analysts, cloud computing spend reached $590B in 2023.",
            "url": "https://research.example.net/cloud",
        },
    ]


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
