import os
from pathlib import Path

import pytest

_LAYER_MARKERS = {
    "/domain/": pytest.mark.domain,
    "/application/": pytest.mark.application,
    "/integration/": pytest.mark.integration,
    "/bdd/": pytest.mark.bdd,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config overlay of domain.toml to run tests against",
    )


def pytest_sessionstart(session):
    """Select the config overlay before the delivery domain is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Mark tests by the layer directory they live in."""
    for item in items:
        test_path = Path(item.fspath).as_posix()
        for fragment, marker in _LAYER_MARKERS.items():
            if fragment in test_path:
                item.add_marker(marker)
                break

        # API and projection tests run the full command pipeline
        if "/integration/" in test_path and not any(m.name == "fast" for m in item.iter_markers()):
            item.add_marker(pytest.mark.slow)
