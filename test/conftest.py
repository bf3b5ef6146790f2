#
# conftest.py - blob_memory: pytest configuration file
# Copyright DeGirum Corp. 2025
#
# Contains common pytest configuration and common test fixtures
#
import sys, os, pytest

# add current directory to sys.path to debug tests locally without package installation
sys.path.insert(0, os.getcwd())

import blob_memory
import logging


def pytest_addoption(parser):
    """Add custom command line options for pytest"""

    parser.addoption(
        "--loglevel",
        action="store",
        default=None,
        help="Set log level (e.g. DEBUG, INFO, WARNING)",
    )


def pytest_configure(config):
    """Configure pytest with custom options"""

    loglevel = config.getoption("--loglevel")
    if loglevel:
        blob_memory.logger_add_handler(
            level=getattr(logging, loglevel.upper(), logging.ERROR)
        )


@pytest.fixture()
def make_obs():
    """Factory of observations: make_obs(category, confidence, [left, top, right, bottom])"""

    def _make(category, confidence, bbox):
        return blob_memory.Observation(
            category, confidence, blob_memory.BoundingBox(*bbox)
        )

    return _make


@pytest.fixture()
def strict_config():
    """Default configuration with collapse of multiple observations disabled"""
    return blob_memory.MemoryConfig(memory_collapse_multiple=False)
