"""Shared pytest fixtures for all tests."""
import pytest

from init_mcp.config import ServerConfig
from init_mcp.mcp.server import Dispatcher
from init_mcp.templates import TemplateEntry, TemplateSet, load_default_templates


@pytest.fixture
def templates():
    """The packaged two-entry Template Set (LICENSE, CONTRIBUTING.md)."""
    return load_default_templates()


@pytest.fixture
def small_templates():
    """A three-entry set with short, recognizable content."""
    return TemplateSet([
        TemplateEntry(content=b"alpha\n", destination="a.txt"),
        TemplateEntry(content=b"beta\n", destination="b.txt"),
        TemplateEntry(content=b"gamma\n", destination="c.txt"),
    ])


@pytest.fixture
def config():
    return ServerConfig()


@pytest.fixture
def dispatcher(config, templates):
    return Dispatcher(config, templates)
