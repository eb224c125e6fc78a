import pytest

from ffi_gen import Config, HeaderParser


@pytest.fixture
def config():
    return Config(module='test')


@pytest.fixture
def parse(config):
    """Run one parse of the given cursors with the `config` fixture"""
    def run(*cursors):
        return HeaderParser(config).parse(cursors)
    return run
