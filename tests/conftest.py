"""Shared pytest fixtures for the csharp_bindgen test suite."""

import sys
from pathlib import Path

import pytest

# Ensure scripts/ is on sys.path
SCRIPTS_DIR = Path(__file__).resolve().parent.parent / 'scripts'
if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))

from csharp_bindgen import CSharpBuilder, Configuration, TypeMapper, extract  # noqa: E402


@pytest.fixture
def config():
    """Default configuration, mutable per test"""
    return Configuration()


@pytest.fixture
def build(config):
    """Build bindings for source/entry using the config fixture"""
    def _build(source, entry, namespace=None, type_name=None):
        builder = CSharpBuilder(source, entry, config)
        if namespace is not None:
            builder.set_namespace(namespace)
        if type_name is not None:
            builder.set_type(type_name)
        return builder.build()
    return _build


@pytest.fixture
def mapper_for(config):
    """TypeMapper over the declarations of source"""
    def _mapper_for(source=''):
        return TypeMapper(extract(source), config.snapshot('lib'))
    return _mapper_for
