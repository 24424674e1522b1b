"""
Shared fixtures: a throwaway SQLite file per test and a factory wired to a
scripted LLM, with the simulated account latencies switched off.
"""
import asyncio
import sys
import os

import pytest

src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from infrastructure.config import Settings
from factory import ServiceFactory
from fakes import ScriptedGenerator


@pytest.fixture
def settings(tmp_path):
    return Settings(
        project_root=tmp_path,
        db_path=str(tmp_path / "portal.db"),
        simulate_latency=False,
    )


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def factory(settings, generator):
    factory = ServiceFactory(settings, generator=generator)
    asyncio.run(factory.initialize())
    return factory
