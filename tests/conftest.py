import asyncio
import os
import tempfile

# Configure before any qrsu module reads the environment
_tmp_dir = tempfile.mkdtemp(prefix="qrsu-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmp_dir, 'api.db')}"
os.environ["WEB_RISK_API_KEY"] = "test-key"
os.environ["SHORT_URL_DOMAIN"] = "qrsu.test"
os.environ["SHORTEN_ENSURE_UNIQUE"] = "false"

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from qrsu import url_validator
from qrsu.models import Base


class FakeWebRisk:
    """Canned Web Risk uris:search responses"""

    def __init__(self):
        self.response = {}
        self.calls = []

    async def search(self, url, api_key):
        self.calls.append((url, api_key))
        if isinstance(self.response, BaseException):
            raise self.response
        return self.response

    @property
    def urls(self):
        return [url for url, _ in self.calls]


@pytest.fixture
def web_risk(monkeypatch):
    fake = FakeWebRisk()
    monkeypatch.setattr(url_validator, "_search_uri", fake.search)
    return fake


@pytest.fixture
def run_with_session(tmp_path):
    """Run an async function against a fresh SQLite store"""

    def run(fn):
        async def main():
            engine = create_async_engine(
                f"sqlite+aiosqlite:///{tmp_path / 'links.db'}", poolclass=NullPool
            )
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            try:
                async with async_sessionmaker(engine, expire_on_commit=False)() as session:
                    return await fn(session)
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return run
