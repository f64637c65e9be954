"""
Unit tests for the database manager.
"""

import pytest

from app.infrastructure.db.database import DatabaseManager
from app.infrastructure.exceptions import ConfigurationError


class TestDatabaseManager:

    def test_missing_url_raises_configuration_error(self, monkeypatch):
        from app.config.settings import settings

        monkeypatch.setattr(settings, "database_url", None)
        manager = DatabaseManager()

        with pytest.raises(ConfigurationError) as exc_info:
            manager.session_factory

        assert exc_info.value.details["missing_keys"] == ["DATABASE_URL"]

    @pytest.mark.asyncio
    async def test_close_without_engine_is_noop(self):
        manager = DatabaseManager("postgresql+asyncpg://user:pw@localhost/drops")

        await manager.close()

        assert manager._engine is None
