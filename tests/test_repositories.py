"""
Unit tests for the repository layer on a mocked ``AsyncSession``.

Tests cover the generic get/create/save round-trips, rollback on
``OperationalError`` and the escaping of ``LIKE`` wildcards in the property
search filter.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from igudar.models.property import Property
from igudar.repositories.base import BaseRepository
from igudar.repositories.property_repo import PropertyRepository, escape_like
from igudar.schemas.property import PropertyFilters

from .conftest import PROPERTY_ID, make_property


class TestBaseRepository:
    """Tests for the generic CRUD helpers."""

    @pytest.mark.asyncio
    async def test_get_by_primary_key(self, mock_db):
        prop = make_property()
        mock_db.get.return_value = prop
        repo = BaseRepository(Property, mock_db)

        assert await repo.get(PROPERTY_ID) is prop
        mock_db.get.assert_awaited_once_with(Property, PROPERTY_ID)

    @pytest.mark.asyncio
    async def test_create_commits_and_refreshes(self, mock_db):
        prop = make_property()
        repo = BaseRepository(Property, mock_db)

        assert await repo.create(prop) is prop
        mock_db.add.assert_called_once_with(prop)
        mock_db.commit.assert_awaited_once()
        mock_db.refresh.assert_awaited_once_with(prop)

    @pytest.mark.asyncio
    async def test_save_commits_without_refresh(self, mock_db):
        prop = make_property()
        repo = BaseRepository(Property, mock_db)

        assert await repo.save(prop) is prop
        mock_db.commit.assert_awaited_once()
        mock_db.refresh.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_operational_error_rolls_back_and_reraises(self, mock_db):
        mock_db.commit.side_effect = OperationalError("COMMIT", {}, Exception("db down"))
        repo = BaseRepository(Property, mock_db)

        with pytest.raises(OperationalError):
            await repo.save(make_property())
        mock_db.rollback.assert_awaited_once()


class TestEscapeLike:
    @pytest.mark.parametrize(
        "term, expected",
        [
            ("riad", "riad"),
            ("50%", "50\\%"),
            ("sea_view", "sea\\_view"),
            ("a\\b", "a\\\\b"),
            ("100%_off", "100\\%\\_off"),
        ],
    )
    def test_wildcards_are_escaped(self, term, expected):
        assert escape_like(term) == expected


class TestPropertySearch:
    """Tests for the ``search`` filter of PropertyRepository.list_filtered."""

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(self, mock_db):
        mock_db.execute.return_value = MagicMock()
        mock_db.execute.return_value.scalars.return_value.all.return_value = []
        repo = PropertyRepository(Property, mock_db)

        await repo.list_filtered(PropertyFilters(search=" 100%_off "))

        compiled = mock_db.execute.await_args.args[0].compile()
        assert "ESCAPE" in str(compiled)
        patterns = {v for v in compiled.params.values() if isinstance(v, str)}
        assert patterns == {"%100\\%\\_off%"}

    @pytest.mark.asyncio
    async def test_no_search_adds_no_like_clause(self, mock_db):
        mock_db.execute.return_value = MagicMock()
        mock_db.execute.return_value.scalars.return_value.all.return_value = [make_property()]
        repo = PropertyRepository(Property, mock_db)

        rows = await repo.list_filtered(PropertyFilters(city=["Rabat"]))

        assert len(rows) == 1
        assert "LIKE" not in str(mock_db.execute.await_args.args[0].compile())
