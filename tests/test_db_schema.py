"""Tests for database schema and session management."""

import pytest
from sqlalchemy.exc import IntegrityError

from reelboard.db import session as db_session
from reelboard.db.schema import ApiSetting, Base, GenerationJob, Timeline


class TestSchemaCreation:
    """Test that schema can be created without errors."""

    def test_all_tables_created(self, engine):
        """All required tables should exist after creation."""
        expected_tables = {
            "timelines",
            "tiles",
            "tile_links",
            "linked_segments",
            "audio_tracks",
            "audio_clips",
            "api_settings",
            "generation_jobs",
        }
        assert expected_tables.issubset(Base.metadata.tables.keys())

    def test_defaults_applied(self, session):
        session.add(Timeline(id="t1"))
        session.add(ApiSetting(id="s1", provider="openai", instance_name="openai"))
        session.commit()

        timeline = session.get(Timeline, "t1")
        setting = session.get(ApiSetting, "s1")
        assert timeline.name == "Main Timeline"
        assert timeline.created_at is not None
        assert (setting.status, setting.priority, setting.api_key) == ("active", 0, "")


class TestGenerationJobKey:
    """One pending job per tile."""

    def test_duplicate_tile_rejected(self, session):
        session.add(GenerationJob(tile_id="tile-1", provider="luma", job_id="a", type="video"))
        session.commit()

        session.add(GenerationJob(tile_id="tile-1", provider="kling", job_id="b", type="video"))
        with pytest.raises(IntegrityError):
            session.commit()


class TestSessionManagement:
    """Test engine caching and the session context manager."""

    def test_engine_cached_per_path(self, tmp_path):
        path = tmp_path / "board.db"

        assert db_session.get_engine(path) is db_session.get_engine(path)

    def test_context_manager_commits(self, tmp_path):
        path = tmp_path / "nested" / "board.db"
        db_session.init_db(path)

        with db_session.get_db_session(path) as s:
            s.add(Timeline(id="t1", name="Saved"))

        with db_session.get_db_session(path) as s:
            assert s.get(Timeline, "t1").name == "Saved"

    def test_context_manager_rolls_back_on_error(self, tmp_path):
        path = tmp_path / "board.db"
        db_session.init_db(path)

        with pytest.raises(RuntimeError):
            with db_session.get_db_session(path) as s:
                s.add(Timeline(id="t2"))
                s.flush()
                raise RuntimeError("boom")

        with db_session.get_db_session(path) as s:
            assert s.get(Timeline, "t2") is None
