"""
Engine and session scope tests.
"""

from datetime import UTC, datetime

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from kpi_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from kpi_kernel.db.immutability import unregister_immutability_listeners
from kpi_kernel.exceptions import ImmutabilityViolationError
from kpi_kernel.models.kpi import KpiModel
from kpi_kernel.models.progress import ProgressModel
from kpi_kernel.models.submission_entry import SubmissionEntryModel


def _kpi_model(name: str = "Visits") -> KpiModel:
    return KpiModel(name=name, unit_type="count", periodicity="weekly")


class TestSessionScope:
    def test_commits_on_success(self, db_engine):
        with session_scope() as session:
            session.add(_kpi_model("Committed"))

        with session_scope() as session:
            names = session.execute(select(KpiModel.name)).scalars().all()
        assert names == ["Committed"]

    def test_rolls_back_on_error(self, db_engine):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(_kpi_model("Discarded"))
                session.flush()
                raise RuntimeError("abort")

        with session_scope() as session:
            assert session.execute(select(KpiModel)).scalars().all() == []

    def test_uninitialized_engine(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_session()


class TestProgressConstraint:
    def test_duplicate_key_rejected(self, session):
        kpi = _kpi_model()
        session.add(kpi)
        session.flush()
        for _ in range(2):
            session.add(ProgressModel(kpi_id=kpi.id, period_type="weekly", period_key="2024-W11"))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_one_row_per_period_type(self, session):
        kpi = _kpi_model()
        session.add(kpi)
        session.flush()
        session.add(ProgressModel(kpi_id=kpi.id, period_type="weekly", period_key="2024-W11"))
        session.add(ProgressModel(kpi_id=kpi.id, period_type="monthly", period_key="2024-03"))
        session.flush()
        assert len(session.execute(select(ProgressModel)).scalars().all()) == 2


class TestEngineInitialization:
    @pytest.fixture
    def fresh_engine(self):
        unregister_immutability_listeners()
        init_engine_from_url("sqlite://")
        create_tables()
        yield
        drop_tables()
        reset_engine()

    def test_submission_log_append_only_after_init(self, fresh_engine):
        with session_scope() as session:
            kpi = _kpi_model()
            session.add(kpi)
            session.flush()
            session.add(
                SubmissionEntryModel(
                    kpi_id=kpi.id,
                    period_type="weekly",
                    period_key="2024-W11",
                    delivered=True,
                    value="2",
                    submitted_at=datetime(2024, 3, 13, 15, 0, tzinfo=UTC),
                )
            )

        with pytest.raises(ImmutabilityViolationError):
            with session_scope() as session:
                entry = session.execute(select(SubmissionEntryModel)).scalar_one()
                entry.value = "99"

        with session_scope() as session:
            assert session.execute(select(SubmissionEntryModel.value)).scalar_one() == "2"
