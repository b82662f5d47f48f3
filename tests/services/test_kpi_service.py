"""
KpiService tests: registration, target normalization and updates.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from kpi_kernel.domain.dtos import Periodicity, PeriodType, UnitType
from kpi_kernel.exceptions import InvalidKpiDefinitionError, KpiNotFoundError


class TestRegisterKpi:
    def test_register_and_load(self, kpi_service, test_actor_id):
        kpi = kpi_service.register_kpi(
            name="  Client visits ",
            unit_type="count",
            periodicity="weekly+monthly",
            target_weekly=2,
            target_monthly="8",
            owner_id=test_actor_id,
        )
        loaded = kpi_service.require_kpi(kpi.id)

        assert loaded.name == "Client visits"
        assert loaded.unit_type is UnitType.COUNT
        assert loaded.periodicity is Periodicity.WEEKLY_MONTHLY
        assert loaded.target_weekly == Decimal("2")
        assert loaded.target_monthly == Decimal("8")
        assert loaded.owner_id == test_actor_id

    def test_untracked_target_dropped(self, kpi_service):
        kpi = kpi_service.register_kpi(
            "Revenue", UnitType.CURRENCY, Periodicity.MONTHLY, target_weekly=5, target_monthly=1000
        )
        assert kpi.target_weekly is None
        assert kpi.target_monthly == Decimal("1000")
        assert kpi.target_for(PeriodType.WEEKLY) == Decimal("0")

    def test_missing_tracked_target_defaults_to_zero(self, kpi_service):
        kpi = kpi_service.register_kpi("Reports", UnitType.COUNT, Periodicity.WEEKLY)
        assert kpi.target_weekly == Decimal("0")
        assert kpi.target_monthly is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": "   "},
            {"unit_type": "liters"},
            {"periodicity": "quarterly"},
            {"target_weekly": -1},
            {"target_weekly": "lots"},
            {"target_weekly": "Infinity"},
        ],
    )
    def test_invalid_definitions(self, kpi_service, kwargs):
        fields = {"name": "Visits", "unit_type": "count", "periodicity": "weekly"}
        fields.update(kwargs)
        with pytest.raises(InvalidKpiDefinitionError):
            kpi_service.register_kpi(**fields)

    def test_logged(self, kpi_service, captured_logs):
        kpi = kpi_service.register_kpi("Visits", "count", "weekly", target_weekly=1)
        registered = [r for r in captured_logs() if r["message"] == "kpi_registered"]
        assert registered[0]["kpi_id"] == str(kpi.id)
        assert registered[0]["periodicity"] == "weekly"


class TestLookup:
    def test_unknown_id(self, kpi_service):
        assert kpi_service.get_kpi(uuid4()) is None
        with pytest.raises(KpiNotFoundError):
            kpi_service.require_kpi(uuid4())


class TestUpdateKpi:
    def test_change_periodicity_renormalizes(self, kpi_service, weekly_kpi):
        updated = kpi_service.update_kpi(weekly_kpi.id, periodicity=Periodicity.MONTHLY)
        assert updated.periodicity is Periodicity.MONTHLY
        assert updated.target_weekly is None
        assert updated.target_monthly == Decimal("0")

    def test_omitted_fields_kept(self, kpi_service, weekly_monthly_kpi, test_actor_id):
        updated = kpi_service.update_kpi(weekly_monthly_kpi.id, target_monthly=10)
        assert updated.name == "Client visits"
        assert updated.target_weekly == Decimal("2")
        assert updated.target_monthly == Decimal("10")
        assert updated.owner_id == test_actor_id

    def test_unassign_owner(self, kpi_service, weekly_kpi):
        assert kpi_service.update_kpi(weekly_kpi.id, owner_id=None).owner_id is None

    def test_unknown_kpi(self, kpi_service):
        with pytest.raises(KpiNotFoundError):
            kpi_service.update_kpi(uuid4(), name="x")

    def test_blank_name_rejected(self, kpi_service, weekly_kpi):
        with pytest.raises(InvalidKpiDefinitionError):
            kpi_service.update_kpi(weekly_kpi.id, name=" ")
