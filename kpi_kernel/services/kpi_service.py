"""
KpiService -- registration and maintenance of KPI definitions.

Responsibility:
    Creates and updates KPI definitions and loads them as frozen ``Kpi``
    DTOs for the submission pipeline and the selectors.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - Targets are normalized by periodicity on every write: the target of
      an untracked granularity is stored as NULL, a missing target of a
      tracked granularity becomes 0.
    - Targets are never negative.

Failure modes:
    - KpiNotFoundError: ``require_kpi`` / ``update_kpi`` on an unknown id.
    - InvalidKpiDefinitionError: empty name, unknown unit or periodicity,
      negative or non-numeric target.
"""

from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from kpi_kernel.domain.dtos import Kpi, Periodicity, UnitType
from kpi_kernel.exceptions import InvalidKpiDefinitionError, KpiNotFoundError
from kpi_kernel.logging_config import get_logger
from kpi_kernel.models.kpi import KpiModel
from kpi_kernel.services.base import BaseService

logger = get_logger("services.kpi")

_UNSET: Any = object()


def _coerce_unit(unit_type: UnitType | str) -> UnitType:
    try:
        return UnitType(unit_type)
    except ValueError:
        raise InvalidKpiDefinitionError(f"unknown unit type {unit_type!r}")


def _coerce_periodicity(periodicity: Periodicity | str) -> Periodicity:
    try:
        return Periodicity(periodicity)
    except ValueError:
        raise InvalidKpiDefinitionError(f"unknown periodicity {periodicity!r}")


def _coerce_target(name: str, raw: Decimal | int | str | None) -> Decimal | None:
    if raw is None or raw == "":
        return None
    try:
        target = Decimal(str(raw))
    except InvalidOperation:
        raise InvalidKpiDefinitionError(f"{name} is not a number: {raw!r}")
    if not target.is_finite():
        raise InvalidKpiDefinitionError(f"{name} is not a finite number: {raw!r}")
    if target < 0:
        raise InvalidKpiDefinitionError(f"{name} cannot be negative: {raw!r}")
    return target


def normalize_targets(
    periodicity: Periodicity,
    target_weekly: Decimal | None,
    target_monthly: Decimal | None,
) -> tuple[Decimal | None, Decimal | None]:
    """Drop untracked targets and default tracked ones to zero."""
    weekly = (target_weekly or Decimal("0")) if periodicity.includes_weekly else None
    monthly = (target_monthly or Decimal("0")) if periodicity.includes_monthly else None
    return weekly, monthly


class KpiService(BaseService[KpiModel]):
    """Write-side access to KPI definitions."""

    def __init__(self, session: Session):
        super().__init__(session)

    def get_kpi(self, kpi_id: UUID) -> Kpi | None:
        model = self.session.get(KpiModel, kpi_id)
        return Kpi.from_model(model) if model is not None else None

    def require_kpi(self, kpi_id: UUID) -> Kpi:
        kpi = self.get_kpi(kpi_id)
        if kpi is None:
            raise KpiNotFoundError(str(kpi_id))
        return kpi

    def register_kpi(
        self,
        name: str,
        unit_type: UnitType | str,
        periodicity: Periodicity | str,
        target_weekly: Decimal | int | str | None = None,
        target_monthly: Decimal | int | str | None = None,
        owner_id: UUID | None = None,
        description: str = "",
    ) -> Kpi:
        """
        Create a KPI definition.

        Returns:
            The stored definition with normalized targets.

        Raises:
            InvalidKpiDefinitionError: If any field is invalid.
        """
        if not name or not name.strip():
            raise InvalidKpiDefinitionError("name is required")
        unit = _coerce_unit(unit_type)
        cadence = _coerce_periodicity(periodicity)
        weekly, monthly = normalize_targets(
            cadence,
            _coerce_target("target_weekly", target_weekly),
            _coerce_target("target_monthly", target_monthly),
        )

        model = KpiModel(
            name=name.strip(),
            description=description or "",
            unit_type=unit.value,
            periodicity=cadence.value,
            target_weekly=weekly,
            target_monthly=monthly,
            owner_id=owner_id,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "kpi_registered",
            extra={
                "kpi_id": str(model.id),
                "periodicity": cadence.value,
                "unit_type": unit.value,
                "owner_id": str(owner_id) if owner_id else None,
            },
        )
        return Kpi.from_model(model)

    def update_kpi(
        self,
        kpi_id: UUID,
        *,
        name: str | None = None,
        description: str | None = None,
        unit_type: UnitType | str | None = None,
        periodicity: Periodicity | str | None = None,
        target_weekly: Decimal | int | str | None = _UNSET,
        target_monthly: Decimal | int | str | None = _UNSET,
        owner_id: UUID | None = _UNSET,
    ) -> Kpi:
        """
        Change fields of an existing KPI.

        Omitted fields keep their stored value; ``owner_id=None`` unassigns
        the KPI.  Targets are renormalized against the resulting
        periodicity.
        """
        model = self.session.get(KpiModel, kpi_id)
        if model is None:
            raise KpiNotFoundError(str(kpi_id))

        if name is not None:
            if not name.strip():
                raise InvalidKpiDefinitionError("name is required")
            model.name = name.strip()
        if description is not None:
            model.description = description
        if unit_type is not None:
            model.unit_type = _coerce_unit(unit_type).value
        if periodicity is not None:
            model.periodicity = _coerce_periodicity(periodicity).value
        if owner_id is not _UNSET:
            model.owner_id = owner_id

        weekly = (
            model.target_weekly
            if target_weekly is _UNSET
            else _coerce_target("target_weekly", target_weekly)
        )
        monthly = (
            model.target_monthly
            if target_monthly is _UNSET
            else _coerce_target("target_monthly", target_monthly)
        )
        model.target_weekly, model.target_monthly = normalize_targets(
            Periodicity(model.periodicity), weekly, monthly
        )

        self.session.flush()
        logger.info(
            "kpi_updated",
            extra={"kpi_id": str(kpi_id), "periodicity": model.periodicity},
        )
        return Kpi.from_model(model)
