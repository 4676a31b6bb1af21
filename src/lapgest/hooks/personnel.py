"""Employee planning and absence requests."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, NamedTuple

from pydantic import TypeAdapter

from lapgest.hooks.base import Mutation, MutationDescriptor, Query
from lapgest.models.resources import AbsenceInput, EmployeAbsence, EmployePlanning, PlanningInput

if TYPE_CHECKING:
    from lapgest.cache import QueryCache
    from lapgest.http import ApiClient

PLANNING_KEY = ("planning", "employes")
ABSENCES_KEY = ("absences",)

_planning_list = TypeAdapter(list[EmployePlanning])
_absence_list = TypeAdapter(list[EmployeAbsence])


class PlanningUpdate(NamedTuple):
    id: str
    data: PlanningInput | dict[str, Any]


class AbsenceRequest(NamedTuple):
    employe_id: str
    data: AbsenceInput | dict[str, Any]


class AbsenceDecision(NamedTuple):
    id: str
    approved: bool


CREATE_PLANNING = MutationDescriptor[PlanningInput](
    path="/api/employes/planning",
    method="POST",
    invalidates=[PLANNING_KEY],
)

UPDATE_PLANNING = MutationDescriptor[PlanningUpdate](
    path=lambda v: f"/api/employes/planning/{v.id}",
    method="PUT",
    payload=lambda v: v.data,
    invalidates=[PLANNING_KEY],
)

DELETE_PLANNING = MutationDescriptor[str](
    path=lambda planning_id: f"/api/employes/planning/{planning_id}",
    method="DELETE",
    invalidates=[PLANNING_KEY],
)

CREATE_ABSENCE = MutationDescriptor[AbsenceRequest](
    path=lambda v: f"/api/employes/{v.employe_id}/absences",
    method="POST",
    payload=lambda v: v.data,
    # Only the requesting employee's list changes
    invalidates=lambda v: [(*ABSENCES_KEY, v.employe_id)],
)

APPROVE_ABSENCE = MutationDescriptor[AbsenceDecision](
    path=lambda v: f"/api/employes/absences/{v.id}/approve",
    method="PUT",
    payload=lambda v: {"approved": v.approved},
    invalidates=[ABSENCES_KEY],
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class PersonnelHooks:
    def __init__(self, client: ApiClient, cache: QueryCache) -> None:
        self._client = client
        self._cache = cache

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def employe_planning(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> Query[list[EmployePlanning]]:
        """Planning entries, optionally bounded by ``start`` and ``end``."""
        params = {}
        if start is not None:
            params["startDate"] = start.isoformat()
        if end is not None:
            params["endDate"] = end.isoformat()

        async def load() -> Any:
            return await self._client.get("/api/employes/planning", params=params or None)

        return Query(
            self._cache,
            (*PLANNING_KEY, _iso(start), _iso(end)),
            load,
            parse=_planning_list.validate_python,
        )

    def create_employe_planning(self) -> Mutation[PlanningInput, EmployePlanning]:
        return Mutation(
            self._client, self._cache, CREATE_PLANNING, parse=EmployePlanning.model_validate
        )

    def update_employe_planning(self) -> Mutation[PlanningUpdate, EmployePlanning]:
        return Mutation(
            self._client, self._cache, UPDATE_PLANNING, parse=EmployePlanning.model_validate
        )

    def delete_employe_planning(self) -> Mutation[str, None]:
        return Mutation(self._client, self._cache, DELETE_PLANNING)

    # ------------------------------------------------------------------
    # Absences
    # ------------------------------------------------------------------

    def employe_absences(self, employe_id: str | None) -> Query[list[EmployeAbsence]]:
        async def load() -> Any:
            return await self._client.get(f"/api/employes/{employe_id}/absences")

        return Query(
            self._cache,
            (*ABSENCES_KEY, employe_id),
            load,
            enabled=bool(employe_id),
            parse=_absence_list.validate_python,
        )

    def create_employe_absence(self) -> Mutation[AbsenceRequest, EmployeAbsence]:
        return Mutation(
            self._client, self._cache, CREATE_ABSENCE, parse=EmployeAbsence.model_validate
        )

    def approve_employe_absence(self) -> Mutation[AbsenceDecision, EmployeAbsence]:
        return Mutation(
            self._client, self._cache, APPROVE_ABSENCE, parse=EmployeAbsence.model_validate
        )
