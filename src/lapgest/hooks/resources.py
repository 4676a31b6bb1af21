"""CRUD hooks for the farm's REST resources.

Every resource follows the same key scheme: the list lives under
``(base_path,)`` and one record under ``(base_path, id)``, so a write that
invalidates ``(base_path,)`` refreshes both.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, NamedTuple, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter

from lapgest.hooks.base import Mutation, MutationDescriptor, Query
from lapgest.models.resources import (
    Accouplement,
    Compte,
    Depense,
    Employe,
    Enclos,
    Lapin,
    MiseBas,
    RabbitStatus,
    Transaction,
    Vente,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from lapgest.cache import QueryCache
    from lapgest.http import ApiClient

M = TypeVar("M", bound=BaseModel)

DASHBOARD_METRICS_PATH = "/api/dashboard/metrics"


class Update(NamedTuple):
    id: str
    data: BaseModel | dict[str, Any]


class ResourceHooks(Generic[M]):
    """List/detail queries and create/update/delete mutations for one resource."""

    def __init__(
        self,
        client: ApiClient,
        cache: QueryCache,
        base_path: str,
        model: type[M],
        extra_invalidates: Sequence[Iterable[Any]] = (),
    ) -> None:
        self._client = client
        self._cache = cache
        self.base_path = base_path
        self.model = model
        self._list_adapter = TypeAdapter(list[model])  # type: ignore[valid-type]
        self._invalidates = [(base_path,), *extra_invalidates]

    @property
    def key(self) -> tuple[str]:
        return (self.base_path,)

    def list_all(self) -> Query[list[M]]:
        async def load() -> Any:
            return await self._client.get(self.base_path)

        return Query(self._cache, self.key, load, parse=self._list_adapter.validate_python)

    def detail(self, record_id: str | None) -> Query[M]:
        async def load() -> Any:
            return await self._client.get(f"{self.base_path}/{record_id}")

        return Query(
            self._cache,
            (self.base_path, record_id),
            load,
            enabled=bool(record_id),
            parse=self.model.model_validate,
        )

    def create(self) -> Mutation[Any, M]:
        descriptor = MutationDescriptor[Any](
            path=self.base_path, method="POST", invalidates=self._invalidates
        )
        return Mutation(self._client, self._cache, descriptor, parse=self.model.model_validate)

    def update(self) -> Mutation[Update, M]:
        descriptor = MutationDescriptor[Update](
            path=lambda v: f"{self.base_path}/{v.id}",
            method="PUT",
            payload=lambda v: v.data,
            invalidates=self._invalidates,
        )
        return Mutation(self._client, self._cache, descriptor, parse=self.model.model_validate)

    def delete(self) -> Mutation[str, None]:
        descriptor = MutationDescriptor[str](
            path=lambda record_id: f"{self.base_path}/{record_id}",
            method="DELETE",
            invalidates=self._invalidates,
        )
        return Mutation(self._client, self._cache, descriptor)


class LapinHooks(ResourceHooks[Lapin]):
    def by_status(self, status: RabbitStatus) -> Query[list[Lapin]]:
        """Lapins with one status; cached under the lapins list prefix."""

        async def load() -> Any:
            return await self._client.get(f"{self.base_path}/status/{status.value}")

        return Query(
            self._cache,
            (self.base_path, "status", status),
            load,
            parse=self._list_adapter.validate_python,
        )


class TransactionHooks(ResourceHooks[Transaction]):
    def by_compte(self, compte_id: str | None) -> Query[list[Transaction]]:
        """Transactions of one account; cached under the transactions list prefix."""

        async def load() -> Any:
            return await self._client.get(f"{self.base_path}/compte/{compte_id}")

        return Query(
            self._cache,
            (self.base_path, "compte", compte_id),
            load,
            enabled=bool(compte_id),
            parse=self._list_adapter.validate_python,
        )


class _Record(BaseModel):
    """Schema-less record for resources the client only displays."""

    model_config = ConfigDict(extra="allow")

    id: str


class FarmResources:
    """All CRUD resources of the farm API, sharing one client and cache."""

    def __init__(self, client: ApiClient, cache: QueryCache) -> None:
        self._client = client
        self._cache = cache
        metrics = (DASHBOARD_METRICS_PATH,)

        self.lapins = LapinHooks(client, cache, "/api/lapins", Lapin, [metrics])
        self.enclos = ResourceHooks(client, cache, "/api/enclos", Enclos, [metrics])
        self.accouplements = ResourceHooks(
            client, cache, "/api/accouplements", Accouplement, [metrics]
        )
        # A litter closes its mating, so the matings list changes too
        self.mises_bas = ResourceHooks(
            client, cache, "/api/mises-bas", MiseBas, [("/api/accouplements",), metrics]
        )
        self.ventes = ResourceHooks(client, cache, "/api/ventes", Vente, [("ventes",), metrics])
        self.depenses = ResourceHooks(client, cache, "/api/depenses", Depense, [metrics])
        self.employes = ResourceHooks(
            client, cache, "/api/employes", Employe, [("planning", "employes")]
        )
        # Transactions move account balances
        self.transactions = TransactionHooks(
            client, cache, "/api/transactions", Transaction, [("/api/comptes",)]
        )
        self.comptes = ResourceHooks(client, cache, "/api/comptes", Compte)
        self.traitements = ResourceHooks(client, cache, "/api/traitements", _Record)
        self.articles = ResourceHooks(client, cache, "/api/articles", _Record)

    def dashboard_metrics(self) -> Query[dict[str, Any]]:
        async def load() -> Any:
            return await self._client.get(DASHBOARD_METRICS_PATH)

        return Query(self._cache, (DASHBOARD_METRICS_PATH,), load)
