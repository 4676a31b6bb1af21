"""Genealogy lookup and sales recorded with their pedigree."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lapgest.hooks.base import Mutation, MutationDescriptor, Query
from lapgest.models.resources import GenealogyData, Vente, VenteInput

if TYPE_CHECKING:
    from lapgest.cache import QueryCache
    from lapgest.http import ApiClient

CREATE_VENTE_WITH_GENEALOGY = MutationDescriptor[VenteInput](
    path="/api/ventes/avec-genealogie",
    method="POST",
    # "ventes" is the key older screens use; "/api/ventes" backs the sales list
    invalidates=[("ventes",), ("/api/ventes",)],
)


def genealogy_key(lapin_id: str | None) -> tuple[str, str | None, str]:
    return ("lapin", lapin_id, "genealogy")


class GenealogyHooks:
    def __init__(self, client: ApiClient, cache: QueryCache) -> None:
        self._client = client
        self._cache = cache

    def lapin_genealogy(self, lapin_id: str | None) -> Query[GenealogyData]:
        """Parents, grandparents and offspring of one lapin.

        Disabled (no request, ``data`` is None) while ``lapin_id`` is empty.
        """

        async def load() -> object:
            return await self._client.get(f"/api/lapins/{lapin_id}/genealogy")

        return Query(
            self._cache,
            genealogy_key(lapin_id),
            load,
            enabled=bool(lapin_id),
            parse=GenealogyData.model_validate,
        )

    def create_vente_with_genealogy(self) -> Mutation[VenteInput, Vente]:
        return Mutation(
            self._client, self._cache, CREATE_VENTE_WITH_GENEALOGY, parse=Vente.model_validate
        )
