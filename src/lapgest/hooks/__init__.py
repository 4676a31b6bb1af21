from __future__ import annotations

from lapgest.hooks.base import Mutation, MutationDescriptor, Query
from lapgest.hooks.genealogy import GenealogyHooks
from lapgest.hooks.personnel import (
    AbsenceDecision,
    AbsenceRequest,
    PersonnelHooks,
    PlanningUpdate,
)
from lapgest.hooks.parametres import ParametresHooks
from lapgest.hooks.resources import (
    FarmResources,
    LapinHooks,
    ResourceHooks,
    TransactionHooks,
    Update,
)

__all__ = [
    "Query",
    "Mutation",
    "MutationDescriptor",
    "GenealogyHooks",
    "PersonnelHooks",
    "PlanningUpdate",
    "AbsenceRequest",
    "AbsenceDecision",
    "ResourceHooks",
    "LapinHooks",
    "TransactionHooks",
    "ParametresHooks",
    "FarmResources",
    "Update",
]
