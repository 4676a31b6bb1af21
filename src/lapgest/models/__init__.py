from __future__ import annotations

from lapgest.models.auth import AuthStatus, LoginInput, SessionState, SessionUser
from lapgest.models.cache import CacheEntry, FetchStatus, QueryKey
from lapgest.models.resources import (
    AbsenceInput,
    AbsenceStatus,
    Accouplement,
    AccouplementInput,
    Compte,
    Depense,
    Employe,
    EmployeAbsence,
    EmployePlanning,
    Enclos,
    EnclosStatus,
    EnclosType,
    GenealogyData,
    HealthStatus,
    Lapin,
    LapinInput,
    MiseBas,
    MiseBasInput,
    PasswordChange,
    PasswordInput,
    PlanningInput,
    ProfileInput,
    RabbitSex,
    RabbitStatus,
    SystemStats,
    Transaction,
    Vente,
    VenteInput,
)
from lapgest.models.routes import Page, RouteResolution

__all__ = [
    # cache
    "CacheEntry",
    "FetchStatus",
    "QueryKey",
    # auth
    "AuthStatus",
    "LoginInput",
    "SessionState",
    "SessionUser",
    # routes
    "Page",
    "RouteResolution",
    # resources
    "Lapin",
    "Enclos",
    "Accouplement",
    "MiseBas",
    "Vente",
    "Depense",
    "Employe",
    "EmployePlanning",
    "EmployeAbsence",
    "Compte",
    "Transaction",
    "GenealogyData",
    "SystemStats",
    "RabbitSex",
    "RabbitStatus",
    "HealthStatus",
    "EnclosType",
    "EnclosStatus",
    "AbsenceStatus",
    # form payloads
    "LapinInput",
    "AccouplementInput",
    "MiseBasInput",
    "AbsenceInput",
    "PlanningInput",
    "VenteInput",
    "ProfileInput",
    "PasswordChange",
    "PasswordInput",
]
