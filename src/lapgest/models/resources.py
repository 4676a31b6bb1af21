"""Payload models for the farm API resources.

Only the fields the client reads or writes are declared; anything else the
API returns is kept as an extra attribute. Field names are snake_case and
map to the API's camelCase through aliases.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class InputModel(BaseModel):
    """Base for form payloads: unknown fields are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RabbitSex(StrEnum):
    MALE = "male"
    FEMELLE = "femelle"


class RabbitStatus(StrEnum):
    REPRODUCTEUR = "reproducteur"
    ENGRAISSEMENT = "engraissement"
    STOCK_A_VENDRE = "stock_a_vendre"
    VENDU = "vendu"
    DECEDE = "decede"


class HealthStatus(StrEnum):
    SAIN = "sain"
    MALADE = "malade"
    EN_QUARANTAINE = "en_quarantaine"


class EnclosType(StrEnum):
    MATERNITE = "maternite"
    ENGRAISSEMENT = "engraissement"
    QUARANTAINE = "quarantaine"
    REPRODUCTEUR_MALE = "reproducteur_male"
    REPRODUCTEUR_FEMELLE = "reproducteur_femelle"


class EnclosStatus(StrEnum):
    OCCUPE = "occupe"
    VIDE = "vide"
    A_NETTOYER = "a_nettoyer"
    EN_MAINTENANCE = "en_maintenance"


class AccountType(StrEnum):
    BANCAIRE = "bancaire"
    MOBILE_MONEY = "mobile_money"


class TransactionType(StrEnum):
    DEPOT = "depot"
    RETRAIT = "retrait"
    VIREMENT_INTERNE = "virement_interne"


class AbsenceStatus(StrEnum):
    EN_ATTENTE = "en_attente"
    APPROUVE = "approuve"
    REFUSE = "refuse"


# ---------------------------------------------------------------------------
# Records returned by the API
# ---------------------------------------------------------------------------


class Lapin(ApiModel):
    id: str
    identifiant: str
    sexe: RabbitSex
    date_naissance: date | None = None
    race: str | None = None
    couleur: str | None = None
    status: RabbitStatus = RabbitStatus.ENGRAISSEMENT
    health_status: HealthStatus = HealthStatus.SAIN
    pere_id: str | None = None
    mere_id: str | None = None
    enclos_id: str | None = None
    notes: str | None = None


class Enclos(ApiModel):
    id: str
    nom: str
    type: EnclosType
    capacite_max: int
    status: EnclosStatus = EnclosStatus.VIDE
    notes: str | None = None


class Accouplement(ApiModel):
    id: str
    femelle_id: str
    male_id: str
    date_accouplement: datetime
    date_mise_bas_prevue: datetime | None = None
    succes: bool | None = None
    notes: str | None = None


class MiseBas(ApiModel):
    id: str
    accouplement_id: str
    date_mise_bas: datetime
    nombre_lapereaux: int
    nombre_morts_nes: int = 0
    nombre_survivants_24h: int | None = Field(default=None, alias="nombreSurvivants24h")
    nombre_survivants_48h: int | None = Field(default=None, alias="nombreSurvivants48h")
    notes: str | None = None


class Vente(ApiModel):
    id: str
    date_vente: datetime
    type_vente: str  # "chair" | "reproducteur"
    montant_total: Decimal
    client_id: str | None = None
    poids_total: Decimal | None = None
    prix_par_kg: Decimal | None = None
    prix_unitaire: Decimal | None = None
    notes: str | None = None


class Depense(ApiModel):
    id: str
    categorie_id: str
    montant: Decimal
    date_depense: datetime
    description: str
    fournisseur_id: str | None = None
    facture: str | None = None


class Employe(ApiModel):
    id: str
    nom: str
    prenom: str
    telephone: str | None = None
    email: str | None = None
    role: str | None = None
    date_embauche: date | None = None
    solde_epargne: Decimal = Decimal("0")
    actif: bool = True


class Compte(ApiModel):
    id: str
    nom: str
    type: AccountType
    numero_compte: str | None = None
    solde_initial: Decimal = Decimal("0")
    solde_actuel: Decimal = Decimal("0")
    actif: bool = True


class Transaction(ApiModel):
    id: str
    compte_id: str
    type: TransactionType
    montant: Decimal
    date_transaction: datetime
    description: str
    compte_destination_id: str | None = None
    categorie: str | None = None
    reference: str | None = None


class PlanningEmploye(ApiModel):
    nom: str
    prenom: str
    role: str | None = None


class EmployePlanning(ApiModel):
    id: str
    employe_id: str
    date_debut: datetime
    date_fin: datetime
    heures_par_jour: float
    jours_travailles: list[str] = []
    poste: str
    statut: str
    employe: PlanningEmploye | None = None


class EmployeAbsence(ApiModel):
    id: str
    employe_id: str
    date_debut: datetime
    date_fin: datetime
    motif: str
    statut: AbsenceStatus = AbsenceStatus.EN_ATTENTE
    created_at: datetime | None = None


class GrandParents(ApiModel):
    paternel: dict[str, Any | None] = {}
    maternel: dict[str, Any | None] = {}


class GenealogyData(ApiModel):
    """Ancestry of one lapin: parents, both sets of grandparents and offspring."""

    lapin: dict[str, Any]
    pere: dict[str, Any] | None = None
    mere: dict[str, Any] | None = None
    grand_parents: GrandParents = GrandParents()
    enfants: list[dict[str, Any]] = []


# ---------------------------------------------------------------------------
# Form payloads
# ---------------------------------------------------------------------------


class LapinInput(InputModel):
    identifiant: str
    sexe: RabbitSex
    date_naissance: date | None = None
    race: str | None = None
    couleur: str | None = None
    status: RabbitStatus = RabbitStatus.ENGRAISSEMENT
    health_status: HealthStatus = HealthStatus.SAIN
    pere_id: str | None = None
    mere_id: str | None = None
    enclos_id: str | None = None
    notes: str | None = None

    @field_validator("identifiant")
    @classmethod
    def validate_identifiant(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("identifiant must not be empty")
        return v

    @model_validator(mode="after")
    def check_parents(self) -> LapinInput:
        if self.pere_id is not None and self.pere_id == self.mere_id:
            raise ValueError("pere_id and mere_id must differ")
        return self


class AccouplementInput(InputModel):
    femelle_id: str = Field(min_length=1)
    male_id: str = Field(min_length=1)
    date_accouplement: datetime
    date_mise_bas_prevue: datetime | None = None
    succes: bool | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def check_dates(self) -> AccouplementInput:
        if (
            self.date_mise_bas_prevue is not None
            and self.date_mise_bas_prevue < self.date_accouplement
        ):
            raise ValueError("date_mise_bas_prevue must not precede date_accouplement")
        return self


class MiseBasInput(InputModel):
    accouplement_id: str = Field(min_length=1)
    date_mise_bas: datetime
    nombre_lapereaux: int = Field(ge=0)
    nombre_morts_nes: int = Field(default=0, ge=0)
    nombre_survivants_24h: int | None = Field(default=None, ge=0, alias="nombreSurvivants24h")
    nombre_survivants_48h: int | None = Field(default=None, ge=0, alias="nombreSurvivants48h")
    notes: str | None = None


class AbsenceInput(InputModel):
    date_debut: datetime
    date_fin: datetime
    motif: str = Field(min_length=1)

    @model_validator(mode="after")
    def check_range(self) -> AbsenceInput:
        if self.date_fin < self.date_debut:
            raise ValueError("date_fin must not precede date_debut")
        return self


class PlanningInput(InputModel):
    employe_id: str = Field(min_length=1)
    date_debut: datetime
    date_fin: datetime
    heures_par_jour: float = Field(gt=0, le=24)
    jours_travailles: list[str] = []
    poste: str
    statut: str = "planifie"


class VenteInput(InputModel):
    date_vente: datetime
    type_vente: str
    montant_total: Decimal = Field(ge=0)
    client_id: str | None = None
    poids_total: Decimal | None = None
    prix_par_kg: Decimal | None = None
    prix_unitaire: Decimal | None = None
    notes: str | None = None
    lapin_ids: list[str] = []


class ProfileInput(InputModel):
    """Editable profile fields; only the ones set are sent."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    farm_name: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if v is not None and "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class PasswordChange(InputModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


class SystemStats(ApiModel):
    db_size: int = 0
    health: str = "unknown"
    total_records: int = 0
    last_backup: datetime | None = None
    version: str | None = None


class PasswordInput(InputModel):
    """Password form values; the confirmation never leaves the client."""

    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=1)
    confirm_password: str

    @model_validator(mode="after")
    def check_confirmation(self) -> PasswordInput:
        if self.confirm_password != self.new_password:
            raise ValueError("confirm_password must match new_password")
        return self
