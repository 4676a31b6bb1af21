"""Form components: a validation schema bound to one mutation.

Validation errors stay on the form and never reach the network layer.
Request errors from the mutation are reported through ``notify`` as a
transient notification, and the form stays open so the user can retry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Literal, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from lapgest.errors import RequestError
from lapgest.hooks.personnel import AbsenceRequest
from lapgest.hooks.resources import Update
from lapgest.models.resources import (
    AbsenceInput,
    Accouplement,
    AccouplementInput,
    LapinInput,
    MiseBasInput,
    PasswordChange,
    PasswordInput,
    ProfileInput,
    RabbitSex,
    RabbitStatus,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from lapgest.hooks.base import Mutation
    from lapgest.models.resources import Lapin

log = structlog.get_logger()

P = TypeVar("P", bound=BaseModel)

GESTATION_DAYS = 31


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


def _noop() -> None:
    return None


def _discard(notification: Notification) -> None:
    return None


def breeding_candidates(lapins: Iterable[Lapin], sexe: RabbitSex) -> list[Lapin]:
    """Breeders of the given sex, for the mating pickers."""
    return [
        lapin
        for lapin in lapins
        if lapin.sexe is sexe and lapin.status is RabbitStatus.REPRODUCTEUR
    ]


def available_accouplements(accouplements: Iterable[Accouplement]) -> list[Accouplement]:
    """Matings that may still lead to a litter: all but the known failures."""
    return [acc for acc in accouplements if acc.succes is not False]


def expected_birth_date(date_accouplement: datetime) -> datetime:
    return date_accouplement + timedelta(days=GESTATION_DAYS)


class Form(Generic[P]):
    """Validate field values with ``schema`` and submit them through ``mutation``."""

    schema: ClassVar[type[BaseModel]]
    success_message: ClassVar[str] = "Enregistré avec succès"
    error_message: ClassVar[str] = "Erreur lors de l'enregistrement"

    def __init__(
        self,
        mutation: Mutation[Any, Any],
        *,
        on_success: Callable[[], None] = _noop,
        on_cancel: Callable[[], None] = _noop,
        notify: Callable[[Notification], None] = _discard,
        initial: Mapping[str, Any] | None = None,
        record_id: str | None = None,
    ) -> None:
        self.mutation = mutation
        self._on_success = on_success
        self._on_cancel = on_cancel
        self._notify = notify
        self.record_id = record_id
        self.values: dict[str, Any] = {**self.default_values(), **(initial or {})}
        self.errors: dict[str, str] = {}

    @property
    def is_submitting(self) -> bool:
        return self.mutation.is_pending

    def default_values(self) -> dict[str, Any]:
        return {}

    def set(self, field: str, value: Any) -> None:
        self.values[field] = value
        self.errors.pop(field, None)

    def validate(self, values: Mapping[str, Any] | None = None) -> P | None:
        """Return the parsed payload, or None with ``errors`` filled in."""
        if values is not None:
            self.values.update(values)
        try:
            payload = self.schema.model_validate(self.values)
        except ValidationError as exc:
            self.errors = {
                ".".join(str(part) for part in error["loc"]) or "__root__": error["msg"]
                for error in exc.errors()
            }
            log.debug("form_invalid", form=type(self).__name__, fields=sorted(self.errors))
            return None
        self.errors = {}
        return payload  # type: ignore[return-value]

    def variables(self, payload: P) -> Any:
        """Mutation variables for a valid payload."""
        if self.record_id is not None:
            return Update(self.record_id, payload)
        return payload

    async def submit(self, values: Mapping[str, Any] | None = None) -> bool:
        """Validate, then run the mutation. Returns True on success."""
        payload = self.validate(values)
        if payload is None:
            return False
        try:
            await self.mutation.mutate(self.variables(payload))
        except RequestError as exc:
            self._notify(
                Notification(
                    title="Erreur",
                    description=exc.message or self.error_message,
                    variant="destructive",
                )
            )
            return False
        self._notify(Notification(title="Succès", description=self.success_message))
        self._on_success()
        return True

    def cancel(self) -> None:
        self._on_cancel()


class LapinForm(Form[LapinInput]):
    schema = LapinInput
    success_message = "Lapin enregistré avec succès"

    def default_values(self) -> dict[str, Any]:
        return {"status": RabbitStatus.ENGRAISSEMENT}


class AccouplementForm(Form[AccouplementInput]):
    schema = AccouplementInput
    success_message = "Accouplement enregistré avec succès"

    def default_values(self) -> dict[str, Any]:
        now = datetime.now(UTC)
        return {"date_accouplement": now, "date_mise_bas_prevue": expected_birth_date(now)}

    def set(self, field: str, value: Any) -> None:
        super().set(field, value)
        # Keep the expected birth date in step with the mating date
        if field == "date_accouplement" and isinstance(value, datetime):
            self.values["date_mise_bas_prevue"] = expected_birth_date(value)

    def females(self, lapins: Iterable[Lapin]) -> list[Lapin]:
        return breeding_candidates(lapins, RabbitSex.FEMELLE)

    def males(self, lapins: Iterable[Lapin]) -> list[Lapin]:
        return breeding_candidates(lapins, RabbitSex.MALE)


class MiseBasForm(Form[MiseBasInput]):
    schema = MiseBasInput
    success_message = "Mise-bas enregistrée avec succès"

    def default_values(self) -> dict[str, Any]:
        return {"date_mise_bas": datetime.now(UTC), "nombre_lapereaux": 1, "nombre_morts_nes": 0}


class AbsenceForm(Form[AbsenceInput]):
    """Absence request for one employee."""

    schema = AbsenceInput
    success_message = "Demande d'absence enregistrée"

    def __init__(self, mutation: Mutation[Any, Any], employe_id: str, **kwargs: Any) -> None:
        super().__init__(mutation, **kwargs)
        self.employe_id = employe_id

    def variables(self, payload: AbsenceInput) -> AbsenceRequest:
        return AbsenceRequest(self.employe_id, payload)


class ProfileForm(Form[ProfileInput]):
    """Profile edit on the settings page, pre-filled from the signed-in user."""

    schema = ProfileInput
    success_message = "Vos informations ont été sauvegardées avec succès"
    error_message = "Impossible de mettre à jour le profil"


class PasswordForm(Form[PasswordInput]):
    schema = PasswordInput
    success_message = "Mot de passe modifié"
    error_message = "Impossible de modifier le mot de passe"

    def variables(self, payload: PasswordInput) -> PasswordChange:
        return PasswordChange(
            current_password=payload.current_password, new_password=payload.new_password
        )

    async def submit(self, values: Mapping[str, Any] | None = None) -> bool:
        submitted = await super().submit(values)
        # Password fields are never kept once sent
        if submitted:
            self.values = self.default_values()
        return submitted
