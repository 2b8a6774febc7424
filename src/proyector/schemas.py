# Schemas Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Propósito del módulo
#   2) Componentes principales
#   3) Puntos de extensión
#
# EN: Quick index
#   1) Module purpose
#   2) Main components
#   3) Extension points
#
# Secciones / Sections:
#   - Configuración / Configuration
#   - Lógica principal / Core logic

"""Esquemas pydantic para configuración de muestra y fixtures de carga.

Pydantic schemas for sample settings and seeding fixtures.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, Field, StrictBool, StrictInt, ValidationError, field_validator, model_validator

from .errors import ConfigurationError


class SettingsUpdateSchema(BaseModel):
    """Actualización parcial del registro de configuración.

    English: Partial update of the settings record.
    """

    model_config = {"extra": "forbid"}

    target_sample_size: Optional[StrictInt] = Field(default=None, ge=1)
    confidence_level: Optional[float] = Field(default=None, gt=0, le=1)
    is_active: Optional[StrictBool] = None

    @field_validator("confidence_level", mode="before")
    @classmethod
    def confidence_is_a_number(cls, value: Any) -> Any:
        """Solo int/float; los booleanos y textos se rechazan.

        English: Only int/float; booleans and strings are rejected.
        """
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise ValueError(f"confidence_level must be a number, got {value!r}")
        return value


class StationFixture(BaseModel):
    """Mesa dentro de un fixture, con votos y metadatos opcionales."""

    name: str = Field(min_length=1)
    code: Optional[str] = None
    registered_voters: int = Field(default=0, ge=0)
    blank_ballots: int = Field(default=0, ge=0)
    spoiled_ballots: int = Field(default=0, ge=0)
    is_sample: bool = False
    # Clave: nombre o nombre corto del participante. / Key: participant name or short name.
    results: Dict[str, int] = Field(default_factory=dict)

    @field_validator("results")
    @classmethod
    def votes_are_non_negative(cls, value: Dict[str, int]) -> Dict[str, int]:
        for participant, votes in value.items():
            if votes < 0:
                raise ValueError(f"negative vote count for {participant}")
        return value


class ConstituencyFixture(BaseModel):
    name: str = Field(min_length=1)
    stations: List[StationFixture] = Field(default_factory=list)


class RegionFixture(BaseModel):
    name: str = Field(min_length=1)
    code: Optional[str] = None
    constituencies: List[ConstituencyFixture] = Field(default_factory=list)


class ParticipantFixture(BaseModel):
    name: str = Field(min_length=1)
    short_name: Optional[str] = None
    category: Optional[str] = None


class FixtureSchema(BaseModel):
    """Fixture completo de geografía, participantes y votos.

    English: Full geography, participants and votes fixture.
    """

    participants: List[ParticipantFixture] = Field(default_factory=list)
    regions: List[RegionFixture] = Field(min_length=1)

    @model_validator(mode="after")
    def results_reference_known_participants(self) -> "FixtureSchema":
        """Todos los votos deben apuntar a exactamente un participante declarado.

        English:
            Every result key must resolve to exactly one declared participant.
        """
        owners: Dict[str, Set[int]] = {}
        for index, participant in enumerate(self.participants):
            owners.setdefault(participant.name, set()).add(index)
            if participant.short_name:
                owners.setdefault(participant.short_name, set()).add(index)
        for region in self.regions:
            for constituency in region.constituencies:
                for station in constituency.stations:
                    unknown = sorted(key for key in station.results if key not in owners)
                    if unknown:
                        raise ValueError(
                            f"station {station.name!r} references unknown participants: {', '.join(unknown)}"
                        )
                    ambiguous = sorted(key for key in station.results if len(owners[key]) > 1)
                    if ambiguous:
                        raise ValueError(
                            f"station {station.name!r} uses ambiguous participant keys: {', '.join(ambiguous)}"
                        )
        return self


def validate_settings_update(payload: Dict[str, Any]) -> SettingsUpdateSchema:
    """Valida una actualización de configuración.

    Lanza ``ConfigurationError`` si algún campo es inválido.

    English:
        Validates a settings update. Raises ``ConfigurationError`` when a
        field is invalid.
    """
    try:
        return SettingsUpdateSchema.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid sample settings: {exc}") from exc


def validate_fixture(payload: Any) -> FixtureSchema:
    if not isinstance(payload, dict):
        raise ConfigurationError("Fixture must be a mapping")
    try:
        return FixtureSchema.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Fixture validation failed: {exc}") from exc
