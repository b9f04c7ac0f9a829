"""
Preset library endpoints.

Official presets and configs are read-only: saving over or deleting one is
refused with 403. Duplicate one to get an editable copy.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from statdeck.api.deps import get_library
from statdeck.models.failure import FailureKind, KnownError, ValidationFailedError
from statdeck.models.library import GamePreset, StatblockConfig
from statdeck.models.validation import (
    ValidationIssue,
    validate_game_preset,
    validate_statblock_config,
)
from statdeck.services.library import PresetLibrary

router = APIRouter(prefix="/library", tags=["library"])


class PresetListResponse(BaseModel):
    presets: list[dict[str, Any]]
    count: int


class ConfigListResponse(BaseModel):
    configs: list[dict[str, Any]]
    count: int


class PresetResponse(BaseModel):
    preset: dict[str, Any]


class ConfigResponse(BaseModel):
    config: dict[str, Any]


class DuplicateRecordRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class DeleteRecordResponse(BaseModel):
    id: str
    deleted: bool


def library_failure(library: PresetLibrary) -> KnownError:
    """The KnownError behind the library's most recent failed operation."""
    if library.last_failure is not None:
        return library.last_failure
    return KnownError(kind=FailureKind.UNKNOWN, message="Request failed", status_code=500)


def _user_record(record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    # The path decides the id; only seeding creates official records
    return {**data, "id": record_id, "isOfficial": False}


def parse_preset(record_id: str, data: dict[str, Any]) -> GamePreset:
    data = _user_record(record_id, data)
    issues = validate_game_preset(data)
    if issues:
        raise ValidationFailedError(issues, record="Preset")
    try:
        return GamePreset.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ValidationFailedError([ValidationIssue("preset", str(e))], record="Preset") from e


def parse_config(record_id: str, data: dict[str, Any]) -> StatblockConfig:
    data = _user_record(record_id, data)
    issues = validate_statblock_config(data)
    if issues:
        raise ValidationFailedError(issues, record="Statblock config")
    try:
        return StatblockConfig.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ValidationFailedError(
            [ValidationIssue("config", str(e))], record="Statblock config"
        ) from e


# --- Game presets ---


@router.get("/presets", response_model=PresetListResponse)
async def list_presets(
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> PresetListResponse:
    presets = await library.list_presets()
    return PresetListResponse(presets=[p.to_dict() for p in presets], count=len(presets))


@router.put("/presets/{preset_id}", response_model=PresetResponse)
async def save_preset(
    preset_id: str,
    body: dict[str, Any],
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> PresetResponse:
    """
    Create or replace a user preset.

    Returns 422 for an invalid preset, 403 when the id names an official one.
    """
    preset = parse_preset(preset_id, body)
    if not await library.save_preset(preset):
        raise library_failure(library)
    return PresetResponse(preset=preset.to_dict())


@router.delete("/presets/{preset_id}", response_model=DeleteRecordResponse)
async def delete_preset(
    preset_id: str,
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> DeleteRecordResponse:
    if not await library.delete_preset(preset_id):
        raise library_failure(library)
    return DeleteRecordResponse(id=preset_id, deleted=True)


@router.post(
    "/presets/{preset_id}/duplicate",
    response_model=PresetResponse,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_preset(
    preset_id: str,
    request: DuplicateRecordRequest,
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> PresetResponse:
    """Copy any preset, official included, as an editable user preset."""
    duplicate = await library.duplicate_preset(preset_id, request.name)
    if duplicate is None:
        raise library_failure(library)
    return PresetResponse(preset=duplicate.to_dict())


# --- Statblock configs ---


@router.get("/configs", response_model=ConfigListResponse)
async def list_configs(
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> ConfigListResponse:
    configs = await library.list_configs()
    return ConfigListResponse(configs=[c.to_dict() for c in configs], count=len(configs))


@router.put("/configs/{config_id}", response_model=ConfigResponse)
async def save_config(
    config_id: str,
    body: dict[str, Any],
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> ConfigResponse:
    config = parse_config(config_id, body)
    if not await library.save_config(config):
        raise library_failure(library)
    return ConfigResponse(config=config.to_dict())


@router.delete("/configs/{config_id}", response_model=DeleteRecordResponse)
async def delete_config(
    config_id: str,
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> DeleteRecordResponse:
    if not await library.delete_config(config_id):
        raise library_failure(library)
    return DeleteRecordResponse(id=config_id, deleted=True)


@router.post(
    "/configs/{config_id}/duplicate",
    response_model=ConfigResponse,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_config(
    config_id: str,
    request: DuplicateRecordRequest,
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> ConfigResponse:
    duplicate = await library.duplicate_config(config_id, request.name, request.description)
    if duplicate is None:
        raise library_failure(library)
    return ConfigResponse(config=duplicate.to_dict())
