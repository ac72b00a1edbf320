"""Configuration models for property extraction and data organization."""

from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .types import OrganizerType, PropertyType


class PropertyInstruction(BaseModel):
    """One property to extract from every page.

    Args:
        name: Property name as it appears in the Notion database
        type: Declared extraction type (may differ from the stored type)
        key: Output key. Defaults to the normalized property name.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    name: str
    type: PropertyType
    key: Optional[str] = None


class OrganizerConfig(BaseModel):
    """How a page collection is reshaped."""

    model_config = ConfigDict(extra="ignore")

    organizer: str = OrganizerType.SIMPLE_LIST.value
    properties: List[PropertyInstruction] = Field(default_factory=list)
    sort_by: Optional[str] = None
    sort_order: str = "asc"
    group_by: Optional[str] = None
    parent_field: str = "parent_id"

    @model_validator(mode="after")
    def check_group_by(self) -> "OrganizerConfig":
        if self.organizer == OrganizerType.GROUPED_BY.value and not self.group_by:
            raise ValueError("group_by is required for the grouped_by organizer")
        return self


ConfigLike = Union[OrganizerConfig, Mapping[str, Any]]
InstructionLike = Union[PropertyInstruction, Mapping[str, Any]]


def as_organizer_config(config: Optional[ConfigLike]) -> OrganizerConfig:
    """Validate a mapping into an OrganizerConfig; models pass through."""
    if isinstance(config, OrganizerConfig):
        return config
    return OrganizerConfig.model_validate(dict(config or {}))


def as_instruction(instruction: InstructionLike) -> PropertyInstruction:
    if isinstance(instruction, PropertyInstruction):
        return instruction
    return PropertyInstruction.model_validate(dict(instruction))
