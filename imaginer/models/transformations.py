"""Per-kind transformation settings, validated when an image is written."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

TransformationKind = Literal["restore", "remove_background", "fill", "remove", "recolor"]


class _Config(BaseModel):
    model_config = ConfigDict(extra="forbid")


class RestoreConfig(_Config):
    kind: Literal["restore"] = "restore"


class RemoveBackgroundConfig(_Config):
    kind: Literal["remove_background"] = "remove_background"


class FillConfig(_Config):
    """Generative fill to a new aspect ratio."""
    kind: Literal["fill"] = "fill"
    aspect_ratio: Literal["1:1", "3:4", "9:16"]


class RemoveObjectConfig(_Config):
    kind: Literal["remove"] = "remove"
    prompt: str = Field(min_length=1)
    remove_shadow: bool = True
    multiple: bool = True


class RecolorConfig(_Config):
    kind: Literal["recolor"] = "recolor"
    prompt: str = Field(min_length=1)
    to: str = Field(min_length=1)  # target colour
    multiple: bool = True


TransformationConfig = Annotated[
    Union[RestoreConfig, RemoveBackgroundConfig, FillConfig, RemoveObjectConfig, RecolorConfig],
    Field(discriminator="kind"),
]
