from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field, model_validator

from imaginer.models.transformations import TransformationConfig, TransformationKind


class Image(Document):
    id: int
    owner_id: Indexed(int)
    title: str
    kind: TransformationKind
    config: TransformationConfig
    public_id: Indexed(str)  # CDN asset id, matched against search results
    secure_url: str
    width: int | None = None
    height: int | None = None
    transformation_url: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def _kind_matches_config(self) -> "Image":
        if self.config.kind != self.kind:
            raise ValueError(f"config is for {self.config.kind!r}, image kind is {self.kind!r}")
        return self

    class Settings:
        name = "images"
        indexes = [
            [("updated_at", -1), ("_id", -1)],
        ]
