from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
import yaml

class EngineConfig(BaseModel):
    immediate_by_default: bool = Field(default=False)
    max_history_size: int = Field(default=50, gt=0)
    generation_timeout: Optional[float] = Field(default=None, gt=0)
    audit_after_update: bool = Field(default=True)

class ScoringConfig(BaseModel):
    high_priority_base: int = Field(default=90, ge=0, le=100)
    medium_priority_base: int = Field(default=75, ge=0, le=100)
    low_priority_base: int = Field(default=60, ge=0, le=100)
    distance_penalty: int = Field(default=10, ge=0, le=100)
    existing_content_penalty: int = Field(default=10, ge=0, le=100)

    def base_for(self, priority: str) -> int:
        return {
            "high": self.high_priority_base,
            "medium": self.medium_priority_base,
            "low": self.low_priority_base,
        }[priority]

class GeneratorConfig(BaseModel):
    model: str = Field(default="gpt-4o")
    base_url: Optional[str] = Field(default=None)
    api_key: str = Field(default="")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, gt=0)

class Config(BaseModel):
    engine: EngineConfig = Field(default_factory=EngineConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path):
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)
