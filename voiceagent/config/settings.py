"""Typed, validated views over configuration sections."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models.commands import Action


class AudioSettings(BaseModel):
    """Capture and push-to-talk clip settings."""
    sample_rate: int = Field(16000, gt=0)
    channels: int = Field(1, ge=1)
    chunk_size: int = Field(1024, gt=0)
    loop_seconds: float = Field(30.0, gt=0)
    pre_roll_seconds: float = Field(0.5, ge=0)
    max_record_seconds: float = Field(10.0, gt=0)
    min_record_seconds: float = Field(0.25, ge=0)
    device_index: Optional[int] = None
    clip_directory: Optional[str] = None

    @model_validator(mode='after')
    def check_durations(self) -> 'AudioSettings':
        if self.min_record_seconds > self.max_record_seconds:
            raise ValueError("min_record_seconds must not exceed max_record_seconds")
        if self.max_record_seconds > self.loop_seconds:
            raise ValueError("max_record_seconds must fit inside the capture loop")
        return self


class CommandSettings(BaseModel):
    """Command resolution settings."""
    model: str = "gpt-4o-mini"
    max_tokens: int = Field(4, gt=0)
    temperature: float = Field(0.0, ge=0, le=2)
    cache_heuristic_matches: bool = True
    cancel_stale: bool = False
    keywords: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator('keywords')
    @classmethod
    def check_keyword_actions(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        valid = {action.value for action in Action}
        unknown = [name for name in value if name.strip().upper() not in valid]
        if unknown:
            raise ValueError(f"Unknown actions in keywords: {', '.join(unknown)}")
        return {name.strip().upper(): keywords for name, keywords in value.items()}


class InputSettings(BaseModel):
    """Keyboard gesture and polling loop settings."""
    record_key: str = "v"
    text_key: str = "t"
    tick_seconds: float = Field(0.05, gt=0)
