"""
Mission Models
Admin-defined mission templates and the per-user daily progress entries.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

MISSION_TYPES = ("daily", "weekly", "special")


class MissionDefinition(BaseModel):
    """Mission template at ``missions/{id}``."""

    title: str = Field(min_length=1, max_length=120)
    description: str = ""
    xp_reward: int = Field(default=0, ge=0)
    points_reward: int = Field(default=0, ge=0)
    type: str = "daily"
    requirement: int = Field(default=1, ge=1, description="Progress needed to complete")
    icon: str = "target"
    active: bool = True

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in MISSION_TYPES:
            raise ValueError("Invalid mission type")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class MissionState(BaseModel):
    """One entry of the ``missions`` map in ``users/{uid}/dailyMissions/{date}``."""

    mission_id: str
    progress: int = 0
    completed: bool = False
    claimed: bool = False
    completed_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
