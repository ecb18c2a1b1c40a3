"""Event models for pub/sub publishing."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .commands import Action


@dataclass
class ActionEvent:
    """Published once per dispatch."""
    action: Action
    token: Optional[str]  # Raw token the action came from; None for fallbacks
    fallback: bool = False  # True when IDLE was chosen as the safe default
    reason: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
