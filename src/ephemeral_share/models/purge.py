from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from ephemeral_share.config import MIB


class PurgeOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    action: Literal["deleted", "retained", "errored"]
    size_bytes: int = 0
    age_days: float = 0.0
    # None, пока файл моложе min_fileage
    max_age_days: Optional[float] = None
    error: Optional[str] = None

    @property
    def size_mib(self) -> float:
        return self.size_bytes / MIB


class PurgeSummary(BaseModel):
    deleted_count: int = 0
    deleted_bytes: int = 0
    retained_count: int = 0
    error_count: int = 0

    def add(self, outcome: PurgeOutcome) -> None:
        if outcome.action == "deleted":
            self.deleted_count += 1
            self.deleted_bytes += outcome.size_bytes
        elif outcome.action == "retained":
            self.retained_count += 1
        else:
            self.error_count += 1

    @property
    def deleted_mib(self) -> float:
        return self.deleted_bytes / MIB
