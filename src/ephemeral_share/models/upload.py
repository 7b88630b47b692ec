from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UploadRequest(BaseModel):
    """Всё, что ядру нужно знать о запросе на загрузку."""

    original_name: str
    tmp_path: Path
    client_address: str = ""
    id_length: Optional[int] = None
    # влияет только на отображение ответа
    formatted: bool = False


class StoredFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    extension: str = ""
    path: Path
    size_bytes: int

    @property
    def basename(self) -> str:
        return f"{self.id}.{self.extension}" if self.extension else self.id
