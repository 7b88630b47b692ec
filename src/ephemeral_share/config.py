# Файл: src/ephemeral_share/config.py

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


# --- 1. Срок хранения файлов ---
class RetentionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_filesize: int = Field(512 * MIB, description="upload size ceiling, bytes")
    min_fileage: float = Field(31, description="days every file is kept at least")
    max_fileage: float = Field(180, description="days the smallest files are kept")
    decay_exponent: float = Field(2, description="high values penalise larger files more")

    @model_validator(mode="after")
    def _check_bounds(self) -> "RetentionConfig":
        if self.max_filesize <= 0:
            raise ValueError("max_filesize must be positive")
        if not 0 <= self.min_fileage <= self.max_fileage:
            raise ValueError("expected 0 <= min_fileage <= max_fileage")
        if self.decay_exponent <= 0:
            raise ValueError("decay_exponent must be positive")
        return self


# --- 2. Длина случайных идентификаторов ---
class IdentifierConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_id_length: int = 3
    # равное min_id_length значение отключает выбор длины клиентом
    max_id_length: int = 24

    @model_validator(mode="after")
    def _check_bounds(self) -> "IdentifierConfig":
        if not 1 <= self.min_id_length <= self.max_id_length:
            raise ValueError("expected 1 <= min_id_length <= max_id_length")
        return self


class StorageConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    root: Path = Path("files")
    max_ext_len: int = Field(7, ge=0)
    auto_file_ext: bool = False
    upload_log: Optional[Path] = None


class HookConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    command: Optional[str] = Field(None, description="external program to call for each upload")
    timeout: float = Field(5 * 60, gt=0, description="seconds, bounded by the upload timeout")


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = 8000
    download_path: str = Field("{}", description="path part of the download url, {} = stored name")
    admin_email: str = "admin@example.com"
    upload_timeout: float = Field(5 * 60, gt=0, description="seconds a client may take to send one upload")


# --- 3. Единый объект конфигурации, передается явно во все компоненты ---
class ShareConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    identifiers: IdentifierConfig = Field(default_factory=IdentifierConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    hook: HookConfig = Field(default_factory=HookConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ShareConfig":
        return cls(
            retention=settings.retention,
            identifiers=settings.identifiers,
            storage=settings.storage,
            hook=settings.hook,
            server=settings.server,
        )


# --- 4. Чтение из окружения и .env ---
class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    identifiers: IdentifierConfig = Field(default_factory=IdentifierConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    hook: HookConfig = Field(default_factory=HookConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


_cached_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Возвращает синглтон-экземпляр настроек, создавая его при первом вызове.
    Ошибки валидации окружения не всплывают при импорте модуля.
    """
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = Settings()
    return _cached_settings
