"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables prefixed with TRUSTSTORE_
  - Fall back to a .env file in the working directory
  - Validate types and constraints at startup (passphrase length, file base)

Nested settings use env_nested_delimiter="__":

  TRUSTSTORE_BASE__KIND=file
  TRUSTSTORE_BASE__PATH=config/company-truststore.p12
  TRUSTSTORE_BASE__PASSWORD=s3cret!
  TRUSTSTORE_CERTIFICATES='[{"path": "certs/nexus.pem", "alias": "nexus.example.com"}]'
  TRUSTSTORE_OUTPUT_PATH=build/truststores/cacerts

Relative paths are resolved against `project_dir`; absolute paths are used
as given.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from truststore_assembler.domain.models import (
    DEFAULT_PASSPHRASE,
    CertificateEntry,
    TrustSource,
)
from truststore_assembler.environment import (
    DEFAULT_PASSWORD_VARIABLE,
    DEFAULT_PATH_VARIABLE,
    TrustStoreHandoff,
)

MIN_PASSPHRASE_LENGTH = 6


class BaseStoreSettings(BaseModel):
    """
    The trust store the assembly starts from.

      kind="default" → the platform CA bundle (passphrase "changeit" unless overridden)
      kind="file"    → an existing store at `path`, any supported format
      kind="empty"   → a brand-new store in the default format, written even with no certificates
    """

    kind: Literal["default", "empty", "file"] = "default"
    path: Path | None = Field(default=None, description="Existing store (kind=file only)")
    password: SecretStr = Field(
        default=SecretStr(DEFAULT_PASSPHRASE),
        description="Store passphrase; also protects any store derived from it",
    )

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: SecretStr) -> SecretStr:
        if len(value.get_secret_value()) < MIN_PASSPHRASE_LENGTH:
            raise ValueError(
                f"Trust store password must be at least {MIN_PASSPHRASE_LENGTH} characters long"
            )
        return value

    @model_validator(mode="after")
    def validate_path(self) -> BaseStoreSettings:
        if self.kind == "file" and self.path is None:
            raise ValueError("base.path is required when base.kind is 'file'")
        if self.kind != "file" and self.path is not None:
            raise ValueError(f"base.path is only allowed when base.kind is 'file', got {self.kind!r}")
        return self


class CertificateSettings(BaseModel):
    """One certificate to trust, stored under a (unique) alias such as the host name."""

    path: Path
    alias: str = Field(min_length=1)


class HandoffSettings(BaseModel):
    """Variable names used to advertise the assembled store."""

    path_variable: str = Field(default=DEFAULT_PATH_VARIABLE, min_length=1)
    password_variable: str = Field(default=DEFAULT_PASSWORD_VARIABLE, min_length=1)


class AppSettings(BaseSettings):
    """
    Root settings — aggregates all sub-settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="TRUSTSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    base: BaseStoreSettings = Field(default_factory=BaseStoreSettings)
    certificates: list[CertificateSettings] = Field(default_factory=list)
    project_dir: Path = Field(default_factory=Path.cwd)
    output_path: Path = Field(default=Path("build/truststores/cacerts"))
    handoff: HandoffSettings = Field(default_factory=HandoffSettings)
    emit_exports: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    def resolve(self, path: Path) -> Path:
        """Absolute paths as given, relative ones against project_dir."""
        if path.is_absolute():
            return path
        return self.project_dir / path

    def trust_source(self, platform_store: Path) -> TrustSource:
        password = self.base.password.get_secret_value()
        match self.base.kind:
            case "default":
                return TrustSource.platform_default(platform_store, password)
            case "empty":
                return TrustSource.empty(password)
            case _:
                assert self.base.path is not None  # guaranteed by validate_path
                return TrustSource.file(self.resolve(self.base.path), password)

    def certificate_entries(self) -> tuple[CertificateEntry, ...]:
        return tuple(
            CertificateEntry(path=self.resolve(cert.path), alias=cert.alias)
            for cert in self.certificates
        )

    def resolved_output_path(self) -> Path:
        return self.resolve(self.output_path)

    def trust_store_handoff(self) -> TrustStoreHandoff:
        return TrustStoreHandoff(
            path_variable=self.handoff.path_variable,
            password_variable=self.handoff.password_variable,
        )
