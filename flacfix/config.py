from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .encoder import OutputMode
from .merge import normalize_targets
from .meta_keys import DEFAULT_MERGE_TARGETS, MUSICBRAINZ_PREFIX


class LibrarySettings(BaseModel):
    include_extensions: List[str] = Field(default_factory=lambda: [".flac"])
    exclude_patterns: List[str] = Field(default_factory=list)

    @field_validator("include_extensions", mode="before")
    @classmethod
    def _dotted(cls, values: List[str]) -> List[str]:
        return [v if v.startswith(".") else f".{v}" for v in values]


class FixSettings(BaseModel):
    fix_mbids: bool = False
    embed_cover: bool = False
    write: bool = False
    cover_name: str = "cover.jpg"
    merge_tags: List[str] = Field(default_factory=lambda: list(DEFAULT_MERGE_TARGETS))
    warn_prefix: str = MUSICBRAINZ_PREFIX

    @field_validator("merge_tags", mode="before")
    @classmethod
    def _split_tags(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            value = value.split(",")
        return normalize_targets(value)


class SyncSettings(BaseModel):
    output_root: Optional[Path] = None
    encoder: List[str] = Field(default_factory=lambda: ["opusenc"])
    target_extension: str = ".opus"
    temp_suffix: str = ".tmp"
    prune: bool = True
    workers: int = Field(default=1, ge=1)
    output_mode: OutputMode = OutputMode.CAPTURE_ON_FAILURE

    @field_validator("output_root", mode="before")
    @classmethod
    def _expand_output(cls, value: Optional[str | Path]) -> Optional[Path]:
        if value is None:
            return None
        return Path(value).expanduser().resolve()

    @field_validator("encoder", mode="before")
    @classmethod
    def _split_encoder(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            value = value.split()
        if not value:
            raise ValueError("encoder command must not be empty")
        return list(value)

    @field_validator("target_extension", mode="before")
    @classmethod
    def _dotted(cls, value: str) -> str:
        return value if value.startswith(".") else f".{value}"


class Settings(BaseModel):
    library: LibrarySettings = LibrarySettings()
    fix: FixSettings = FixSettings()
    sync: SyncSettings = SyncSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Optional[Path]:
    if explicit_path:
        if not explicit_path.exists():
            raise FileNotFoundError(f"Config file {explicit_path} does not exist.")
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "flacfix.yaml", cwd / "flacfix.yml"):
        if candidate.exists():
            return candidate
    return None


def load_settings(explicit_path: Optional[Path] = None) -> Settings:
    path = find_config(explicit_path)
    if path is None:
        return Settings()
    return Settings.load(path)
