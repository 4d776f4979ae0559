"""
Модуль для загрузки и валидации конфигурации LinkScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from link_scout.crawler.fetcher import DEFAULT_USER_AGENT
from link_scout.crawler.patterns import compile_pattern
from link_scout.utils import ensure_scheme

__all__ = ["CheckerConfig", "load_config", "read_config_file", "ValidationError"]

ReportFormat = Literal["text", "json", "csv", "html"]


class CheckerConfig(BaseModel):
    """Конфигурация для одного запуска проверки ссылок."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: Optional[str] = Field(None, description="Базовый URL для поиска sitemap.")
    sitemap: Optional[str] = Field(None, description="URL или путь к файлу sitemap.")
    concurrency: int = Field(200, ge=1, description="Одновременных проверок ссылок на странице.")
    page_concurrency: int = Field(10, ge=1, description="Одновременно обрабатываемых страниц.")
    timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    retries: int = Field(1, ge=0, description="Число повторов при сетевых ошибках.")
    retry_delay: float = Field(1.0, ge=0, description="Базовая пауза между повторами (секунд).")
    rate_limit: float = Field(0.0, ge=0, description="Лимит запросов в секунду (0 = без лимита).")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    check_external: bool = Field(False, description="Проверять внешние ссылки.")
    skip_resources: bool = Field(False, description="Не проверять теги <link> и <script>.")
    exclude: List[str] = Field(default_factory=list, description="Шаблоны исключаемых URL.")
    include: List[str] = Field(default_factory=list, description="Шаблоны проверяемых URL.")
    default_excludes: bool = Field(False, description="Добавить стандартные исключения.")
    format: ReportFormat = Field("text", description="Формат отчёта.")
    output: Optional[Path] = Field(None, description="Файл отчёта (stdout, если не указан).")
    scan_timeout: Optional[float] = Field(None, gt=0, description="Ограничение всего прогона (секунд).")

    @field_validator("url", mode="before")
    def _add_scheme(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip():
            return ensure_scheme(v).rstrip("/")
        return v

    @field_validator("exclude", "include", mode="before")
    def _single_pattern(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v] if v else []
        return v

    @field_validator("exclude", "include")
    def _compile_patterns(cls, v: List[str]) -> List[str]:
        # ConfigError is a ValueError, pydantic reports it as a validation error
        for pattern in v:
            compile_pattern(pattern)
        return v

    @model_validator(mode="after")
    def _check_source(self) -> CheckerConfig:
        if bool(self.url) == bool(self.sitemap):
            raise ValueError("exactly one of 'url' or 'sitemap' must be provided")
        return self


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def read_config_file(path: Union[str, Path, None]) -> Dict[str, Any]:
    """
    Читает YAML или JSON и возвращает словарь настроек без проверки схемы.
    Без пути используется configs/default.yaml, если он существует, иначе {}.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return {}
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def load_config(path: Union[str, Path, None], **overrides: Any) -> CheckerConfig:
    """
    Читает конфиг и возвращает проверенный объект CheckerConfig.
    Значения из ``overrides`` (кроме None) перекрывают значения из файла.
    """
    data = read_config_file(path)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return CheckerConfig(**data)
