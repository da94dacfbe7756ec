# === FILE: site_capture/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера SiteCapture.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

__all__ = ("CrawlConfig", "load_config")


class CrawlConfig(BaseModel):
    """Конфигурация для одного запуска обхода сайта."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    target_url: HttpUrl = Field(..., description="Начальный URL обхода.")
    headers: Dict[str, str] = Field(
        default_factory=dict, description="Дополнительные HTTP-заголовки для каждого запроса."
    )
    max_depth: int = Field(5, ge=0, description="Максимальная глубина обхода ссылок.")
    max_retries: int = Field(3, ge=1, description="Число попыток загрузки одной страницы.")
    retry_delay: float = Field(1.0, ge=0, description="Пауза между попытками (секунд).")
    page_timeout: float = Field(30.0, gt=0, description="Таймаут загрузки страницы (секунд).")
    resource_timeout: float = Field(10.0, gt=0, description="Таймаут загрузки ресурса (секунд).")
    settle_delay: float = Field(1.0, ge=0, description="Ожидание после навигации (секунд).")
    politeness_delay: float = Field(0.5, ge=0, description="Пауза между страницами (секунд).")
    crawl_timeout: float = Field(300.0, gt=0, description="Общий таймаут обхода (секунд).")
    output_dir: Path = Field(Path("./responses"), description="Каталог для сохранённых ответов.")
    backend: Literal["browser", "http"] = Field("browser", description="Движок рендеринга.")
    headless: bool = Field(True, description="Запускать браузер без окна.")
    user_agent: Optional[str] = Field(None, min_length=1, description="Заголовок User-Agent.")
    scope: Literal["strict", "subdomains"] = Field(
        "strict", description="Политика принадлежности URL к сайту."
    )
    dedupe_resources: bool = Field(
        True, description="Загружать каждый ресурс не более одного раза за обход."
    )

    @field_validator("headers", mode="before")
    def _strip_header_names(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k).strip(): str(val).strip() for k, val in v.items()}
        return v

    @model_validator(mode="after")
    def _check_timeouts(self) -> CrawlConfig:
        if self.resource_timeout > self.page_timeout:
            raise ValueError("resource_timeout must not exceed page_timeout")
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


def read_config_file(path: Union[str, Path, None]) -> dict[str, Any]:
    """
    Читает YAML или JSON в словарь без валидации.
    Без явного пути использует configs/default.yaml, если он существует.
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


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> CrawlConfig:
    """
    Читает YAML или JSON, применяет переопределения и возвращает проверенный CrawlConfig.
    Переопределения со значением None игнорируются; заголовки объединяются
    с заголовками из файла.
    """
    data = read_config_file(path)
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "headers":
            merged = dict(data.get("headers") or {})
            merged.update(value)
            data["headers"] = merged
        else:
            data[key] = value

    return CrawlConfig(**data)
