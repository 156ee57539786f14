# === FILE: site_pdf/config.py ===
"""
Модуль для загрузки и валидации конфигурации генератора SitePDF.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

__all__ = [
    "Viewport",
    "PageOptions",
    "LaunchOptions",
    "SitePdfConfig",
    "load_config",
]

WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]


class Viewport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    device_scale_factor: float = Field(1.0, gt=0)


class PageOptions(BaseModel):
    """Настройки генерации одного PDF. Значения задачи перекрывают базовые."""
    model_config = ConfigDict(extra="forbid")

    path: Union[str, Callable[[str], str]] = Field(
        "[pathname].pdf", description="Путь к PDF относительно out_dir или функция от URL."
    )
    screen: bool = Field(False, description="Эмулировать media screen вместо print.")
    wait_until: WaitUntil = Field("networkidle", description="Событие окончания загрузки.")
    viewport: Optional[Viewport] = None
    navigation_timeout: Optional[float] = Field(None, ge=0, description="Таймаут навигации (мс).")
    pre_callback: Optional[Callable[[Any], Any]] = Field(None, description="Хук до навигации.")
    callback: Optional[Callable[[Any], Any]] = Field(None, description="Хук после навигации.")
    pdf: Union[Dict[str, Any], Callable[[Any], Any]] = Field(
        default_factory=dict, description="Параметры page.pdf() или функция от вкладки."
    )
    max_retries: int = Field(0, ge=0, description="Число повторных попыток.")
    isolated: bool = Field(False, description="Отдельный контекст браузера (cookies, cache).")
    throw_on_fail: Optional[bool] = Field(
        None, description="Провал последней попытки прерывает весь запуск."
    )
    exact_path: bool = Field(False, description="Не подбирать суффикс -N при коллизии имени.")

    def merged(self, overrides: Mapping[str, Any]) -> PageOptions:
        """Возвращает копию с перекрытыми полями (с валидацией)."""
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(overrides)
        return type(self).model_validate(data)


class LaunchOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    headless: bool = True
    executable_path: Optional[str] = None
    channel: Optional[str] = None
    args: List[str] = Field(default_factory=list)


class SitePdfConfig(BaseModel):
    """Конфигурация для одного запуска генерации."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    out_dir: Path = Field(..., description="Каталог собранного сайта; туда же пишутся PDF.")
    base_url: Optional[HttpUrl] = Field(None, description="URL уже запущенного сервера.")
    serve: bool = Field(True, description="Поднять локальный сервер над out_dir, если нет base_url.")
    host: str = Field("localhost", min_length=1)
    port: int = Field(0, ge=0, le=65535, description="0: любой свободный порт.")
    max_concurrent: Optional[int] = Field(None, ge=1, description="Максимум одновременных вкладок.")
    hard_fail: bool = Field(False, description="Значение throw_on_fail по умолчанию.")
    throw_errors: bool = Field(True, description="Пробрасывать итоговую ошибку запуска.")
    base_options: PageOptions = Field(default_factory=PageOptions)
    pages: Dict[str, Any] = Field(default_factory=dict, description="Локация -> настройки.")
    fallback: Any = Field(True, description="Настройки для страниц, не указанных в pages.")
    launch: LaunchOptions = Field(default_factory=LaunchOptions)
    json_report: Optional[Path] = None
    html_report: Optional[Path] = None

    @field_validator("base_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @model_validator(mode="after")
    def _check_out_dir_exists(self) -> SitePdfConfig:
        if not self.out_dir.is_dir():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(self.out_dir))
        return self

    @property
    def base_url_str(self) -> Optional[str]:
        return str(self.base_url).rstrip("/") if self.base_url is not None else None


_DEFAULT_CFG = Path("configs/site_pdf.yaml")


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


def load_config(path: Union[str, Path, None], **overrides: Any) -> SitePdfConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект SitePdfConfig.
    Относительный out_dir считается от каталога файла конфигурации.
    При отсутствии файла конфига или каталога out_dir бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG.resolve()
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    if "out_dir" in data and not Path(str(data["out_dir"])).expanduser().is_absolute():
        data["out_dir"] = path_obj.parent / str(data["out_dir"])
    data.update({k: v for k, v in overrides.items() if v is not None})

    return SitePdfConfig(**data)
