"""Утилиты для выбора изображений товаров."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

DEFAULT_PLACEHOLDER = "/images/placeholder.svg"

_PUBLIC_PREFIX = "public/"

# snake_case атрибут -> ключ из JSON каталога
_CAMEL_KEYS = {"local_path": "localPath", "is_primary": "isPrimary"}


@dataclass(frozen=True)
class ProductImage:
    url: Optional[str] = None
    local_path: Optional[str] = None
    is_primary: Optional[bool] = None


@dataclass(frozen=True)
class ResolutionRequest:
    primary_image_url: Optional[str] = None
    images: Optional[Sequence[Any]] = field(default=None)
    placeholder: str = DEFAULT_PLACEHOLDER


def _field(image: Any, name: str) -> Any:
    """Читает поле изображения из dataclass, ORM-строки или словаря."""

    if image is None:
        return None
    if isinstance(image, Mapping):
        value = image.get(name)
        if value is None:
            value = image.get(_CAMEL_KEYS.get(name, name))
        return value
    return getattr(image, name, None)


def normalize_public_path(path: Optional[str]) -> Optional[str]:
    """Приводит локальный путь к виду ``/images/...``.

    Случайный префикс ``public/`` отрезается, ведущий слэш добавляется,
    если его нет. Существование файла не проверяется.
    """

    if not path:
        return None
    if path.startswith(_PUBLIC_PREFIX):
        path = path[len(_PUBLIC_PREFIX):]
    if not path.startswith("/"):
        path = f"/{path}"
    return path


def resolve_product_image_src(
    primary_image_url: Optional[str] = None,
    images: Optional[Iterable[Any]] = None,
    placeholder: str = DEFAULT_PLACEHOLDER,
) -> str:
    """Возвращает адрес картинки товара для отображения.

    Порядок: локальный файл главного изображения, локальный файл первого,
    ``primary_image_url``, ``url`` первого изображения, заглушка.
    Локальные файлы идут раньше удалённых ссылок: не нужна сеть. Если
    помечено несколько главных изображений, берётся первое из них.
    """

    image_list = list(images or [])
    primary = next((image for image in image_list if _field(image, "is_primary")), None)
    first = image_list[0] if image_list else None

    candidates = (
        normalize_public_path(_field(primary, "local_path")),
        normalize_public_path(_field(first, "local_path")),
        primary_image_url,
        _field(first, "url"),
        placeholder,
    )
    return next((candidate for candidate in candidates if candidate), "")


def resolve_request(request: ResolutionRequest) -> str:
    return resolve_product_image_src(
        primary_image_url=request.primary_image_url,
        images=request.images,
        placeholder=request.placeholder,
    )
