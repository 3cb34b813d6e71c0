"""Индекс коллекции: сопоставление запросов с путями папок."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from nema.models.run import Collection, CollectionItem

ROOT_FOLDER = "(root)"


@dataclass(frozen=True)
class IndexedItem:
    """Путь папок (от корня) и имя запроса."""

    path: tuple[str, ...]
    name: str


@dataclass(frozen=True)
class CollectionIndex:
    """Неизменяемый индекс, построенный один раз на прогон.

    ``id_to_path`` — id запроса → ``IndexedItem``.
    ``name_to_path`` — имя запроса → все пути, под которыми оно встречается
    (одинаковые имена в разных папках допустимы; при разрешении по имени
    используется первый записанный путь).
    """

    id_to_path: Mapping[str | int, IndexedItem] = field(default_factory=dict)
    name_to_path: Mapping[str, tuple[tuple[str, ...], ...]] = field(default_factory=dict)

    def resolve_path(
        self,
        item_id: str | int | None,
        item_name: str | None = None,
    ) -> tuple[str, ...] | None:
        """Разрешить путь папок: по id, затем по имени. ``None`` — не найден."""
        if item_id is not None and item_id in self.id_to_path:
            return self.id_to_path[item_id].path
        if item_name:
            paths = self.name_to_path.get(item_name)
            if paths:
                return paths[0]
        return None

    def resolve_folder(self, item_id: str | int | None, item_name: str | None = None) -> str:
        """Ключ корзины папки для запроса (``(root)`` если путь пуст/не найден)."""
        return folder_key(self.resolve_path(item_id, item_name))


def folder_key(path: tuple[str, ...] | list[str] | None) -> str:
    """Склеить путь папок в ключ ``A/B``; пустой путь — ``(root)``."""
    if not path:
        return ROOT_FOLDER
    return "/".join(path)


def build_collection_index(collection: Collection) -> CollectionIndex:
    """Обойти дерево коллекции в глубину и построить ``CollectionIndex``."""
    id_to_path: dict[str | int, IndexedItem] = {}
    name_to_path: dict[str, list[tuple[str, ...]]] = {}

    def walk(items: list[CollectionItem], ancestors: tuple[str, ...]) -> None:
        for idx, node in enumerate(items):
            node_name = node.name or f"unnamed_{idx}"
            if node.is_folder:
                walk(node.item or [], ancestors + (node_name,))
                continue

            if node.id is not None and node.id != "":
                id_to_path[node.id] = IndexedItem(path=ancestors, name=node_name)
            name_to_path.setdefault(node_name, []).append(ancestors)

    walk(collection.item, ())

    return CollectionIndex(
        id_to_path=MappingProxyType(id_to_path),
        name_to_path=MappingProxyType(
            {name: tuple(paths) for name, paths in name_to_path.items()}
        ),
    )
