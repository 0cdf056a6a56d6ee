"""
Catalog loader for domain cards and classes.

Loads catalogs from JSON content files. A path may be a single JSON file or a
directory of JSON files; each file holds either a list of entries or an
object with a "cards" / "classes" list.

Expected layout under a content directory:
    <content_dir>/domain_cards/*.json
    <content_dir>/classes/*.json
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from src.catalog.class_catalog import ClassCatalog, ClassDefinition
from src.catalog.domain_cards import DomainCard, DomainCardCatalog
from src.leveling.errors import CatalogLoadError

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Result of a loading operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    loaded: int = 0

    def merge(self, other: LoadResult) -> None:
        self.success = self.success and other.success
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.loaded += other.loaded


def _json_files(path: Path) -> list[Path]:
    if path.is_dir():
        return sorted(path.glob("*.json"))
    return [path]


def _load_entries(
    path: Path,
    list_key: str,
    parse: Callable[[dict[str, Any]], Any],
    register: Callable[[Any], None],
) -> LoadResult:
    """Parse every entry in the JSON file(s) at path and register it."""
    result = LoadResult(success=True)
    path = Path(path)

    if not path.exists():
        result.success = False
        result.errors.append(f"Catalog path not found: {path}")
        return result

    files = _json_files(path)
    if not files:
        result.warnings.append(f"No JSON files in {path}")

    for json_file in files:
        try:
            with open(json_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            result.success = False
            result.errors.append(f"Error reading {json_file}: {e}")
            continue

        entries = data.get(list_key, []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            result.success = False
            result.errors.append(f"{json_file}: expected a list of {list_key}")
            continue

        for index, entry in enumerate(entries):
            try:
                register(parse(entry))
                result.loaded += 1
            except (KeyError, TypeError, ValueError) as e:
                result.warnings.append(f"{json_file} entry {index}: skipped ({e})")

    return result


def load_domain_cards(path: Path) -> tuple[DomainCardCatalog, LoadResult]:
    """
    Load domain cards from a JSON file or directory.

    Returns:
        The catalog (possibly partial) and the load result
    """
    catalog = DomainCardCatalog()
    result = _load_entries(Path(path), "cards", DomainCard.from_dict, catalog.register)
    logger.info(f"Loaded {result.loaded} domain cards from {path}")
    return catalog, result


def load_classes(path: Path) -> tuple[ClassCatalog, LoadResult]:
    """
    Load class definitions from a JSON file or directory.

    Returns:
        The catalog (possibly partial) and the load result
    """
    catalog = ClassCatalog()
    result = _load_entries(Path(path), "classes", ClassDefinition.from_dict, catalog.register)
    logger.info(f"Loaded {result.loaded} classes from {path}")
    return catalog, result


def load_catalogs(content_dir: Path) -> tuple[DomainCardCatalog, ClassCatalog]:
    """
    Load both catalogs from a content directory.

    Raises:
        CatalogLoadError: If either catalog had unreadable files
    """
    content_dir = Path(content_dir)
    domain_cards, card_result = load_domain_cards(content_dir / "domain_cards")
    classes, class_result = load_classes(content_dir / "classes")

    card_result.merge(class_result)
    for warning in card_result.warnings:
        logger.warning(warning)
    if not card_result.success:
        raise CatalogLoadError(
            f"Failed to load catalogs from {content_dir}: {'; '.join(card_result.errors)}"
        )
    return domain_cards, classes
