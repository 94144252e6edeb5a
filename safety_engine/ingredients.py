"""
Ingredient risk reference data.

The engine only reads this data: an IngredientRiskLookup returns the curated
per-restriction risk ratings known for an ingredient name. IngredientCatalog is
the in-memory implementation, indexable by name or common name and loadable
from a CSV export of the ingredient_risk_assessments table.
"""

from __future__ import annotations

import csv
import logging
import re
import unicodedata
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import InvalidInput
from .models import Ingredient, IngredientRiskAssessment


class IngredientRiskLookup:
    """
    Base interface for any ingredient reference source (in-memory, DB, cache).
    """

    def risks_for(self, ingredient_name: str) -> List[IngredientRiskAssessment]:
        raise NotImplementedError


def normalize_name(text: str) -> str:
    """Lowercase, strip accents and punctuation for tolerant name matching."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]+", " ", stripped.lower()).strip()


class IngredientCatalog(IngredientRiskLookup):
    """
    Read-only index of ingredients and their risk assessments.
    """

    CSV_FIELDS: Tuple[str, ...] = (
        "ingredient",
        "restriction_id",
        "risk_level",
        "common_names",
        "risk_description",
        "verified_by_expert",
    )

    def __init__(self, ingredients: Optional[Iterable[Ingredient]] = None):
        self._by_name: Dict[str, Ingredient] = {}
        self.log = logging.getLogger(self.__class__.__name__)
        for ingredient in ingredients or []:
            self._index(ingredient)

    def __len__(self) -> int:
        return len({id(i) for i in self._by_name.values()})

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._by_name

    def _index(self, ingredient: Ingredient) -> None:
        for alias in (ingredient.name,) + tuple(ingredient.common_names):
            key = normalize_name(alias)
            if not key:
                continue
            # First seen wins to keep deterministic output
            self._by_name.setdefault(key, ingredient)

    def get(self, ingredient_name: str) -> Optional[Ingredient]:
        return self._by_name.get(normalize_name(ingredient_name))

    def risks_for(self, ingredient_name: str) -> List[IngredientRiskAssessment]:
        ingredient = self.get(ingredient_name)
        if ingredient is None:
            return []
        return list(ingredient.risk_assessments)

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Dict[str, str]]) -> "IngredientCatalog":
        """
        Build a catalog from {ingredient: {restriction_id: risk_level}}.
        """
        ingredients = [
            Ingredient(
                name=name,
                risk_assessments=tuple(
                    IngredientRiskAssessment(restriction_id=rid, risk_level=level)
                    for rid, level in (risks or {}).items()
                ),
            )
            for name, risks in mapping.items()
        ]
        return cls(ingredients)

    @classmethod
    def from_csv(cls, csv_path: str) -> "IngredientCatalog":
        """
        Load one row per (ingredient, restriction) pair. Rows without a
        restriction id only register the ingredient and its synonyms.
        """
        path = Path(csv_path)
        if not path.exists():
            raise FileNotFoundError(f"Ingredient catalog not found: {path}")

        log = logging.getLogger(cls.__name__)
        names: Dict[str, str] = {}
        synonyms: Dict[str, List[str]] = {}
        risks: Dict[str, List[IngredientRiskAssessment]] = {}

        with path.open("r", encoding="utf-8", newline="") as fh:
            reader = csv.DictReader(fh)
            for line_no, row in enumerate(reader, start=2):
                name = (row.get("ingredient") or "").strip()
                if not name:
                    log.warning("Skipping %s:%d without ingredient name", path.name, line_no)
                    continue
                key = normalize_name(name)
                names.setdefault(key, name)
                for alias in (row.get("common_names") or "").split("|"):
                    alias = alias.strip()
                    if alias and alias not in synonyms.setdefault(key, []):
                        synonyms[key].append(alias)

                restriction_id = (row.get("restriction_id") or "").strip()
                if not restriction_id:
                    continue
                try:
                    assessment = IngredientRiskAssessment(
                        restriction_id=restriction_id,
                        risk_level=row.get("risk_level") or "",
                        risk_description=(row.get("risk_description") or "").strip() or None,
                        verified_by_expert=_truthy(row.get("verified_by_expert")),
                    )
                except InvalidInput as exc:
                    log.warning("Skipping %s:%d: %s", path.name, line_no, exc)
                    continue
                risks.setdefault(key, []).append(assessment)

        ingredients = [
            Ingredient(
                name=names[key],
                common_names=tuple(synonyms.get(key, [])),
                risk_assessments=tuple(risks.get(key, [])),
            )
            for key in names
        ]
        return cls(ingredients)


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "y"}
