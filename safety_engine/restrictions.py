"""
Dietary restriction reference data and helpers.

Defines the curated restriction set with categories, default medical severity,
synonyms, and free-from labels, plus utilities to resolve free-form user input
to canonical restriction ids.
"""

from __future__ import annotations

import unicodedata
from typing import Dict, Iterable, List, Optional

from .models import (
    DietaryRestriction,
    RestrictionCategory,
    RestrictionSeverity,
    UserRestriction,
)

_ALLERGY = RestrictionCategory.ALLERGY
_MEDICAL = RestrictionCategory.MEDICAL
_LIFESTYLE = RestrictionCategory.LIFESTYLE
_RELIGIOUS = RestrictionCategory.RELIGIOUS

DIETARY_RESTRICTIONS: Dict[str, DietaryRestriction] = {
    r.id: r
    for r in (
        DietaryRestriction(
            id="peanut_allergy",
            name="Peanut allergy",
            category=_ALLERGY,
            common_names=("peanut", "peanuts", "groundnut", "arachis"),
            cross_contamination_risk=True,
            medical_severity_default=RestrictionSeverity.LIFE_THREATENING,
            free_from_label="Peanut-free",
        ),
        DietaryRestriction(
            id="tree_nut_allergy",
            name="Tree nut allergy",
            category=_ALLERGY,
            common_names=("tree nuts", "nuts", "nut allergy", "nut_allergy", "almond", "cashew", "walnut"),
            cross_contamination_risk=True,
            medical_severity_default=RestrictionSeverity.LIFE_THREATENING,
            free_from_label="Nut-free",
        ),
        DietaryRestriction(
            id="shellfish_allergy",
            name="Shellfish allergy",
            category=_ALLERGY,
            common_names=("shellfish", "crustaceans", "molluscs", "shrimp"),
            cross_contamination_risk=True,
            medical_severity_default=RestrictionSeverity.LIFE_THREATENING,
            free_from_label="Shellfish-free",
        ),
        DietaryRestriction(
            id="fish_allergy",
            name="Fish allergy",
            category=_ALLERGY,
            common_names=("fish",),
            cross_contamination_risk=True,
            medical_severity_default=RestrictionSeverity.SEVERE,
            free_from_label="Fish-free",
        ),
        DietaryRestriction(
            id="egg_allergy",
            name="Egg allergy",
            category=_ALLERGY,
            common_names=("egg", "eggs"),
            medical_severity_default=RestrictionSeverity.SEVERE,
            free_from_label="Egg-free",
        ),
        DietaryRestriction(
            id="milk_allergy",
            name="Milk allergy",
            category=_ALLERGY,
            common_names=("milk", "dairy", "dairy allergy"),
            medical_severity_default=RestrictionSeverity.SEVERE,
            free_from_label="Dairy-free",
        ),
        DietaryRestriction(
            id="soy_allergy",
            name="Soy allergy",
            category=_ALLERGY,
            common_names=("soy", "soya", "soybeans"),
            medical_severity_default=RestrictionSeverity.SEVERE,
            free_from_label="Soy-free",
        ),
        DietaryRestriction(
            id="sesame_allergy",
            name="Sesame allergy",
            category=_ALLERGY,
            common_names=("sesame", "sesame seeds"),
            cross_contamination_risk=True,
            medical_severity_default=RestrictionSeverity.SEVERE,
            free_from_label="Sesame-free",
        ),
        DietaryRestriction(
            id="celiac_disease",
            name="Celiac disease",
            category=_MEDICAL,
            common_names=("celiac", "coeliac", "coeliac disease"),
            cross_contamination_risk=True,
            medical_severity_default=RestrictionSeverity.SEVERE,
            free_from_label="Gluten-free",
        ),
        DietaryRestriction(
            id="gluten_intolerance",
            name="Gluten intolerance",
            category=_MEDICAL,
            common_names=("gluten", "gluten sensitivity"),
            medical_severity_default=RestrictionSeverity.MODERATE,
            free_from_label="Gluten-free",
        ),
        DietaryRestriction(
            id="lactose_intolerance",
            name="Lactose intolerance",
            category=_MEDICAL,
            common_names=("lactose",),
            medical_severity_default=RestrictionSeverity.MILD,
            free_from_label="Lactose-free",
        ),
        DietaryRestriction(
            id="vegan",
            name="Vegan",
            category=_LIFESTYLE,
            common_names=("plant based", "plant-based"),
            medical_severity_default=RestrictionSeverity.MILD,
            free_from_label="Vegan",
        ),
        DietaryRestriction(
            id="vegetarian",
            name="Vegetarian",
            category=_LIFESTYLE,
            medical_severity_default=RestrictionSeverity.MILD,
            free_from_label="Vegetarian",
        ),
        DietaryRestriction(
            id="halal",
            name="Halal",
            category=_RELIGIOUS,
            medical_severity_default=RestrictionSeverity.MODERATE,
            free_from_label="Halal-friendly",
        ),
        DietaryRestriction(
            id="kosher",
            name="Kosher",
            category=_RELIGIOUS,
            medical_severity_default=RestrictionSeverity.MODERATE,
            free_from_label="Kosher-friendly",
        ),
    )
}


def _normalize(text: str) -> str:
    """Lowercase, strip accents, and fold separators to single spaces."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.lower().replace("_", " ").replace("-", " ").split())


def _build_synonym_mapping(restrictions: Iterable[DietaryRestriction]) -> Dict[str, str]:
    """Map any synonym (id, name, common name) to the canonical restriction id."""
    mapping: Dict[str, str] = {}
    for restriction in restrictions:
        for alias in (restriction.id, restriction.name) + restriction.common_names:
            mapping.setdefault(_normalize(alias), restriction.id)
    return mapping


SYNONYM_TO_ID: Dict[str, str] = _build_synonym_mapping(DIETARY_RESTRICTIONS.values())


def resolve_restriction_id(user_input: str) -> Optional[str]:
    """
    Resolve free-form restriction text to a canonical id.
    Falls back to None if we cannot map it.
    """
    return SYNONYM_TO_ID.get(_normalize(user_input))


def get_restriction(restriction_id: str) -> Optional[DietaryRestriction]:
    return DIETARY_RESTRICTIONS.get(restriction_id)


def restriction_label(restriction_id: str) -> str:
    """Human-friendly restriction name, falling back to the id itself."""
    if not restriction_id:
        return ""
    restriction = DIETARY_RESTRICTIONS.get(restriction_id)
    return restriction.name if restriction else restriction_id


def free_from_label(restriction_id: str) -> str:
    restriction = DIETARY_RESTRICTIONS.get(restriction_id)
    if restriction and restriction.free_from_label:
        return restriction.free_from_label
    return f"No {restriction_label(restriction_id).lower()} concerns"


def parse_restrictions(text: str) -> List[UserRestriction]:
    """
    Parse "peanut allergy:life_threatening,celiac" into active UserRestrictions.
    Names are resolved through the synonym table; unknown names are kept as
    lower-case ids. A missing severity uses the restriction's medical default.
    """
    parsed: List[UserRestriction] = []
    for token in (text or "").split(","):
        token = token.strip()
        if not token:
            continue
        name, _, severity = token.partition(":")
        restriction_id = resolve_restriction_id(name) or name.strip().lower().replace(" ", "_")
        if severity.strip():
            level = RestrictionSeverity.coerce(severity)
        else:
            reference = DIETARY_RESTRICTIONS.get(restriction_id)
            level = reference.medical_severity_default if reference else RestrictionSeverity.MODERATE
        parsed.append(UserRestriction(restriction_id=restriction_id, severity=level))
    return parsed
