"""
Scoring Engine — inspection results → category scores, overall score, label.

Pure and deterministic: no DB access, no clock, no mutation of its inputs.
The lifecycle service calls it on every save; nothing else may write the
derived fields on a report.

Per category:
    applicable = results of the category's items whose status != NotApplicable
    no applicable results   → 100   (an all-N/A section is not penalised)
    otherwise               → round_half_up(100 * compliant / applicable)

Overall = round_half_up(mean(category scores)) — every category weighs the
same regardless of its item count. Empty catalog → 100.

Unanswered results (status None) count as applicable but not compliant, so
a partially filled draft scores what it has proven so far.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from app.models.inspection import InspectionItemResult, InspectionStatus
from app.services.checklist_catalog import ChecklistCatalog, get_catalog

# (lower bound inclusive, label), checked top-down
EVALUATION_BANDS: tuple[tuple[int, str], ...] = (
    (90, "ÓTIMO"),
    (70, "BOM"),
    (50, "REGULAR"),
    (0, "RUIM"),
)

VACUOUS_CATEGORY_SCORE = 100


@dataclass(frozen=True)
class ScoreCard:
    score: int
    evaluation: str
    category_scores: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "evaluation": self.evaluation,
            "category_scores": dict(self.category_scores),
        }


def _ratio_percent(numerator: int, denominator: int) -> int:
    """round_half_up(100 * numerator / denominator) in exact integer math."""
    return (200 * numerator + denominator) // (2 * denominator)


def evaluation_for(score: int) -> str:
    for lower_bound, label in EVALUATION_BANDS:
        if score >= lower_bound:
            return label
    return EVALUATION_BANDS[-1][1]


def category_score(results: Iterable[InspectionItemResult]) -> int:
    applicable = [r for r in results if r.status != InspectionStatus.NOT_APPLICABLE]
    if not applicable:
        return VACUOUS_CATEGORY_SCORE
    compliant = sum(1 for r in applicable if r.status == InspectionStatus.COMPLIANT)
    return _ratio_percent(compliant, len(applicable))


def compute_scores(
    results: Iterable[InspectionItemResult],
    catalog: ChecklistCatalog | None = None,
) -> ScoreCard:
    """Compute per-category scores, the overall score and its evaluation label.

    Results whose item id is not in the catalog are ignored.
    """
    if catalog is None:
        catalog = get_catalog()

    by_category: dict[str, list[InspectionItemResult]] = {c.id: [] for c in catalog.categories}
    for result in results:
        category_id = catalog.category_of(result.item_id)
        if category_id is not None:
            by_category[category_id].append(result)

    category_scores = {
        category_id: category_score(category_results)
        for category_id, category_results in by_category.items()
    }

    if category_scores:
        overall = _ratio_percent(sum(category_scores.values()), 100 * len(category_scores))
    else:
        overall = VACUOUS_CATEGORY_SCORE

    return ScoreCard(
        score=overall,
        evaluation=evaluation_for(overall),
        category_scores=category_scores,
    )
