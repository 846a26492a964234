"""
Inspection report aggregate — in-memory domain representation.

A report is persisted as a queryable ``project_id`` column plus one opaque
JSON ``content`` blob (see ``app.models.report.Report``). Everything here
serialises to/from that blob as a single unit; there are no partial
sub-field updates.

Business rules:
- One InspectionItemResult per catalog item; checked when the draft is
  built, not re-validated afterwards.
- ``score``, ``evaluation`` and ``category_scores`` are derived data.
  Only ``apply_scores`` writes them, and only the lifecycle service calls it.
- Status values keep the Portuguese labels used by the field teams so
  stored content stays readable.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from app.utils.helpers import parse_date, parse_datetime, utcnow


class InspectionStatus(str, Enum):
    COMPLIANT = "Conforme"
    NON_COMPLIANT = "Não Conforme"
    NOT_APPLICABLE = "Não Aplicável"

    @classmethod
    def parse(cls, value) -> "InspectionStatus | None":
        """Accept the stored label, the enum name, or the short code."""
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text in (member.value, member.name):
                return member
        short = {"C": cls.COMPLIANT, "NC": cls.NON_COMPLIANT, "NA": cls.NOT_APPLICABLE}
        if text.upper() in short:
            return short[text.upper()]
        raise ValueError(f"Invalid inspection status: {value!r}")


class ReportStatus(str, Enum):
    DRAFT = "Draft"
    COMPLETED = "Completed"


SIGNATURE_SLOTS = ("inspector", "manager")

# Fields an action plan needs before a non-conformity counts as addressed
REQUIRED_ACTION_PLAN_FIELDS = ("actions", "responsible", "deadline")


@dataclass
class ActionResources:
    financial: bool = False
    labor: bool = False
    administrative: bool = False

    def to_dict(self) -> dict:
        return {
            "financial": self.financial,
            "labor": self.labor,
            "administrative": self.administrative,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "ActionResources":
        data = data or {}
        # fin / mo / adm are the keys written by the first mobile client
        return cls(
            financial=bool(data.get("financial", data.get("fin", False))),
            labor=bool(data.get("labor", data.get("mo", False))),
            administrative=bool(data.get("administrative", data.get("adm", False))),
        )


@dataclass
class ActionPlan:
    actions: str = ""
    responsible: str = ""
    deadline: date | None = None
    resources: ActionResources = field(default_factory=ActionResources)

    def missing_fields(self) -> list[str]:
        """Required fields that are still empty, in declaration order."""
        missing = []
        if not (self.actions or "").strip():
            missing.append("actions")
        if not (self.responsible or "").strip():
            missing.append("responsible")
        if self.deadline is None:
            missing.append("deadline")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    @property
    def is_empty(self) -> bool:
        return (
            not (self.actions or "").strip()
            and not (self.responsible or "").strip()
            and self.deadline is None
        )

    def copy(self) -> "ActionPlan":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "actions": self.actions,
            "responsible": self.responsible,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "resources": self.resources.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "ActionPlan | None":
        if data is None:
            return None
        return cls(
            actions=str(data.get("actions") or ""),
            responsible=str(data.get("responsible") or ""),
            deadline=parse_date(data.get("deadline")),
            resources=ActionResources.from_dict(data.get("resources")),
        )


@dataclass
class Photo:
    id: str
    url: str

    def to_dict(self) -> dict:
        return {"id": self.id, "url": self.url}

    @classmethod
    def from_dict(cls, data: dict) -> "Photo":
        return cls(id=str(data["id"]), url=str(data.get("url") or data.get("dataUrl") or ""))


@dataclass
class InspectionItemResult:
    item_id: str
    status: InspectionStatus | None = None
    comment: str = ""
    photos: list[Photo] = field(default_factory=list)
    action_plan: ActionPlan | None = None

    @property
    def is_answered(self) -> bool:
        return self.status is not None

    @property
    def is_non_conformity(self) -> bool:
        return self.status == InspectionStatus.NON_COMPLIANT

    def action_plan_gaps(self) -> list[str]:
        """Missing action-plan fields; only meaningful for a non-conformity."""
        if not self.is_non_conformity:
            return []
        if self.action_plan is None:
            return list(REQUIRED_ACTION_PLAN_FIELDS)
        return self.action_plan.missing_fields()

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "status": self.status.value if self.status else None,
            "comment": self.comment,
            "photos": [p.to_dict() for p in self.photos],
            "action_plan": self.action_plan.to_dict() if self.action_plan else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InspectionItemResult":
        return cls(
            item_id=str(data.get("item_id") or data.get("itemId")),
            status=InspectionStatus.parse(data.get("status")),
            comment=str(data.get("comment") or ""),
            photos=[Photo.from_dict(p) for p in data.get("photos") or []],
            action_plan=ActionPlan.from_dict(data.get("action_plan", data.get("actionPlan"))),
        )


@dataclass
class Signatures:
    inspector: str = ""
    manager: str = ""

    def get(self, slot: str) -> str:
        return getattr(self, slot)

    def set(self, slot: str, value: str) -> None:
        setattr(self, slot, value)

    def missing(self) -> list[str]:
        return [slot for slot in SIGNATURE_SLOTS if not (self.get(slot) or "").strip()]

    @property
    def any_recorded(self) -> bool:
        return len(self.missing()) < len(SIGNATURE_SLOTS)

    def to_dict(self) -> dict:
        return {"inspector": self.inspector, "manager": self.manager}

    @classmethod
    def from_dict(cls, data: dict | None) -> "Signatures":
        data = data or {}
        return cls(inspector=str(data.get("inspector") or ""), manager=str(data.get("manager") or ""))


@dataclass
class InspectionReport:
    """The central aggregate: one site visit for one project."""

    project_id: int
    results: list[InspectionItemResult]
    id: int | None = None
    inspection_date: date = field(default_factory=lambda: utcnow().date())
    created_date: datetime = field(default_factory=utcnow)
    closed_date: datetime | None = None
    inspector: str = ""
    status: ReportStatus = ReportStatus.DRAFT
    signatures: Signatures = field(default_factory=Signatures)
    score: int = 0
    evaluation: str = ""
    category_scores: dict[str, int] = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status == ReportStatus.COMPLETED

    def result_for(self, item_id: str) -> InspectionItemResult | None:
        for result in self.results:
            if result.item_id == item_id:
                return result
        return None

    def non_conformities(self) -> list[InspectionItemResult]:
        return [r for r in self.results if r.is_non_conformity]

    def apply_scores(self, score: int, evaluation: str, category_scores: dict[str, int]) -> None:
        self.score = score
        self.evaluation = evaluation
        self.category_scores = dict(category_scores)

    # ── Serialisation ────────────────────────────────────────────────────

    def to_content(self) -> dict:
        """The JSON blob stored in ``reports.content`` (everything but the keys)."""
        return {
            "inspection_date": self.inspection_date.isoformat() if self.inspection_date else None,
            "created_date": self.created_date.isoformat() if self.created_date else None,
            "closed_date": self.closed_date.isoformat() if self.closed_date else None,
            "inspector": self.inspector,
            "status": self.status.value,
            "results": [r.to_dict() for r in self.results],
            "signatures": self.signatures.to_dict(),
            "score": self.score,
            "evaluation": self.evaluation,
            "category_scores": dict(self.category_scores),
        }

    def to_dict(self) -> dict:
        data = {"id": self.id, "project_id": self.project_id}
        data.update(self.to_content())
        return data

    @classmethod
    def from_content(cls, report_id: int | None, project_id: int, content: dict) -> "InspectionReport":
        content = content or {}
        return cls(
            id=report_id,
            project_id=project_id,
            inspection_date=parse_date(content.get("inspection_date")) or utcnow().date(),
            created_date=parse_datetime(content.get("created_date")) or utcnow(),
            closed_date=parse_datetime(content.get("closed_date")),
            inspector=str(content.get("inspector") or ""),
            status=ReportStatus(content.get("status") or ReportStatus.DRAFT.value),
            results=[InspectionItemResult.from_dict(r) for r in content.get("results") or []],
            signatures=Signatures.from_dict(content.get("signatures")),
            score=int(content.get("score") or 0),
            evaluation=str(content.get("evaluation") or ""),
            category_scores={k: int(v) for k, v in (content.get("category_scores") or {}).items()},
        )
