"""
Inspection report persistence row.

Storage shape: a queryable ``project_id`` column plus one opaque JSON
``content`` blob holding the rest of the aggregate (results, signatures,
dates, derived scores). The blob is always rewritten whole — see
``app.models.inspection.InspectionReport.to_content``.
"""

from datetime import datetime, timezone

from app.models import db
from app.models.inspection import InspectionReport


class Report(db.Model):
    __tablename__ = "reports"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    content = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    project = db.relationship("Project", back_populates="reports")

    def to_domain(self) -> InspectionReport:
        return InspectionReport.from_content(self.id, self.project_id, self.content)

    def load_domain(self, report: InspectionReport) -> None:
        """Overwrite the row from the aggregate (whole-blob write)."""
        self.project_id = report.project_id
        self.content = report.to_content()

    def __repr__(self) -> str:
        status = (self.content or {}).get("status")
        return f"<Report #{self.id} project={self.project_id} {status}>"
