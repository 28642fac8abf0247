from sqlalchemy import Column, String, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base

JOB_STATUSES = ("active", "draft", "closed")


class Job(BaseModel, Base):
    __tablename__ = "jobs"

    company_id = Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    # Anonymous visitors only ever see active jobs
    status = Column(String(16), nullable=False, default="draft")

    company = relationship("Company", back_populates="jobs")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'draft', 'closed')", name="ck_jobs_status"),
        Index("ix_jobs_company_status", "company_id", "status"),
    )
