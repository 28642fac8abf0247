from sqlalchemy import Column, String, CheckConstraint
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base

COMPANY_STATUSES = ("active", "draft", "archived")


class Company(BaseModel, Base):
    __tablename__ = "companies"

    name = Column(String(255), nullable=False)
    # Public careers page path segment, e.g. /acme-corp/careers
    slug = Column(String(128), nullable=False, unique=True, index=True)
    status = Column(String(16), nullable=False, default="draft")

    users = relationship("User", back_populates="company", passive_deletes=True)
    jobs = relationship(
        "Job",
        back_populates="company",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("status IN ('active', 'draft', 'archived')", name="ck_companies_status"),
    )
