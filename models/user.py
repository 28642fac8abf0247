from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

USER_ROLES = ("admin", "recruiter", "candidate")


class User(BaseModel, Base):
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default="candidate")
    # Recruiters must point at a company; enforced by the user schemas / create_user
    company_id = Column(
        String(36),
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    company = relationship("Company", back_populates="users")
    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'recruiter', 'candidate')", name="ck_users_role"),
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @property
    def company_slug(self):
        return self.company.slug if self.company is not None else None

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"
