from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.base_class import Base

ROLE_NAMES = ("admin", "bottlecop", "console", "observer", "analyst", "sampler")


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # salt$digest
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    user_roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Role(Base):
    __tablename__ = "roles"
    __table_args__ = (
        CheckConstraint(
            "role_name IN (" + ", ".join(f"'{name}'" for name in ROLE_NAMES) + ")",
            name="ck_roles_role_name",
        ),
    )

    role_id = Column(Integer, primary_key=True, autoincrement=True)
    role_name = Column(String(20), unique=True, nullable=False)
    role_description = Column(String(255), nullable=True)

    user_roles = relationship("UserRole", back_populates="role", cascade="all, delete-orphan")


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),)

    user_role_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.role_id", ondelete="CASCADE"), nullable=False)

    user = relationship("User", back_populates="user_roles")
    role = relationship("Role", back_populates="user_roles")
