"""Role model: a named set of back-office permissions."""

from sqlalchemy import JSON, Column, Integer, String

from personahub.db.base import Base


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)

    # ["ai", "conversations", ...] (values of domain.permissions.Permission)
    permissions = Column(JSON, nullable=False, default=list)
