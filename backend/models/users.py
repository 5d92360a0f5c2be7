# backend/models/users.py
from sqlalchemy import Column, Integer, String
from database import Base

ROLE_SUPERADMIN = "superadmin"
ROLE_SUBADMIN = "subadmin"

# Staff account allowed to record stock; superadmins also manage sub-admins and the audit log
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_SUBADMIN)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)

    @property
    def is_superadmin(self) -> bool:
        return (self.role or "").lower() == ROLE_SUPERADMIN
