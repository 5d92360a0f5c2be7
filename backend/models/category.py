# backend/models/category.py
from sqlalchemy import Column, Integer, String
from database import Base

# Items point at categories by name, not by id
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(String, nullable=True)
