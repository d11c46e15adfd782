from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from infra.db.session import Base

class CategoryRecord(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, server_default=func.now())
    skills = relationship("SkillRecord", back_populates="category",
                          order_by="SkillRecord.id", cascade="all, delete-orphan")

class SkillRecord(Base):
    __tablename__ = "skills"
    __table_args__ = (UniqueConstraint("category_id", "name"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    category = relationship("CategoryRecord", back_populates="skills")
    competencies = relationship("CompetencyRecord", back_populates="skill",
                                order_by="CompetencyRecord.id", cascade="all, delete-orphan")

class CompetencyRecord(Base):
    __tablename__ = "competencies"
    __table_args__ = (UniqueConstraint("skill_id", "name"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    skill_id = Column(Integer, ForeignKey("skills.id"), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    skill = relationship("SkillRecord", back_populates="competencies")
