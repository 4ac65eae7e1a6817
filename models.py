# models.py
from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class Account(Base):
    __tablename__ = "accounts"
    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(254), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

class Student(Base):
    __tablename__ = "students"
    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    points = Column(Integer, nullable=False, default=0)
    rewards = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())

class History(Base):
    __tablename__ = "history"
    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    t = Column(BigInteger, nullable=False)
    points = Column(Integer, nullable=False)
    reason = Column(Text)
