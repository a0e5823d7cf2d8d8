from sqlalchemy import Column, Integer, String, DateTime, JSON
from cohort_engine.database import Base
from datetime import datetime

class Document(Base):
    __tablename__ = "documents"
    
    collection = Column(String(64), primary_key=True)
    id = Column(String(128), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    version = Column(Integer, nullable=False, default=1)  # Растет при каждой записи
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
