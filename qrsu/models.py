from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class ShortLink(Base):
    """Document at urls/{code}: one per shorten request, never deduplicated"""
    __tablename__ = "urls"

    code = Column(String(16), primary_key=True)
    long_url = Column(String(2048), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
