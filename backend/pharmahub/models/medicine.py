"""
Medicine: global catalog entry shared by every tenant.
Dedup key is the case-insensitive name, enforced by a functional unique index.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Index, func

from pharmahub.db.base import Base


class Medicine(Base):
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    generic_name = Column(String(255), nullable=True)
    category = Column(String(128), nullable=True, index=True)
    description = Column(Text, nullable=True)
    image_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("uq_medicines_name_lower", func.lower(name), unique=True),
    )

    def __repr__(self):
        return f"<Medicine id={self.id} name={self.name}>"
