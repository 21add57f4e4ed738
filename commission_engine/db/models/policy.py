from sqlalchemy import BigInteger, Column, Integer, Numeric, String

from commission_engine.db.base import Base


class CommissionPolicy(Base):
    __tablename__ = "commission_policies"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    standard_target = Column(BigInteger, nullable=False)
    advanced_target = Column(BigInteger, nullable=False)
    tier1_percent = Column(Numeric(7, 4), nullable=False)
    tier2_percent = Column(Numeric(7, 4), nullable=False)
    tier3_percent = Column(Numeric(7, 4), nullable=False)
