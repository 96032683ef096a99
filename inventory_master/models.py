from sqlalchemy import Column, Integer, String, Text, Float, BigInteger, CheckConstraint, Index

from inventory_master.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True)
    # Not unique: duplicates are tolerated and reported by the import reconciler
    sku = Column(String(50), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, default="")
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)
    min_threshold = Column(Integer, nullable=False, default=5)
    purchase_price = Column(Float, nullable=False, default=0)
    selling_price = Column(Float, nullable=False, default=0)
    box_number = Column(String(100), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    last_updated = Column(BigInteger, nullable=False)  # epoch milliseconds


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_timestamp", "timestamp"),
    )

    id = Column(String(36), primary_key=True)
    # No foreign key: the ledger outlives products removed out of band
    product_id = Column(String(36), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    type = Column(String(3), CheckConstraint("type IN ('IN','OUT')"), nullable=False)
    quantity = Column(Integer, nullable=False)  # requested amount, never the clamped one
    quantity_before = Column(Integer)
    quantity_after = Column(Integer)
    reason = Column(Text, nullable=False, default="")
    timestamp = Column(BigInteger, nullable=False)  # epoch milliseconds
    user_id = Column(String(50), nullable=False)
