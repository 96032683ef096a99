from pydantic import BaseModel, Field
from typing import Optional, List, Literal


TransactionType = Literal["IN", "OUT"]
Language = Literal["en", "bn", "hi"]

# Largest count a 32-bit INTEGER column holds
MAX_QUANTITY = 2**31 - 1


class ProductBase(BaseModel):
    sku: str
    name: str
    category: str
    quantity: int = Field(default=0, ge=0)
    min_threshold: int = Field(default=5, ge=0)
    purchase_price: float = Field(default=0, ge=0)
    selling_price: float = Field(default=0, ge=0)
    box_number: str
    description: str = ""


class ProductCreate(ProductBase):
    sku: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    quantity: int = Field(default=0, ge=0, le=MAX_QUANTITY)
    min_threshold: int = Field(default=5, ge=0, le=MAX_QUANTITY)
    box_number: str = Field(min_length=1)


class ProductUpdate(BaseModel):
    """Partial edit of a product. Quantity is deliberately absent: it only
    moves through stock movements or bulk import."""
    sku: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    min_threshold: Optional[int] = Field(default=None, ge=0, le=MAX_QUANTITY)
    purchase_price: Optional[float] = Field(default=None, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)
    box_number: Optional[str] = None
    description: Optional[str] = None


class ProductOut(ProductBase):
    id: str
    last_updated: int

    class Config:
        from_attributes = True


class StockMovementCreate(BaseModel):
    product_id: str
    transaction_type: TransactionType
    quantity: int = Field(ge=1, le=MAX_QUANTITY)
    reason: str = ""
    box_number: Optional[str] = None


class TransactionOut(BaseModel):
    id: str
    product_id: str
    product_name: str
    type: TransactionType
    quantity: int
    quantity_before: Optional[int] = None
    quantity_after: Optional[int] = None
    reason: str = ""
    timestamp: int
    user_id: str

    class Config:
        from_attributes = True


class MovementResult(BaseModel):
    product: ProductOut
    transaction: TransactionOut
    quantity_before: int
    quantity_after: int
    relocated: bool = False
    stock_out: bool = False


class InventoryStats(BaseModel):
    total_items: int = 0
    low_stock_items: int = 0
    out_of_stock: int = 0
    total_value: float = 0
    total_cost: float = 0


class MovementSummary(BaseModel):
    product_id: str
    product_name: str
    total_in: int = 0
    total_out: int = 0
    net_movement: int = 0


class DailySaleLine(BaseModel):
    timestamp: int
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    total: float


class DailySalesReport(BaseModel):
    day: str
    lines: List[DailySaleLine] = Field(default_factory=list)
    total_quantity: int = 0
    total_revenue: float = 0


class RangeSummary(BaseModel):
    start: str
    end: str
    transaction_count: int = 0
    total_in: int = 0
    total_out: int = 0
    total_revenue: float = 0


class InsightItem(BaseModel):
    title: str = ""
    description: str = ""
    priority: Literal["high", "medium", "low"] = "medium"
    category: Literal["risk", "opportunity", "efficiency"] = "efficiency"
    action: str = ""


class ForecastItem(BaseModel):
    product_name: str = ""
    trend: Literal["increasing", "decreasing", "stable"] = "stable"
    reasoning: str = ""


class InsightReport(BaseModel):
    summary: str = ""
    insights: List[InsightItem] = Field(default_factory=list)
    forecast: List[ForecastItem] = Field(default_factory=list)
    available: bool = True
    language: Language = "en"
    generated_at: Optional[int] = None


class InsightStatus(BaseModel):
    available: bool
    reason: Optional[str] = None


class ImportSummary(BaseModel):
    imported: int = 0
    created: int = 0
    updated: int = 0
    duplicate_skus: List[str] = Field(default_factory=list)


class BackupSnapshot(BaseModel):
    version: str = "1.0"
    timestamp: int
    products: List[ProductOut] = Field(default_factory=list)
    transactions: List[TransactionOut] = Field(default_factory=list)


class RestoreSummary(BaseModel):
    products: ImportSummary
    transactions_added: int = 0
