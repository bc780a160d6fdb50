"""Admin dashboard summary."""

from pydantic import BaseModel

from models.product import ProductResponse
from models.manual import ManualResponse


class DashboardSummary(BaseModel):
    total_products: int
    total_manuals: int
    manuals_without_file: int
    recent_products: list[ProductResponse]
    recent_manuals: list[ManualResponse]
