# ------------------------------ IMPORTS ------------------------------
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any, Dict, Union
from datetime import datetime

Price = Union[int, float, str]

# ------------------------------ BASE MODELS ------------------------------

class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

# ------------------------------ REQUEST MODELS ------------------------------

class LoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "user@example.com",
                "password": "your_password"
            }
        }
    )

class TwoFactorRequest(CamelModel):
    two_factor_code: Optional[Union[str, int]] = None

class SearchTermIn(CamelModel):
    term: str = Field(..., min_length=1)
    min_price: Optional[Price] = None
    max_price: Optional[Price] = None

class SearchRequest(CamelModel):
    terms: List[SearchTermIn] = []
    page: Optional[int] = None
    page_size: Optional[int] = None

class LoadMoreRequest(CamelModel):
    search_context_id: str
    page_size: Optional[int] = None

class DetailsRequest(CamelModel):
    urls: List[str] = []

class PlaceBidRequest(CamelModel):
    product_id: str = Field(..., min_length=1, description="Product page URL")
    amount: float = Field(..., gt=0)

class UpdateBidPricesRequest(CamelModel):
    product_urls: List[str] = []

# ------------------------------ RESPONSE MODELS ------------------------------

class MessageResponse(CamelModel):
    success: bool
    message: str

class LoginResponse(MessageResponse):
    requires_two_factor: Optional[bool] = None

class LoginStatusResponse(CamelModel):
    success: bool = True
    logged_in: bool

class ProductOut(BaseModel):
    """Search result card, keyed the way the site's listing is consumed."""
    title: str
    price: str
    url: str
    time_remaining: str
    images: List[str] = []

class SearchResponse(CamelModel):
    success: bool = True
    results: List[ProductOut]
    count: int
    total_results: int
    current_page: int
    search_context_id: str
    duration: Optional[float] = None

class LoadMoreResponse(SearchResponse):
    current_term: str

class DetailOut(CamelModel):
    product_url: str
    price: Optional[str] = None
    time_remaining: Optional[str] = None
    error: Optional[str] = None

class DetailsResponse(CamelModel):
    success: bool = True
    updated_details: List[DetailOut]
    message: Optional[str] = None

class UpdateBidPricesResponse(CamelModel):
    success: bool = True
    updated_bids: List[DetailOut]
    count: int

class PlaceBidResponse(MessageResponse):
    details: Optional[Dict[str, Any]] = None

class BidRecordOut(CamelModel):
    """Bid ledger row."""
    id: int
    product_url: str
    auction_id: Optional[str] = None
    bid_amount: float
    title: Optional[str] = None
    thumbnail: Optional[str] = None
    current_price: Optional[str] = None
    time_remaining: Optional[str] = None
    placed_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# ------------------------------ END OF FILE ------------------------------
