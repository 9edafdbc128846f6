# ------------------------------ IMPORTS ------------------------------
import time
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.database import get_db
from core.database.db_service import DatabaseService
from core.utils.api_helpers import validate_credentials
from .exceptions import LoginError, TwoFactorError, SessionError, InvalidProductUrlError, SearchContextNotFound
from .search_context import SearchTerm
from .service import BuyeeService
from .schemas import (
    LoginRequest,
    LoginResponse,
    LoginStatusResponse,
    TwoFactorRequest,
    MessageResponse,
    SearchRequest,
    SearchResponse,
    LoadMoreRequest,
    LoadMoreResponse,
    DetailsRequest,
    DetailsResponse,
    PlaceBidRequest,
    PlaceBidResponse,
    UpdateBidPricesRequest,
    UpdateBidPricesResponse,
    BidRecordOut,
)

logger = logging.getLogger(__name__)

# ------------------------------ ROUTER SETUP ------------------------------
router = APIRouter()

# ------------------------------ SERVICES ------------------------------
buyee_service = BuyeeService()

def get_buyee_service() -> BuyeeService:
    """Dependency to get the shared BuyeeService instance."""
    return buyee_service

# ------------------------------ AUTHENTICATION ENDPOINTS ------------------------------

@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True, tags=["Authentication"])
async def login(request: LoginRequest, service: BuyeeService = Depends(get_buyee_service)) -> LoginResponse:
    """Log in to Buyee; may stop at a two-factor challenge."""
    validate_credentials(request.username, request.password)

    try:
        result = await service.login(request.username, request.password)
    except LoginError as e:
        logger.error(f"Login failed: {e}")
        raise HTTPException(status_code=500, detail=str(e) or "Login failed")

    if result.requires_two_factor:
        return LoginResponse(success=True, requires_two_factor=True, message=result.message)
    return LoginResponse(success=result.success, message=result.message)

@router.post("/login-two-factor", response_model=MessageResponse, tags=["Authentication"])
async def login_two_factor(request: TwoFactorRequest, service: BuyeeService = Depends(get_buyee_service)) -> MessageResponse:
    """Finish a pending login with the six-digit code."""
    if request.two_factor_code in (None, ""):
        raise HTTPException(status_code=400, detail="Two-factor code is required")

    try:
        result = await service.submit_two_factor_code(request.two_factor_code)
    except TwoFactorError as e:
        logger.error(f"Two-factor authentication failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return MessageResponse(success=result.success, message=result.message)

@router.get("/login-status", response_model=LoginStatusResponse, tags=["Authentication"])
async def login_status(service: BuyeeService = Depends(get_buyee_service)) -> LoginStatusResponse:
    """Report whether the stored session still holds the required cookies."""
    return LoginStatusResponse(logged_in=service.check_login_state())

# ------------------------------ SEARCH ENDPOINTS ------------------------------

@router.post("/search", response_model=SearchResponse, tags=["Search"])
async def search(request: SearchRequest, service: BuyeeService = Depends(get_buyee_service)) -> SearchResponse:
    """Search the first term and open a search context for /load-more."""
    if not request.terms:
        raise HTTPException(status_code=400, detail="No search terms provided")

    start_time = time.perf_counter()
    terms = [SearchTerm(term=t.term, min_price=t.min_price, max_price=t.max_price) for t in request.terms]
    context, products = await service.search(terms)

    return SearchResponse(
        results=products,
        count=len(products),
        total_results=context.total_results,
        current_page=context.current_page,
        search_context_id=context.id,
        duration=round(time.perf_counter() - start_time, 2),
    )

@router.post("/load-more", response_model=LoadMoreResponse, tags=["Search"])
async def load_more(request: LoadMoreRequest, service: BuyeeService = Depends(get_buyee_service)) -> LoadMoreResponse:
    """Fetch the next block of results for an existing search context."""
    start_time = time.perf_counter()

    try:
        context, products = await service.load_more(request.search_context_id)
    except SearchContextNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return LoadMoreResponse(
        results=products,
        count=len(products),
        total_results=context.total_results,
        current_term=context.current_term.term,
        current_page=context.current_page,
        search_context_id=context.id,
        duration=round(time.perf_counter() - start_time, 2),
    )

# ------------------------------ DETAIL ENDPOINTS ------------------------------

@router.post("/details", response_model=DetailsResponse, response_model_exclude_none=True, tags=["Details"])
async def details(request: DetailsRequest, service: BuyeeService = Depends(get_buyee_service)) -> DetailsResponse:
    """Refresh price and time remaining for the given product URLs."""
    if not request.urls:
        raise HTTPException(status_code=400, detail="No URLs provided")

    updated_details = await service.get_details(request.urls)

    message = None
    if all("error" in detail for detail in updated_details):
        message = "No valid details could be retrieved"

    return DetailsResponse(updated_details=updated_details, message=message)

# ------------------------------ BID ENDPOINTS ------------------------------

@router.post("/place-bid", response_model=PlaceBidResponse, response_model_exclude_none=True, tags=["Bids"])
async def place_bid(request: PlaceBidRequest, service: BuyeeService = Depends(get_buyee_service)) -> PlaceBidResponse:
    """Place a bid on a product URL with the stored session."""
    try:
        result = await service.place_bid(request.product_id, request.amount)
    except (InvalidProductUrlError, SessionError) as e:
        logger.error(f"Bid rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    if not result.success:
        logger.error(f"Bid failed: {result.message} (debug: {result.debug})")
        raise HTTPException(status_code=400, detail=result.message)

    return PlaceBidResponse(success=True, message=result.message, details=result.details)

@router.post("/update-bid-prices", response_model=UpdateBidPricesResponse, response_model_exclude_none=True, tags=["Bids"])
async def update_bid_prices(request: UpdateBidPricesRequest, service: BuyeeService = Depends(get_buyee_service)) -> UpdateBidPricesResponse:
    """Refresh tracked bids and store the latest price and time remaining."""
    if not request.product_urls:
        raise HTTPException(status_code=400, detail="Product URLs must be an array and cannot be empty")

    updated_bids = await service.update_bid_prices(request.product_urls)
    return UpdateBidPricesResponse(updated_bids=updated_bids, count=len(updated_bids))

@router.get("/bids", response_model=List[BidRecordOut], tags=["Bids"])
async def get_bids(db: Session = Depends(get_db)) -> List[BidRecordOut]:
    """List every bid placed, most recent first."""
    return [BidRecordOut.model_validate(bid) for bid in DatabaseService.get_bids(db)]

# ------------------------------ END OF FILE ------------------------------
