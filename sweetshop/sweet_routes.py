import logging

from fastapi import APIRouter, Depends, Query, status

from .dependencies import RequestContext, authenticate, authorize, get_sweet_repository
from .errors import NotFoundError, ValidationError
from .models import is_valid_id
from .repositories import SWEET_NOT_FOUND, SweetRepository
from .schemas import RestockRequest, StockChange, SweetCreate, SweetUpdate, envelope

log = logging.getLogger(__name__)

router = APIRouter(prefix="/sweets", tags=["sweets"])

admin_only = authorize("admin")


def _checked_id(sweet_id: str) -> str:
    if not is_valid_id(sweet_id):
        raise ValidationError("Invalid sweet ID")
    return sweet_id


# ------------------------------------------------------------
# Read (any authenticated user)
# ------------------------------------------------------------

@router.get("")
def list_sweets(
    _: RequestContext = Depends(authenticate),
    sweets: SweetRepository = Depends(get_sweet_repository),
):
    return envelope(data=[s.public() for s in sweets.list_all()])


@router.get("/search")
def search_sweets(
    name: str | None = Query(default=None),
    category: str | None = Query(default=None),
    min_price: float | None = Query(default=None, alias="minPrice"),
    max_price: float | None = Query(default=None, alias="maxPrice"),
    _: RequestContext = Depends(authenticate),
    sweets: SweetRepository = Depends(get_sweet_repository),
):
    found = sweets.search(name=name, category=category, min_price=min_price, max_price=max_price)
    return envelope(data=[s.public() for s in found])


@router.get("/{sweet_id}")
def get_sweet(
    sweet_id: str,
    _: RequestContext = Depends(authenticate),
    sweets: SweetRepository = Depends(get_sweet_repository),
):
    sweet = sweets.find_by_id(_checked_id(sweet_id))
    if sweet is None:
        raise NotFoundError(SWEET_NOT_FOUND)
    return envelope(data=sweet.public())


# ------------------------------------------------------------
# Admin inventory management
# ------------------------------------------------------------

@router.post("", status_code=status.HTTP_201_CREATED)
def create_sweet(
    payload: SweetCreate,
    context: RequestContext = Depends(admin_only),
    sweets: SweetRepository = Depends(get_sweet_repository),
):
    sweet = sweets.create(payload.model_dump())
    log.info("Sweet created", extra={"sweet_id": sweet.id, "admin_id": context.user.id})
    return envelope(data=sweet.public())


@router.put("/{sweet_id}")
def update_sweet(
    sweet_id: str,
    updates: SweetUpdate,
    context: RequestContext = Depends(admin_only),
    sweets: SweetRepository = Depends(get_sweet_repository),
):
    sweet = sweets.update(_checked_id(sweet_id), updates.model_dump(exclude_unset=True))
    if sweet is None:
        raise NotFoundError(SWEET_NOT_FOUND)
    log.info("Sweet updated", extra={"sweet_id": sweet.id, "admin_id": context.user.id})
    return envelope(data=sweet.public())


@router.delete("/{sweet_id}")
def delete_sweet(
    sweet_id: str,
    context: RequestContext = Depends(admin_only),
    sweets: SweetRepository = Depends(get_sweet_repository),
):
    if sweets.delete(_checked_id(sweet_id)) is None:
        raise NotFoundError(SWEET_NOT_FOUND)
    log.info("Sweet deleted", extra={"sweet_id": sweet_id, "admin_id": context.user.id})
    return envelope(message="Sweet deleted successfully")


@router.post("/{sweet_id}/restock")
def restock_sweet(
    sweet_id: str,
    payload: RestockRequest,
    context: RequestContext = Depends(admin_only),
    sweets: SweetRepository = Depends(get_sweet_repository),
):
    sweet = sweets.restock(_checked_id(sweet_id), payload.quantity)
    log.info(
        "Sweet restocked",
        extra={"sweet_id": sweet.id, "added": payload.quantity, "stock": sweet.quantity},
    )
    return envelope(data=sweet.public(), message="Restock successful")


# ------------------------------------------------------------
# Purchase (any authenticated user)
# ------------------------------------------------------------

@router.post("/{sweet_id}/purchase")
def purchase_sweet(
    sweet_id: str,
    payload: StockChange,
    context: RequestContext = Depends(authenticate),
    sweets: SweetRepository = Depends(get_sweet_repository),
):
    # no partial fulfilment: either the whole quantity is taken or nothing changes
    sweet = sweets.purchase(_checked_id(sweet_id), payload.quantity)
    log.info(
        "Sweet purchased",
        extra={
            "sweet_id": sweet.id,
            "user_id": context.user.id,
            "purchased": payload.quantity,
            "stock": sweet.quantity,
        },
    )
    return envelope(data=sweet.public(), message="Purchase successful")
