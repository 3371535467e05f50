import logging
from typing import Any
from fastapi import APIRouter, Body, Depends, Path, Request, status
from fastapi.responses import JSONResponse

from storefront.presentation.schemas import OrderResponse, ErrorResponse
from storefront.application.assemble_order import OrderAssembler
from storefront.application.get_order import GetOrderUseCase
from storefront.application.inventory_guard import InventoryGuard
from storefront.application.place_order import TransactionCoordinator
from storefront.domain.errors import (
    InfrastructureError, InsufficientStockError, NotFoundError, ValidationError
)
from storefront.domain.models import MAX_DB_INT, Order, OrderView
from storefront.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# Factories; the session factory is owned by the app lifespan
def get_unit_of_work(request: Request) -> UnitOfWork:
    return UnitOfWork(request.app.state.session_factory)


def get_order_assembler() -> OrderAssembler:
    return OrderAssembler()


def get_transaction_coordinator(
    request: Request, uow: UnitOfWork = Depends(get_unit_of_work)
) -> TransactionCoordinator:
    return TransactionCoordinator(uow, InventoryGuard(), request.app.state.settings.CHECKOUT_TIMEOUT_SECONDS)


def get_get_order_use_case(uow: UnitOfWork = Depends(get_unit_of_work)) -> GetOrderUseCase:
    return GetOrderUseCase(uow)


def error_response(error) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


@router.post(
    "/orders",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    status_code=status.HTTP_201_CREATED
)
async def create_order(
    payload: Any = Body(...),
    assembler: OrderAssembler = Depends(get_order_assembler),
    coordinator: TransactionCoordinator = Depends(get_transaction_coordinator),
    order_reader: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Place an order: take stock for every line and record the order, all or nothing"""
    match assembler.assemble(payload):
        case ValidationError() as error:
            return error_response(error)
        case draft:
            pass

    match await coordinator.place_order(draft):
        case Order(id=order_id):
            logger.info(f"Order {order_id} placed: {len(draft.items)} line(s)")
        case ValidationError() | NotFoundError() | InsufficientStockError() | InfrastructureError() as error:
            return error_response(error)

    match await order_reader(order_id):
        case OrderView() as view:
            return OrderResponse.from_domain(view)
        case error:
            logger.error(f"Order {order_id} committed but could not be read back: {error.message}")
            return error_response(error)


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def get_order(
    order_id: int = Path(gt=0, le=MAX_DB_INT),
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Get an order with its lines"""
    match await use_case(order_id):
        case OrderView() as view:
            return OrderResponse.from_domain(view)
        case error:
            return error_response(error)
