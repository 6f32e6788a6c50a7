"""
HTTP routes.

Request bodies are read raw and validated by finance_tracker.validation so
every 400 carries the same {"error", "code"} shape. The fixed
/transactions/transfer and /transactions/bulkUpdate paths are declared
before /transactions/{transaction_id}.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from finance_tracker.api.dependencies import (
    get_components,
    parse_date_param,
    parse_is_active,
    read_json,
    require_account,
)
from finance_tracker.audit import create_correlation_id
from finance_tracker.exceptions import ValidationError
from finance_tracker.orchestrator import AppComponents
from finance_tracker.validation import (
    parse_account_create,
    parse_account_update,
    parse_bulk_update_request,
    parse_category_create,
    parse_category_update,
    parse_convert_request,
    parse_transaction_create,
    parse_transaction_update,
    parse_transfer_request,
)


router = APIRouter()


def _list_response(kind: str, records) -> JSONResponse:
    return JSONResponse(
        content={kind: [r.to_json_dict() for r in records], "count": len(records)}
    )


def _record_response(record, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=record.to_json_dict())


# =============================================================================
# HEALTH
# =============================================================================

@router.get("/health")
async def health():
    return {"status": "ok"}


# =============================================================================
# TRANSFERS AND BULK OPERATIONS
# =============================================================================

@router.post("/transactions/transfer")
async def create_transfer(
    request: Request,
    components: AppComponents = Depends(get_components),
):
    body = parse_transfer_request(await read_json(request))
    result = await components.transfer_engine.create_transfer(
        from_account=body.from_account,
        to_account=body.to_account,
        amount=body.amount,
        transaction_date=body.transaction_date,
        description=body.description,
        currency=body.currency,
        fee=body.fee,
        correlation_id=create_correlation_id(),
    )
    return _record_response(result, status_code=201)


@router.post("/transactions/bulkUpdate")
async def bulk_update(
    request: Request,
    components: AppComponents = Depends(get_components),
):
    body = parse_bulk_update_request(await read_json(request))
    result = await components.bulk_engine.bulk_update_by_description(
        account=body.account,
        description=body.description,
        new_category=body.new_category,
        correlation_id=create_correlation_id(),
    )
    return _record_response(result)


@router.put("/transactions/{transaction_id}/convert-to-transfer")
async def convert_to_transfer(
    transaction_id: str,
    request: Request,
    account: Optional[str] = None,
    components: AppComponents = Depends(get_components),
):
    if not account:
        raise ValidationError("transactionId and account are required")
    body = parse_convert_request(await read_json(request))
    result = await components.transfer_engine.convert_to_transfer(
        account=account,
        transaction_id=transaction_id,
        to_account=body.to_account,
        correlation_id=create_correlation_id(),
    )
    return _record_response(result)


# =============================================================================
# TRANSACTIONS
# =============================================================================

@router.get("/transactions")
async def list_transactions(
    account: Optional[str] = None,
    category: Optional[str] = None,
    date: Optional[str] = None,
    components: AppComponents = Depends(get_components),
):
    transactions = await components.transactions.list_transactions(
        require_account(account),
        category=category or None,
        on_date=parse_date_param(date),
    )
    return _list_response("transactions", transactions)


@router.post("/transactions")
async def create_transaction(
    request: Request,
    components: AppComponents = Depends(get_components),
):
    body = parse_transaction_create(await read_json(request))
    transaction = await components.transactions.create(body, correlation_id=create_correlation_id())
    return _record_response(transaction, status_code=201)


@router.get("/transactions/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    account: Optional[str] = None,
    components: AppComponents = Depends(get_components),
):
    if not account:
        raise ValidationError("transactionId and account parameters are required")
    return _record_response(await components.transactions.get(account, transaction_id))


@router.put("/transactions/{transaction_id}")
async def update_transaction(
    transaction_id: str,
    request: Request,
    account: Optional[str] = None,
    components: AppComponents = Depends(get_components),
):
    if not account:
        raise ValidationError("transactionId, account, and request body are required")
    body = parse_transaction_update(await read_json(request))
    transaction = await components.transactions.update(
        account, transaction_id, body, correlation_id=create_correlation_id()
    )
    return _record_response(transaction)


@router.delete("/transactions/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: str,
    account: Optional[str] = None,
    components: AppComponents = Depends(get_components),
):
    if not account:
        raise ValidationError("transactionId and account parameters are required")
    await components.transactions.delete(account, transaction_id, correlation_id=create_correlation_id())
    return Response(status_code=204)


# =============================================================================
# ACCOUNTS
# =============================================================================

@router.get("/accounts")
async def list_accounts(
    is_active: Optional[str] = Query(default=None, alias="isActive"),
    components: AppComponents = Depends(get_components),
):
    accounts = await components.accounts.list_accounts(is_active=parse_is_active(is_active))
    return _list_response("accounts", accounts)


@router.post("/accounts")
async def create_account(
    request: Request,
    components: AppComponents = Depends(get_components),
):
    account = parse_account_create(await read_json(request))
    saved = await components.accounts.create(account, correlation_id=create_correlation_id())
    return _record_response(saved, status_code=201)


@router.get("/accounts/{account_id}")
async def get_account(
    account_id: str,
    components: AppComponents = Depends(get_components),
):
    return _record_response(await components.accounts.get(account_id))


@router.put("/accounts/{account_id}")
async def update_account(
    account_id: str,
    request: Request,
    components: AppComponents = Depends(get_components),
):
    body = parse_account_update(await read_json(request))
    saved = await components.accounts.update(account_id, body, correlation_id=create_correlation_id())
    return _record_response(saved)


@router.delete("/accounts/{account_id}", status_code=204)
async def delete_account(
    account_id: str,
    components: AppComponents = Depends(get_components),
):
    await components.accounts.delete(account_id, correlation_id=create_correlation_id())
    return Response(status_code=204)


# =============================================================================
# CATEGORIES
# =============================================================================

@router.get("/categories")
async def list_categories(
    is_active: Optional[str] = Query(default=None, alias="isActive"),
    components: AppComponents = Depends(get_components),
):
    categories = await components.categories.list_categories(is_active=parse_is_active(is_active))
    return _list_response("categories", categories)


@router.post("/categories")
async def create_category(
    request: Request,
    components: AppComponents = Depends(get_components),
):
    category = parse_category_create(await read_json(request))
    saved = await components.categories.create(category, correlation_id=create_correlation_id())
    return _record_response(saved, status_code=201)


@router.get("/categories/{category_id}")
async def get_category(
    category_id: str,
    components: AppComponents = Depends(get_components),
):
    return _record_response(await components.categories.get(category_id))


@router.put("/categories/{category_id}")
async def update_category(
    category_id: str,
    request: Request,
    components: AppComponents = Depends(get_components),
):
    body = parse_category_update(await read_json(request))
    saved = await components.categories.update(category_id, body, correlation_id=create_correlation_id())
    return _record_response(saved)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: str,
    components: AppComponents = Depends(get_components),
):
    await components.categories.delete(category_id, correlation_id=create_correlation_id())
    return Response(status_code=204)


# =============================================================================
# ANALYTICS
# =============================================================================

@router.get("/analytics")
async def get_analytics(
    account: Optional[str] = None,
    components: AppComponents = Depends(get_components),
):
    report = await components.analytics.report_for_account(require_account(account))
    return _record_response(report)
