"""
Customers router — customer accounts and their cascade delete.

Endpoints:
  GET    /customers        — customer rows with project counts (search, page)
  POST   /customers        — create auth account + customer document
  GET    /customers/{uid}  — one customer row
  PATCH  /customers/{uid}  — partial update
  DELETE /customers/{uid}  — delete projects, customer, then account
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from portal_admin.auth.dependencies import Admin
from portal_admin.core.config import settings
from portal_admin.core.firebase import (
    AuthDirectory,
    DocumentStore,
    EmailAlreadyRegistered,
    get_auth_directory,
    get_store,
)
from portal_admin.models.customer import Customer
from portal_admin.schemas.customers import CustomerCreate, CustomerCreated, CustomerUpdate
from portal_admin.schemas.rows import CustomerRow, Page
from portal_admin.services import accounts, cascade
from portal_admin.services.blob_storage import BlobStorage, get_blob_storage
from portal_admin.services.screens import (
    CUSTOMER_SEARCH_FIELDS,
    customer_rows,
    load_customers,
    load_projects,
)
from portal_admin.services.table_view import RowFilter, filter_rows, paginate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Customers"])

Store = Annotated[DocumentStore, Depends(get_store)]
Directory = Annotated[AuthDirectory, Depends(get_auth_directory)]
Blobs = Annotated[BlobStorage, Depends(get_blob_storage)]


async def _require_customer(store: DocumentStore, uid: str) -> Customer:
    customer = await accounts.find_customer(store, uid)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found.")
    return customer


# ── List ────────────────────────────────────────────────────
@router.get(
    "",
    response_model=Page[CustomerRow],
    summary="List customers",
    description=(
        "Customers ordered by customer number, each with the number of "
        "projects assigned to it. Search matches name, customer number, "
        "and email (case-insensitive substring)."
    ),
)
async def list_customers(
    _admin: Admin,
    store: Store,
    search: str = "",
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> Page[CustomerRow]:
    customers, projects = await asyncio.gather(load_customers(store), load_projects(store))
    rows = filter_rows(customer_rows(customers, projects), RowFilter(search=search), CUSTOMER_SEARCH_FIELDS)
    return paginate(rows, page, page_size)


# ── Create ──────────────────────────────────────────────────
@router.post(
    "",
    response_model=CustomerCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create a customer",
    description="Creates the login account and the customer document.",
)
async def create_customer(
    payload: CustomerCreate,
    _admin: Admin,
    store: Store,
    auth_directory: Directory,
) -> CustomerCreated:
    try:
        uid, doc_id = await accounts.create_customer(store, auth_directory, payload)
    except EmailAlreadyRegistered:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This email is already registered",
        ) from None
    except Exception:
        logger.exception("Failed to create customer %s", payload.customer_number)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create customer account. Please try again.",
        ) from None
    return CustomerCreated(uid=uid, doc_id=doc_id)


# ── Detail / update / delete ────────────────────────────────
@router.get(
    "/{uid}",
    response_model=CustomerRow,
    summary="Get one customer",
)
async def get_customer(uid: str, _admin: Admin, store: Store) -> CustomerRow:
    customer = await _require_customer(store, uid)
    projects = await load_projects(store)
    return customer_rows([customer], projects)[0]


@router.patch(
    "/{uid}",
    response_model=CustomerRow,
    summary="Update a customer",
    description="Only the fields present in the body are changed.",
)
async def update_customer(
    uid: str,
    payload: CustomerUpdate,
    _admin: Admin,
    store: Store,
) -> CustomerRow:
    customer = await _require_customer(store, uid)
    try:
        await accounts.update_customer(store, customer, payload)
    except Exception:
        logger.exception("Failed to update customer %s", uid)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update customer. Please try again.",
        ) from None
    return await get_customer(uid, _admin, store)


@router.delete(
    "/{uid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a customer and everything they own",
    description=(
        "Deletes every project of the customer (files, blobs, status "
        "records), the customer document, then the login account."
    ),
)
async def delete_customer(
    uid: str,
    _admin: Admin,
    store: Store,
    auth_directory: Directory,
    blobs: Blobs,
) -> Response:
    customer = await _require_customer(store, uid)
    try:
        await cascade.delete_customer_cascade(store, blobs, auth_directory, uid, customer.doc_id)
    except Exception:
        logger.exception("Failed to delete customer %s", uid)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete customer. Please try again.",
        ) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
