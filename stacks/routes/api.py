#!/usr/bin/env python

"""
    API routes for Stacks,
    exposing the catalog, the user roster and the circulation desk.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from typing import Optional
from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from stacks.core.api import StacksAPI
from stacks.routes.schemas import BookRequest, BorrowRequest, UserRequest

RETRY_AFTER = 1  # seconds

ERROR_STATUS = {
    "unknown_user": status.HTTP_404_NOT_FOUND,
    "unknown_book": status.HTTP_404_NOT_FOUND,
    "loan_not_found": status.HTTP_404_NOT_FOUND,
    "out_of_stock": status.HTTP_409_CONFLICT,
    "already_returned": status.HTTP_409_CONFLICT,
    "constraint_violation": status.HTTP_400_BAD_REQUEST,
    "busy": status.HTTP_503_SERVICE_UNAVAILABLE,
}

router = APIRouter()

_api = None

def get_api() -> StacksAPI:
    global _api
    if _api is None:
        _api = StacksAPI()
    return _api

def respond(result: dict, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    if result["success"]:
        return JSONResponse(status_code=success_status, content=jsonable_encoder(result))
    headers = {"Retry-After": str(RETRY_AFTER)} if result.get("retry") else None
    return JSONResponse(
        status_code=ERROR_STATUS.get(result["error"], status.HTTP_400_BAD_REQUEST),
        content=result,
        headers=headers,
    )

@router.get("/users")
async def get_users(api: StacksAPI = Depends(get_api)):
    return respond(api.list_users())

@router.post("/users")
def add_user(body: UserRequest, api: StacksAPI = Depends(get_api)):
    return respond(api.add_user(body.name, body.email, body.role), status.HTTP_201_CREATED)

@router.get("/books")
async def get_books(api: StacksAPI = Depends(get_api)):
    return respond(api.list_books())

@router.post("/books")
def add_book(body: BookRequest, api: StacksAPI = Depends(get_api)):
    return respond(api.add_book(body.title, body.author, body.total_copies), status.HTTP_201_CREATED)

@router.get("/loans")
async def get_loans(user_id: Optional[int] = None, api: StacksAPI = Depends(get_api)):
    """
    Open loans with the fines accrued so far. `user_id` narrows the
    dashboard to one borrower ("acting as" view).
    """
    result = api.list_open_loans_with_fines()
    if result["success"] and user_id is not None:
        result["data"] = [row for row in result["data"] if row.user_id == user_id]
    return respond(result)

@router.post("/loans")
def borrow(body: BorrowRequest, api: StacksAPI = Depends(get_api)):
    return respond(api.borrow(body.user_id, body.book_id), status.HTTP_201_CREATED)

@router.post("/loans/{loan_id}/return")
def return_loan(loan_id: int, api: StacksAPI = Depends(get_api)):
    return respond(api.return_loan(loan_id))
