"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from core.db import Database, get_db

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: schemas.RegisterRequest,
    db: Database = Depends(get_db),
) -> dict:
    return await service.register(db, payload)


@router.post("/login")
async def login(
    payload: schemas.LoginRequest,
    db: Database = Depends(get_db),
) -> dict:
    return await service.login(db, payload)


@router.get("/me")
async def me(
    user_id: int = Depends(dependencies.get_current_user_id),
    db: Database = Depends(get_db),
) -> dict:
    return await service.me(db, user_id)
