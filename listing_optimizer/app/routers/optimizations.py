# listing_optimizer/app/routers/optimizations.py
"""
Optimization routes.
Domain errors propagate to the handlers registered in main.py, which turn
them into ``{"error": ...}`` bodies with the mapped status code.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from listing_optimizer.app.deps import get_history_query, get_orchestrator
from listing_optimizer.app.schemas.optimizations import (
    ErrorResponse,
    OptimizationRecordResponse,
    OptimizationResponse,
    OptimizeRequest,
)
from listing_optimizer.app.services.history_service import HistoryQuery
from listing_optimizer.app.services.optimization_service import OptimizationOrchestrator

log = logging.getLogger("optimizations")
router = APIRouter(tags=["optimizations"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "ASIN missing or blank"},
    500: {"model": ErrorResponse, "description": "Storage failure"},
}


@router.post(
    "/optimizations",
    response_model=OptimizationResponse,
    responses={
        **_ERROR_RESPONSES,
        422: {"model": ErrorResponse, "description": "Product data could not be fetched"},
        502: {"model": ErrorResponse, "description": "AI optimization failed"},
    },
)
async def optimize_listing(
    body: OptimizeRequest,
    orchestrator: OptimizationOrchestrator = Depends(get_orchestrator),
) -> OptimizationResponse:
    result = await run_in_threadpool(orchestrator.optimize, body.asin)
    return OptimizationResponse.from_result(result)


async def _list_all(history: HistoryQuery) -> list[OptimizationRecordResponse]:
    records = await run_in_threadpool(history.list_all)
    return [OptimizationRecordResponse.from_record(record) for record in records]


async def _list_by_asin(asin: str, history: HistoryQuery) -> list[OptimizationRecordResponse]:
    records = await run_in_threadpool(history.list_by_asin, asin)
    log.info("history.by_asin asin=%s count=%d", asin.strip(), len(records))
    return [OptimizationRecordResponse.from_record(record) for record in records]


@router.get("/optimizations", response_model=list[OptimizationRecordResponse], responses=_ERROR_RESPONSES)
async def get_all_optimization_history(
    history: HistoryQuery = Depends(get_history_query),
) -> list[OptimizationRecordResponse]:
    return await _list_all(history)


@router.get("/optimizations/{asin}", response_model=list[OptimizationRecordResponse], responses=_ERROR_RESPONSES)
async def get_optimization_history(
    asin: str,
    history: HistoryQuery = Depends(get_history_query),
) -> list[OptimizationRecordResponse]:
    return await _list_by_asin(asin, history)


# Paths used by the web client's history page.
@router.get("/history", response_model=list[OptimizationRecordResponse], include_in_schema=False)
async def get_all_history_alias(
    history: HistoryQuery = Depends(get_history_query),
) -> list[OptimizationRecordResponse]:
    return await _list_all(history)


@router.get("/history/{asin}", response_model=list[OptimizationRecordResponse], include_in_schema=False)
async def get_history_alias(
    asin: str,
    history: HistoryQuery = Depends(get_history_query),
) -> list[OptimizationRecordResponse]:
    return await _list_by_asin(asin, history)
