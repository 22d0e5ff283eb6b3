from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ..container import RelayServices
from ..errors import MissingConfiguration

router = APIRouter()
logger = logging.getLogger("market_relay.api")

UPSTREAM_UNAVAILABLE = {"error": "upstream_unavailable"}


def get_services(request: Request) -> RelayServices:
    return request.app.state.services


def _upstream_unavailable() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=UPSTREAM_UNAVAILABLE)


@router.get("/price", summary="Cached spot price")
async def get_price(symbol: str | None = None, services: RelayServices = Depends(get_services)):
    if symbol and symbol != services.price.symbol:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": f"Unsupported symbol. Only {services.price.symbol} is allowed."},
        )
    try:
        return await services.price.get_payload()
    except Exception:
        logger.exception("Failed to fetch spot price")
        return _upstream_unavailable()


@router.get("/risk", summary="Funding rate / open interest risk snapshot")
async def get_risk(services: RelayServices = Depends(get_services)):
    try:
        return await services.risk.get_payload()
    except Exception:
        logger.exception("Failed to fetch risk snapshot")
        return _upstream_unavailable()


@router.get("/premium", summary="Kimchi and Coinbase premium")
async def get_premium(services: RelayServices = Depends(get_services)):
    try:
        return await services.premium.get_payload()
    except Exception:
        logger.exception("Failed to fetch premium data")
        return _upstream_unavailable()


@router.get("/alert-check", summary="Cooldown-gated risk alert check")
async def alert_check(services: RelayServices = Depends(get_services)):
    result = await services.alerts.check()
    if not result.ok:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=result.as_dict())
    return result.as_dict()


@router.get("/proxy/risk", summary="Relay the risk snapshot from another relay instance")
async def proxy_risk(services: RelayServices = Depends(get_services)):
    base_url = services.settings.relay_upstream_base_url
    try:
        if not base_url:
            raise MissingConfiguration("relay_upstream_base_url")
        return await services.client.get_json(f"{base_url.rstrip('/')}/risk")
    except Exception as exc:
        logger.error("Risk proxy failed: %s", exc)
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": str(exc)})


@router.get("/scheduler/status", summary="Alert scheduler status")
async def scheduler_status(services: RelayServices = Depends(get_services)) -> dict:
    return {"scheduler": services.scheduler.status().as_dict()}


@router.post("/scheduler/trigger", summary="Run the alert check immediately")
async def trigger_scheduler(services: RelayServices = Depends(get_services)) -> dict:
    result = await services.scheduler.trigger_run()
    return {"result": result.as_dict(), "scheduler": services.scheduler.status().as_dict()}
