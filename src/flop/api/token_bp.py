"""
Token API Blueprint

Handles token read endpoints: supply, balances, XP, allowances, fee
schedule, airdrop cursor, events and fee quotes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, g, jsonify, request
from pydantic import ValidationError as PydanticValidationError

from flop.api.schemas import EventsQueryInput, FeeQuoteInput
from flop.core.contracts.events import EVENT_SCHEMAS
from flop.core.units import format_flop
from flop.core.vm.exceptions import VMExecutionError

logger = logging.getLogger(__name__)

token_bp = Blueprint("token", __name__)


def get_api_context() -> Dict[str, Any]:
    """Get the API context stored on Flask's g during request setup."""
    return g.get("api_context", {})


def get_token() -> Any:
    return get_api_context().get("token")


def success_response(payload: Dict[str, Any], status: int = 200) -> Tuple[Any, int]:
    """Return a success payload with consistent structure."""
    body = {"success": True, **payload}
    return jsonify(body), status


def error_response(
    message: str,
    status: int = 400,
    code: str = "bad_request",
    context: Optional[Dict[str, Any]] = None,
) -> Tuple[Any, int]:
    """Return an error payload and log it."""
    log = logger.error if status >= 500 else logger.warning
    log(
        "Token API error: %s",
        message,
        extra={"event": "api.token_error", "code": code, "status": status, "context": context or {}},
    )
    return jsonify({"success": False, "error": message, "code": code}), status


@token_bp.route("/info", methods=["GET"])
def get_info() -> Tuple[Any, int]:
    """Token metadata, supply and configuration summary."""
    token = get_token()
    return success_response(
        {
            "name": token.name,
            "symbol": token.symbol,
            "decimals": token.decimals,
            "address": token.address,
            "owner": token.owner,
            "total_supply": str(token.total_supply),
            "total_supply_formatted": format_flop(token.total_supply),
            "prediction_pool": token.prediction_pool,
            "buyback_wallet": token.buyback_wallet,
            "xp_paused": token.xp_paused,
        }
    )


@token_bp.route("/balance/<address>", methods=["GET"])
def get_balance(address: str) -> Tuple[Any, int]:
    """Get address balance."""
    balance = get_token().balance_of(address)
    return success_response(
        {"address": address.lower(), "balance": str(balance), "formatted": format_flop(balance)}
    )


@token_bp.route("/xp/<address>", methods=["GET"])
def get_xp(address: str) -> Tuple[Any, int]:
    """Get address XP."""
    return success_response({"address": address.lower(), "xp": get_token().get_xp(address)})


@token_bp.route("/allowance/<owner>/<spender>", methods=["GET"])
def get_allowance(owner: str, spender: str) -> Tuple[Any, int]:
    allowance = get_token().allowance(owner, spender)
    return success_response(
        {"owner": owner.lower(), "spender": spender.lower(), "allowance": str(allowance)}
    )


@token_bp.route("/fees", methods=["GET"])
def get_fees() -> Tuple[Any, int]:
    """Current fee schedule in percentage points."""
    config = get_token().fee_config
    return success_response({**config.to_dict(), "total_fee_pct": config.total_fee_pct})


@token_bp.route("/airdrop", methods=["GET"])
def get_airdrop_state() -> Tuple[Any, int]:
    return success_response(get_token().airdrops.to_dict())


@token_bp.route("/events", methods=["GET"])
def get_events() -> Tuple[Any, int]:
    """Paginated event log, optionally filtered by event type."""
    try:
        query = EventsQueryInput.model_validate(request.args.to_dict())
    except PydanticValidationError as exc:
        return error_response(f"Invalid query: {exc.errors()[0]['msg']}", code="invalid_query")
    if query.event_type is not None and query.event_type not in EVENT_SCHEMAS:
        return error_response(
            f"Unknown event type: {query.event_type}",
            code="invalid_event_type",
        )

    token = get_token()
    events = token.events.page(query.limit, query.offset, query.event_type)
    return success_response(
        {
            "events": [e.to_dict() for e in events],
            "total": len(token.events.filter(query.event_type)),
            "limit": query.limit,
            "offset": query.offset,
        }
    )


@token_bp.route("/quote", methods=["POST"])
def quote_fee() -> Tuple[Any, int]:
    """Fee breakdown for a prospective transfer."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return error_response("JSON body required", code="invalid_payload")
    try:
        data = FeeQuoteInput.model_validate(payload)
    except PydanticValidationError as exc:
        return error_response(f"Invalid payload: {exc.errors()[0]['msg']}", code="invalid_payload")

    try:
        split = get_token().quote_fee(data.amount)
    except VMExecutionError as exc:
        return error_response(exc.message, code=exc.code, context=exc.details)
    return success_response({k: str(v) for k, v in split.to_dict().items()})
