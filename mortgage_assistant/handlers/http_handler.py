"""HTTP handlers - FastAPI routes for chat streaming, direct calculations and sessions."""

import json
import logging
import math
from collections.abc import AsyncIterator
from contextlib import aclosing

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from pydantic import ValidationError

from mortgage_assistant.calc.engine import calculate_emi
from mortgage_assistant.constants import DEFAULT_STAY_DURATION, STREAM_DONE
from mortgage_assistant.conversation.orchestrator import Orchestrator, TurnEvent
from mortgage_assistant.errors import InvalidRequest
from mortgage_assistant.handlers.dto import (
    CalcRequest,
    ChatRequest,
    SessionInfo,
)
from mortgage_assistant.storage.sessions import SessionStore
from mortgage_assistant.tools.arguments import EMIArguments
from mortgage_assistant.tools.dto import UNKNOWN_TOOL, VALIDATION_ERROR
from mortgage_assistant.tools.registry import ToolRegistry, validation_failure

logger = logging.getLogger(__name__)

# Direct calculation kinds backed by a tool
CALC_TOOLS = {
    "mortgage": "calculate_mortgage",
    "buy-vs-rent": "analyze_buy_vs_rent",
    "buyVsRent": "analyze_buy_vs_rent",
    "refinance": "calculate_refinance",
}

# Inputs the direct calculation fills in when the caller leaves them out
CALC_DEFAULTS = {
    "analyze_buy_vs_rent": {"stayDuration": DEFAULT_STAY_DURATION},
}


def _format_sse(event: TurnEvent) -> str:
    data: dict[str, str] = {"content": event.content}
    if event.tool_used:
        data["toolUsed"] = event.tool_used
    return f"data: {json.dumps(data, ensure_ascii=False)}\n\n"


def _calc_response(
    status_code: int,
    success: bool,
    data: dict | None = None,
    error: str | None = None,
) -> JSONResponse:
    body: dict = {"success": success}
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    return JSONResponse(body, status_code=status_code)


def setup_routes(app: FastAPI) -> None:
    """Register HTTP routes on the FastAPI app."""

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/chat")
    async def chat(request: Request, payload: ChatRequest):
        """Run one conversational turn and stream it as server-sent events."""
        orchestrator: Orchestrator | None = request.app.state.orchestrator
        if orchestrator is None:
            return PlainTextResponse("LLM_API_KEY not configured", status_code=500)

        try:
            events = orchestrator.start_turn(
                payload.session_id or "",
                payload.scenario or "",
                payload.message or "",
            )
        except InvalidRequest as e:
            return PlainTextResponse(str(e), status_code=400)

        async def event_stream() -> AsyncIterator[str]:
            try:
                async with aclosing(events) as turn:
                    async for event in turn:
                        if event.done:
                            break
                        yield _format_sse(event)
            except Exception as e:
                logger.exception(f"Chat stream failed for session {payload.session_id}: {e}")
            yield f"data: {STREAM_DONE}\n\n"

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    @app.post("/api/calc")
    async def calc(request: Request, payload: CalcRequest):
        """Run a calculation directly, bypassing the conversation."""
        registry: ToolRegistry = request.app.state.tool_registry

        if payload.type == "emi":
            try:
                arguments = EMIArguments.model_validate(payload.inputs)
            except ValidationError as e:
                result = validation_failure("emi", e)
                return _calc_response(400, success=False, error=result.message)
            kwargs = {
                key: value
                for key, value in (
                    ("annual_rate", arguments.interest_rate),
                    ("tenure_years", arguments.tenure),
                )
                if value is not None
            }
            try:
                emi = calculate_emi(arguments.loan_amount, **kwargs)
                if not math.isfinite(emi):
                    raise ValueError(f"EMI is not finite: {emi}")
            except Exception as e:
                logger.exception(f"EMI calculation failed: {e}")
                return _calc_response(500, success=False, error="Calculation failed")
            return _calc_response(200, success=True, data={"emi": emi})

        tool_name = CALC_TOOLS.get(payload.type)
        if tool_name is None:
            return _calc_response(400, success=False, error="Invalid calculation type")

        inputs = {
            **CALC_DEFAULTS.get(tool_name, {}),
            **{key: value for key, value in payload.inputs.items() if value is not None},
        }
        result = registry.run(tool_name, inputs)
        if result.success:
            return _calc_response(200, success=True, data=result.data)
        if result.error in (VALIDATION_ERROR, UNKNOWN_TOOL):
            return _calc_response(400, success=False, error=result.message)
        return _calc_response(500, success=False, error="Calculation failed")

    @app.get("/api/sessions/{session_id}", response_model=SessionInfo, response_model_by_alias=True)
    async def get_session(request: Request, session_id: str):
        """Inspect a session's scenario, size and accumulated parameters."""
        sessions: SessionStore = request.app.state.sessions
        session = sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return SessionInfo(
            session_id=session.key,
            scenario=session.scenario.value,
            turns=len(session),
            parameters=dict(session.parameters),
        )

    @app.delete("/api/sessions/{session_id}")
    async def delete_session(request: Request, session_id: str):
        """Tear down a session explicitly."""
        sessions: SessionStore = request.app.state.sessions
        if not sessions.delete(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return {"deleted": session_id}
