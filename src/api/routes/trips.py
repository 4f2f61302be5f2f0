from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from analysis import AnalyzeResult
from api.auth import verify_api_key
from api.dependencies import AnalyzerDep, PipelineDep
from api.identity import identity_of
from api.rate_limit import analyze_rate_limit, limiter
from validation import SubmitTripResult

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.post("", response_model=SubmitTripResult, response_model_exclude_none=True)
def submit_trip(
    request: Request,
    pipeline: PipelineDep,
    payload: dict[str, Any] = Body(...),
) -> SubmitTripResult:
    """Submit a crowdsourced trip fare.

    Rejections (quota, invalid data, duplicates) come back as HTTP 200 with
    success=false so the client can display the reason as-is.
    """
    caller = identity_of(request, payload)
    return pipeline.submit_trip(payload, caller)


@router.post("/analyze", response_model=AnalyzeResult, response_model_exclude_none=True)
@limiter.limit(analyze_rate_limit)
def analyze_similar_trips(
    request: Request,
    analyzer: AnalyzerDep,
    query: dict[str, Any] = Body(...),
) -> AnalyzeResult:
    """Aggregate fares of trips similar to the given route."""
    caller = identity_of(request, query)
    return analyzer.analyze(query, user_id=caller.user_id)
