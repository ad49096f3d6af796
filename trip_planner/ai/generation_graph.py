from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, TypedDict, Union

from langgraph.graph import END, StateGraph

from trip_planner.ai.completion_client import CompletionClient, CompletionOptions
from trip_planner.ai.normalizer import PayloadKind, normalize
from trip_planner.api.models.schemas import Attraction, ItineraryData
from trip_planner.domain.failures import MalformedPayload, NetworkFailure, ParseFailure

logger = logging.getLogger(__name__)

GenerationResult = Union[ItineraryData, List[Attraction]]


class GenerationState(TypedDict):
    client: CompletionClient
    prompt: str
    options: CompletionOptions
    kind: PayloadKind
    timeout_seconds: float
    raw_text: Optional[str]
    result: Optional[GenerationResult]
    failure: Optional[BaseException]


async def call_model(state: GenerationState) -> Dict[str, Any]:
    timeout = state["timeout_seconds"]
    try:
        completion = await asyncio.wait_for(state["client"].complete(state["prompt"], state["options"]), timeout)
    except asyncio.TimeoutError:
        logger.warning("Model call for %s exceeded %.0fs", state["kind"], timeout)
        return {"failure": NetworkFailure(f"The AI service did not answer within {timeout:.0f} seconds (timeout).")}
    except Exception as exc:
        logger.warning("Model call for %s failed: %s", state["kind"], exc)
        return {"failure": exc}
    return {"raw_text": completion.text}


def _route_after_call(state: GenerationState) -> str:
    return "failed" if state.get("failure") is not None else "normalize"


async def normalize_response(state: GenerationState) -> Dict[str, Any]:
    try:
        return {"result": normalize(state["raw_text"], state["kind"])}
    except MalformedPayload as exc:
        logger.error("Failed to parse %s response (%s). Cleaned string: %s", state["kind"], exc.reason, exc.candidate)
        logger.error("Original AI response: %s", exc.raw_text)
        return {"failure": exc}
    except ParseFailure as exc:
        logger.error("AI returned an empty %s response", state["kind"])
        return {"failure": exc}


def build_generation_graph():
    builder = StateGraph(GenerationState)
    builder.add_node("call_model", call_model)
    builder.add_node("normalize_response", normalize_response)

    builder.set_entry_point("call_model")
    builder.add_conditional_edges("call_model", _route_after_call, {"failed": END, "normalize": "normalize_response"})
    builder.add_edge("normalize_response", END)
    return builder.compile()


_GRAPH = build_generation_graph()


async def run_generation(
    client: CompletionClient,
    prompt: str,
    options: CompletionOptions,
    kind: PayloadKind,
    timeout_seconds: float,
) -> GenerationResult:
    """
    Run one model call through the prompt -> completion -> normalization pipeline.
    Raises whatever failure the pipeline recorded so the caller can classify it.
    """
    initial_state: GenerationState = {
        "client": client,
        "prompt": prompt,
        "options": options,
        "kind": kind,
        "timeout_seconds": timeout_seconds,
        "raw_text": None,
        "result": None,
        "failure": None,
    }
    final_state = await _GRAPH.ainvoke(initial_state)
    failure = final_state.get("failure")
    if failure is not None:
        raise failure
    return final_state["result"]
