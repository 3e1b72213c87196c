"""
Gemini-backed analysis service.

One coroutine per operation; each sends a system instruction, a JSON
response schema and the request payload to the model, then parses the
JSON answer into the matching record type.

Operation            Temperature   Returns
-------------------  -----------   ---------------------------
analyze_forest       0.1           ForestWatchResponse (no ids, no timestamp)
analyze_waste        0.1           CircularEconomyResponse
suggest_incentive_   0.3           GeneratedPesInsights
  programs
query_knowledge      0.4           KnowledgeQueryResult
identify_plant       0.2           PlantAnalysisResult

Every failure surfaces as an :mod:`~forestwatch.analysis.errors` type;
nothing is retried here.

Usage
-----
    service = AnalysisService(Settings.from_env())
    response = await service.analyze_forest(generate("imminent-wildfire"))
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Sequence, TypeVar

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config import (
    TEMPERATURE_BOTANIST,
    TEMPERATURE_FOREST,
    TEMPERATURE_INCENTIVES,
    TEMPERATURE_KNOWLEDGE,
    TEMPERATURE_WASTE,
    Settings,
)
from ..models.forest import ForestDataInput, ForestWatchResponse, GeoPoint
from ..models.knowledge import KnowledgeQueryResult, PlantAnalysisResult
from ..models.programs import GeneratedPesInsights, PesProgram
from ..models.waste import CircularEconomyResponse, WasteDataInput
from . import prompts, schemas
from .errors import (
    MalformedResponseError,
    MissingCredentialsError,
    ServiceError,
    TransportError,
)

log = logging.getLogger(__name__)

T = TypeVar("T")

PLANT_IMAGE_MIME = "image/jpeg"


def _dumps(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class AnalysisService:
    """Async client for the hosted model.

    Parameters
    ----------
    settings : Settings, optional
        API key and model name; read from the environment when omitted.
    client : genai.Client, optional
        Pre-built client (tests pass a fake exposing ``aio.models``).
    """

    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        settings = settings or Settings.from_env()
        self.model = settings.model
        if client is None:
            if not settings.api_key:
                raise MissingCredentialsError("no API key configured (set GEMINI_API_KEY)")
            client = genai.Client(api_key=settings.api_key)
        self._client = client

    # ── Transport ──

    async def _generate(
        self,
        operation: str,
        contents: Any,
        system_instruction: str,
        schema: Dict[str, Any],
        temperature: float,
    ) -> Dict[str, Any]:
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=schema,
            temperature=temperature,
        )
        t0 = time.monotonic()
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model, contents=contents, config=config,
            )
        except genai_errors.APIError as exc:
            log.error("%s: service error: %s", operation, exc)
            raise ServiceError(str(exc)) from exc
        except (httpx.HTTPError, OSError) as exc:
            log.error("%s: transport error: %s", operation, exc)
            raise TransportError(str(exc) or type(exc).__name__) from exc

        text = (response.text or "").strip()
        log.info("%s: %d chars in %.1fs", operation, len(text), time.monotonic() - t0)
        if not text:
            raise MalformedResponseError(f"{operation} returned an empty response")
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise MalformedResponseError(f"{operation} returned invalid JSON ({exc})") from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"{operation} returned {type(payload).__name__}, expected object")
        return payload

    @staticmethod
    def _parse(operation: str, parser: Callable[[Dict[str, Any]], T], payload: Dict[str, Any]) -> T:
        try:
            return parser(payload)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise MalformedResponseError(
                f"{operation} response does not match the schema ({type(exc).__name__}: {exc})"
            ) from exc

    # ── Operations ──

    async def analyze_forest(self, data: ForestDataInput) -> ForestWatchResponse:
        log.info(
            "Forest analysis: %d tiles, %d sensors, %d reports",
            len(data.satellite_tiles), len(data.sensor_readings), len(data.reports),
        )
        payload = await self._generate(
            "forest",
            prompts.FOREST_REQUEST.format(data=_dumps(data.as_dict())),
            prompts.FOREST_SYSTEM_PROMPT,
            schemas.FOREST_RESPONSE,
            TEMPERATURE_FOREST,
        )
        return self._parse("forest", ForestWatchResponse.from_dict, payload)

    async def analyze_waste(self, data: WasteDataInput) -> CircularEconomyResponse:
        log.info(
            "Waste analysis: %d bins, %d transactions (%.1f kg)",
            len(data.smart_bins), len(data.recent_transactions), data.total_weight_kg,
        )
        payload = await self._generate(
            "waste",
            prompts.WASTE_REQUEST.format(data=_dumps(data.as_dict())),
            prompts.WASTE_SYSTEM_PROMPT,
            schemas.WASTE_RESPONSE,
            TEMPERATURE_WASTE,
        )
        return self._parse("waste", CircularEconomyResponse.from_dict, payload)

    async def suggest_incentive_programs(
        self,
        forest_analysis: Optional[ForestWatchResponse],
        waste_analysis: Optional[CircularEconomyResponse],
        forest_input: ForestDataInput,
        waste_input: WasteDataInput,
        existing_programs: Sequence[PesProgram],
    ) -> GeneratedPesInsights:
        context = {
            "forestAnalysis": forest_analysis.as_dict() if forest_analysis else None,
            "wasteAnalysis": waste_analysis.as_dict() if waste_analysis else None,
            "forestInput": forest_input.as_dict(),
            "wasteInput": waste_input.as_dict(),
            "existingPrograms": [p.as_dict() for p in existing_programs],
        }
        log.info("Incentive suggestions: %d existing programs", len(existing_programs))
        payload = await self._generate(
            "incentives",
            prompts.INCENTIVES_REQUEST.format(context=_dumps(context)),
            prompts.INCENTIVES_SYSTEM_PROMPT,
            schemas.INCENTIVES_RESPONSE,
            TEMPERATURE_INCENTIVES,
        )
        return self._parse("incentives", GeneratedPesInsights.from_dict, payload)

    async def query_knowledge(self, question: str) -> KnowledgeQueryResult:
        payload = await self._generate(
            "knowledge",
            prompts.KNOWLEDGE_REQUEST.format(question=question),
            prompts.KNOWLEDGE_SYSTEM_PROMPT,
            schemas.KNOWLEDGE_RESPONSE,
            TEMPERATURE_KNOWLEDGE,
        )
        return self._parse("knowledge", KnowledgeQueryResult.from_dict, payload)

    async def identify_plant(
        self,
        image_bytes: bytes,
        location: Optional[GeoPoint] = None,
    ) -> PlantAnalysisResult:
        if not image_bytes:
            raise ValueError("identify_plant needs image data")
        if location is not None:
            text = prompts.PLANT_REQUEST_AT.format(lat=location.lat, lng=location.lng)
        else:
            text = prompts.PLANT_REQUEST
        contents = [
            types.Part.from_bytes(data=image_bytes, mime_type=PLANT_IMAGE_MIME),
            text,
        ]
        payload = await self._generate(
            "plant",
            contents,
            prompts.BOTANIST_SYSTEM_PROMPT,
            schemas.PLANT_RESPONSE,
            TEMPERATURE_BOTANIST,
        )
        return self._parse("plant", PlantAnalysisResult.from_dict, payload)
