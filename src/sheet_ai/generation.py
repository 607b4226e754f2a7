"""Client for the remote sheet-generation service.

The service takes a natural-language prompt plus sizing options and answers
with a ``{"sheets": [...]}`` document. Responses are validated in full before
anything is handed to the editor.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sheet_ai.errors import GenerationError, ValidationError
from sheet_ai.models import GenerationOptions, Sheet, parse_sheets_payload

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: float = 60.0

TEMPLATES: list[str] = [
    "Monthly family budget: fixed expenses, variable expenses, savings; totals per category and final balance.",
    "Sales tracker: item, price, quantity, date, seller; totals per item and per month; bar chart by seller.",
    "Project planning: task, owner, status, start, end, progress %; simple Kanban and Gantt views.",
    "Simple CRM: lead, source, stage, value, probability, next step; pipeline by stage.",
    "Inventory: SKU, product, category, cost, price, quantity, minimum, status; restock alerts.",
    "Marketing: campaign, channel, cost, leads, conversions, CPA, ROI; monthly comparisons.",
]


def split_sheet_names(raw: str) -> list[str]:
    """Turn ``"Income, Expenses"`` into ``["Income", "Expenses"]``."""
    return [part.strip() for part in raw.split(",") if part.strip()]


def build_request(prompt: str, options: GenerationOptions | None = None) -> dict[str, Any]:
    """Return the outbound JSON payload for *prompt*."""
    if options is None:
        options = GenerationOptions()
    return {"prompt": prompt.strip(), "options": options.to_dict()}


def parse_response(payload: Any) -> list[Sheet]:
    """Validate a service response and return its sanitized sheets."""
    return parse_sheets_payload(payload)


class GenerationClient:
    """Synchronous HTTP client for the generation endpoint."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ):
        if not endpoint:
            raise ValueError("endpoint must be a non-empty URL")
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = client

    def generate(self, prompt: str, options: GenerationOptions | None = None) -> list[Sheet]:
        """POST *prompt* to the service and return the validated sheets.

        Raises
        ------
        GenerationError
            On transport failures or non-2xx responses.
        ValidationError
            If the body is not JSON or does not match the sheet schema.
        """
        body = build_request(prompt, options)
        logger.debug("Requesting generation from %s", self.endpoint)
        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(self.endpoint, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise GenerationError(
                f"Generation service returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise GenerationError(f"Generation request failed: {exc}") from exc
        finally:
            if self._client is None:
                client.close()

        try:
            payload = response.json()
        except ValueError as exc:
            raise ValidationError("Generation service returned a non-JSON body") from exc
        return parse_response(payload)
