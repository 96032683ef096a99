"""
AI inventory insights.

Packages a reduced snapshot of the catalog and the latest transactions into a
Gemini `generateContent` call that must answer with JSON, then maps the answer
onto `InsightReport`. Failures never escape `InsightRequester.request`; they
come back as an empty report flagged unavailable.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import requests

from inventory_master.errors import InsightUnavailable
from inventory_master.schemas import (
    ForecastItem,
    InsightItem,
    InsightReport,
    InsightStatus,
    Language,
    ProductOut,
    TransactionOut,
)
from inventory_master.utils import now_ms

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {"en": "English", "bn": "Bengali", "hi": "Hindi"}

FAILURE_SUMMARIES = {
    "en": "Could not generate analysis.",
    "bn": "বিশ্লেষণ তৈরি করা যায়নি।",
    "hi": "विश्लेषण उत्पन्न नहीं किया जा सका।",
}

DEFAULT_SUMMARY = "Analysis complete."

PRIORITIES = ("high", "medium", "low")
CATEGORIES = ("risk", "opportunity", "efficiency")
TRENDS = ("increasing", "decreasing", "stable")


def response_schema(language_name: str) -> dict:
    in_language = f"In {language_name}."
    return {
        "type": "OBJECT",
        "properties": {
            "summary": {
                "type": "STRING",
                "description": f"A high-level summary of the current stock and financial health in {language_name}.",
            },
            "insights": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "title": {"type": "STRING", "description": in_language},
                        "description": {"type": "STRING", "description": in_language},
                        "priority": {"type": "STRING", "enum": list(PRIORITIES)},
                        "category": {"type": "STRING", "enum": list(CATEGORIES)},
                        "action": {"type": "STRING", "description": f"Specific recommended action in {language_name}."},
                    },
                    "required": ["title", "description", "priority", "category", "action"],
                },
            },
            "forecast": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "productName": {"type": "STRING"},
                        "trend": {"type": "STRING", "enum": list(TRENDS)},
                        "reasoning": {"type": "STRING", "description": in_language},
                    },
                    "required": ["productName", "trend", "reasoning"],
                },
            },
        },
        "required": ["summary", "insights"],
    }


def recent_transactions(transactions: Iterable[TransactionOut], limit: int) -> list[TransactionOut]:
    return sorted(transactions, key=lambda t: t.timestamp, reverse=True)[:limit]


def build_insight_context(
    products: Iterable[ProductOut],
    transactions: Iterable[TransactionOut],
    limit: int = 20,
) -> dict:
    return {
        "products": [
            {
                "name": p.name,
                "box": p.box_number,
                "qty": p.quantity,
                "min": p.min_threshold,
                "cost": p.purchase_price,
                "msrp": p.selling_price,
                "margin": p.selling_price - p.purchase_price,
                "cat": p.category,
            }
            for p in products
        ],
        "transactions": [
            {
                "name": t.product_name,
                "type": t.type,
                "qty": t.quantity,
                "date": datetime.fromtimestamp(t.timestamp / 1000, tz=timezone.utc).isoformat(),
            }
            for t in recent_transactions(transactions, limit)
        ],
    }


def build_prompt(context: dict, language: Language) -> str:
    language_name = LANGUAGE_NAMES.get(language, "English")
    return (
        "You are an expert supply chain and financial analyst. Analyze the following inventory "
        "and transaction data.\n"
        "Identify critical stock risks, sales trends, and profit efficiency opportunities based on margins.\n\n"
        f"IMPORTANT: You MUST provide all text descriptions, titles, and summaries in {language_name}.\n\n"
        f"Current Inventory Data: {json.dumps(context['products'], ensure_ascii=False)}\n"
        f"Recent Transactions (last {len(context['transactions'])}): "
        f"{json.dumps(context['transactions'], ensure_ascii=False)}"
    )


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _choice(value: Any, choices: tuple, default: str) -> str:
    return value if value in choices else default


def parse_insight_payload(payload: Any, language: Language = "en") -> InsightReport:
    """Map the model's JSON onto an InsightReport; bad or missing fields fall back to empty."""
    if not isinstance(payload, dict):
        payload = {}

    insights = []
    for item in payload.get("insights") or []:
        if not isinstance(item, dict):
            continue
        insights.append(InsightItem(
            title=_text(item.get("title")),
            description=_text(item.get("description")),
            priority=_choice(item.get("priority"), PRIORITIES, "medium"),
            category=_choice(item.get("category"), CATEGORIES, "efficiency"),
            action=_text(item.get("action")),
        ))

    forecast = []
    for item in payload.get("forecast") or []:
        if not isinstance(item, dict):
            continue
        forecast.append(ForecastItem(
            product_name=_text(item.get("productName")),
            trend=_choice(item.get("trend"), TRENDS, "stable"),
            reasoning=_text(item.get("reasoning")),
        ))

    return InsightReport(
        summary=_text(payload.get("summary")) or DEFAULT_SUMMARY,
        insights=insights,
        forecast=forecast,
        available=True,
        language=language,
        generated_at=now_ms(),
    )


def unavailable_report(language: Language = "en") -> InsightReport:
    return InsightReport(
        summary=FAILURE_SUMMARIES.get(language, FAILURE_SUMMARIES["en"]),
        available=False,
        language=language,
        generated_at=now_ms(),
    )


def _response_text(body: dict) -> str:
    candidates = body.get("candidates") or []
    if not candidates:
        raise ValueError("Response has no candidates")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


class InsightRequester:

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        api_base: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30.0,
        transaction_limit: int = 20,
        offline: bool = False,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.transaction_limit = transaction_limit
        self.offline = offline
        self.session = session or requests.Session()

    def status(self) -> InsightStatus:
        if self.offline:
            return InsightStatus(available=False, reason="Insights are unavailable while offline")
        if not self.api_key:
            return InsightStatus(available=False, reason="No Gemini API key configured")
        return InsightStatus(available=True)

    @property
    def available(self) -> bool:
        return self.status().available

    def request(
        self,
        products: Iterable[ProductOut],
        transactions: Iterable[TransactionOut],
        language: Language = "en",
    ) -> InsightReport:
        status = self.status()
        if not status.available:
            raise InsightUnavailable(status.reason)

        context = build_insight_context(products, transactions, self.transaction_limit)
        body = {
            "contents": [{"parts": [{"text": build_prompt(context, language)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema(LANGUAGE_NAMES.get(language, "English")),
            },
        }

        try:
            res = self.session.post(
                f"{self.api_base}/models/{self.model}:generateContent",
                headers={"x-goog-api-key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
            res.raise_for_status()
            payload = json.loads(_response_text(res.json()) or "{}")
        except (requests.RequestException, ValueError, AttributeError, TypeError) as e:
            logger.error("Gemini insight error: %s", e)
            return unavailable_report(language)

        return parse_insight_payload(payload, language)
