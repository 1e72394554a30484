"""
Product categorization.

Keyword rules decide confident cases locally. Weak or missing keyword
matches fall back to an LLM classifier (when one is configured) that must
answer with one of the supplier's exact category names.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import httpx

from ..catalog import CatalogStore, Category
from ..errors import CategorizationFallbackError
from .keywords import KeywordRule, rules_for_supplier_type

logger = logging.getLogger(__name__)

CONFIDENT_SCORE = 0.7
STRONG_SCORE = 0.9
MULTI_HIT_SCORE = 0.8
SINGLE_HIT_SCORE = 0.6
AI_CONFIDENCE = 0.85
AI_CACHE_TITLE_LENGTH = 100
NO_MATCH_ANSWER = "NONE"

PROMPT_TEMPLATE = """You are a product categorization assistant. Given a product, determine which category it belongs to.

Available categories: {categories}

Product title: {title}
{details}
Respond with ONLY the exact category name from the list above that best matches this product. If none match well, respond with "NONE"."""


@dataclass(frozen=True)
class CategoryMatch:
    category_id: int
    category_name: str
    confidence: float
    method: str  # keyword | ai | fallback


class CategoryClassifier(Protocol):
    async def classify(
        self,
        title: str,
        description: str,
        raw_category: Optional[str],
        category_names: Sequence[str],
    ) -> str:
        """Return the model's raw answer (a category name or NONE)."""
        ...


def build_prompt(
    title: str, description: str, raw_category: Optional[str], category_names: Sequence[str]
) -> str:
    details = []
    if description:
        details.append(f"Description: {description[:500]}")
    if raw_category:
        details.append(f"Original category: {raw_category}")
    return PROMPT_TEMPLATE.format(
        categories=", ".join(category_names),
        title=title,
        details="\n".join(details) + ("\n" if details else ""),
    )


class RouterCategoryClassifier:
    """Classifier backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        router_url: str,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.model = model
        self._client = httpx.AsyncClient(
            base_url=router_url.rstrip("/"),
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def classify(
        self,
        title: str,
        description: str,
        raw_category: Optional[str],
        category_names: Sequence[str],
    ) -> str:
        payload = {
            "model": self.model,
            "max_tokens": 50,
            "temperature": 0,
            "messages": [
                {"role": "user", "content": build_prompt(title, description, raw_category, category_names)}
            ],
        }
        try:
            response = await self._client.post("/v1/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
            return str(data["choices"][0]["message"]["content"]).strip()
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            raise CategorizationFallbackError(f"Category classifier call failed: {e}") from e


def _has_whole_word(text: str, keyword: str) -> bool:
    return re.search(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", text) is not None


def score_rule(search_text: str, rule: KeywordRule) -> float:
    """Score one rule against lowercase search text (0.0 when it does not apply)."""
    if any(kw.lower() in search_text for kw in rule.exclude_keywords):
        return 0.0

    hits = 0
    strong = False
    for keyword in rule.keywords:
        kw = keyword.lower()
        if kw in search_text:
            hits += 1
            if len(kw) > 5 or _has_whole_word(search_text, kw):
                strong = True

    if not hits:
        return 0.0
    if strong:
        return STRONG_SCORE
    return MULTI_HIT_SCORE if hits >= 2 else SINGLE_HIT_SCORE


def match_keywords(
    search_text: str, rules: Sequence[KeywordRule], categories: Sequence[Category]
) -> Optional[CategoryMatch]:
    best_rule: Optional[KeywordRule] = None
    best_score = 0.0
    for rule in rules:
        score = score_rule(search_text, rule)
        # strict > keeps the earlier rule on ties
        if score > best_score:
            best_rule, best_score = rule, score

    if best_rule is None:
        return None

    wanted = best_rule.category_name.lower()
    for category in categories:
        if category.name.lower() == wanted:
            return CategoryMatch(
                category_id=category.id,
                category_name=category.name,
                confidence=best_score,
                method="keyword",
            )
    return None


class CategorizationEngine:
    """Assigns supplier categories to products.

    Category lists and classifier answers are cached per process; call
    invalidate_supplier() after an admin edits a supplier's categories.
    """

    def __init__(self, store: CatalogStore, classifier: Optional[CategoryClassifier] = None):
        self.store = store
        self.classifier = classifier
        self._categories: Dict[str, List[Category]] = {}
        self._ai_cache: Dict[Tuple[str, str], Optional[CategoryMatch]] = {}

    async def get_categories(self, supplier_id: str) -> List[Category]:
        if supplier_id not in self._categories:
            self._categories[supplier_id] = list(
                await self.store.get_categories_for_supplier(supplier_id)
            )
        return self._categories[supplier_id]

    def clear_cache(self) -> None:
        self._categories.clear()
        self._ai_cache.clear()

    def invalidate_supplier(self, supplier_id: str) -> None:
        self._categories.pop(supplier_id, None)
        for key in [k for k in self._ai_cache if k[0] == supplier_id]:
            del self._ai_cache[key]

    async def categorize(
        self,
        supplier_id: str,
        supplier_type: str,
        title: str,
        description: str = "",
        raw_category: Optional[str] = None,
    ) -> Optional[CategoryMatch]:
        categories = await self.get_categories(supplier_id)
        if not categories:
            return None

        search_text = f"{title} {description or ''} {raw_category or ''}".lower()
        match = match_keywords(search_text, rules_for_supplier_type(supplier_type), categories)
        if match and match.confidence >= CONFIDENT_SCORE:
            return match

        if self.classifier is None:
            return match

        ai_match = await self._classify(supplier_id, title, description, raw_category, categories)
        if ai_match:
            return ai_match
        if match:
            return replace(match, method="fallback")
        return None

    async def _classify(
        self,
        supplier_id: str,
        title: str,
        description: str,
        raw_category: Optional[str],
        categories: List[Category],
    ) -> Optional[CategoryMatch]:
        key = (supplier_id, title.lower()[:AI_CACHE_TITLE_LENGTH])
        if key in self._ai_cache:
            return self._ai_cache[key]

        try:
            answer = await self.classifier.classify(
                title, description, raw_category, [c.name for c in categories]
            )
        except Exception as e:
            logger.warning(f"AI categorization failed for '{title[:60]}': {e}")
            return None

        result = None
        answer = (answer or "").strip()
        if answer and answer.upper() != NO_MATCH_ANSWER:
            for category in categories:
                if category.name.lower() == answer.lower():
                    result = CategoryMatch(
                        category_id=category.id,
                        category_name=category.name,
                        confidence=AI_CONFIDENCE,
                        method="ai",
                    )
                    break
            else:
                logger.debug(f"Classifier answer '{answer}' is not a category of supplier {supplier_id}")

        self._ai_cache[key] = result
        return result


__all__ = [
    "CategoryMatch",
    "CategoryClassifier",
    "RouterCategoryClassifier",
    "CategorizationEngine",
    "build_prompt",
    "match_keywords",
    "score_rule",
]
