"""
LLM Categorizer

Optional helper for the rule-creation prompt: asks Claude which of the
categories already used by the rules best fits an uncategorised
transaction. Disabled unless an API key is available.
"""
import json
import os
from typing import List, Optional

import anthropic

from ..config import DEFAULT_LLM_MODEL
from ..logging_setup import get_logger

logger = get_logger(__name__)


class LLMCategorizer:
    """
    Suggests categories using the Claude API
    """

    def __init__(self,
                 categories: List[str],
                 api_key: Optional[str] = None,
                 model: str = DEFAULT_LLM_MODEL,
                 client=None):
        """
        Args:
            categories: Allowed categories (uppercase, as used in rules)
            api_key: Anthropic API key (or read from ANTHROPIC_API_KEY env var)
            model: Model name
            client: Pre-built client (mainly for tests)
        """
        self.categories = sorted({c.strip().upper() for c in categories if c and c.strip()})
        self.model = model
        self.client = client

        if self.client is None:
            api_key = api_key or os.environ.get('ANTHROPIC_API_KEY')
            if api_key:
                self.client = anthropic.Anthropic(api_key=api_key)

        self.enabled = self.client is not None and bool(self.categories)
        if not self.enabled:
            logger.info("LLM category suggestions disabled")

    def _build_prompt(self, description: str, amount: float) -> str:
        category_list = '\n'.join(f"- {c}" for c in self.categories)
        return f"""You are a personal-finance assistant. Pick the best category for this bank transaction.

CATEGORIES:
{category_list}

TRANSACTION:
Description: {description}
Amount: {amount:.2f}

Respond with ONLY a JSON object (no markdown, no explanations):
{{"category": "CATEGORY NAME"}}

Rules:
- Choose ONLY from the categories above"""

    def suggest_category(self, description: str, amount: float = 0.0) -> Optional[str]:
        """
        Suggest one of the allowed categories

        Returns:
            Uppercase category, or None if disabled, failed or invalid
        """
        if not self.enabled:
            return None

        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=100,
                temperature=0.0,
                messages=[{
                    "role": "user",
                    "content": self._build_prompt(description, amount)
                }]
            )
            response_text = message.content[0].text.strip()
        except anthropic.APIError as e:
            logger.warning("LLM category suggestion failed: %s", e)
            return None

        # Remove markdown code blocks if present
        if response_text.startswith('```'):
            lines = response_text.split('\n')
            response_text = '\n'.join(lines[1:-1])

        try:
            result = json.loads(response_text)
        except json.JSONDecodeError as e:
            logger.warning("LLM response not valid JSON: %s", e)
            return None

        category = str(result.get('category', '')).strip().upper() if isinstance(result, dict) else ''
        if category not in self.categories:
            logger.warning("LLM suggested unknown category: %s", category)
            return None
        return category
