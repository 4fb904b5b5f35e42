"""
Transaction Categorizer Module

Assigns spending categories using an ordered keyword rule table. The first
rule with a matching keyword wins. Transactions left in the default category
can optionally be refined with Claude.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import anthropic

from .models import Category, ParsedTransaction
from .settings import load_yaml, resolve_config_dir
from .taxonomy import DEFAULT_CATEGORY_ID

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.3


@dataclass(frozen=True)
class CategoryRule:
    """Keywords that place a transaction in a category."""

    category_id: str
    keywords: tuple[str, ...]

    def matches(self, text: str) -> tuple[str, ...]:
        """Keywords of this rule found in the lowercase search text."""
        return tuple(keyword for keyword in self.keywords if keyword in text)


@dataclass
class Classification:
    """Categorization result for one transaction."""

    category_id: str
    confidence: float
    method: str  # 'rule', 'default', 'claude'
    matched_keywords: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "category_id": self.category_id,
            "confidence": self.confidence,
            "method": self.method,
            "matched_keywords": self.matched_keywords,
        }


def load_rules(path: Path | str | None = None) -> tuple[CategoryRule, ...]:
    """Load the ordered rule table.

    Args:
        path: Path to category_rules.yaml (defaults to the config dir)

    Returns:
        Rules in priority order
    """
    path = Path(path) if path else resolve_config_dir() / "category_rules.yaml"
    data = load_yaml(path)

    rules = tuple(
        CategoryRule(
            category_id=entry["category"],
            keywords=tuple(str(k).lower() for k in entry.get("keywords", [])),
        )
        for entry in data.get("rules", [])
    )
    logger.info(f"Loaded {len(rules)} category rules from {path}")
    return rules


class TransactionCategorizer:
    """First-match-wins keyword categorizer."""

    DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

    def __init__(
        self,
        rules: tuple[CategoryRule, ...] | None = None,
        default_category_id: str = DEFAULT_CATEGORY_ID,
        categories: list[Category] | None = None,
        use_claude: bool = False,
        api_key: str | None = None,
        model: str | None = None,
        client: anthropic.Anthropic | None = None
    ):
        """Initialize the categorizer.

        Args:
            rules: Ordered rule table (loaded from config if not provided)
            default_category_id: Category used when no rule matches
            categories: Known categories, required for Claude refinement
            use_claude: Whether to ask Claude about unmatched transactions
            api_key: Anthropic API key
            model: Claude model to use
            client: Preconfigured Anthropic client
        """
        self.rules = tuple(rules) if rules is not None else load_rules()
        self.default_category_id = default_category_id
        self.categories = list(categories or [])
        self.use_claude = use_claude
        self.model = model or self.DEFAULT_MODEL

        if use_claude:
            self.client = client or anthropic.Anthropic(api_key=api_key)
        else:
            self.client = None

    @classmethod
    def from_config(
        cls,
        config_dir: Path | str | None = None,
        **kwargs
    ) -> "TransactionCategorizer":
        """Create a categorizer from the rule table in a config directory."""
        rules = load_rules(resolve_config_dir(config_dir) / "category_rules.yaml")
        return cls(rules=rules, **kwargs)

    @staticmethod
    def search_text(description: str, merchant_name: str | None = None) -> str:
        return f"{description} {merchant_name or ''}".lower()

    def classify_text(self, description: str, merchant_name: str | None = None) -> Classification:
        """Classify a description using the rule table only."""
        text = self.search_text(description, merchant_name)

        for rule in self.rules:
            matched = rule.matches(text)
            if matched:
                return Classification(
                    category_id=rule.category_id,
                    confidence=len(matched) / len(rule.keywords),
                    method="rule",
                    matched_keywords=list(matched),
                )

        return Classification(
            category_id=self.default_category_id,
            confidence=DEFAULT_CONFIDENCE,
            method="default",
        )

    def classify(self, transaction: ParsedTransaction) -> Classification:
        """Classify a transaction.

        Args:
            transaction: Transaction to classify

        Returns:
            Classification
        """
        result = self.classify_text(transaction.description, transaction.merchant_name)

        if result.method == "default" and self.use_claude and self.client:
            refined = self._classify_with_claude(transaction)
            if refined:
                return refined

        return result

    def categorize(self, transaction: ParsedTransaction) -> str:
        """Assign a category to a transaction in place and return its ID."""
        result = self.classify(transaction)
        transaction.category_id = result.category_id
        transaction.category_confidence = result.confidence
        return result.category_id

    def _classify_with_claude(self, transaction: ParsedTransaction) -> Classification | None:
        """Ask Claude for a category. Returns None if the answer is unusable."""
        known = {c.id: c for c in self.categories}
        if not known:
            return None

        category_list = "\n".join(f"{c.id}: {c.display_name}" for c in self.categories)
        prompt = f"""Categorize this personal card transaction.

Description: {transaction.description}
Merchant: {transaction.merchant_name or 'Unknown'}
Amount: {abs(transaction.amount):.2f}

Available categories:
{category_list}

Output ONLY a JSON object: {{"category_id": "<id>", "confidence": 0.0-1.0}}"""

        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=200,
                messages=[{"role": "user", "content": prompt}]
            )

            cleaned = message.content[0].text.strip()
            cleaned = re.sub(r'^```json\s*', '', cleaned)
            cleaned = re.sub(r'^```\s*', '', cleaned)
            cleaned = re.sub(r'\s*```$', '', cleaned)
            data = json.loads(cleaned)

            category_id = data.get("category_id")
            if category_id not in known or category_id == self.default_category_id:
                return None

            return Classification(
                category_id=category_id,
                confidence=min(1.0, max(0.0, float(data.get("confidence", 0.5)))),
                method="claude",
            )

        except (anthropic.APIError, json.JSONDecodeError, AttributeError, IndexError,
                TypeError, ValueError) as e:
            logger.warning(f"Claude categorization failed for {transaction.description!r}: {e}")
            return None
