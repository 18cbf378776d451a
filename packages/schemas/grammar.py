"""Grammar rule schemas."""

from pydantic import BaseModel
from typing import List, Literal, Optional

RuleCategory = Literal["morphology", "phonology", "syntax", "pragmatics"]
RuleType = Literal["phoneme_rule", "inflection", "word_order", "agreement"]
RULE_CATEGORIES = ("morphology", "phonology", "syntax", "pragmatics")
RULE_TYPES = ("phoneme_rule", "inflection", "word_order", "agreement")


class RuleExample(BaseModel):
    """Worked example: input, output and what the rule did."""
    input: str
    output: str
    explanation: str = ""


class GrammarRule(BaseModel):
    """A grammar rule scoped to one language."""
    id: str
    language_id: str
    name: str
    description: str = ""
    category: str
    rule_type: str
    pattern: str = ""
    examples: List[RuleExample] = []
    added_by: Optional[str] = None
    approval_status: Literal["draft", "approved"] = "approved"
    created_at: Optional[str] = None


class NewRule(BaseModel):
    """Payload for adding a rule."""
    name: str
    description: str = ""
    category: str
    rule_type: str
    pattern: str = ""
    examples: List[RuleExample] = []


class RuleUpdate(BaseModel):
    """Partial rule update."""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    rule_type: Optional[str] = None
    pattern: Optional[str] = None
    examples: Optional[List[RuleExample]] = None
