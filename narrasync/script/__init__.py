"""Voice-over script generation under word budgets."""

from .vo_script import (
    WORD_BUDGETS,
    BudgetExceededError,
    ScriptValidation,
    VOScriptGenerator,
    WordBudget,
    budget_for_duration,
    enforce_budget,
    extract_evidence_tokens,
    validate_script,
)

__all__ = [
    "WORD_BUDGETS",
    "BudgetExceededError",
    "ScriptValidation",
    "VOScriptGenerator",
    "WordBudget",
    "budget_for_duration",
    "enforce_budget",
    "extract_evidence_tokens",
    "validate_script",
]
