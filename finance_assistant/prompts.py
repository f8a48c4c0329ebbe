"""Prompt text and response schema shared by every AI provider."""

from __future__ import annotations

from typing import Any

from .documents import PreparedDocument

NUMBERED_LIST_RULE = "MUST be a numbered list with headings. Each point MUST be on a separate line."

RESULT_FIELDS: dict[str, str] = {
    "validationError": (
        "If Period Consistency Check fails, return the error message here. Otherwise, leave empty."
    ),
    "validationNote": "Notes about duplicates or missing document categories.",
    "incomeAndExpense": (
        "Markdown table with 2 columns: 'Saving/Income Categories & Values' and "
        "'Expenses Categories & Values'. Must include dynamically calculated values."
    ),
    "whereMoneyIsGoing": (
        "Markdown text explaining major expense categories, fixed vs discretionary spend, "
        "debt vs lifestyle expenses, percentage breakdowns in simple terms. " + NUMBERED_LIST_RULE
    ),
    "whatCanBeSaved": (
        "Markdown text identifying overlapping subscriptions, high-interest payments, "
        "avoidable fees, cash leakage. " + NUMBERED_LIST_RULE
    ),
    "expensesToAvoid": (
        "Markdown text calling out impulse spending, excess EMI load, lifestyle inflation, "
        "repeated discretionary spends. " + NUMBERED_LIST_RULE
    ),
    "actionsToTake": (
        "Markdown text providing clear, executable actions for this period as a numbered list "
        "with headings. Each point MUST be on a separate line."
    ),
    "subscriptions": (
        "Markdown text extracting and normalizing subscriptions, identifying overlaps, and "
        "providing executable cancellation actions with links. " + NUMBERED_LIST_RULE
    ),
}

DUPLICATE_NOTE = (
    "This document appears to be a duplicate of an already uploaded file for this period "
    "and has not been considered."
)
PERIOD_MISMATCH_ERROR = (
    "One or more uploaded documents do not match the selected period. "
    "Please upload documents for the selected period only."
)
MISSING_CATEGORY_NOTE = (
    "This analysis is based on the documents provided and may improve with additional uploads."
)


def build_prompt(period_label: str) -> str:
    return f"""
You are an AI Financial Analysis Assistant designed to help non-technical users understand their personal finances using plain language, clear explanations, and actionable advice.

The user has selected the period: {period_label}.

MANDATORY VALIDATION RULES:
1. Duplicate Detection: Check for duplicates using file name similarity, transaction overlap, salary amount repetition, identical account numbers. If duplicates are found, ignore them and include a note in your response: "{DUPLICATE_NOTE}"
2. Period Consistency Check: Extract and verify the statement period, payslip month, billing cycle, etc. If ANY document belongs to a different period than {period_label}, STOP analysis immediately and return ONLY a validationError: "{PERIOD_MISMATCH_ERROR}"

If validation passes, generate an analysis in JSON format.

COMMUNICATION RULES:
- Use simple English
- Avoid financial jargon
- No shaming or judgment
- No fear-based language
- Assume user is not finance-savvy
- Always explain why something matters
- MUST use headings and numbered lists (1., 2., 3.) for all sections (except Income and Expense). Each point MUST be on a separate line.

SPECIFIC SECTION RULES:
1. Income and Expense: MUST be a Markdown table with exactly 2 columns.
   - 1st column: "Saving/Income Categories & Values". List all dynamically generated saving/income categories based on the uploaded documents, along with their respective calculated values (e.g., "Salary: ₹50,000", "Interest: ₹1,000").
   - 2nd column: "Expenses Categories & Values". List all dynamically generated expense categories based on the uploaded documents, along with their respective calculated values (e.g., "Loan Payment: ₹15,000", "House Maintenance: ₹5,000", "Education: ₹8,000").
   - Ensure the rows align as best as possible, padding with empty cells if one column has more items than the other.
   - The LAST row of the table MUST be the "Total" row, displaying the total calculated value for Saving/Income in the 1st column (e.g., "**Total Income: ₹51,000**") and the total calculated value for Expenses in the 2nd column (e.g., "**Total Expenses: ₹28,000**").
2. Subscription: From uploaded documents, extract and normalize subscriptions. Identify overlapping subscriptions.
   - Example tone: "You can potentially save ₹6,500 per month by cancelling unused subscriptions."
   - Provide clear, executable actions, not theory.
   - Example format: "✅ Cancel unused subscriptions. Provide a valid link/URL to cancel the subscriptions."

STRICT LIMITATIONS:
- No investment advice
- No tax filing advice
- No future predictions
- No assumptions beyond uploaded data
- No advice requiring professional licenses

If any required document category (Bank Statement, Salary Slip, Loan Details, Credit Card Bill, Miscellaneous Bills) is missing, include this in the validationNote: '{MISSING_CATEGORY_NOTE}'
"""


def document_header(document: PreparedDocument) -> str:
    return f"Document Category: {document.category}\nFile Name: {document.name}"


def response_json_schema() -> dict[str, Any]:
    """JSON schema for OpenAI structured outputs (strict mode needs every key required)."""

    return {
        "name": "financial_analysis",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                field: {"type": "string", "description": description}
                for field, description in RESULT_FIELDS.items()
            },
            "required": list(RESULT_FIELDS),
            "additionalProperties": False,
        },
    }


def gemini_response_schema() -> dict[str, Any]:
    return {
        "type": "OBJECT",
        "properties": {
            field: {"type": "STRING", "description": description}
            for field, description in RESULT_FIELDS.items()
        },
    }
