"""
feedback.py — Budget feedback via Bedrock
==========================================
  - build_feedback_prompt: budget figures → deterministic prompt text
  - parse_feedback: free-text model reply → {improvements, strengths, summary}
  - generate_budget_feedback: prompt → Bedrock → parsed result

The parser keys off section header words and "-"/"•" bullets in the reply.
Anything it cannot place falls back to fixed default text.
"""

import json
import time

from auth import get_user_id
from config import (
    BEDROCK_MODEL_ID, FEEDBACK_MAX_TOKENS, FEEDBACK_TEMPERATURE, log_ctx, logger,
)
from helpers import (
    InvalidBodyError, _safe_float, emit_bedrock_metrics, error, event_body, success,
    validate_present,
)
from routes.resources import INVALID_BODY_MESSAGE, UNAUTHORIZED_MESSAGE

FEEDBACK_REQUIRED_FIELDS = ("budgetName", "income", "expenses", "totalIncome", "totalExpenses")

MAX_IMPROVEMENTS = 3
MAX_STRENGTHS = 2
MAX_SUMMARY_CHARS = 300
BULLET_MARKERS = ("-", "•")

DEFAULT_IMPROVEMENTS = [
    "Review your expense categories for potential savings opportunities",
    "Consider setting aside more for an emergency fund",
    "Look for recurring subscriptions you no longer use",
]
DEFAULT_STRENGTHS = [
    "You are actively tracking your budget",
    "You have a clear picture of your income and expenses",
]
DEFAULT_SUMMARY = (
    "Your budget is a good starting point. Keep tracking your spending "
    "and adjust your categories as your situation changes."
)

SYSTEM_PROMPT = (
    "You are a friendly, practical personal finance coach. "
    "Give specific, actionable feedback grounded only in the numbers provided. "
    "Do not give investment advice."
)


# ══════════════════════════════════════════════════════════════════
#  Prompt
# ══════════════════════════════════════════════════════════════════

def calculate_savings_rate(total_income, total_expenses):
    income = _safe_float(total_income)
    expenses = _safe_float(total_expenses)
    if income == 0:
        return "0"
    return f"{(income - expenses) / income * 100:.1f}"


def _money(value):
    return f"${_safe_float(value):,.2f}"


def _line_label(item):
    name = item.get("name") or item.get("category") or "Unnamed"
    category = item.get("category")
    if category and category != name:
        return f"{name} ({category})"
    return name


def _format_lines(items):
    lines = [
        f"- {_line_label(item)}: {_money(item.get('amount'))}"
        for item in (items if isinstance(items, list) else []) if isinstance(item, dict)
    ]
    return lines or ["- None listed"]


def build_feedback_prompt(budget):
    total_income = _safe_float(budget.get("totalIncome"))
    total_expenses = _safe_float(budget.get("totalExpenses"))
    savings_rate = calculate_savings_rate(total_income, total_expenses)
    lines = [
        f'Please review the monthly budget "{budget.get("budgetName")}".',
        "",
        "Income:",
        *_format_lines(budget.get("income")),
        "",
        "Expenses:",
        *_format_lines(budget.get("expenses")),
        "",
        f"Total income: {_money(total_income)}",
        f"Total expenses: {_money(total_expenses)}",
        f"Net: {_money(total_income - total_expenses)}",
        f"Savings rate: {savings_rate}%",
        "",
        "Respond in exactly this format:",
        "Areas for Improvement:",
        "- (up to 3 specific suggestions)",
        "What You're Doing Well:",
        "- (up to 2 strengths)",
        "Summary:",
        "(two or three sentences, no bullets)",
    ]
    return "\n".join(lines)


# ══════════════════════════════════════════════════════════════════
#  Reply parser
# ══════════════════════════════════════════════════════════════════

def _section_for(lowered):
    if ":" not in lowered:
        return None
    if "improvement" in lowered:
        return "improvements"
    if "strength" in lowered or "doing well" in lowered:
        return "strengths"
    if "summary" in lowered:
        return "summary"
    return None


def parse_feedback(text):
    """
    Bucket a free-text reply into improvements, strengths and summary.

    A non-bullet line with a colon that mentions "improvement",
    "strength"/"doing well" or "summary" (any case) opens that section and
    is not itself kept. Bullet lines land in the open list section; plain
    lines after the summary header join the summary.
    """
    improvements, strengths = [], []
    summary = ""
    section = None

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith(BULLET_MARKERS):
            item = line[1:].strip()
            if not item:
                continue
            if section == "improvements":
                improvements.append(item)
            elif section == "strengths":
                strengths.append(item)
            continue
        header = _section_for(line.lower())
        if header:
            section = header
        elif section == "summary":
            summary = f"{summary} {line}" if summary else line

    return {
        "improvements": improvements[:MAX_IMPROVEMENTS] or list(DEFAULT_IMPROVEMENTS),
        "strengths": strengths[:MAX_STRENGTHS] or list(DEFAULT_STRENGTHS),
        "summary": summary[:MAX_SUMMARY_CHARS] or DEFAULT_SUMMARY,
    }


# ══════════════════════════════════════════════════════════════════
#  Bedrock call
# ══════════════════════════════════════════════════════════════════

def _start_trace(langfuse, user_id, payload):
    if not langfuse:
        return None
    try:
        return langfuse.start_generation(
            name="budget-feedback", model=BEDROCK_MODEL_ID,
            input=payload["messages"], metadata={"user_id": user_id},
        )
    except Exception as exc:
        logger.warning(f"Langfuse trace start failed: {exc}")
        return None


def _end_trace(langfuse, generation, reply_text, usage):
    if not generation:
        return
    try:
        generation.update(
            output=reply_text,
            usage_details={"input": usage.get("input_tokens", 0), "output": usage.get("output_tokens", 0)},
        )
        generation.end()
        langfuse.flush()
    except Exception as exc:
        logger.warning(f"Langfuse trace end failed: {exc}")


def invoke_model(services, prompt, user_id="-"):
    payload = {
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": FEEDBACK_MAX_TOKENS,
        "temperature": FEEDBACK_TEMPERATURE,
        "system": SYSTEM_PROMPT,
        "messages": [{"role": "user", "content": prompt}],
    }
    generation = _start_trace(services.langfuse, user_id, payload)
    start = time.time()
    response = services.bedrock.invoke_model(
        modelId=BEDROCK_MODEL_ID, body=json.dumps(payload),
        accept="application/json", contentType="application/json",
    )
    elapsed_ms = int((time.time() - start) * 1000)
    response_body = json.loads(response["body"].read())
    reply_text = ""
    content_block = response_body.get("content", [])
    if content_block and isinstance(content_block, list):
        reply_text = content_block[0].get("text", "")
    usage = response_body.get("usage", {})
    logger.info(
        "Budget feedback completion received",
        extra=log_ctx(
            module_name="feedback", user_id=user_id, elapsed_ms=elapsed_ms,
            tokens_in=usage.get("input_tokens", 0), tokens_out=usage.get("output_tokens", 0),
        ),
    )
    emit_bedrock_metrics(services.cloudwatch, "budget-feedback", usage.get("input_tokens", 0), usage.get("output_tokens", 0))
    _end_trace(services.langfuse, generation, reply_text, usage)
    return reply_text


def generate_budget_feedback(services, budget, user_id="-"):
    prompt = build_feedback_prompt(budget)
    reply_text = invoke_model(services, prompt, user_id=user_id)
    return parse_feedback(reply_text)


def handle_budget_feedback(services, event):
    user_id = get_user_id(event)
    if not user_id:
        return error(401, UNAUTHORIZED_MESSAGE)
    try:
        body = event_body(event)
    except InvalidBodyError:
        return error(400, INVALID_BODY_MESSAGE)
    missing = validate_present(body, FEEDBACK_REQUIRED_FIELDS)
    if missing:
        return error(400, "Missing required fields", {"missingFields": missing})
    try:
        feedback = generate_budget_feedback(services, body, user_id=user_id)
    except Exception:
        logger.error(
            "Budget feedback generation failed",
            extra=log_ctx(module_name="feedback", user_id=user_id),
            exc_info=True,
        )
        return error(500, "Internal server error")
    return success(feedback)
