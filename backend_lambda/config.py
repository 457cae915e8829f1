"""
config.py — Budget Planner Lambda Configuration & Structured Logging
=====================================================================
Every log line carries:
  - timestamp, level, message
  - lambda_name: "budget-planner"
  - request_id: Lambda invocation ID
  - user_id: caller identity (Cognito sub)
  - method: HTTP method (GET, POST, ...)
  - path: request path (/assets, /users/me, ...)
  - module: which module/route produced the line
"""

import json
import logging
import os


# ══════════════════════════════════════════════════════════════════
#  Structured JSON Logger
# ══════════════════════════════════════════════════════════════════

class _StructuredFormatter(logging.Formatter):
    """
    Renders every record as a single JSON line that CloudWatch Insights can filter.

    Context fields are attached to the LogRecord with extra=:
        logger.info("msg", extra=log_ctx(user_id="abc", path="/assets"))
    """

    ALWAYS_FIELDS = (
        "lambda_name", "request_id", "user_id", "method", "path", "module",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "lambda_name": LAMBDA_NAME,
            "message": record.getMessage(),
            "logger": record.name,
            "module": getattr(record, "module_name", record.module),
            # "-" when absent so queries never have to match on empty values
            "request_id": getattr(record, "request_id", "-"),
            "user_id": getattr(record, "user_id", "-"),
            "method": getattr(record, "method", "-"),
            "path": getattr(record, "path", "-"),
        }

        # PII only at DEBUG & ERROR
        email = getattr(record, "email", None)
        if email and record.levelno in (logging.DEBUG, logging.ERROR):
            entry["email"] = email

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
            entry["exception_type"] = record.exc_info[0].__name__

        skip = {
            "msg", "args", "created", "filename", "funcName", "levelname",
            "levelno", "lineno", "module", "msecs", "name", "pathname",
            "process", "processName", "relativeCreated", "stack_info",
            "taskName", "thread", "threadName", "exc_info", "exc_text",
            "message",
        } | set(self.ALWAYS_FIELDS) | {"module_name", "email"}

        for key, val in record.__dict__.items():
            if key not in skip and not key.startswith("_"):
                entry[key] = val

        return json.dumps(entry, ensure_ascii=False, default=str)


def _setup_logger() -> logging.Logger:
    root = logging.getLogger()
    root.setLevel(os.environ.get("LOG_LEVEL", "INFO"))
    formatter = _StructuredFormatter()
    if root.handlers:
        for h in root.handlers:
            h.setFormatter(formatter)
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root.addHandler(handler)
    return root


def log_ctx(**kwargs) -> dict:
    """
    Passed as extra= to logger.info/warning/error calls.

    Example:
        logger.info("Assets listed", extra=log_ctx(
            request_id=request_id, user_id=user_id,
            method="GET", path="/assets", module_name="assets"
        ))
    """
    return kwargs


# ══════════════════════════════════════════════════════════════════
#  AWS & App Config
# ══════════════════════════════════════════════════════════════════

LAMBDA_NAME = os.environ.get("LAMBDA_NAME", "budget-planner")
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
ALLOWED_ORIGIN = os.environ.get("ALLOWED_ORIGIN", "*")
ALLOWED_HEADERS = os.environ.get(
    "ALLOWED_HEADERS",
    "Content-Type,Authorization,X-Amz-Date,X-Api-Key,X-Amz-Security-Token",
)
ALLOWED_METHODS = "GET,POST,PUT,DELETE,OPTIONS"

# ── DynamoDB ──────────────────────────────────────────────────────
USERS_TABLE = os.environ.get("USERS_TABLE", "BudgetPlanner-Users")
PLANS_TABLE = os.environ.get("PLANS_TABLE", "BudgetPlanner-Plans")
BUDGETS_TABLE = os.environ.get("BUDGETS_TABLE", "BudgetPlanner-Budgets")
ASSETS_TABLE = os.environ.get("ASSETS_TABLE", "BudgetPlanner-Assets")
DEBTS_TABLE = os.environ.get("DEBTS_TABLE", "BudgetPlanner-Debts")
USER_VERSIONS_TABLE = os.environ.get("USER_VERSIONS_TABLE", "BudgetPlanner-UserVersions")
OWNER_INDEX_NAME = os.environ.get("OWNER_INDEX_NAME", "OwnerIndex")
DYNAMODB_ENDPOINT_URL = os.environ.get("DYNAMODB_ENDPOINT_URL") or None

# ── Bedrock ───────────────────────────────────────────────────────
BEDROCK_MODEL_ID = os.environ.get("BEDROCK_MODEL_ID", "anthropic.claude-3-haiku-20240307-v1:0")
FEEDBACK_MAX_TOKENS = int(os.environ.get("FEEDBACK_MAX_TOKENS", "1000"))
FEEDBACK_TEMPERATURE = float(os.environ.get("FEEDBACK_TEMPERATURE", "0.7"))
BEDROCK_INPUT_TOKEN_PRICE = float(os.environ.get("BEDROCK_INPUT_TOKEN_PRICE", "0.00000025"))
BEDROCK_OUTPUT_TOKEN_PRICE = float(os.environ.get("BEDROCK_OUTPUT_TOKEN_PRICE", "0.00000125"))
METRICS_NAMESPACE = os.environ.get("METRICS_NAMESPACE", "BudgetPlanner/Bedrock")

# ── Langfuse (optional LLM tracing) ───────────────────────────────
LANGFUSE_PUBLIC_KEY = os.environ.get("LANGFUSE_PUBLIC_KEY")
LANGFUSE_SECRET_KEY = os.environ.get("LANGFUSE_SECRET_KEY")
LANGFUSE_HOST = os.environ.get("LANGFUSE_HOST", "https://cloud.langfuse.com")

# ── User provisioning defaults ────────────────────────────────────
DEFAULT_EMAIL = "unknown@example.com"
DEFAULT_DISPLAY_NAME = "User"
DEFAULT_BIRTHDAY = os.environ.get("DEFAULT_BIRTHDAY", "1990-01-01")
DEFAULT_RETIREMENT_AGE = int(os.environ.get("DEFAULT_RETIREMENT_AGE", "65"))

INITIAL_VERSION = 1

logger = _setup_logger()
