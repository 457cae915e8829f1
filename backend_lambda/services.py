"""
services.py — Per-process service container
============================================
Stores and AWS clients are built once per Lambda execution environment and
handed to handlers explicitly. Tests build a `Services` with fakes instead.
"""

import boto3
from botocore.config import Config

from config import (
    ASSETS_TABLE, AWS_REGION, BUDGETS_TABLE, DEBTS_TABLE, DYNAMODB_ENDPOINT_URL,
    LANGFUSE_HOST, LANGFUSE_PUBLIC_KEY, LANGFUSE_SECRET_KEY, PLANS_TABLE,
    USER_VERSIONS_TABLE, USERS_TABLE, log_ctx, logger,
)
from db import ResourceStore, UserVersionStore

_client_config = Config(retries={"mode": "standard"})


class Services:
    def __init__(self, users, plans, budgets, assets, debts, user_versions,
                 bedrock=None, cloudwatch=None, langfuse=None):
        self.users = users
        self.plans = plans
        self.budgets = budgets
        self.assets = assets
        self.debts = debts
        self.user_versions = user_versions
        self.bedrock = bedrock
        self.cloudwatch = cloudwatch
        self.langfuse = langfuse

    @classmethod
    def from_tables(cls, tables, clock=None, id_factory=None, **clients):
        """
        Wire stores over a mapping of family name -> table object.

        Plan/budget/asset/debt changes bump the owner's UserVersion snapshot.
        """
        user_versions = UserVersionStore(tables["user_versions"], clock=clock)

        def store(family, on_change=None):
            return ResourceStore(
                tables[family], family, clock=clock, id_factory=id_factory, on_change=on_change,
            )

        return cls(
            users=store("users"),
            plans=store("plans", user_versions.bump),
            budgets=store("budgets", user_versions.bump),
            assets=store("assets", user_versions.bump),
            debts=store("debts", user_versions.bump),
            user_versions=user_versions,
            **clients,
        )


def _resolve_secret(ssm_client, value):
    if value and value.startswith("ssm:"):
        return ssm_client.get_parameter(Name=value[4:], WithDecryption=True)["Parameter"]["Value"]
    return value


def build_langfuse(ssm_client):
    if not (LANGFUSE_PUBLIC_KEY and LANGFUSE_SECRET_KEY):
        return None
    try:
        from langfuse import Langfuse
        return Langfuse(
            public_key=_resolve_secret(ssm_client, LANGFUSE_PUBLIC_KEY),
            secret_key=_resolve_secret(ssm_client, LANGFUSE_SECRET_KEY),
            host=LANGFUSE_HOST,
        )
    except Exception:
        logger.error("Langfuse init error", extra=log_ctx(module_name="services"), exc_info=True)
        return None


def build_services():
    logger.info("Building service container", extra=log_ctx(module_name="services"))
    dynamodb = boto3.resource(
        "dynamodb", region_name=AWS_REGION, endpoint_url=DYNAMODB_ENDPOINT_URL, config=_client_config,
    )
    tables = {
        "users": dynamodb.Table(USERS_TABLE),
        "plans": dynamodb.Table(PLANS_TABLE),
        "budgets": dynamodb.Table(BUDGETS_TABLE),
        "assets": dynamodb.Table(ASSETS_TABLE),
        "debts": dynamodb.Table(DEBTS_TABLE),
        "user_versions": dynamodb.Table(USER_VERSIONS_TABLE),
    }
    ssm_client = boto3.client("ssm", region_name=AWS_REGION)
    return Services.from_tables(
        tables,
        bedrock=boto3.client("bedrock-runtime", region_name=AWS_REGION, config=_client_config),
        cloudwatch=boto3.client("cloudwatch", region_name=AWS_REGION),
        langfuse=build_langfuse(ssm_client),
    )
