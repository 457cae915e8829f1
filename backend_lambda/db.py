import uuid
from datetime import datetime, timezone

from boto3.dynamodb.conditions import Key

from config import INITIAL_VERSION, OWNER_INDEX_NAME, log_ctx, logger
from helpers import from_dynamo, to_dynamo

IMMUTABLE_FIELDS = ("id", "ownerId", "version", "createdAt")
VERSIONED_FAMILIES = ("users", "plans", "budgets", "assets", "debts")


def utc_now():
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def new_id():
    return str(uuid.uuid4())


def strip_immutable(fields):
    return {k: v for k, v in (fields or {}).items() if k not in IMMUTABLE_FIELDS and k != "updatedAt"}


def query_all(table, **kwargs):
    items = []
    while True:
        resp = table.query(**kwargs)
        items.extend(resp.get("Items", []))
        last_key = resp.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


class ResourceStore:
    """
    Persistence for one resource family (one DynamoDB table keyed by `id`,
    with a GSI on `ownerId`).

    Ownership is not checked here; handlers do that.
    """

    def __init__(self, table, family, clock=None, id_factory=None, on_change=None,
                 owner_index=OWNER_INDEX_NAME):
        self.table = table
        self.family = family
        self.clock = clock or utc_now
        self.id_factory = id_factory or new_id
        self.on_change = on_change
        self.owner_index = owner_index

    def get_by_id(self, record_id):
        if not record_id:
            return None
        resp = self.table.get_item(Key={"id": record_id})
        item = resp.get("Item")
        return from_dynamo(item) if item else None

    def list_by_owner(self, owner_id):
        items = query_all(
            self.table,
            IndexName=self.owner_index,
            KeyConditionExpression=Key("ownerId").eq(owner_id),
        )
        return [from_dynamo(item) for item in items]

    def create(self, fields, id_override=None):
        now = self.clock()
        record = dict(strip_immutable(fields))
        record["id"] = id_override or self.id_factory()
        record["ownerId"] = fields.get("ownerId")
        record["version"] = INITIAL_VERSION
        record["createdAt"] = now
        record["updatedAt"] = now
        self.table.put_item(Item=to_dynamo(record))
        logger.info(
            f"{self.family} record created",
            extra=log_ctx(module_name="db", user_id=record["ownerId"], record_id=record["id"]),
        )
        self._changed(record["ownerId"])
        return record

    def update(self, record_id, fields, current=None):
        current = current or self.get_by_id(record_id)
        if current is None:
            return None
        record = {**current, **strip_immutable(fields)}
        record["version"] = int(current.get("version") or 0) + 1
        record["updatedAt"] = self.clock()
        self.table.put_item(Item=to_dynamo(record))
        logger.info(
            f"{self.family} record updated",
            extra=log_ctx(
                module_name="db", user_id=record.get("ownerId"),
                record_id=record_id, version=record["version"],
            ),
        )
        self._changed(record.get("ownerId"))
        return record

    def delete(self, record_id, owner_id=None):
        self.table.delete_item(Key={"id": record_id})
        if owner_id:
            self._changed(owner_id)

    def _changed(self, owner_id):
        if self.on_change and owner_id:
            self.on_change(owner_id, self.family)


class UserVersionStore:
    """
    Append-only history of per-user version snapshots, keyed by
    (userId, globalVersion). The newest snapshot is the current one.
    """

    def __init__(self, table, clock=None):
        self.table = table
        self.clock = clock or utc_now

    def latest(self, user_id):
        resp = self.table.query(
            KeyConditionExpression=Key("userId").eq(user_id),
            ScanIndexForward=False,
            Limit=1,
        )
        items = resp.get("Items", [])
        return from_dynamo(items[0]) if items else None

    def append(self, user_id, data):
        snapshot = dict(data)
        snapshot["userId"] = user_id
        snapshot["createdAt"] = self.clock()
        self.table.put_item(Item=to_dynamo(snapshot))
        return snapshot

    def initial_snapshot(self):
        snapshot = {"globalVersion": INITIAL_VERSION}
        for family in VERSIONED_FAMILIES:
            snapshot[f"{family}Version"] = INITIAL_VERSION
        return snapshot

    def record_user_created(self, user_id):
        prior = self.latest(user_id)
        if prior is None:
            return self.append(user_id, self.initial_snapshot())
        data = {k: v for k, v in prior.items() if k not in ("userId", "createdAt")}
        data["globalVersion"] = int(prior.get("globalVersion") or 0) + 1
        data["usersVersion"] = INITIAL_VERSION
        return self.append(user_id, data)

    def record_user_updated(self, user_id, user_version):
        prior = self.latest(user_id) or self.initial_snapshot()
        data = {k: v for k, v in prior.items() if k not in ("userId", "createdAt")}
        data["globalVersion"] = int(prior.get("globalVersion") or 0) + 1
        data["usersVersion"] = int(user_version)
        return self.append(user_id, data)

    def bump(self, user_id, family):
        prior = self.latest(user_id)
        if prior is None:
            return self.append(user_id, self.initial_snapshot())
        data = {k: v for k, v in prior.items() if k not in ("userId", "createdAt")}
        data["globalVersion"] = int(prior.get("globalVersion") or 0) + 1
        key = f"{family}Version"
        data[key] = int(prior.get(key) or 0) + 1
        return self.append(user_id, data)
