from routes.resources import (
    ResourceFamily, handle_create, handle_delete, handle_get, handle_list, handle_update,
)


def _build_debt(body):
    fields = {
        "name": body["name"],
        "currentBalance": body["currentBalance"],
        "interestRate": body["interestRate"],
        "minimumPayment": body["minimumPayment"],
    }
    if body.get("notes") is not None:
        fields["notes"] = body["notes"]
    return fields


DEBTS = ResourceFamily(
    name="debts",
    label="Debt",
    required=("name", "currentBalance", "interestRate", "minimumPayment"),
    build=_build_debt,
    id_param="debtId",
)


def handle_get_debts(services, event, debt_id=None):
    if debt_id:
        return handle_get(services, DEBTS, event, debt_id)
    return handle_list(services, DEBTS, event)


def handle_create_debt(services, event):
    return handle_create(services, DEBTS, event)


def handle_update_debt(services, event, debt_id):
    return handle_update(services, DEBTS, event, debt_id)


def handle_delete_debt(services, event, debt_id):
    return handle_delete(services, DEBTS, event, debt_id)
