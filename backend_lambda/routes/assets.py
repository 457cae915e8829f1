from routes.resources import (
    ResourceFamily, handle_create, handle_delete, handle_get, handle_list, handle_update,
)


def _build_asset(body):
    fields = {
        "name": body["name"],
        "currentValue": body["currentValue"],
        "annualAPY": body["annualAPY"],
    }
    if body.get("notes") is not None:
        fields["notes"] = body["notes"]
    return fields


ASSETS = ResourceFamily(
    name="assets",
    label="Asset",
    required=("name", "currentValue", "annualAPY"),
    build=_build_asset,
    id_param="assetId",
)


def handle_get_assets(services, event, asset_id=None):
    if asset_id:
        return handle_get(services, ASSETS, event, asset_id)
    return handle_list(services, ASSETS, event)


def handle_create_asset(services, event):
    return handle_create(services, ASSETS, event)


def handle_update_asset(services, event, asset_id):
    return handle_update(services, ASSETS, event, asset_id)


def handle_delete_asset(services, event, asset_id):
    return handle_delete(services, ASSETS, event, asset_id)
