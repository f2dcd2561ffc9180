"""Read-only lookups against the property catalog and the customer CRM."""

from __future__ import annotations

from supabase import Client

from app.schemas.catalog import CustomerRef, PropertyRef


def _as_float(value: object) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_property(row: dict) -> PropertyRef:
    return PropertyRef(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        price=_as_float(row.get("price")),
        google_calendar_id=row.get("google_calendar_id") or None,
    )


def _to_customer(row: dict) -> CustomerRef:
    return CustomerRef(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        email=row.get("email") or None,
    )


async def get_property(client: Client, property_id: str) -> PropertyRef | None:
    response = (
        client.table("properties")
        .select("id, name, price, google_calendar_id")
        .eq("id", property_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        return None
    return _to_property(response.data[0])


async def get_customer(client: Client, customer_id: str) -> CustomerRef | None:
    response = (
        client.table("customers")
        .select("id, name, email")
        .eq("id", customer_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        return None
    return _to_customer(response.data[0])


async def get_properties_by_ids(client: Client, property_ids: list[str]) -> dict[str, PropertyRef]:
    if not property_ids:
        return {}
    response = (
        client.table("properties")
        .select("id, name, price, google_calendar_id")
        .in_("id", sorted(set(property_ids)))
        .execute()
    )
    properties = [_to_property(row) for row in response.data or []]
    return {prop.id: prop for prop in properties}


async def get_customers_by_ids(client: Client, customer_ids: list[str]) -> dict[str, CustomerRef]:
    if not customer_ids:
        return {}
    response = (
        client.table("customers")
        .select("id, name, email")
        .in_("id", sorted(set(customer_ids)))
        .execute()
    )
    customers = [_to_customer(row) for row in response.data or []]
    return {customer.id: customer for customer in customers}
