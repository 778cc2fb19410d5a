"""Request helpers shared by the API tests."""


def auth_headers(user_id: str = "user-1", household_id: str | None = None) -> dict:
    headers = {"X-User-ID": user_id}
    if household_id:
        headers["X-Household-ID"] = household_id
    return headers
