"""Shared test helpers (importable from test modules)."""


class FakeSearch:
    """Stands in for the CDN search; records the expressions it was asked for."""

    def __init__(self, public_ids=()):
        self.public_ids = list(public_ids)
        self.calls: list[str] = []

    async def search_public_ids(self, expression: str) -> list[str]:
        self.calls.append(expression)
        return list(self.public_ids)


def auth_headers(user) -> dict[str, str]:
    from imaginer.core.security import create_session_cookie
    from imaginer.deps import SESSION_COOKIE_NAME
    cookie = create_session_cookie({"auth_id": user.auth_id})
    return {"Cookie": f"{SESSION_COOKIE_NAME}={cookie}"}


def image_payload(public_id: str = "imaginer/sample", **overrides) -> dict:
    body = {
        "title": "Sample",
        "config": {"kind": "restore"},
        "public_id": public_id,
        "secure_url": f"https://res.cloudinary.com/demo/image/upload/{public_id}.jpg",
        "width": 800,
        "height": 600,
    }
    body.update(overrides)
    return body
