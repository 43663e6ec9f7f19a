from .api import ApiClient


class AuthClient:
    def __init__(self, api: ApiClient):
        self.api = api

    def _remember(self, body: dict) -> dict:
        if body.get("success"):
            data = body["data"]
            self.api.session.save(data["token"], data["user"])
        return body

    def register(self, name: str, email: str, password: str) -> dict:
        return self._remember(
            self.api.post("/auth/register", {"name": name, "email": email, "password": password})
        )

    def login(self, email: str, password: str) -> dict:
        return self._remember(self.api.post("/auth/login", {"email": email, "password": password}))

    def logout(self) -> None:
        self.api.session.clear()
        if self.api.on_unauthorized is not None:
            self.api.on_unauthorized()

    def current_user(self) -> dict | None:
        return self.api.session.user

    def is_authenticated(self) -> bool:
        return bool(self.api.session.token)

    def is_admin(self) -> bool:
        user = self.current_user()
        return bool(user) and user.get("role") == "admin"


class SweetClient:
    def __init__(self, api: ApiClient):
        self.api = api

    def get_all(self) -> list[dict]:
        return self.api.get("/sweets")["data"]

    def search(
        self,
        name: str | None = None,
        category: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
    ) -> list[dict]:
        params = {}
        if name:
            params["name"] = name
        if category:
            params["category"] = category
        if min_price is not None:
            params["minPrice"] = str(min_price)
        if max_price is not None:
            params["maxPrice"] = str(max_price)
        return self.api.get("/sweets/search", params=params)["data"]

    def create(self, sweet: dict) -> dict:
        return self.api.post("/sweets", sweet)["data"]

    def update(self, sweet_id: str, updates: dict) -> dict:
        return self.api.put(f"/sweets/{sweet_id}", updates)["data"]

    def delete(self, sweet_id: str) -> None:
        self.api.delete(f"/sweets/{sweet_id}")

    def purchase(self, sweet_id: str, quantity: int) -> dict:
        return self.api.post(f"/sweets/{sweet_id}/purchase", {"quantity": quantity})["data"]

    def restock(self, sweet_id: str, quantity: int) -> dict:
        return self.api.post(f"/sweets/{sweet_id}/restock", {"quantity": quantity})["data"]
