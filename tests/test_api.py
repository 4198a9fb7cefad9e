"""
Tests for the HTTP surface.

The app is built around in-memory components (SQLite where noted) and driven with
FastAPI's TestClient, which keeps the session cookie between calls.
"""

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from finance_tracker.orchestrator import ExpenseFlow, create_app_components
from finance_tracker.services.storage import InMemoryStorage, StorageError


SIGNUP = {
    "email": "asha@example.com",
    "name": "Asha",
    "password": "Secret123",
    "securityQuestion": "First pet?",
    "securityAnswer": "Bruno",
}

EXPENSE = {
    "amount": 100,
    "category": "Food",
    "paymentMethod": "upi",
    "transactionType": "debit",
    "description": "Lunch",
    "date": "2024-12-15",
}


@pytest.fixture
def app():
    return create_app(create_app_components(use_storage=False))


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def logged_in(client):
    response = client.post("/auth/signup", json=SIGNUP)
    assert response.status_code == 201
    return client


class TestAuthRoutes:
    """Tests for /auth routes."""

    def test_signup(self, client):
        """Test 201, the user body and the session cookie."""
        response = client.post("/auth/signup", json=SIGNUP)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User created successfully"
        assert body["user"]["email"] == "asha@example.com"
        assert set(body["user"]) == {"id", "email", "name"}

        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith("auth-token=")
        assert "httponly" in cookie
        assert "samesite=strict" in cookie
        assert "max-age=604800" in cookie
        assert "; secure" not in cookie

    def test_signup_missing_fields(self, client):
        """Test the 400 body shape."""
        response = client.post("/auth/signup", json={"email": "asha@example.com"})
        assert response.status_code == 400
        assert response.json() == {
            "error": "Email, name, password, security question, and security answer are required"
        }

    def test_signup_duplicate(self, client):
        """Test 409 and that no session is issued."""
        client.post("/auth/signup", json=SIGNUP)
        fresh = TestClient(client.app)
        response = fresh.post("/auth/signup", json=SIGNUP)
        assert response.status_code == 409
        assert response.json() == {"error": "User already exists with this email"}
        assert "set-cookie" not in response.headers

    def test_signup_invalid_json(self, client):
        """Test that a broken body is a 400, not a 500."""
        response = client.post(
            "/auth/signup",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 400

    def test_login_and_me(self, client):
        """Test that login sets a cookie that /auth/me accepts."""
        client.post("/auth/signup", json=SIGNUP)
        client.cookies.clear()

        response = client.post("/auth/login", json={"email": "asha@example.com", "password": "Secret123"})
        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"

        me = client.get("/auth/me")
        assert me.status_code == 200
        assert me.json()["user"]["name"] == "Asha"

    def test_login_bad_credentials(self, client):
        """Test the 401 for a wrong password."""
        client.post("/auth/signup", json=SIGNUP)
        response = client.post("/auth/login", json={"email": "asha@example.com", "password": "Nope1234"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}

    def test_login_missing_fields(self, client):
        """Test the 400 for missing fields."""
        response = client.post("/auth/login", json={})
        assert response.status_code == 400

    def test_me_without_cookie(self, client):
        """Test the 401 without a session."""
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_me_with_forged_cookie(self, client):
        """Test that a garbage token is the same 401."""
        client.cookies.set("auth-token", "forged.token.value")
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_logout_clears_cookie(self, logged_in):
        """Test that logout sends max-age 0."""
        response = logged_in.post("/auth/logout")
        assert response.status_code == 200
        assert "max-age=0" in response.headers["set-cookie"].lower()
        assert logged_in.get("/auth/me").status_code == 401

    def test_forgot_and_reset_password(self, client):
        """Test the recovery round trip."""
        client.post("/auth/signup", json=SIGNUP)

        question = client.post("/auth/forgot-password", json={"email": "asha@example.com"})
        assert question.status_code == 200
        assert question.json() == {"securityQuestion": "First pet?"}

        reset = client.post("/auth/reset-password", json={
            "email": "asha@example.com",
            "securityAnswer": "bruno",
            "newPassword": "NewPass1",
        })
        assert reset.status_code == 200

        login = client.post("/auth/login", json={"email": "asha@example.com", "password": "NewPass1"})
        assert login.status_code == 200

    def test_forgot_password_unknown(self, client):
        """Test the 404 for an unknown email."""
        response = client.post("/auth/forgot-password", json={"email": "nobody@example.com"})
        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    def test_reset_wrong_answer(self, client):
        """Test the 400 for a wrong answer."""
        client.post("/auth/signup", json=SIGNUP)
        response = client.post("/auth/reset-password", json={
            "email": "asha@example.com",
            "securityAnswer": "Rex",
            "newPassword": "NewPass1",
        })
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid security answer"}

    def test_delete_account(self, logged_in):
        """Test deletion, cookie clearing and that login then fails."""
        logged_in.post("/expenses", json=EXPENSE)

        response = logged_in.delete("/auth/delete-account")
        assert response.status_code == 200
        assert "max-age=0" in response.headers["set-cookie"].lower()

        login = logged_in.post("/auth/login", json={"email": "asha@example.com", "password": "Secret123"})
        assert login.status_code == 401

    def test_delete_account_requires_session(self, client):
        """Test the 401 without a session."""
        assert client.delete("/auth/delete-account").status_code == 401

    def test_delete_data(self, logged_in):
        """Test that data is gone and the session still works."""
        logged_in.post("/expenses", json=EXPENSE)
        response = logged_in.delete("/auth/delete-data")
        assert response.status_code == 200
        assert logged_in.get("/expenses").json() == {"expenses": []}
        assert logged_in.get("/auth/me").status_code == 200


class TestExpenseRoutes:
    """Tests for /expenses."""

    def test_requires_session(self, client):
        """Test that every expense route needs a cookie."""
        assert client.get("/expenses").status_code == 401
        assert client.post("/expenses", json=EXPENSE).status_code == 401
        assert client.put("/expenses", json={"id": "x"}).status_code == 401
        assert client.delete("/expenses", params={"id": "x"}).status_code == 401

    def test_create_and_list(self, logged_in):
        """Test 201 and that the list returns the submitted record."""
        created = logged_in.post("/expenses", json=EXPENSE)
        assert created.status_code == 201
        expense = created.json()["expense"]
        assert expense["id"]
        assert expense["createdAt"]
        assert "accountId" not in expense

        listed = logged_in.get("/expenses").json()["expenses"]
        assert len(listed) == 1
        for key, value in EXPENSE.items():
            assert listed[0][key] == value

    def test_create_invalid(self, logged_in):
        """Test that a bad payment method is a 400."""
        response = logged_in.post("/expenses", json={**EXPENSE, "paymentMethod": "cheque"})
        assert response.status_code == 400
        assert "paymentMethod" in response.json()["error"]

    def test_update(self, logged_in):
        """Test a partial update through PUT."""
        expense_id = logged_in.post("/expenses", json=EXPENSE).json()["expense"]["id"]
        response = logged_in.put("/expenses", json={"id": expense_id, "amount": 42.5})
        assert response.status_code == 200
        assert response.json() == {"message": "Expense updated successfully"}

        (listed,) = logged_in.get("/expenses").json()["expenses"]
        assert listed["amount"] == 42.5
        assert listed["category"] == "Food"

    def test_update_requires_id(self, logged_in):
        """Test the 400 for a missing id."""
        response = logged_in.put("/expenses", json={"amount": 1})
        assert response.status_code == 400
        assert response.json() == {"error": "Expense ID is required"}

    def test_update_rejects_unknown_fields(self, logged_in):
        """Test that the patch allow-list is enforced."""
        expense_id = logged_in.post("/expenses", json=EXPENSE).json()["expense"]["id"]
        response = logged_in.put("/expenses", json={"id": expense_id, "userId": 99})
        assert response.status_code == 400

    def test_delete(self, logged_in):
        """Test deletion by query parameter."""
        expense_id = logged_in.post("/expenses", json=EXPENSE).json()["expense"]["id"]
        response = logged_in.delete("/expenses", params={"id": expense_id})
        assert response.status_code == 200
        assert logged_in.get("/expenses").json() == {"expenses": []}

    def test_delete_unknown_is_success(self, logged_in):
        """Test that deleting a missing id still answers 200."""
        response = logged_in.delete("/expenses", params={"id": "no-such-id"})
        assert response.status_code == 200

    def test_delete_requires_id(self, logged_in):
        """Test the 400 for a missing id."""
        response = logged_in.delete("/expenses")
        assert response.status_code == 400
        assert response.json() == {"error": "Expense ID is required"}

    def test_isolation(self, app):
        """Test that a second user sees and changes nothing of the first."""
        owner = TestClient(app)
        owner.post("/auth/signup", json=SIGNUP)
        expense_id = owner.post("/expenses", json=EXPENSE).json()["expense"]["id"]

        intruder = TestClient(app)
        intruder.post("/auth/signup", json={**SIGNUP, "email": "ravi@example.com"})
        assert intruder.get("/expenses").json() == {"expenses": []}

        update = intruder.put("/expenses", json={"id": expense_id, "amount": 1})
        delete = intruder.delete("/expenses", params={"id": expense_id})
        assert update.status_code == 200
        assert delete.status_code == 200

        (listed,) = owner.get("/expenses").json()["expenses"]
        assert listed["amount"] == 100


class TestCategoryRoutes:
    """Tests for /categories."""

    def test_first_list_seeds_defaults(self, logged_in):
        """Test the eight default categories."""
        categories = logged_in.get("/categories").json()["categories"]
        assert len(categories) == 8
        assert all(c["isDefault"] for c in categories)

    def test_create_and_delete(self, logged_in):
        """Test 201 on create and removal on delete."""
        created = logged_in.post("/categories", json={"name": "Pets", "color": "#000000"})
        assert created.status_code == 201
        category = created.json()["category"]
        assert category["isDefault"] is False

        response = logged_in.delete("/categories", params={"id": category["id"]})
        assert response.status_code == 200
        names = [c["name"] for c in logged_in.get("/categories").json()["categories"]]
        assert "Pets" not in names

    def test_default_survives_delete(self, logged_in):
        """Test that deleting a default category answers 200 but keeps it."""
        travel = next(
            c for c in logged_in.get("/categories").json()["categories"]
            if c["name"] == "Travel"
        )
        assert logged_in.delete("/categories", params={"id": travel["id"]}).status_code == 200
        names = [c["name"] for c in logged_in.get("/categories").json()["categories"]]
        assert "Travel" in names

    def test_delete_requires_id(self, logged_in):
        """Test the 400 for a missing id."""
        response = logged_in.delete("/categories")
        assert response.status_code == 400
        assert response.json() == {"error": "Category ID is required"}

    def test_requires_session(self, client):
        """Test the 401 without a cookie."""
        assert client.get("/categories").status_code == 401


class TestAnalyticsRoute:
    """Tests for /analytics."""

    def test_summary(self, logged_in):
        """Test totals on the wire."""
        logged_in.post("/expenses", json=EXPENSE)
        logged_in.post("/expenses", json={**EXPENSE, "amount": 500, "transactionType": "credit"})

        analytics = logged_in.get("/analytics").json()["analytics"]
        assert analytics["totalExpenses"] == 100
        assert analytics["totalIncome"] == 500
        assert analytics["netBalance"] == 400
        assert analytics["categoryBreakdown"] == {"Food": 100}
        assert len(analytics["monthlyTrends"]) == 6

    def test_months_parameter(self, logged_in):
        """Test a custom bucket count."""
        analytics = logged_in.get("/analytics", params={"months": 3}).json()["analytics"]
        assert len(analytics["monthlyTrends"]) == 3

    @pytest.mark.parametrize("months", ["0", "abc", "100"])
    def test_bad_months(self, logged_in, months):
        """Test that an unusable bucket count is a 400."""
        assert logged_in.get("/analytics", params={"months": months}).status_code == 400


@pytest.fixture
def sql_app():
    components = create_app_components()
    assert components.sql_client is not None
    yield create_app(components)
    components.sql_client.dispose()


class TestSqlBackedSessions:
    """Session and signup checks against the SQLite backend."""

    def test_deleted_account_token_is_refused(self, sql_app):
        """Test that a token outliving its account never reaches the next signup's data."""
        former = TestClient(sql_app)
        first = former.post("/auth/signup", json=SIGNUP).json()["user"]
        stale = {"Cookie": f"auth-token={former.cookies.get('auth-token')}"}
        assert former.delete("/auth/delete-account").status_code == 200

        newcomer = TestClient(sql_app)
        second = newcomer.post(
            "/auth/signup",
            json={**SIGNUP, "email": "ravi@example.com", "name": "Ravi"},
        ).json()["user"]
        newcomer.post("/expenses", json={**EXPENSE, "description": "Rent"})
        assert second["id"] != first["id"]

        replay = TestClient(sql_app)
        assert replay.get("/expenses", headers=stale).status_code == 401
        assert replay.get("/categories", headers=stale).status_code == 401
        assert replay.get("/analytics", headers=stale).status_code == 401
        assert replay.delete("/auth/delete-data", headers=stale).status_code == 401

        expenses = newcomer.get("/expenses").json()["expenses"]
        assert [e["description"] for e in expenses] == ["Rent"]

    def test_over_long_email_is_400(self, sql_app):
        """Test that an over-long email is rejected and stays rejected."""
        client = TestClient(sql_app)
        body = {**SIGNUP, "email": "a" * 250 + "@example.com"}
        for _ in range(2):
            response = client.post("/auth/signup", json=body)
            assert response.status_code == 400
            assert response.json() == {"error": "Email must be at most 254 characters long"}

        forgot = client.post("/auth/forgot-password", json={"email": body["email"]})
        assert forgot.status_code == 404


class TestErrorHandling:
    """Tests for storage and unexpected failures."""

    def build_client(self, failure: Exception) -> TestClient:
        class FailingStorage(InMemoryStorage):
            async def list_transactions(self, account_id):
                raise failure

        components = create_app_components(use_storage=False)
        components = components._replace(expense_flow=ExpenseFlow(FailingStorage()))
        client = TestClient(create_app(components), raise_server_exceptions=False)
        client.post("/auth/signup", json=SIGNUP)
        return client

    def test_storage_error_is_500(self):
        """Test that storage failures become a short 500."""
        client = self.build_client(StorageError("disk I/O error at /var/db"))
        response = client.get("/expenses")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    def test_unexpected_error_is_500(self):
        """Test that internal details never reach the client."""
        client = self.build_client(RuntimeError("secret stack detail"))
        response = client.get("/expenses")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "secret" not in response.text


class TestHealth:
    """Tests for /health."""

    def test_health(self, client):
        """Test the storage backend report."""
        assert client.get("/health").json() == {"status": "ok", "storage": "memory"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
