import base64
from datetime import timedelta

from ticketswift.core.clock import utcnow
from ticketswift.core.config import settings
from ticketswift.core.policy import RolePolicy, get_role_policy
from ticketswift.main import app
from ticketswift.services.ecpay import check_mac_value


def _issue(client, headers, event_id, **prefs):
    body = {"eventId": event_id, "preferences": prefs or {"seatKeywordOrder": ["VIP", "GA"], "sessionIndex": 2,
                                                          "ticketCount": 3}}
    return client.post("/api/v1/codes", json=body, headers=headers)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_login_and_refresh(client, make_user):
    make_user(email="fan@example.com", password="pw-123456")

    r = client.post("/api/v1/auth/login", json={"email": "Fan@Example.com", "password": "pw-123456"})
    assert r.status_code == 200
    tokens = r.json()["data"]

    r = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refresh_token"]})
    assert r.status_code == 200
    assert r.json()["success"] is True

    r = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["access_token"]})
    assert r.status_code == 401


def test_bad_password_and_bad_token_look_the_same(client, make_user):
    make_user(email="fan@example.com", password="pw-123456")
    wrong = client.post("/api/v1/auth/login", json={"email": "fan@example.com", "password": "nope"})
    missing = client.post("/api/v1/agent/verify", json={"verificationCode": "X"})
    garbage = client.post("/api/v1/agent/verify", json={"verificationCode": "X"},
                          headers={"Authorization": "Bearer garbage"})

    for r in (wrong, missing, garbage):
        assert r.status_code == 401
        assert r.json() == {"success": False, "message": "Authentication required", "code": r.json()["code"]}
    assert missing.json()["message"] == garbage.json()["message"] == wrong.json()["message"]


def test_issue_redeem_bind_round_trip(client, make_user, make_event, auth_headers):
    owner = make_user(points=150, api_key="sk-live")
    stranger = make_user()
    event = make_event(price_points=100)
    h = auth_headers(owner)

    r = _issue(client, h, event.id)
    assert r.status_code == 201
    code = r.json()["data"]["code"]
    assert r.json()["data"]["pointsSpent"] == 100

    r = client.post("/api/v1/agent/verify", json={"verificationCode": code}, headers=h)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["event"]["id"] == event.id
    assert data["preferences"] == {"preferredKeywords": ["VIP", "GA"], "preferredIndex": 2, "preferredNumbers": 3}
    assert base64.b64decode(data["apiKey"]).decode() == "sk-live"

    foreign = client.post("/api/v1/agent/verify", json={"verificationCode": code}, headers=auth_headers(stranger))
    unknown = client.post("/api/v1/agent/verify", json={"verificationCode": "NOPE"}, headers=auth_headers(stranger))
    assert foreign.status_code == unknown.status_code == 404
    assert foreign.json() == unknown.json()

    r = client.post("/api/v1/agent/bind", json={"verificationCode": code, "tixcraftAccount": "tix123"}, headers=h)
    assert r.status_code == 200
    assert r.json()["data"]["bound"] is True
    assert r.json()["data"]["alreadyBound"] is False

    r = client.post("/api/v1/agent/bind", json={"verificationCode": code, "externalAccountId": "tix123"}, headers=h)
    assert r.json()["data"]["alreadyBound"] is True

    r = client.post("/api/v1/agent/bind", json={"verificationCode": code, "externalAccountId": "tix456"}, headers=h)
    assert r.status_code == 409
    assert r.json()["code"] == "BINDING_CONFLICT"

    r = client.get("/api/v1/codes", headers=h)
    [listed] = r.json()["data"]
    assert listed["usageCount"] == 1
    assert listed["binding"]["externalAccountId"] == "tix123"
    assert listed["effectiveStatus"] == "active"


def test_duplicate_issue_and_insufficient_points(client, make_user, make_event, auth_headers):
    owner = make_user(points=100)
    h = auth_headers(owner)
    event = make_event(price_points=100)

    assert _issue(client, h, event.id).status_code == 201
    r = _issue(client, h, event.id)
    assert r.status_code == 409
    assert r.json()["code"] == "CODE_ALREADY_ISSUED"

    r = _issue(client, h, make_event(price_points=100, name="Other").id)
    assert r.status_code == 400
    assert r.json()["code"] == "INSUFFICIENT_POINTS"


def test_preference_edit_cap_over_http(client, make_user, make_event, auth_headers):
    owner = make_user()
    h = auth_headers(owner)
    code = _issue(client, h, make_event(price_points=0).id).json()["data"]["code"]

    for i in range(5):
        r = client.patch(f"/api/v1/codes/{code}/preferences",
                         json={"preferences": {"seatKeywordOrder": "A, B", "sessionIndex": 1, "ticketCount": 2}},
                         headers=h)
        assert r.status_code == 200
    assert r.json()["data"]["remainingModifications"] == 0
    assert r.json()["data"]["preferences"]["seatKeywordOrder"] == ["A", "B"]

    r = client.patch(f"/api/v1/codes/{code}/preferences", json={"preferences": {}}, headers=h)
    assert r.status_code == 403
    assert r.json()["code"] == "MODIFICATION_LIMIT_EXCEEDED"


def test_verify_requires_code_and_api_key(client, make_user, make_event, auth_headers):
    owner = make_user(api_key=None)
    h = auth_headers(owner)
    code = _issue(client, h, make_event(price_points=0).id).json()["data"]["code"]

    r = client.post("/api/v1/agent/verify", json={"verificationCode": "  "}, headers=h)
    assert r.status_code == 400
    assert r.json()["code"] == "MISSING_PARAMETERS"

    r = client.post("/api/v1/agent/verify", json={"verificationCode": code}, headers=h)
    assert r.status_code == 400
    assert r.json()["code"] == "NO_API_KEY"

    r = client.put("/api/v1/me/api-key", json={"apiKey": "sk-new"}, headers=h)
    assert r.json()["data"] == {"hasApiKey": True}
    me = client.get("/api/v1/me", headers=h).json()["data"]
    assert me["hasApiKey"] is True
    assert "sk-new" not in str(me)

    assert client.post("/api/v1/agent/verify", json={"verificationCode": code}, headers=h).status_code == 200


def test_validation_errors_use_the_envelope(client, make_user, auth_headers):
    r = client.post("/api/v1/codes", json={}, headers=auth_headers(make_user()))
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert "eventId" in r.json()["message"]


def test_points_purchase_over_http(client, make_user, auth_headers):
    user = make_user(points=0)
    h = auth_headers(user)

    r = client.post("/api/v1/payments/orders", json={"packageId": 3}, headers=h)
    assert r.status_code == 201
    order_id = r.json()["data"]["orderId"]
    assert r.json()["data"]["paymentForm"]["data"]["TotalAmount"] == 230

    form = {"MerchantTradeNo": order_id, "RtnCode": "1", "RtnMsg": "Succeeded", "TradeAmt": "230"}
    form["CheckMacValue"] = check_mac_value(form, settings.ECPAY_HASH_KEY, settings.ECPAY_HASH_IV)
    r = client.post("/api/v1/payments/ecpay/notify", data=form)
    assert r.status_code == 200
    assert r.text == "1|OK"

    r = client.post("/api/v1/payments/ecpay/notify", data={**form, "TradeAmt": "1"})
    assert r.status_code == 400

    points = client.get("/api/v1/me/points", headers=h).json()["data"]
    assert points["balance"] == 280
    assert points["history"][0]["amount"] == 280


def test_admin_routes_follow_the_injected_policy(client, make_user, make_event, auth_headers):
    boss = make_user(email="boss@example.com")
    h = auth_headers(boss)
    body = {"name": "New Show", "endDate": (utcnow() + timedelta(days=3)).isoformat(), "pricePoints": 50}

    assert client.post("/api/v1/admin/events", json=body, headers=h).status_code == 403

    app.dependency_overrides[get_role_policy] = lambda: RolePolicy({"boss@example.com"})
    r = client.post("/api/v1/admin/events", json=body, headers=h)
    assert r.status_code == 201
    assert r.json()["data"]["pricePoints"] == 50
    assert client.get(f"/api/v1/events/{r.json()['data']['id']}").status_code == 200

    r = client.delete("/api/v1/admin/codes/expired", headers=h)
    assert r.status_code == 200
    assert r.json()["data"]["deleted"] == 0

    r = client.get("/api/v1/admin/orders/orphaned", headers=h)
    assert r.json()["data"] == []


def test_unexpected_errors_return_a_generic_500(client, make_user, auth_headers, monkeypatch):
    from ticketswift.services import points_service

    def explode(*args, **kwargs):
        raise RuntimeError("database on fire")

    monkeypatch.setattr(points_service, "history", explode)
    r = client.get("/api/v1/me/points", headers=auth_headers(make_user()))
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "Internal server error", "code": "INTERNAL_ERROR"}
