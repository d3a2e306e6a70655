import pytest

from .conftest import ADMIN_INBOXES

QUOTE = {
    "name": "Ada Obi",
    "email": "ada@example.com",
    "phone": "+234 801 000 0000",
    "service": "Network Installation",
    "message": "We need cabling for a two-floor office.",
}


@pytest.fixture
def quote_id(client):
    return client.post("/api/quote", json=QUOTE).get_json()["quote"]["id"]


def test_submit_quote_notifies_admins_and_customer(client, mailer):
    resp = client.post("/api/quote", json=QUOTE)
    assert resp.status_code == 201
    quote = resp.get_json()["quote"]
    assert quote["status"] == "Waiting for Support"
    assert quote["replies"] == []
    assert mailer.subjects_for(ADMIN_INBOXES[0]) == ["New Quote Request: Network Installation from Ada Obi"]
    assert len(mailer.subjects_for("ada@example.com")) == 1


@pytest.mark.parametrize("missing", ["name", "email", "phone", "service", "message"])
def test_submit_quote_requires_every_field(client, missing):
    payload = dict(QUOTE, **{missing: ""})
    resp = client.post("/api/quote", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "All fields are required."


def test_submit_quote_accepts_a_numeric_phone(client):
    resp = client.post("/api/quote", json=dict(QUOTE, phone=8031234567))
    assert resp.status_code == 201
    assert resp.get_json()["quote"]["phone"] == "8031234567"


@pytest.mark.parametrize("bad", [["Ada"], {"first": "Ada"}, True])
def test_submit_quote_rejects_non_text_fields(client, bad):
    resp = client.post("/api/quote", json=dict(QUOTE, name=bad))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "name must be a string."


def test_admin_lists_and_updates_quotes(client, admin, customer, quote_id, mailer):
    assert client.get("/api/quotes", headers=customer.headers).status_code == 403
    assert len(client.get("/api/quotes", headers=admin.headers).get_json()) == 1

    resp = client.put(f"/api/quotes/{quote_id}", json={"status": "In Review", "service": "Network Audit"},
                      headers=admin.headers)
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "In Review"
    assert "Your Quote Request Update - Network Audit | Marshall Global Ventures" in \
        mailer.subjects_for("ada@example.com")

    bad = client.put(f"/api/quotes/{quote_id}", json={"status": "Maybe"}, headers=admin.headers)
    assert bad.status_code == 400
    assert "Waiting for Support" in bad.get_json()["allowed"]


def test_assign_quote(client, admin, make_user, quote_id, mailer):
    colleague = make_user(name="Tunde", email="tunde@mgv.test", role="super admin")
    url = f"/api/quotes/{quote_id}/assign"

    resp = client.put(url, json={"assigned_to_id": colleague.id}, headers=admin.headers)
    assert resp.get_json()["message"] == "Quote assigned successfully!"
    assert resp.get_json()["quote"]["assigned_to"]["email"] == "tunde@mgv.test"
    assert mailer.subjects_for("tunde@mgv.test") == [f"Quote Request #{quote_id} Assigned to You"]

    again = client.put(url, json={"assigned_to_id": colleague.id}, headers=admin.headers)
    assert again.get_json()["message"] == "Quote already assigned to this admin."
    assert len(mailer.subjects_for("tunde@mgv.test")) == 1

    assigned = client.get("/api/quotes/assigned", headers=colleague.headers).get_json()
    assert [q["id"] for q in assigned] == [quote_id]


def test_assign_requires_an_admin_assignee(client, admin, customer, quote_id):
    resp = client.put(f"/api/quotes/{quote_id}/assign", json={"assigned_to_id": customer.id},
                      headers=admin.headers)
    assert resp.status_code == 400
    missing = client.put(f"/api/quotes/{quote_id}/assign", json={}, headers=admin.headers)
    assert missing.get_json()["error"] == "Assigned user ID is required."
    huge = client.put(f"/api/quotes/{quote_id}/assign", json={"assigned_to_id": 2 ** 63}, headers=admin.headers)
    assert huge.status_code == 400


def test_reply_thread(client, admin, customer, quote_id, mailer):
    admin_reply = client.post(f"/api/quotes/{quote_id}/reply/admin", json={"reply_message": "Site visit Monday?"},
                              headers=admin.headers)
    assert admin_reply.status_code == 200
    assert admin_reply.get_json()["quote"]["status"] == "Waiting for Customer"

    customer_reply = client.post(f"/api/customer/quotes/{quote_id}/reply", json={"reply_message": "Monday works."},
                                 headers=customer.headers)
    quote = customer_reply.get_json()["quote"]
    assert quote["status"] == "Waiting for Support"
    assert [(r["sender_type"], r["message"]) for r in quote["replies"]] == [
        ("admin", "Site visit Monday?"),
        ("customer", "Monday works."),
    ]
    assert any(s.startswith("Customer Reply to Quote Request") for s in mailer.subjects_for(ADMIN_INBOXES[0]))


def test_reply_needs_a_message(client, admin, quote_id):
    resp = client.post(f"/api/quotes/{quote_id}/reply/admin", json={"reply_message": "  "}, headers=admin.headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Reply message is required."


def test_customers_only_see_their_own_quotes(client, customer, other_customer, admin, quote_id):
    assert client.get(f"/api/customer/quotes/{quote_id}", headers=customer.headers).status_code == 200
    assert client.get(f"/api/customer/quotes/{quote_id}", headers=admin.headers).status_code == 200
    assert client.get(f"/api/customer/quotes/{quote_id}", headers=other_customer.headers).status_code == 403
    reply = client.post(f"/api/customer/quotes/{quote_id}/reply", json={"reply_message": "hi"},
                        headers=other_customer.headers)
    assert reply.status_code == 403

    mine = client.get("/api/customer/my-quotes", headers=customer.headers).get_json()
    assert [q["id"] for q in mine] == [quote_id]
    assert client.get("/api/customer/my-quotes", headers=other_customer.headers).get_json() == []


def test_delete_quote(client, admin, quote_id):
    assert client.delete(f"/api/quotes/{quote_id}", headers=admin.headers).status_code == 200
    assert client.get(f"/api/customer/quotes/{quote_id}", headers=admin.headers).status_code == 404
