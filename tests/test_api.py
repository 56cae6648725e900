from decimal import Decimal

import pytest


@pytest.fixture
def group(client):
    res = client.post(
        "/groups/",
        json={
            "name": "  Ski week ",
            "invitees": ["ana.silva@splitledger.io", "ben_o-hara@splitledger.io", "cy@splitledger.io"],
        },
    )
    assert res.status_code == 201
    return res.json()


def _expense(group, payer_index=0, **overrides):
    payload = {
        "description": "Chalet",
        "amount": "30.00",
        "date": "2026-02-10",
        "paid_by_id": group["members"][payer_index]["id"],
    }
    payload.update(overrides)
    return payload


def _ids(group):
    return [m["id"] for m in group["members"]]


def test_root(client):
    assert client.get("/").json() == {"message": "Welcome to the SplitLedger API"}


def test_create_group_derives_member_names(group):
    assert group["name"] == "Ski week"
    assert [m["name"] for m in group["members"]] == ["Ana Silva", "Ben O Hara", "Cy"]
    assert group["members"][0]["email"] == "ana.silva@splitledger.io"


def test_create_group_requires_invitees(client):
    res = client.post("/groups/", json={"name": "Lonely", "invitees": []})
    assert res.status_code == 400
    assert res.json()["detail"] == "Invite at least one member"


def test_create_group_rejects_bad_email(client):
    res = client.post("/groups/", json={"name": "Typo", "invitees": ["not-an-email"]})
    assert res.status_code == 400


def test_list_and_get_groups(client, group):
    assert [g["id"] for g in client.get("/groups").json()] == [group["id"]]
    assert client.get(f"/groups/{group['id']}").json()["name"] == "Ski week"
    assert client.get("/groups/404").status_code == 404


def test_log_expense_returns_shares(client, group):
    res = client.post(f"/groups/{group['id']}/expenses/", json=_expense(group, amount="10.00"))

    assert res.status_code == 201
    body = res.json()
    assert Decimal(body["amount"]) == Decimal("10.00")
    assert body["currency"] == "USD"
    assert [(s["member_id"], Decimal(s["amount"])) for s in body["shares"]] == [
        (_ids(group)[0], Decimal("3.33")),
        (_ids(group)[1], Decimal("3.33")),
        (_ids(group)[2], Decimal("3.34")),
    ]


def test_end_to_end_balances(client, group):
    a, b, c = _ids(group)
    gid = group["id"]

    assert client.post(f"/groups/{gid}/expenses/", json=_expense(group, 0)).status_code == 201
    assert client.post(f"/groups/{gid}/expenses/", json=_expense(group, 1, description="Lift pass")).status_code == 201

    balances = client.get(f"/groups/{gid}/balances/").json()
    edges = {(row["creditor_id"], row["debtor_id"]): Decimal(row["amount"]) for row in balances}
    assert edges == {(a, c): Decimal("10"), (b, c): Decimal("10")}

    summary = client.get(f"/groups/{gid}/summary/").json()
    nets = {m["member_id"]: Decimal(m["net"]) for m in summary["members"]}
    assert nets == {a: Decimal("10"), b: Decimal("10"), c: Decimal("-20")}
    assert Decimal(summary["total_spend"]) == Decimal("60")
    assert summary["expense_count"] == 2
    assert Decimal(summary["average_expense"]) == Decimal("30")
    assert Decimal(summary["outstanding_total"]) == Decimal("20")
    assert summary["balance_count"] == 2
    spent = {m["member_id"]: (Decimal(m["paid"]), Decimal(m["share"]), m["settled_ratio"]) for m in summary["members"]}
    assert spent == {
        a: (Decimal("30"), Decimal("20"), 100.0),
        b: (Decimal("30"), Decimal("20"), 100.0),
        c: (Decimal("0"), Decimal("20"), 0.0),
    }

    history = client.get(f"/groups/{gid}/expenses/").json()
    assert len(history) == 2


@pytest.mark.parametrize(
    "overrides",
    [
        {"description": ""},
        {"amount": "abc"},
        {"amount": "-1"},
        {"amount": "0"},
        {"amount": "1e30"},
        {"amount": "10000000000"},
        {"date": None},
        {"date": "yesterday"},
    ],
)
def test_bad_payload_is_400(client, group, overrides):
    res = client.post(f"/groups/{group['id']}/expenses/", json=_expense(group, **overrides))
    assert res.status_code == 400
    assert client.get(f"/groups/{group['id']}/expenses/").json() == []


def test_unknown_group_is_404(client, group):
    res = client.post("/groups/9999/expenses/", json=_expense(group))
    assert res.status_code == 404


def test_membership_errors_are_422(client, group):
    a, b, c = _ids(group)
    gid = group["id"]

    excluded_payer = client.post(f"/groups/{gid}/expenses/", json=_expense(group, participant_ids=[b, c]))
    outsider = client.post(f"/groups/{gid}/expenses/", json=_expense(group, participant_ids=[a, 9999]))
    empty = client.post(f"/groups/{gid}/expenses/", json=_expense(group, participant_ids=[]))

    assert [r.status_code for r in (excluded_payer, outsider, empty)] == [422, 422, 422]
    assert client.get(f"/groups/{gid}/balances/").json() == []


def test_balances_for_unknown_group_is_404(client):
    assert client.get("/groups/12/balances/").status_code == 404
    assert client.get("/groups/12/summary/").status_code == 404


def test_summary_of_new_group_is_all_zero(client, group):
    summary = client.get(f"/groups/{group['id']}/summary/").json()

    assert summary["group_name"] == "Ski week"
    assert summary["expense_count"] == 0
    assert Decimal(summary["total_spend"]) == 0
    assert Decimal(summary["average_expense"]) == 0
    assert Decimal(summary["outstanding_total"]) == 0
    assert [m["settled_ratio"] for m in summary["members"]] == [100.0, 100.0, 100.0]
