from backend.app.models.models import DriftFlag, TransactionType
from backend.app.schemas.transactions import TransactionCreate
from backend.app.services.reconciliation_service import audit_drift, get_drift_flags
from backend.app.services.transaction_service import save_transaction


def record_expense(db_session, user, wallet, amount):
    save_transaction(db_session, user.id, TransactionCreate(
        type=TransactionType.EXPENSE, amount=amount, category="Food", wallet_from_id=wallet.id
    ))


def test_clean_history_has_no_drift(db_session, test_user, cash_wallet, food_budget):
    record_expense(db_session, test_user, cash_wallet, "80.00")

    report = audit_drift(db_session, test_user.id)

    assert report["wallets_checked"] == 1
    assert report["budgets_checked"] == 1
    assert report["flags"] == []


def test_drift_is_flagged_and_repaired(db_session, test_user, cash_wallet, food_budget):
    record_expense(db_session, test_user, cash_wallet, "80.00")
    cash_wallet.balance = "999.00"
    food_budget.left = "500.00"
    db_session.commit()

    report = audit_drift(db_session, test_user.id)
    assert {(f.entity_type, f.entity_id) for f in report["flags"]} == {
        ("wallet", cash_wallet.id), ("budget", food_budget.id)
    }
    wallet_flag = next(f for f in report["flags"] if f.entity_type == "wallet")
    assert wallet_flag.expected == "920.00"
    assert wallet_flag.actual == "999.00"
    assert cash_wallet.balance == "999.00"
    assert len(get_drift_flags(db_session, test_user.id)) == 2

    report = audit_drift(db_session, test_user.id, repair=True)
    assert report["repaired"] is True
    assert cash_wallet.balance == "920.00"
    assert food_budget.left == "420.00"
    assert all(flag.resolved for flag in report["flags"])
    assert get_drift_flags(db_session, test_user.id) == []

    assert audit_drift(db_session, test_user.id)["flags"] == []


def test_audit_api(client, db_session, test_user, cash_wallet):
    cash_wallet.balance = "1.00"
    db_session.commit()

    response = client.post(f"/api/v1/reconciliation/audit?user_id={test_user.id}&repair=true")
    assert response.status_code == 200
    body = response.json()
    assert body["wallets_checked"] == 1
    assert body["flags"][0]["expected"] == "1000.00"
    assert body["flags"][0]["resolved"] is True

    response = client.get(f"/api/v1/reconciliation/flags?user_id={test_user.id}")
    assert response.json() == []
    response = client.get(f"/api/v1/reconciliation/flags?user_id={test_user.id}&include_resolved=true")
    assert len(response.json()) == 1
    assert db_session.query(DriftFlag).count() == 1


def test_repeated_audits_keep_one_open_flag_per_entity(db_session, test_user, cash_wallet):
    cash_wallet.balance = "990.00"
    db_session.commit()
    audit_drift(db_session, test_user.id)

    cash_wallet.balance = "980.00"
    db_session.commit()
    audit_drift(db_session, test_user.id)

    flags = get_drift_flags(db_session, test_user.id)
    assert len(flags) == 1
    assert flags[0].actual == "980.00"
    assert db_session.query(DriftFlag).count() == 1
