import pytest
from fastapi import HTTPException

from backend.app.models.models import Activity, Budget, Transaction, TransactionType, WalletPlan
from backend.app.schemas.budgets import BudgetCreate
from backend.app.schemas.transactions import TransactionCreate
from backend.app.schemas.wallets import WalletUpdate
from backend.app.services.budget_service import create_budget
from backend.app.services.collaborator_service import diff_collaborators, sync_collaborators, with_owner
from backend.app.services.reconciliation_service import audit_drift
from backend.app.services.transaction_service import delete_transaction, save_transaction
from backend.app.services.wallet_service import update_wallet


def shared_budget(db_session, owner, wallet, category="Food", amount="800.00"):
    return create_budget(db_session, owner.id, BudgetCreate(
        category=category, amount=amount, plan=WalletPlan.SHARED, wallet_id=wallet.id
    ))


def ids_and_roles(collaborators):
    return [(c["id"], c["role"]) for c in collaborators]


def test_with_owner_puts_owner_first(test_user, partner, collaborator):
    result = with_owner(test_user, [collaborator(partner), collaborator(test_user, "Editor")])

    assert ids_and_roles(result) == [(test_user.id, "Owner"), (partner.id, "Editor")]


def test_diff_reports_adds_removes_and_role_changes(test_user, partner, outsider, collaborator):
    before = [collaborator(test_user, "Owner"), collaborator(partner, "Editor")]
    after = [collaborator(test_user, "Owner"), collaborator(partner, "Viewer"), collaborator(outsider)]

    changes = diff_collaborators(before, after)

    assert [(action, c["id"]) for action, c in changes] == [
        ("system_message", partner.id),
        ("member_added", outsider.id),
    ]
    assert diff_collaborators(after, before)[-1] == ("member_removed", collaborator(outsider))


def test_sync_mirrors_onto_bound_budgets(db_session, test_user, partner, outsider, shared_wallet,
                                         make_wallet, collaborator):
    bound = shared_budget(db_session, test_user, shared_wallet)
    other_wallet = make_wallet(test_user, "Trip", "0.00", WalletPlan.SHARED, [collaborator(test_user, "Owner")])
    unrelated = shared_budget(db_session, test_user, other_wallet, "Travel")

    wallet = sync_collaborators(db_session, test_user.id, shared_wallet.id, [
        collaborator(partner, "Viewer"), collaborator(outsider, "Editor")
    ])

    expected = [(test_user.id, "Owner"), (partner.id, "Viewer"), (outsider.id, "Editor")]
    assert ids_and_roles(wallet.collaborators) == expected
    assert ids_and_roles(bound.collaborators) == expected
    assert ids_and_roles(unrelated.collaborators) == [(test_user.id, "Owner")]


def test_sync_logs_membership_changes(db_session, test_user, partner, outsider, shared_wallet, collaborator):
    sync_collaborators(db_session, test_user.id, shared_wallet.id, [collaborator(outsider, "Viewer")])

    messages = [a.message for a in db_session.query(Activity).order_by(Activity.sequence)]
    assert messages == [
        "Test User added Outsider as Viewer",
        "Test User removed Partner User from the wallet",
    ]
    entries = db_session.query(Activity).all()
    assert {a.user_id for a in entries} == {test_user.id}
    assert {a.wallet_id for a in entries} == {shared_wallet.id}


def test_role_change_message(db_session, test_user, partner, shared_wallet, collaborator):
    sync_collaborators(db_session, test_user.id, shared_wallet.id, [collaborator(partner, "Viewer")])

    activity = db_session.query(Activity).one()
    assert activity.action == "system_message"
    assert activity.message == "Test User set Partner User as Viewer"


def test_only_owner_can_change_collaborators(db_session, partner, outsider, shared_wallet, collaborator):
    with pytest.raises(HTTPException) as exc:
        sync_collaborators(db_session, partner.id, shared_wallet.id, [collaborator(outsider)])
    assert exc.value.status_code == 403


def test_duplicate_collaborators_rejected(db_session, test_user, partner, shared_wallet, collaborator):
    with pytest.raises(HTTPException) as exc:
        sync_collaborators(db_session, test_user.id, shared_wallet.id,
                           [collaborator(partner), collaborator(partner, "Viewer")])
    assert exc.value.status_code == 400


def test_personal_wallet_has_no_collaborators(db_session, test_user, partner, cash_wallet, collaborator):
    with pytest.raises(HTTPException) as exc:
        sync_collaborators(db_session, test_user.id, cash_wallet.id, [collaborator(partner)])
    assert exc.value.status_code == 400


def test_rename_keeps_budget_binding(db_session, test_user, shared_wallet):
    bound = shared_budget(db_session, test_user, shared_wallet)

    update_wallet(db_session, test_user.id, shared_wallet.id, WalletUpdate(name="Home"))

    assert bound.wallet_id == shared_wallet.id
    assert bound.wallet_name == "Home"
    assert bound.collaborators == shared_wallet.collaborators


def test_switch_to_personal_converts_bound_budgets(db_session, test_user, shared_wallet):
    bound = shared_budget(db_session, test_user, shared_wallet)

    wallet = update_wallet(db_session, test_user.id, shared_wallet.id, WalletUpdate(plan=WalletPlan.PERSONAL))

    assert wallet.collaborators == []
    assert bound.plan == WalletPlan.PERSONAL.value
    assert bound.wallet_id is None
    assert bound.collaborators == []


def test_partner_expense_hits_shared_budget_only(db_session, test_user, partner, shared_wallet, food_budget):
    bound = shared_budget(db_session, test_user, shared_wallet)

    save_transaction(db_session, partner.id, TransactionCreate(
        type=TransactionType.EXPENSE, amount="120.00", category="food", wallet_from_id=shared_wallet.id
    ))

    assert shared_wallet.balance == "1880.00"
    assert bound.left == "680.00"
    # test_user's personal budget follows test_user's spending only
    assert food_budget.left == "500.00"


def test_owner_expense_on_other_wallet_skips_shared_budget(db_session, test_user, shared_wallet,
                                                            cash_wallet, food_budget):
    bound = shared_budget(db_session, test_user, shared_wallet)

    save_transaction(db_session, test_user.id, TransactionCreate(
        type=TransactionType.EXPENSE, amount="50.00", category="Food", wallet_from_id=cash_wallet.id
    ))

    assert bound.left == "800.00"
    assert food_budget.left == "450.00"


def test_shared_transactions_are_logged(db_session, test_user, partner, shared_wallet):
    save_transaction(db_session, partner.id, TransactionCreate(
        type=TransactionType.EXPENSE, amount="20.00", category="Food", wallet_from_id=shared_wallet.id
    ))

    activity = db_session.query(Activity).one()
    assert activity.action == "transaction_added"
    assert activity.user_id == test_user.id
    assert activity.actor_id == partner.id
    assert activity.message == "Partner User added Expense of PHP 20.00 (Food)"


def test_viewer_cannot_record_transactions(db_session, test_user, partner, shared_wallet, collaborator):
    sync_collaborators(db_session, test_user.id, shared_wallet.id, [collaborator(partner, "Viewer")])

    with pytest.raises(HTTPException) as exc:
        save_transaction(db_session, partner.id, TransactionCreate(
            type=TransactionType.INCOME, amount="5.00", wallet_from_id=shared_wallet.id
        ))

    assert exc.value.status_code == 403
    assert shared_wallet.balance == "2000.00"


def test_outsider_cannot_see_wallet(db_session, outsider, shared_wallet):
    with pytest.raises(HTTPException) as exc:
        save_transaction(db_session, outsider.id, TransactionCreate(
            type=TransactionType.INCOME, amount="5.00", wallet_from_id=shared_wallet.id
        ))
    assert exc.value.status_code == 404


def test_collaborators_api(client, test_user, partner, shared_wallet, db_session):
    shared_budget(db_session, test_user, shared_wallet)
    payload = {"collaborators": [
        {"id": partner.id, "name": "Partner User", "email": "partner@example.com", "role": "Viewer"}
    ]}

    response = client.put(f"/api/v1/wallets/{shared_wallet.id}/collaborators?user_id={test_user.id}", json=payload)

    assert response.status_code == 200
    assert [c["role"] for c in response.json()["collaborators"]] == ["Owner", "Viewer"]
    budgets = client.get(f"/api/v1/budgets/?user_id={partner.id}").json()
    assert [c["role"] for c in budgets[0]["collaborators"]] == ["Owner", "Viewer"]

    response = client.get(f"/api/v1/activities/?user_id={partner.id}&wallet_id={shared_wallet.id}")
    assert response.status_code == 200
    assert [a["action"] for a in response.json()][0] == "system_message"


def test_collaborators_api_rejects_bad_email(client, test_user, shared_wallet):
    payload = {"collaborators": [{"id": "x", "name": "X", "email": "not-an-email", "role": "Editor"}]}

    response = client.put(f"/api/v1/wallets/{shared_wallet.id}/collaborators?user_id={test_user.id}", json=payload)

    assert response.status_code == 422


def test_switch_to_personal_recomputes_converted_budgets(db_session, test_user, partner, shared_wallet, cash_wallet):
    bound = shared_budget(db_session, test_user, shared_wallet, amount="500.00")
    save_transaction(db_session, partner.id, TransactionCreate(
        type=TransactionType.EXPENSE, amount="100.00", category="Food", wallet_from_id=shared_wallet.id
    ))
    save_transaction(db_session, test_user.id, TransactionCreate(
        type=TransactionType.EXPENSE, amount="40.00", category="Food", wallet_from_id=cash_wallet.id
    ))
    assert bound.spent == "100.00"

    update_wallet(db_session, test_user.id, shared_wallet.id, WalletUpdate(plan=WalletPlan.PERSONAL))

    # Now a personal budget, it follows the owner's Food spending from any wallet
    assert bound.spent == "40.00"
    assert bound.left == "460.00"
    assert audit_drift(db_session, test_user.id)["flags"] == []


def test_removed_member_cannot_touch_old_transactions(db_session, test_user, partner, shared_wallet):
    tx = save_transaction(db_session, partner.id, TransactionCreate(
        type=TransactionType.EXPENSE, amount="300.00", category="Food", wallet_from_id=shared_wallet.id
    ))
    sync_collaborators(db_session, test_user.id, shared_wallet.id, [])

    with pytest.raises(HTTPException) as exc:
        delete_transaction(db_session, partner.id, tx.id)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        save_transaction(db_session, partner.id, TransactionCreate(
            type=TransactionType.EXPENSE, amount="1.00", category="Food", wallet_from_id=shared_wallet.id
        ), original_id=tx.id)
    assert exc.value.status_code == 403

    assert shared_wallet.balance == "1700.00"
    assert db_session.get(Transaction, tx.id) is not None


def test_downgraded_member_cannot_delete_own_transaction(db_session, test_user, partner, shared_wallet, collaborator):
    tx = save_transaction(db_session, partner.id, TransactionCreate(
        type=TransactionType.INCOME, amount="50.00", wallet_from_id=shared_wallet.id
    ))
    sync_collaborators(db_session, test_user.id, shared_wallet.id, [collaborator(partner, "Viewer")])

    with pytest.raises(HTTPException) as exc:
        delete_transaction(db_session, partner.id, tx.id)

    assert exc.value.status_code == 403
    assert shared_wallet.balance == "2050.00"
