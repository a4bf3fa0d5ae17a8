from unittest.mock import patch

from backend.app.config import Settings
from backend.app.models.models import Activity
from backend.app.services.activity_service import get_activities
from backend.app.stores import ActivityLog


def test_log_is_pruned_to_newest_entries(db_session, test_user, shared_wallet):
    log = ActivityLog(db_session, test_user.id, test_user.id, "Test User")

    with patch("backend.app.stores.get_settings", return_value=Settings(activity_log_limit=3)):
        for index in range(5):
            log.append(shared_wallet.id, "system_message", "system", shared_wallet.id, f"entry {index}")
    db_session.commit()

    assert db_session.query(Activity).count() == 3
    assert [a.message for a in get_activities(db_session, test_user.id)] == ["entry 4", "entry 3", "entry 2"]


def test_wallet_feed_is_readable_by_collaborators(db_session, test_user, partner, outsider, shared_wallet):
    ActivityLog(db_session, test_user.id, test_user.id, "Test User").append(
        shared_wallet.id, "system_message", "system", shared_wallet.id, "hello"
    )
    db_session.commit()

    assert [a.message for a in get_activities(db_session, partner.id, shared_wallet.id)] == ["hello"]
    # Entries live under the owner's log
    assert get_activities(db_session, partner.id) == []


def test_activities_api_hides_foreign_wallets(client, outsider, shared_wallet):
    response = client.get(f"/api/v1/activities/?user_id={outsider.id}&wallet_id={shared_wallet.id}")
    assert response.status_code == 404
