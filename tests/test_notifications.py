"""In-app notifications."""

from datetime import timedelta

from conftest import auth_headers_for, make_user
from ghost_league.models.notification import Notification
from ghost_league.services import notifications
from ghost_league.services.clock import utcnow


def seed(db_session, user, count=3):
    base = utcnow() - timedelta(minutes=count)
    for i in range(count):
        db_session.add(Notification(
            user_id=user.id,
            type="info",
            title=f"Notice {i}",
            read=False,
            created_at=base + timedelta(minutes=i),
        ))
    db_session.commit()


class TestNotifications:
    def test_list_newest_first(self, client, db_session, player, player_headers):
        seed(db_session, player)
        r = client.get("/users/notifications", headers=player_headers)
        assert r.status_code == 200
        body = r.json()
        assert [n["title"] for n in body["notifications"]] == ["Notice 2", "Notice 1", "Notice 0"]
        assert body["unreadCount"] == 3

    def test_pagination_and_unread_filter(self, client, db_session, player, player_headers):
        seed(db_session, player, count=5)
        r = client.get("/users/notifications", params={"limit": 2, "skip": 1}, headers=player_headers)
        assert [n["title"] for n in r.json()["notifications"]] == ["Notice 3", "Notice 2"]

        first_id = r.json()["notifications"][0]["id"]
        client.put(f"/users/notifications/{first_id}/read", headers=player_headers)
        unread = client.get("/users/notifications", params={"unreadOnly": True}, headers=player_headers).json()
        assert len(unread["notifications"]) == 4
        assert all(not n["read"] for n in unread["notifications"])

    def test_unread_count_and_mark_read(self, client, db_session, player, player_headers):
        seed(db_session, player, count=2)
        assert client.get("/users/notifications/unread-count", headers=player_headers).json()["unreadCount"] == 2
        entry_id = db_session.query(Notification).first().id
        r = client.put(f"/users/notifications/{entry_id}/read", headers=player_headers)
        assert r.status_code == 200
        assert r.json()["notification"]["read"] is True
        assert client.get("/users/notifications/unread-count", headers=player_headers).json()["unreadCount"] == 1

    def test_mark_all_read_and_alias(self, client, db_session, player, player_headers):
        seed(db_session, player)
        r = client.post("/users/notifications/mark-all-read", headers=player_headers)
        assert r.json()["updated"] == 3
        seed(db_session, player, count=1)
        r = client.put("/users/notifications/read-all", headers=player_headers)
        assert r.json()["updated"] == 1
        assert notifications.unread_count(db_session, player.id) == 0

    def test_cannot_touch_other_users_notifications(self, client, db_session, player):
        seed(db_session, player, count=1)
        stranger = make_user(db_session, "Stranger", "stranger@example.com")
        entry_id = db_session.query(Notification).first().id
        r = client.put(f"/users/notifications/{entry_id}/read", headers=auth_headers_for(stranger))
        assert r.status_code == 403
        assert client.put("/users/notifications/999/read", headers=auth_headers_for(stranger)).status_code == 404

    def test_requires_session(self, client):
        assert client.get("/users/notifications").status_code == 401

    def test_limit_is_clamped(self, db_session, player):
        seed(db_session, player, count=3)
        assert len(notifications.list_notifications(db_session, player.id, limit=0)) == 3
        assert len(notifications.list_notifications(db_session, player.id, limit=1000)) == 3


class TestInactiveAccounts:
    def test_suspended_and_banned_are_refused(self, client, db_session, suspended_player, banned_player):
        for user in (suspended_player, banned_player):
            seed(db_session, user, count=1)
            headers = auth_headers_for(user)
            entry_id = db_session.query(Notification).filter(Notification.user_id == user.id).first().id
            responses = [
                client.get("/users/notifications", headers=headers),
                client.get("/users/notifications/unread-count", headers=headers),
                client.post("/users/notifications/mark-all-read", headers=headers),
                client.put("/users/notifications/read-all", headers=headers),
                client.put(f"/users/notifications/{entry_id}/read", headers=headers),
            ]
            for r in responses:
                assert r.status_code == 403
                assert r.json()["code"] == "account_status"
                assert r.json()["accountStatus"] == user.status.value
            assert notifications.unread_count(db_session, user.id) == 1
