import time

from compras.utils.blocklist import RevokedTokens


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_revoked_until_expiry():
    clock = Clock()
    revoked = RevokedTokens(clock=clock)
    revoked.add("a", exp=1060)
    assert "a" in revoked
    assert "b" not in revoked


def test_expired_entries_are_pruned_on_add():
    clock = Clock()
    revoked = RevokedTokens(clock=clock)
    revoked.add("old", exp=1010)
    revoked.add("young", exp=5000)
    assert len(revoked) == 2

    clock.now = 2000
    revoked.add("new", exp=3000)
    assert "old" not in revoked
    assert "young" in revoked
    assert len(revoked) == 2


def test_logout_records_token_expiry(app, client, auth_headers):
    assert client.post("/admin/logout", headers=auth_headers).status_code == 200
    revoked = app.extensions["compras"]["revoked_tokens"]
    assert len(revoked) == 1
    (exp,) = revoked._entries.values()
    ttl = app.config["JWT_ACCESS_TOKEN_EXPIRES"].total_seconds()
    assert time.time() < exp <= time.time() + ttl + 5
