from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from app.auth import Role
from app.models import PrincipalRole
from app.security import sessions
from app.security.passwords import hash_password, verify_password


class PasswordTests(unittest.TestCase):
    def test_hash_round_trip(self) -> None:
        hashed = hash_password('operatorpass')
        self.assertNotEqual(hashed, 'operatorpass')
        self.assertTrue(verify_password('operatorpass', hashed))
        self.assertFalse(verify_password('wrong', hashed))

    def test_missing_values_never_match(self) -> None:
        self.assertFalse(verify_password('', hash_password('x')))
        self.assertFalse(verify_password('x', None))


class WebSessionTests(unittest.TestCase):
    def _session(self, *, expires_in: timedelta, revoked: bool = False, naive: bool = False):
        expires_at = datetime.now(tz=timezone.utc) + expires_in
        if naive:
            expires_at = expires_at.replace(tzinfo=None)
        return SimpleNamespace(
            principal_id=3,
            expires_at=expires_at,
            revoked_at=datetime.now(tz=timezone.utc) if revoked else None,
            last_seen_at=None,
        )

    def test_live_checks(self) -> None:
        now = datetime.now(tz=timezone.utc)
        self.assertTrue(sessions._is_live(self._session(expires_in=timedelta(minutes=5)), now))
        self.assertTrue(sessions._is_live(self._session(expires_in=timedelta(minutes=5), naive=True), now))
        self.assertFalse(sessions._is_live(self._session(expires_in=timedelta(minutes=-1)), now))
        self.assertFalse(sessions._is_live(self._session(expires_in=timedelta(minutes=5), revoked=True), now))

    def test_load_principal_extends_session(self) -> None:
        web_session = self._session(expires_in=timedelta(minutes=1))
        before = web_session.expires_at
        db = MagicMock()
        db.get.return_value = SimpleNamespace(id=3, username='operator', role=PrincipalRole.OPERATOR, active=True)

        with patch.object(sessions, '_find_session', return_value=web_session):
            principal = sessions.load_principal_from_token(db, 'token')

        self.assertEqual(principal.role, Role.OPERATOR)
        self.assertEqual(principal.username, 'operator')
        self.assertGreater(web_session.expires_at, before)
        self.assertIsNotNone(web_session.last_seen_at)

    def test_load_principal_without_token_or_session(self) -> None:
        db = MagicMock()
        self.assertIsNone(sessions.load_principal_from_token(db, None))
        with patch.object(sessions, '_find_session', return_value=None):
            self.assertIsNone(sessions.load_principal_from_token(db, 'stale'))

    def test_revoke_only_once(self) -> None:
        web_session = self._session(expires_in=timedelta(minutes=5))
        with patch.object(sessions, '_find_session', return_value=web_session):
            self.assertTrue(sessions.revoke_web_session(MagicMock(), 'token'))
            self.assertFalse(sessions.revoke_web_session(MagicMock(), 'token'))


if __name__ == '__main__':
    unittest.main()
