"""Sign-up and sign-in flows that keep the local profile in sync.

Every successful authentication is followed by a profile sync. The sync is
best-effort: its failure is logged and reflected in ``AuthSession.profile_synced``
but the session is still returned.
"""

from dataclasses import dataclass
from email.utils import formatdate

from study_buddy.logging_config import logger
from study_buddy.services.user_sync_service import ProfileClaims, provider_tag_from


@dataclass(frozen=True)
class AuthSession:
    uid: str
    email: str
    id_token: str
    refresh_token: str
    profile_synced: bool


def _format_provider_time(raw_ms):
    try:
        return formatdate(int(raw_ms) / 1000.0, usegmt=True)
    except (TypeError, ValueError):
        return ''


def claims_from_account(account) -> ProfileClaims:
    """Translate an Identity Toolkit ``lookup`` record into profile claims."""
    return ProfileClaims(
        email=str(account.get('email', '') or ''),
        display_name=str(account.get('displayName', '') or ''),
        photo_url=str(account.get('photoUrl', '') or ''),
        email_verified=bool(account.get('emailVerified', False)),
        provider=provider_tag_from(account.get('providerUserInfo')),
        creation_time=_format_provider_time(account.get('createdAt')),
        last_sign_in_time=_format_provider_time(account.get('lastLoginAt')),
    )


class AuthFlow:
    def __init__(self, identity_client, sync_profile):
        self.identity = identity_client
        self.sync_profile = sync_profile

    def _sync(self, id_token, uid):
        try:
            account = self.identity.lookup(id_token)
            result = self.sync_profile(uid, claims_from_account(account))
        except Exception as exc:
            logger.warning(f"Failed to sync user data for {uid}: {exc}")
            return False
        if not result.ok:
            logger.warning(f"Failed to sync user data for {uid}: {result.error}")
        return result.ok

    def _session(self, auth_result, uid=None):
        uid = uid or auth_result['localId']
        id_token = auth_result['idToken']
        return AuthSession(
            uid=uid,
            email=str(auth_result.get('email', '') or ''),
            id_token=id_token,
            refresh_token=str(auth_result.get('refreshToken', '') or ''),
            profile_synced=self._sync(id_token, uid),
        )

    def signup(self, email, password, first_name):
        result = self.identity.sign_up(email, password)
        if first_name:
            updated = self.identity.update_profile(result['idToken'], display_name=first_name)
            if updated.get('idToken'):
                result = dict(result, idToken=updated['idToken'], refreshToken=updated.get('refreshToken', result.get('refreshToken', '')))
        return self._session(result)

    def login(self, email, password):
        return self._session(self.identity.sign_in_with_password(email, password))

    def login_with_google(self, google_id_token):
        return self._session(self.identity.sign_in_with_google(google_id_token))
