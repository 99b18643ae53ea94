"""Synchronize identity-provider claims into the local users collection.

The provider stays authoritative for identity; the ``users`` document is a
cache used for authorization and quotas. Sync is best-effort: failures come
back as ``ProfileSyncResult(ok=False)`` and must never block a sign-in.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

from study_buddy.logging_config import logger
from study_buddy.repositories import users_repo

DEFAULT_PROVIDER = 'email'


@dataclass(frozen=True)
class ProfileClaims:
    email: str = ''
    display_name: str = ''
    photo_url: str = ''
    email_verified: bool = False
    provider: str = DEFAULT_PROVIDER
    creation_time: str = ''
    last_sign_in_time: str = ''


@dataclass(frozen=True)
class ProfileSyncResult:
    ok: bool
    created: bool = False
    profile: dict = field(default_factory=dict)
    error: str = ''


def provider_tag_from(provider_data) -> str:
    """Provider id of the first linked identity, or ``'email'``."""
    if not provider_data:
        return DEFAULT_PROVIDER
    first = provider_data[0]
    if isinstance(first, dict):
        provider_id = first.get('providerId') or first.get('provider_id')
    else:
        provider_id = getattr(first, 'provider_id', '')
    return str(provider_id or '').strip() or DEFAULT_PROVIDER


def claims_from_request(decoded_token: dict, payload: Optional[dict]) -> ProfileClaims:
    """Merge client-reported profile fields with the verified token claims."""
    payload = payload if isinstance(payload, dict) else {}
    metadata = payload.get('metadata') if isinstance(payload.get('metadata'), dict) else {}
    firebase_claims = decoded_token.get('firebase') or {}
    provider = str(payload.get('provider', '') or '').strip()
    if not provider:
        provider = provider_tag_from(payload.get('providerData'))
    if provider == DEFAULT_PROVIDER and firebase_claims.get('sign_in_provider') not in (None, 'password'):
        provider = str(firebase_claims.get('sign_in_provider'))
    return ProfileClaims(
        email=str(decoded_token.get('email', '') or ''),
        display_name=str(payload.get('displayName') or decoded_token.get('name') or '').strip()[:200],
        photo_url=str(payload.get('photoURL') or decoded_token.get('picture') or '').strip()[:2048],
        email_verified=bool(decoded_token.get('email_verified', payload.get('emailVerified', False))),
        provider=provider,
        creation_time=str(metadata.get('creationTime', '') or ''),
        last_sign_in_time=str(metadata.get('lastSignInTime', '') or ''),
    )


def build_profile_update(uid, claims: ProfileClaims, now_ts):
    return {
        'uid': uid,
        'email': claims.email.strip().lower(),
        'display_name': claims.display_name,
        'photo_url': claims.photo_url,
        'email_verified': bool(claims.email_verified),
        'provider': claims.provider or DEFAULT_PROVIDER,
        'metadata': {
            'creation_time': claims.creation_time,
            'last_sign_in_time': claims.last_sign_in_time,
        },
        'last_login_at': now_ts,
        'updated_at': now_ts,
    }


def sync_user_profile(db, uid, claims: ProfileClaims, *, time_module=time) -> ProfileSyncResult:
    if not uid:
        return ProfileSyncResult(ok=False, error='missing uid')
    try:
        now_ts = time_module.time()
        update = build_profile_update(uid, claims, now_ts)
        snapshot = users_repo.get_doc(db, uid)
        if snapshot.exists:
            users_repo.set_doc(db, uid, update, merge=True)
            profile = dict(snapshot.to_dict() or {})
            profile.update(update)
            return ProfileSyncResult(ok=True, created=False, profile=profile)
        update['created_at'] = now_ts
        users_repo.set_doc(db, uid, update)
        logger.info(f"New user profile created: {uid}")
        return ProfileSyncResult(ok=True, created=True, profile=update)
    except Exception as exc:
        logger.warning(f"Failed to sync user profile for {uid}: {exc}")
        return ProfileSyncResult(ok=False, error=str(exc))


def profile_payload(profile: dict) -> dict:
    metadata = profile.get('metadata') or {}
    return {
        'uid': profile.get('uid', ''),
        'email': profile.get('email', ''),
        'display_name': profile.get('display_name', ''),
        'photo_url': profile.get('photo_url', ''),
        'email_verified': bool(profile.get('email_verified', False)),
        'provider': profile.get('provider', DEFAULT_PROVIDER),
        'metadata': {
            'creation_time': metadata.get('creation_time', ''),
            'last_sign_in_time': metadata.get('last_sign_in_time', ''),
        },
        'created_at': profile.get('created_at'),
        'last_login_at': profile.get('last_login_at'),
    }
