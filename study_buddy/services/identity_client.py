"""Minimal Firebase Auth (Identity Toolkit REST) client for password and Google sign-in."""

import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Optional

IDENTITY_TOOLKIT_BASE_URL = 'https://identitytoolkit.googleapis.com/v1'


class IdentityProviderError(Exception):
    def __init__(self, code, status=0):
        self.code = str(code or 'UNKNOWN')
        self.status = int(status or 0)
        super().__init__(f"Identity provider error: {self.code}")


class IdentityToolkitClient:
    def __init__(self, api_key: str, *, base_url: str = IDENTITY_TOOLKIT_BASE_URL, timeout: float = 10.0, opener=None) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._open = opener or urllib.request.urlopen

    def _post(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/accounts:{method}?key={urllib.parse.quote(self.api_key)}"
        payload = json.dumps(body).encode('utf-8')
        req = urllib.request.Request(url=url, data=payload, method='POST', headers={'Content-Type': 'application/json'})
        try:
            with self._open(req, timeout=self.timeout) as response:
                return json.loads(response.read().decode('utf-8') or '{}')
        except urllib.error.HTTPError as exc:
            raw = exc.read().decode('utf-8', errors='replace')
            try:
                message = (json.loads(raw).get('error') or {}).get('message', '')
            except ValueError:
                message = raw[:200]
            raise IdentityProviderError(message or exc.reason, exc.code)
        except urllib.error.URLError as exc:
            raise IdentityProviderError(f"UNREACHABLE: {exc.reason}")

    def sign_up(self, email: str, password: str) -> Dict[str, Any]:
        return self._post('signUp', {'email': email, 'password': password, 'returnSecureToken': True})

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        return self._post('signInWithPassword', {'email': email, 'password': password, 'returnSecureToken': True})

    def sign_in_with_google(self, google_id_token: str, request_uri: str = 'http://localhost') -> Dict[str, Any]:
        post_body = urllib.parse.urlencode({'id_token': google_id_token, 'providerId': 'google.com'})
        return self._post('signInWithIdp', {
            'postBody': post_body,
            'requestUri': request_uri,
            'returnSecureToken': True,
            'returnIdpCredential': True,
        })

    def update_profile(self, id_token: str, display_name: Optional[str] = None, photo_url: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {'idToken': id_token, 'returnSecureToken': True}
        if display_name is not None:
            body['displayName'] = display_name
        if photo_url is not None:
            body['photoUrl'] = photo_url
        return self._post('update', body)

    def lookup(self, id_token: str) -> Dict[str, Any]:
        users = self._post('lookup', {'idToken': id_token}).get('users') or []
        if not users:
            raise IdentityProviderError('USER_NOT_FOUND')
        return users[0]
