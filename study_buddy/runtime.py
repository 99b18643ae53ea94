"""Application context handed to every API service function."""

import logging
import threading
import time

from firebase_admin import auth, firestore
from flask import jsonify

from .config import require_storage_config
from .errors import NotFound, QuotaExceeded, ValidationError
from .extensions import FirebaseRuntime
from .logging_config import log_event, logger
from .services import auth_service, rate_limit_service
from .services.auth_flow_service import AuthFlow
from .services.blob_service import BlobStore
from .services.identity_client import IdentityToolkitClient
from .services.quota_service import QuotaEnforcer
from .services.user_sync_service import sync_user_profile

RATE_LIMIT_COUNTER_COLLECTION = 'rate_limit_counters'


class AppContext:
    def __init__(
        self,
        config,
        *,
        db,
        blob_store,
        auth_module=auth,
        firestore_module=firestore,
        firebase_runtime=None,
        identity_client=None,
        time_module=time,
    ):
        self.config = config
        self.limits = config.limits
        self.db = db
        self.blob_store = blob_store
        self.auth = auth_module
        self.firestore = firestore_module
        self.firebase = firebase_runtime
        self.identity_client = identity_client
        self.time = time_module
        self.logger = logger
        self.log_event = log_event
        self.jsonify = jsonify
        self.quota = QuotaEnforcer(db, firestore_module, config.limits, time_module=time_module)
        self.rate_limit_events = {}
        self.rate_limit_lock = threading.Lock()

    def verify_firebase_token(self, request):
        return auth_service.verify_firebase_token(request, auth_module=self.auth, logger=self.logger)

    def check_rate_limit(self, scope, actor):
        return rate_limit_service.check_rate_limit(
            scope,
            actor,
            limits=self.limits,
            firestore_enabled=self.config.rate_limit_firestore_enabled,
            db=self.db,
            firestore_module=self.firestore,
            counter_collection=RATE_LIMIT_COUNTER_COLLECTION,
            in_memory_events=self.rate_limit_events,
            in_memory_lock=self.rate_limit_lock,
            time_module=self.time,
        )

    def build_rate_limited_response(self, message, retry_after):
        response = self.jsonify({
            'error': message,
            'retry_after_seconds': int(max(1, retry_after)),
        })
        response.status_code = 429
        response.headers['Retry-After'] = str(int(max(1, retry_after)))
        return response

    def error_response(self, exc, fallback_message):
        if isinstance(exc, ValidationError):
            return self.jsonify(exc.to_payload()), 400
        if isinstance(exc, QuotaExceeded):
            self.log_event(logging.INFO, 'quota_exceeded', kind=exc.kind, limit=exc.limit, current_count=exc.current_count)
            return self.jsonify(exc.to_payload()), 403
        if isinstance(exc, NotFound):
            return self.jsonify({'error': str(exc)}), 404
        self.logger.error(f"{fallback_message}: {exc}")
        return self.jsonify({'error': fallback_message}), 500

    def authorize(self, request, scope=rate_limit_service.SCOPE_GENERAL):
        """Return ``(decoded_token, None)`` or ``(None, error_response)``."""
        decoded_token = self.verify_firebase_token(request)
        if not decoded_token:
            return None, (self.jsonify({'error': 'Unauthorized'}), 401)
        allowed, retry_after = self.check_rate_limit(scope, decoded_token['uid'])
        if not allowed:
            self.log_event(logging.WARNING, 'rate_limited', scope=scope, uid=decoded_token['uid'], retry_after=retry_after)
            return None, self.build_rate_limited_response('Too many requests right now. Please wait and try again.', retry_after)
        return decoded_token, None

    def sync_profile(self, uid, claims):
        return sync_user_profile(self.db, uid, claims, time_module=self.time)

    def auth_flow(self):
        if self.identity_client is None:
            self.identity_client = IdentityToolkitClient(self.config.firebase_web_api_key)
        return AuthFlow(self.identity_client, self.sync_profile)


def build_app_context(config):
    require_storage_config(config)
    runtime = FirebaseRuntime(config)
    runtime.initialize()
    return AppContext(
        config,
        db=runtime.firestore_client(),
        blob_store=BlobStore(runtime.bucket()),
        firebase_runtime=runtime,
    )
