"""Firebase runtime handle and Flask extension registration."""

import threading

import firebase_admin
from firebase_admin import credentials, firestore, storage
from flask import current_app

from .logging_config import logger


class FirebaseRuntime:
    """Process-wide Firebase handle, constructed once at startup.

    ``initialize`` is single-flight: the first caller builds the app under the
    lock, later callers reuse it. An existing default app (``ValueError`` from
    ``initialize_app``) counts as already initialized.
    """

    def __init__(self, config, firebase_admin_module=firebase_admin):
        self.config = config
        self._firebase_admin = firebase_admin_module
        self._lock = threading.Lock()
        self._app = None

    @property
    def initialized(self):
        return self._app is not None

    def _credential(self):
        if self.config.firebase_credentials_path:
            return credentials.Certificate(self.config.firebase_credentials_path)
        if self.config.firebase_credentials:
            return credentials.Certificate(self.config.firebase_credentials)
        return None

    def initialize(self):
        if self._app is not None:
            return self._app
        with self._lock:
            if self._app is not None:
                return self._app
            options = {}
            if self.config.storage_bucket:
                options['storageBucket'] = self.config.storage_bucket
            if self.config.firebase_project_id:
                options['projectId'] = self.config.firebase_project_id
            try:
                self._app = self._firebase_admin.initialize_app(self._credential(), options)
                logger.info('Firebase Admin initialized')
            except ValueError:
                self._app = self._firebase_admin.get_app()
            return self._app

    def firestore_client(self):
        return firestore.client(app=self.initialize())

    def bucket(self):
        return storage.bucket(self.config.storage_bucket, app=self.initialize())


def init_extensions(app, app_ctx) -> None:
    if app is None:
        return
    app.extensions.setdefault('study_buddy', app_ctx)


def get_app_ctx():
    return current_app.extensions['study_buddy']
