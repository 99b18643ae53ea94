import json
import os
from dataclasses import dataclass, field, fields

from .errors import ConfigurationError

MIB = 1024 * 1024


@dataclass(frozen=True)
class LimitsConfig:
    """Resource ceilings enforced by the limit policy and quota enforcer."""

    max_subjects_per_user: int = 10
    max_notes_per_subject: int = 10
    max_flashcard_sets_per_subject: int = 20

    max_file_size_bytes: int = 10 * MIB
    allowed_file_types: tuple = ('.pdf',)

    max_subject_name_length: int = 100
    max_note_filename_length: int = 255
    max_flashcard_question_length: int = 500
    max_flashcard_answer_length: int = 1000
    max_chat_message_length: int = 2000

    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100
    rate_limit_upload_max: int = 10
    rate_limit_ai_max: int = 30

    @property
    def max_file_size_mb(self):
        return self.max_file_size_bytes // MIB

    def as_public_dict(self):
        return {
            'max_subjects_per_user': self.max_subjects_per_user,
            'max_notes_per_subject': self.max_notes_per_subject,
            'max_flashcard_sets_per_subject': self.max_flashcard_sets_per_subject,
            'max_file_size_mb': self.max_file_size_mb,
            'max_file_size_bytes': self.max_file_size_bytes,
            'allowed_file_types': list(self.allowed_file_types),
            'max_subject_name_length': self.max_subject_name_length,
            'max_note_filename_length': self.max_note_filename_length,
            'max_flashcard_question_length': self.max_flashcard_question_length,
            'max_flashcard_answer_length': self.max_flashcard_answer_length,
            'max_chat_message_length': self.max_chat_message_length,
        }


DEFAULT_LIMITS = LimitsConfig()


def load_limits(env=None) -> LimitsConfig:
    """Build limits from defaults, applying ``LIMIT_<FIELD>`` overrides."""
    env = os.environ if env is None else env
    overrides = {}
    for item in fields(LimitsConfig):
        raw = str(env.get(f'LIMIT_{item.name.upper()}', '') or '').strip()
        if not raw:
            continue
        if item.name == 'allowed_file_types':
            types = []
            for part in raw.split(','):
                ext = part.strip().lower()
                if not ext:
                    continue
                types.append(ext if ext.startswith('.') else f'.{ext}')
            overrides[item.name] = tuple(types)
            continue
        try:
            value = int(raw)
        except ValueError:
            raise ConfigurationError(f'LIMIT_{item.name.upper()} must be an integer, got {raw!r}')
        if value <= 0:
            raise ConfigurationError(f'LIMIT_{item.name.upper()} must be positive')
        overrides[item.name] = value
    return LimitsConfig(**overrides)


@dataclass(frozen=True)
class AppConfig:
    """Central config object, built once at startup."""

    flask_secret_key: str = ''
    log_level: str = 'INFO'
    runtime_env: str = 'development'
    firebase_project_id: str = ''
    firebase_credentials: dict = field(default_factory=dict)
    firebase_credentials_path: str = ''
    firebase_web_api_key: str = ''
    storage_bucket: str = ''
    sentry_dsn: str = ''
    sentry_environment: str = 'production'
    sentry_release: str = 'study-buddy'
    rate_limit_firestore_enabled: bool = True
    limits: LimitsConfig = DEFAULT_LIMITS

    @property
    def is_dev_like(self):
        return self.runtime_env in {'development', 'dev', 'local', 'test'}


def _env(name, default=''):
    return (os.getenv(name, default) or default).strip()


def _load_firebase_credentials():
    path = _env('FIREBASE_CREDENTIALS_PATH', 'firebase-credentials.json')
    if os.path.exists(path):
        return {}, path
    raw = _env('FIREBASE_CREDENTIALS')
    if not raw:
        return {}, ''
    try:
        return json.loads(raw), ''
    except ValueError:
        raise ConfigurationError('FIREBASE_CREDENTIALS is not valid JSON.')


def load_config() -> AppConfig:
    runtime_env = (
        os.getenv('SENTRY_ENVIRONMENT')
        or os.getenv('FLASK_ENV')
        or os.getenv('ENV')
        or 'development'
    ).strip().lower()
    credentials_dict, credentials_path = _load_firebase_credentials()
    config = AppConfig(
        flask_secret_key=_env('FLASK_SECRET_KEY'),
        log_level=_env('LOG_LEVEL', 'INFO').upper(),
        runtime_env=runtime_env,
        firebase_project_id=_env('FIREBASE_PROJECT_ID') or str(credentials_dict.get('project_id', '') or ''),
        firebase_credentials=credentials_dict,
        firebase_credentials_path=credentials_path,
        firebase_web_api_key=_env('FIREBASE_WEB_API_KEY'),
        storage_bucket=_env('STORAGE_BUCKET'),
        sentry_dsn=_env('SENTRY_BACKEND_DSN'),
        sentry_environment=runtime_env,
        sentry_release=_env('SENTRY_RELEASE', 'study-buddy'),
        rate_limit_firestore_enabled=_env('RATE_LIMIT_FIRESTORE_ENABLED', '1').lower() in {'1', 'true', 'yes', 'on'},
        limits=load_limits(),
    )
    if not config.is_dev_like and not config.flask_secret_key:
        raise ConfigurationError('FLASK_SECRET_KEY must be set in non-development environments.')
    return config


def require_storage_config(config: AppConfig) -> None:
    """Fail fast when the object store or Firebase credentials are not configured."""
    if not config.storage_bucket:
        raise ConfigurationError('STORAGE_BUCKET is not set in environment variables')
    if not (config.firebase_credentials or config.firebase_credentials_path or config.firebase_project_id):
        raise ConfigurationError(
            'Firebase credentials are not configured: set FIREBASE_CREDENTIALS, '
            'FIREBASE_CREDENTIALS_PATH or FIREBASE_PROJECT_ID.'
        )
