from .account import account_bp
from .subjects import subjects_bp
from .notes import notes_bp
from .flashcards import flashcards_bp
from .games import games_bp
from .reports import reports_bp
from .updates import updates_bp

__all__ = ['account_bp', 'subjects_bp', 'notes_bp', 'flashcards_bp', 'games_bp', 'reports_bp', 'updates_bp']
