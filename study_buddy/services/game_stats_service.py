"""Flashcard game results and the per-set stats derived from them.

One stats document per (user, flashcard set, game type). Each new result is
appended inside a transaction that also updates the totals; only the most
recent results are kept on the document.
"""

import math

from study_buddy.errors import DependencyFailure, NotFound, ValidationError
from study_buddy.repositories import game_stats_repo
from study_buddy.services import resource_service

GAME_TYPES = ('matching',)
DEFAULT_GAME_TYPE = 'matching'
DIFFICULTIES = ('easy', 'medium', 'hard')
MIN_STARS = 1
MAX_STARS = 3
MAX_KEPT_RESULTS = 50
DEFAULT_RECENT_LIMIT = 10
MAX_RECENT_LIMIT = 50


def _number(payload, field, *, minimum, integer=False, strict_minimum=False):
    value = payload.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field, None, f'{field} must be a number')
    if integer and int(value) != value:
        raise ValidationError(field, None, f'{field} must be a whole number')
    if value < minimum or (strict_minimum and value == minimum):
        raise ValidationError(field, minimum, f'{field} is out of range')
    return int(value) if integer else value


def validate_game_type(raw):
    game_type = str(raw or DEFAULT_GAME_TYPE).strip().lower()
    if game_type not in GAME_TYPES:
        raise ValidationError('gameType', list(GAME_TYPES), f"gameType must be one of: {', '.join(GAME_TYPES)}")
    return game_type


def validate_result(payload):
    flashcard_set_id = str(payload.get('flashcardSetId') or payload.get('flashcard_set_id') or '').strip()
    if not flashcard_set_id:
        raise ValidationError('flashcardSetId', None, 'flashcardSetId is required')
    if not payload.get('gameType'):
        raise ValidationError('gameType', list(GAME_TYPES), 'gameType is required')
    difficulty = str(payload.get('difficulty', '') or '').strip().lower()
    if difficulty not in DIFFICULTIES:
        raise ValidationError('difficulty', list(DIFFICULTIES), f"difficulty must be one of: {', '.join(DIFFICULTIES)}")
    stars = _number(payload, 'stars', minimum=MIN_STARS, integer=True)
    if stars > MAX_STARS:
        raise ValidationError('stars', MAX_STARS, f'stars must be between {MIN_STARS} and {MAX_STARS}')
    return flashcard_set_id, validate_game_type(payload.get('gameType')), {
        'score': _number(payload, 'score', minimum=0),
        'time': _number(payload, 'time', minimum=0, strict_minimum=True),
        'moves': _number(payload, 'moves', minimum=0, integer=True, strict_minimum=True),
        'difficulty': difficulty,
        'stars': stars,
    }


def _average(results):
    if not results:
        return 0
    return int(math.floor(sum(item['score'] for item in results) / len(results) + 0.5))


def apply_result(stats, result, now_ts):
    """Return ``stats`` with ``result`` appended and the totals recomputed."""
    results = list(stats.get('results') or []) + [result]
    best_time = stats.get('best_time')
    updated = dict(stats)
    updated.update({
        'results': results[-MAX_KEPT_RESULTS:],
        'total_games_played': int(stats.get('total_games_played', 0) or 0) + 1,
        'best_score': max(stats.get('best_score', result['score']), result['score']),
        'best_time': result['time'] if best_time is None else min(best_time, result['time']),
        'average_score': _average(results),
        'updated_at': now_ts,
    })
    updated.setdefault('created_at', now_ts)
    return updated


def record_result(app_ctx, uid, payload):
    flashcard_set_id, game_type, fields = validate_result(payload)
    resource_service.get_flashcard_set(app_ctx, uid, flashcard_set_id)
    now_ts = app_ctx.time.time()
    result = dict(fields, completed_at=now_ts)
    stats_ref = game_stats_repo.doc_ref(app_ctx.db, uid, flashcard_set_id, game_type)

    @app_ctx.firestore.transactional
    def _txn(txn):
        snapshot = stats_ref.get(transaction=txn)
        current = snapshot.to_dict() if snapshot.exists else {
            'uid': uid,
            'flashcard_set_id': flashcard_set_id,
            'game_type': game_type,
        }
        updated = apply_result(current or {}, result, now_ts)
        txn.set(stats_ref, updated)
        return updated

    try:
        stats = _txn(app_ctx.db.transaction())
    except Exception as exc:
        raise DependencyFailure(f'Could not save game result for {uid}') from exc
    app_ctx.logger.info(f"Game result saved for user {uid}, set {flashcard_set_id}")
    return stats


def empty_stats(flashcard_set_id, game_type):
    return {
        'flashcard_set_id': flashcard_set_id,
        'game_type': game_type,
        'results': [],
        'total_games_played': 0,
        'best_score': 0,
        'best_time': None,
        'average_score': 0,
    }


def get_set_stats(app_ctx, uid, flashcard_set_id, game_type=None):
    game_type = validate_game_type(game_type)
    if not flashcard_set_id:
        raise NotFound('Flashcard set not found')
    snapshot = game_stats_repo.get_doc(app_ctx.db, uid, flashcard_set_id, game_type)
    if not snapshot.exists:
        return empty_stats(flashcard_set_id, game_type)
    return snapshot.to_dict() or empty_stats(flashcard_set_id, game_type)


def get_overall_stats(app_ctx, uid):
    stats = [doc.to_dict() or {} for doc in game_stats_repo.list_by_uid(app_ctx.db, uid)]
    return {
        'total_games_played': sum(int(item.get('total_games_played', 0) or 0) for item in stats),
        'total_sets_played': len(stats),
        'overall_best_score': max([item.get('best_score', 0) or 0 for item in stats] + [0]),
        'stats_by_set': stats,
    }


def parse_recent_limit(raw):
    try:
        limit = int(raw) if raw not in (None, '') else DEFAULT_RECENT_LIMIT
    except (TypeError, ValueError):
        raise ValidationError('limit', MAX_RECENT_LIMIT, 'limit must be a whole number')
    return max(1, min(limit, MAX_RECENT_LIMIT))


def get_recent_results(app_ctx, uid, limit=DEFAULT_RECENT_LIMIT):
    flattened = []
    for doc in game_stats_repo.list_by_uid(app_ctx.db, uid):
        stats = doc.to_dict() or {}
        for result in stats.get('results') or []:
            flattened.append(dict(
                result,
                flashcard_set_id=stats.get('flashcard_set_id', ''),
                game_type=stats.get('game_type', DEFAULT_GAME_TYPE),
            ))
    flattened.sort(key=lambda item: item.get('completed_at', 0) or 0, reverse=True)
    return flattened[:limit]
