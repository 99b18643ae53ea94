"""Fixed-window rate limiting with Firestore counters and an in-memory fallback."""

import re

from study_buddy.repositories import rate_limit_repo

SCOPE_GENERAL = 'general'
SCOPE_UPLOAD = 'upload'
SCOPE_AI = 'ai'

MEMORY_SWEEP_MIN_KEYS = 256


def scope_ceiling(scope, limits):
    if scope == SCOPE_UPLOAD:
        return limits.rate_limit_upload_max
    if scope == SCOPE_AI:
        return limits.rate_limit_ai_max
    return limits.rate_limit_max_requests


def normalize_key_part(value, fallback='anon', max_len=120):
    raw = str(value or '').strip().lower()
    if not raw:
        return fallback
    safe = re.sub(r'[^a-z0-9_.:@-]+', '_', raw)
    return safe[:max_len] if safe else fallback


def check_firestore_window(key, limit, window_seconds, now_ts, *, db, firestore_module, counter_collection):
    """Return ``(allowed, retry_after)``, or None when Firestore is unusable."""
    if db is None:
        return None
    try:
        window_start = int(now_ts // window_seconds) * int(window_seconds)
        retry_after = max(1, int((window_start + window_seconds) - now_ts))
        counter_ref = rate_limit_repo.counter_doc_ref(db, counter_collection, key, window_seconds, window_start)

        @firestore_module.transactional
        def _txn(txn):
            snapshot = counter_ref.get(transaction=txn)
            count = 0
            if snapshot.exists:
                count = int((snapshot.to_dict() or {}).get('count', 0) or 0)
            if count >= limit:
                return False, retry_after
            txn.set(counter_ref, {
                'key': key,
                'count': count + 1,
                'window_start': window_start,
                'window_seconds': int(window_seconds),
                'updated_at': now_ts,
                'expires_at': window_start + (window_seconds * 3),
            }, merge=True)
            return True, 0

        return _txn(db.transaction())
    except Exception:
        return None


def evict_stale_keys(events, cutoff):
    """Drop keys whose every timestamp is older than ``cutoff``."""
    for key in [key for key, stamps in events.items() if not stamps or stamps[-1] < cutoff]:
        del events[key]


def check_memory_window(key, limit, window_seconds, now_ts, *, events, lock, sweep_min_keys=MEMORY_SWEEP_MIN_KEYS):
    with lock:
        cutoff = now_ts - window_seconds
        if len(events) >= sweep_min_keys:
            evict_stale_keys(events, cutoff)
        kept = [ts for ts in events.get(key, []) if ts >= cutoff]
        if len(kept) >= limit:
            events[key] = kept
            return False, max(1, int((kept[0] + window_seconds) - now_ts))
        kept.append(now_ts)
        events[key] = kept
    return True, 0


def check_rate_limit(
    scope,
    actor,
    *,
    limits,
    firestore_enabled,
    db,
    firestore_module,
    counter_collection,
    in_memory_events,
    in_memory_lock,
    time_module,
):
    key = f"{scope}:{normalize_key_part(actor)}"
    limit = scope_ceiling(scope, limits)
    window_seconds = limits.rate_limit_window_seconds
    now_ts = time_module.time()
    if firestore_enabled:
        result = check_firestore_window(
            key,
            limit,
            window_seconds,
            now_ts,
            db=db,
            firestore_module=firestore_module,
            counter_collection=counter_collection,
        )
        if result is not None:
            return result
    return check_memory_window(key, limit, window_seconds, now_ts, events=in_memory_events, lock=in_memory_lock)
