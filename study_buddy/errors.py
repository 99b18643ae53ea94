"""Error taxonomy shared by services and request handlers."""


class ConfigurationError(RuntimeError):
    """Required startup configuration is missing or unusable."""


class ValidationError(ValueError):
    def __init__(self, field, limit=None, message=''):
        self.field = field
        self.limit = limit
        self.message = message or f'Invalid {field}'
        super().__init__(self.message)

    def to_payload(self):
        return {'error': self.message, 'field': self.field, 'limit': self.limit}


class QuotaExceeded(Exception):
    def __init__(self, kind, limit, current_count=None):
        self.kind = kind
        self.limit = int(limit)
        self.current_count = current_count
        super().__init__(f'{kind} limit reached ({limit} allowed)')

    def to_payload(self):
        return {
            'error': str(self),
            'kind': self.kind,
            'limit': self.limit,
            'current_count': self.current_count,
        }


class DependencyFailure(Exception):
    """A document store or object store call failed."""


class NotFound(LookupError):
    pass
