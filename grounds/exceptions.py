class AllocationError(Exception):
    """Base for every error raised while claiming or querying ground slots.

    ``status_code`` is the HTTP status request handlers answer with and
    ``code`` the machine readable kind sent alongside the message.
    """
    code = 'error'
    status_code = 406

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field

    def as_dict(self):
        payload = {'success': False, 'error': self.message, 'code': self.code}
        if self.field:
            payload['field'] = self.field
        return payload


class NotFound(AllocationError):
    code = 'not_found'
    status_code = 404


class Conflict(AllocationError):
    code = 'conflict'
    status_code = 409

    def __init__(self, message, claim_kind=None):
        super().__init__(message)
        self.claim_kind = claim_kind

    def as_dict(self):
        payload = super().as_dict()
        if self.claim_kind:
            payload['claim_kind'] = self.claim_kind
        return payload


class InvalidRange(AllocationError):
    code = 'invalid_range'


class CapabilityDisabled(AllocationError):
    code = 'capability_disabled'


class Validation(AllocationError):
    code = 'validation'
