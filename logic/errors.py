# logic/errors.py
# Ошибки движка баттлов. Каждая несет машинный код и HTTP-статус,
# чтобы граница вызова (routes) могла вернуть структурированный ответ.


class BattleError(Exception):
    code = 'battle_error'
    status_code = 400
    retryable = False

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        return {
            'ok': False,
            'error': self.code,
            'message': self.message,
            'details': self.details,
            'retryable': self.retryable,
        }


class ValidationError(BattleError):
    code = 'validation_error'
    status_code = 400


class NotFound(BattleError):
    code = 'not_found'
    status_code = 404

    def __init__(self, entity, entity_id, message=None):
        super().__init__(message or f'{entity} #{entity_id} не найден', entity=entity, id=entity_id)


class NotEligible(BattleError):
    code = 'not_eligible'
    status_code = 403


class DuplicateCandidacy(BattleError):
    code = 'duplicate_candidacy'
    status_code = 409


class DuplicateVote(BattleError):
    code = 'duplicate_vote'
    status_code = 409


class InvalidTransition(BattleError):
    code = 'invalid_transition'
    status_code = 409


class InvalidState(BattleError):
    code = 'invalid_state'
    status_code = 409


class NoWinner(BattleError):
    code = 'no_winner'
    status_code = 409


class StorageError(BattleError):
    """Сбой хранилища (сеть, таймаут, блокировка). Единственная ошибка, которую можно повторять."""
    code = 'storage_error'
    status_code = 503
    retryable = True
