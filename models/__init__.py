# models/__init__.py
# Инициализация моделей

from .profile import Profile
from .jam import Jam
from .battle import Battle, BattleStatus
from .candidate import Candidate
from .participant import Participant
from .judge import Judge
from .criterion import Criterion
from .score import CriteriaScore
from .vote_comment import VoteComment
from .battle_result import BattleResult
from .credit_transaction import CreditTransaction
from .battle_stars import BattleStars
