from diagnostic.models.learner import Learner
from diagnostic.models.question import Question
from diagnostic.models.attempt import Attempt
from diagnostic.models.practice_session import PracticeSession

__all__ = ["Learner", "Question", "Attempt", "PracticeSession"]
