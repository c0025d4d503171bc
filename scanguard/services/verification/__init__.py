from .evaluator import VerificationEvaluator
from .verification_service import VerificationService

__all__ = ['VerificationEvaluator', 'VerificationService']
