# Computer opponent
from .engine import AIOpponent, AIDecision, AIPerformanceMetrics, compute_move, setup_logging
from .worker import AIWorker, AIRequest, AIResponse

__all__ = ['AIOpponent', 'AIDecision', 'AIPerformanceMetrics', 'compute_move',
           'setup_logging', 'AIWorker', 'AIRequest', 'AIResponse']
